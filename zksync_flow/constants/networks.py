from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict

from eth_typing import HexStr


class Network(Enum):
    MAINNET = "mainnet"
    SEPOLIA = "sepolia"
    CUSTOM = "custom"


@dataclass(frozen=True)
class NetworkConfig:
    name: str
    chain_id: int
    rpc_url: str
    explorer_url: str
    explorer_api_url: str
    l1_chain_id: int
    l1_rpc_url: str
    bridge_address: str
    testnet_paymaster: Optional[HexStr] = None


NETWORKS: Dict[str, NetworkConfig] = {
    Network.MAINNET.value: NetworkConfig(
        name="zkSync Era Mainnet",
        chain_id=324,
        rpc_url="https://mainnet.era.zksync.io",
        explorer_url="https://explorer.zksync.io",
        explorer_api_url="https://block-explorer-api.mainnet.zksync.io",
        l1_chain_id=1,
        l1_rpc_url="https://ethereum.publicnode.com",
        bridge_address="0x32400084C286CF3E17e7B677ea9583e60a000324",
    ),
    Network.SEPOLIA.value: NetworkConfig(
        name="zkSync Era Sepolia Testnet",
        chain_id=300,
        rpc_url="https://sepolia.era.zksync.dev",
        explorer_url="https://sepolia.explorer.zksync.io",
        explorer_api_url="https://block-explorer-api.sepolia.zksync.dev",
        l1_chain_id=11155111,
        l1_rpc_url="https://ethereum-sepolia.publicnode.com",
        bridge_address="0x9A6DE0f62Aa270A8bCB1e2610078650D539B1Ef9",
        testnet_paymaster=HexStr("0x3cb2b87d10ac01736a65688f3e0fb1b070b3eea3"),
    ),
}


def get_network_config(network: str, custom_rpc_url: Optional[str] = None) -> NetworkConfig:
    """
    Resolves a network name into its configuration.

    ``custom`` with a URL yields a config with chain ID 0 and no explorer
    metadata; unknown names fall back to mainnet.
    """
    if network == Network.CUSTOM.value and custom_rpc_url:
        return NetworkConfig(
            name="Custom Network",
            chain_id=0,
            rpc_url=custom_rpc_url,
            explorer_url="",
            explorer_api_url="",
            l1_chain_id=0,
            l1_rpc_url="",
            bridge_address="",
        )
    return NETWORKS.get(network, NETWORKS[Network.MAINNET.value])
