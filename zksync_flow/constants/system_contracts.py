from dataclasses import dataclass
from enum import Enum
from typing import Dict

from eth_typing import HexStr


class SystemContract(Enum):
    """zkSync Era protocol contracts, deployed at the same address on every network."""

    EMPTY_CONTRACT = HexStr("0x0000000000000000000000000000000000000000")
    ECRECOVER = HexStr("0x0000000000000000000000000000000000000001")
    SHA256 = HexStr("0x0000000000000000000000000000000000000002")
    ECADD = HexStr("0x0000000000000000000000000000000000000006")
    ECMUL = HexStr("0x0000000000000000000000000000000000000007")
    ECPAIRING = HexStr("0x0000000000000000000000000000000000000008")
    BOOTLOADER_FORMAL = HexStr("0x0000000000000000000000000000000000008001")
    ACCOUNT_CODE_STORAGE = HexStr("0x0000000000000000000000000000000000008002")
    NONCE_HOLDER = HexStr("0x0000000000000000000000000000000000008003")
    KNOWN_CODES_STORAGE = HexStr("0x0000000000000000000000000000000000008004")
    IMMUTABLE_SIMULATOR = HexStr("0x0000000000000000000000000000000000008005")
    CONTRACT_DEPLOYER = HexStr("0x0000000000000000000000000000000000008006")
    FORCE_DEPLOYER = HexStr("0x0000000000000000000000000000000000008007")
    L1_MESSENGER = HexStr("0x0000000000000000000000000000000000008008")
    MSG_VALUE_SIMULATOR = HexStr("0x0000000000000000000000000000000000008009")
    ETH_TOKEN = HexStr("0x000000000000000000000000000000000000800A")
    SYSTEM_CONTEXT = HexStr("0x000000000000000000000000000000000000800B")
    BOOTLOADER_UTILITIES = HexStr("0x000000000000000000000000000000000000800C")
    EVENT_WRITER = HexStr("0x000000000000000000000000000000000000800D")
    COMPRESSOR = HexStr("0x000000000000000000000000000000000000800E")
    COMPLEX_UPGRADER = HexStr("0x000000000000000000000000000000000000800F")
    KECCAK256 = HexStr("0x0000000000000000000000000000000000008010")
    PUBDATA_CHUNK_PUBLISHER = HexStr("0x0000000000000000000000000000000000008011")


DESCRIPTIONS: Dict[SystemContract, str] = {
    SystemContract.EMPTY_CONTRACT: "Empty contract placeholder",
    SystemContract.ECRECOVER: "Elliptic curve signature recovery precompile",
    SystemContract.SHA256: "SHA-256 hash precompile",
    SystemContract.ECADD: "Elliptic curve addition precompile",
    SystemContract.ECMUL: "Elliptic curve multiplication precompile",
    SystemContract.ECPAIRING: "Elliptic curve pairing precompile",
    SystemContract.BOOTLOADER_FORMAL: "Formal bootloader address",
    SystemContract.ACCOUNT_CODE_STORAGE: "Stores account bytecode hashes",
    SystemContract.NONCE_HOLDER: "Manages account nonces for transactions and deployments",
    SystemContract.KNOWN_CODES_STORAGE: "Registry of known bytecode hashes",
    SystemContract.IMMUTABLE_SIMULATOR: "Simulates immutable variables for system contracts",
    SystemContract.CONTRACT_DEPLOYER: "Handles contract deployment logic",
    SystemContract.FORCE_DEPLOYER: "Force deployment capabilities",
    SystemContract.L1_MESSENGER: "Sends messages from L2 to L1",
    SystemContract.MSG_VALUE_SIMULATOR: "Simulates ETH transfers in system context",
    SystemContract.ETH_TOKEN: "Native ETH token system contract",
    SystemContract.SYSTEM_CONTEXT: "Provides block and chain context",
    SystemContract.BOOTLOADER_UTILITIES: "Utilities for bootloader operations",
    SystemContract.EVENT_WRITER: "Handles event emission",
    SystemContract.COMPRESSOR: "Handles data compression",
    SystemContract.COMPLEX_UPGRADER: "Handles complex contract upgrades",
    SystemContract.KECCAK256: "Keccak-256 hash precompile",
    SystemContract.PUBDATA_CHUNK_PUBLISHER: "Publishes pubdata chunks to L1",
}


@dataclass(frozen=True)
class SystemContractInfo:
    name: str
    address: HexStr
    description: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "address": self.address, "description": self.description}


def get_system_contract_info(contract: SystemContract) -> SystemContractInfo:
    return SystemContractInfo(
        name=contract.name,
        address=contract.value,
        description=DESCRIPTIONS[contract],
    )


def all_system_contracts() -> Dict[str, HexStr]:
    return {contract.name: contract.value for contract in SystemContract}
