from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Union, NewType, List, Optional, Dict, Any

from eth_typing import HexStr, Hash32
from hexbytes import HexBytes

from zksync_flow.core.utils import ADDRESS_DEFAULT, L2_BASE_TOKEN_ADDRESS

TransactionHash = Union[Hash32, HexBytes, HexStr]
TokenAddress = NewType("token_address", HexStr)


class ZkBlockParams(Enum):
    COMMITTED = "committed"
    FINALIZED = "finalized"
    PENDING = "pending"
    LATEST = "latest"
    EARLIEST = "earliest"


class BatchStatus(Enum):
    SEALED = "sealed"
    VERIFIED = "verified"


@dataclass
class Token:
    l1_address: HexStr
    l2_address: HexStr
    name: str
    symbol: str
    decimals: int

    def is_eth(self) -> bool:
        return (
            self.l1_address.lower() == ADDRESS_DEFAULT
            or self.l2_address.lower() == L2_BASE_TOKEN_ADDRESS
        )

    @classmethod
    def create_eth(cls) -> "Token":
        return Token(ADDRESS_DEFAULT, ADDRESS_DEFAULT, "Ether", "ETH", 18)


@dataclass
class PaymasterParams:
    paymaster: HexStr
    paymaster_input: bytes

    def to_dict(self) -> Dict[str, str]:
        return {
            "paymaster": self.paymaster,
            "paymasterInput": "0x" + self.paymaster_input.hex(),
        }


@dataclass
class BridgeAddresses:
    erc20_l1_default_bridge: Optional[HexStr]
    erc20_l2_default_bridge: Optional[HexStr]
    shared_l1_default_bridge: Optional[HexStr]
    shared_l2_default_bridge: Optional[HexStr]
    weth_bridge_l1: Optional[HexStr] = None
    weth_bridge_l2: Optional[HexStr] = None


@dataclass
class ZksMessageProof:
    id: int
    proof: List[str]
    root: str


@dataclass
class BaseSystemContractsHashes:
    bootloader: str
    default_aa: str


@dataclass
class BatchDetails:
    number: int
    timestamp: int
    l1_tx_count: int
    l2_tx_count: int
    root_hash: Optional[str]
    status: str
    commit_tx_hash: Optional[str] = None
    committed_at: Optional[datetime] = None
    prove_tx_hash: Optional[str] = None
    proven_at: Optional[datetime] = None
    execute_tx_hash: Optional[str] = None
    executed_at: Optional[datetime] = None
    l1_gas_price: Optional[int] = None
    l2_fair_gas_price: Optional[int] = None
    base_system_contracts_hashes: Optional[BaseSystemContractsHashes] = None

    @property
    def is_finalized(self) -> bool:
        return self.status == BatchStatus.VERIFIED.value and bool(self.execute_tx_hash)


@dataclass
class BlockDetails:
    number: int
    timestamp: int
    l1_tx_count: int
    l2_tx_count: int
    root_hash: Optional[str]
    status: str
    l1_batch_number: Optional[int] = None
    commit_tx_hash: Optional[str] = None
    committed_at: Optional[datetime] = None
    prove_tx_hash: Optional[str] = None
    proven_at: Optional[datetime] = None
    execute_tx_hash: Optional[str] = None
    executed_at: Optional[datetime] = None
    operator_address: Optional[str] = None


@dataclass
class TransactionDetails:
    is_l1_originated: bool
    status: str
    fee: Optional[int]
    initiator_address: Optional[str]
    received_at: Optional[datetime]
    gas_per_pubdata: Optional[int] = None
    eth_commit_tx_hash: Optional[str] = None
    eth_prove_tx_hash: Optional[str] = None
    eth_execute_tx_hash: Optional[str] = None


@dataclass
class Config:
    minimal_l2_gas_price: int  # Minimal gas price on L2.
    compute_overhead_part: float  # Compute overhead part in fee calculation.
    pubdata_overhead_part: float  # Public data overhead part in fee calculation.
    batch_overhead_l1_gas: int  # Overhead in L1 gas for a batch of transactions.
    max_gas_per_batch: int  # Maximum gas allowed per batch.
    max_pubdata_per_batch: int  # Maximum amount of public data allowed per batch.


@dataclass
class V2:
    config: Config  # Settings related to transaction fee computation.
    l1_gas_price: int  # Current L1 gas price.
    l1_pubdata_price: int  # Price of storing public data on L1.


@dataclass
class FeeParams:
    """Represents the fee parameters configuration."""

    v2: Optional[V2] = None  # Fee parameter configuration for the current protocol version.
    raw: Dict[str, Any] = field(default_factory=dict)
