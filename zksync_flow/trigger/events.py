from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

DEFAULT_EVENT_ABI = "event Transfer(address indexed from, address indexed to, uint256 value)"


class TriggerKind(Enum):
    NEW_BLOCK = "newBlock"
    NEW_L1_BATCH = "newL1Batch"
    TRANSACTION_CONFIRMED = "transactionConfirmed"
    ETH_RECEIVED = "ethReceived"
    ETH_SENT = "ethSent"
    TOKEN_TRANSFER = "tokenTransfer"
    NFT_TRANSFER = "nftTransfer"
    CONTRACT_EVENT = "contractEvent"
    BLOCK_FINALIZED = "blockFinalized"
    BALANCE_CHANGE = "balanceChange"


@dataclass(frozen=True)
class TriggerEvent:
    kind: TriggerKind
    data: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self.data)


@dataclass
class TriggerParameters:
    """What a trigger watches. Only the fields its kind needs are read."""

    trigger_on: TriggerKind = TriggerKind.NEW_BLOCK
    watch_address: Optional[str] = None
    tx_hash: Optional[str] = None
    confirmations: int = 1
    contract_address: Optional[str] = None
    event_abi: str = DEFAULT_EVENT_ABI
    event_name: Optional[str] = None
    filter_address: Optional[str] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "TriggerParameters":
        """Reads the camelCase parameter names used by workflow definitions."""
        return cls(
            trigger_on=TriggerKind(values.get("triggerOn", TriggerKind.NEW_BLOCK.value)),
            watch_address=values.get("watchAddress") or None,
            tx_hash=values.get("txHash") or None,
            confirmations=int(values.get("confirmations") or 1),
            contract_address=values.get("contractAddress") or None,
            event_abi=values.get("eventAbi") or DEFAULT_EVENT_ABI,
            event_name=values.get("eventName") or None,
            filter_address=values.get("filterAddress") or None,
        )
