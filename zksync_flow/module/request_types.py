from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional, TypedDict

from eth_typing import HexStr
from eth_utils import to_hex

from zksync_flow.core.types import PaymasterParams


class TransactionType(IntEnum):
    LEGACY = 0
    EIP_1559 = 2
    EIP_712_TX_TYPE = 113


@dataclass
class EIP712Meta:
    """zkSync specific part of a type 113 transaction."""

    GAS_PER_PUB_DATA_DEFAULT = 50000

    gas_per_pub_data: int = GAS_PER_PUB_DATA_DEFAULT
    custom_signature: Optional[bytes] = None
    paymaster_params: Optional[PaymasterParams] = None

    def to_rpc(self) -> Dict[str, Any]:
        """JSON-RPC form expected by ``eth_estimateGas`` on zkSync nodes."""
        meta: Dict[str, Any] = {"gasPerPubdata": to_hex(self.gas_per_pub_data)}
        if self.custom_signature is not None:
            meta["customSignature"] = to_hex(self.custom_signature)
        if self.paymaster_params is not None:
            # the node reads paymasterInput as a list of byte values
            meta["paymasterParams"] = {
                "paymaster": self.paymaster_params.paymaster,
                "paymasterInput": list(self.paymaster_params.paymaster_input),
            }
        return meta


# request dict built by TxFunctionCall, "from" rules out the class syntax
Transaction = TypedDict(
    "Transaction",
    {
        "chain_id": int,
        "nonce": int,
        "from": HexStr,
        "to": HexStr,
        "gas": int,
        "gasPrice": int,
        "maxPriorityFeePerGas": int,
        "value": int,
        "data": HexStr,
        "transactionType": int,
        "eip712Meta": EIP712Meta,
    },
    total=False,
)
