from typing import Any, Dict, Optional

from eth_typing import HexStr
from web3.types import Nonce

from zksync_flow.core.types import PaymasterParams
from zksync_flow.core.utils import MAX_PRIORITY_FEE_PER_GAS
from zksync_flow.module.request_types import EIP712Meta, Transaction, TransactionType
from zksync_flow.transaction.transaction712 import Transaction712

# fields of the request that zkSync eth_estimateGas takes into account
ESTIMATE_GAS_FIELDS = ("from", "to", "value", "data", "transactionType", "eip712Meta")


class TxFunctionCall:
    """
    A type 113 call or transfer: ``value`` wei to ``to`` with optional calldata.

    Plain ETH sends leave ``data`` empty; contract writes put the ABI-encoded
    call there. ``paymaster_params`` moves the fee payment to a paymaster.
    """

    def __init__(
        self,
        from_: HexStr,
        to: HexStr,
        value: int = 0,
        chain_id: Optional[int] = None,
        nonce: Optional[int] = None,
        data: HexStr = HexStr("0x"),
        gas_limit: int = 0,
        gas_price: int = 0,
        max_priority_fee_per_gas: int = MAX_PRIORITY_FEE_PER_GAS,
        paymaster_params: Optional[PaymasterParams] = None,
        custom_signature: Optional[bytes] = None,
        gas_per_pub_data: int = EIP712Meta.GAS_PER_PUB_DATA_DEFAULT,
    ):
        self.tx: Transaction = {
            "chain_id": chain_id,
            "nonce": nonce,
            "from": from_,
            "to": to,
            "gas": gas_limit,
            "gasPrice": gas_price,
            "maxPriorityFeePerGas": max_priority_fee_per_gas,
            "value": value,
            "data": data,
            "transactionType": TransactionType.EIP_712_TX_TYPE.value,
            "eip712Meta": EIP712Meta(
                gas_per_pub_data=gas_per_pub_data,
                custom_signature=custom_signature,
                paymaster_params=paymaster_params,
            ),
        }

    @property
    def meta(self) -> EIP712Meta:
        return self.tx["eip712Meta"]

    def estimate_request(self) -> Dict[str, Any]:
        return {k: v for k, v in self.tx.items() if k in ESTIMATE_GAS_FIELDS}

    def tx712(self, estimated_gas: int) -> Transaction712:
        """Freezes the call into a signable transaction with ``estimated_gas`` as gas limit."""
        tx = self.tx
        return Transaction712(
            chain_id=tx["chain_id"],
            nonce=Nonce(tx["nonce"]),
            gas_limit=estimated_gas,
            to=tx["to"],
            value=tx["value"],
            data=tx["data"],
            maxPriorityFeePerGas=tx["maxPriorityFeePerGas"],
            maxFeePerGas=tx["gasPrice"],
            from_=tx["from"],
            meta=self.meta,
        )
