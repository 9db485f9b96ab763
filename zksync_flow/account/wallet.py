import logging
from typing import Optional, Union

from eth_account.signers.base import BaseAccount
from eth_typing import HexStr
from web3 import Web3

from zksync_flow.core.types import PaymasterParams, ZkBlockParams
from zksync_flow.core.utils import MAX_PRIORITY_FEE_PER_GAS, to_hex
from zksync_flow.signer.eth_signer import PrivateKeyEthSigner
from zksync_flow.transaction.transaction_builders import TxFunctionCall

logger = logging.getLogger(__name__)


class Wallet:
    """
    Signs and sends type 113 (EIP-712) transactions on behalf of one account.

    Every state-changing operation goes through :meth:`send_transaction`, which
    fills nonce and fee fields, estimates gas, signs the typed data and submits
    the RLP encoded transaction.
    """

    def __init__(
        self, zksync_web3: Web3, account: BaseAccount, chain_id: Optional[int] = None
    ):
        self._zksync_web3 = zksync_web3
        self._account = account
        self._chain_id = chain_id

    @property
    def address(self) -> HexStr:
        return self._account.address

    @property
    def account(self) -> BaseAccount:
        return self._account

    @property
    def chain_id(self) -> int:
        if not self._chain_id:
            self._chain_id = self._zksync_web3.eth.chain_id
        return self._chain_id

    def build_transaction(
        self,
        to: HexStr,
        value: int = 0,
        data: Union[HexStr, bytes] = HexStr("0x"),
        paymaster_params: Optional[PaymasterParams] = None,
    ) -> TxFunctionCall:
        eth = self._zksync_web3.eth
        gas_price = eth.gas_price
        return TxFunctionCall(
            from_=self.address,
            to=Web3.to_checksum_address(to),
            value=value,
            chain_id=self.chain_id,
            nonce=eth.get_transaction_count(self.address, ZkBlockParams.LATEST.value),
            data=to_hex(data),
            gas_price=gas_price,
            max_priority_fee_per_gas=min(MAX_PRIORITY_FEE_PER_GAS, gas_price),
            paymaster_params=paymaster_params,
        )

    def estimate_gas(self, tx_fun_call: TxFunctionCall) -> int:
        return self._zksync_web3.zksync.eth_estimate_gas(tx_fun_call.estimate_request())

    def send_transaction(
        self,
        to: HexStr,
        value: int = 0,
        data: Union[HexStr, bytes] = HexStr("0x"),
        paymaster_params: Optional[PaymasterParams] = None,
        gas_limit: Optional[int] = None,
    ) -> HexStr:
        """
        Sends ``value`` wei and ``data`` to ``to``.

        :param paymaster_params: Lets a paymaster cover the fee.
        :param gas_limit: Skips estimation when given.

        Returns:
        - Transaction hash.
        """
        tx_fun_call = self.build_transaction(to, value, data, paymaster_params)
        if gas_limit is None or gas_limit == 0:
            gas_limit = self.estimate_gas(tx_fun_call)

        tx_712 = tx_fun_call.tx712(gas_limit)
        signer = PrivateKeyEthSigner(self._account, self.chain_id)
        signed_message = signer.sign_typed_data(tx_712.to_typed_data(signer.domain))

        msg = tx_712.encode(signed_message)
        tx_hash = to_hex(self._zksync_web3.eth.send_raw_transaction(msg))
        logger.info(
            "Sent transaction %s from %s to %s (paymaster: %s)",
            tx_hash,
            self.address,
            to,
            paymaster_params.paymaster if paymaster_params else None,
        )
        return tx_hash
