from typing import Optional, Union

from eth_typing import HexStr
from web3 import Web3

from zksync_flow.core.errors import InvalidQuantity
from zksync_flow.core.types import PaymasterParams
from zksync_flow.core.utils import to_bytes, validate_address
from zksync_flow.manage_contracts.contract_encoder_base import BaseContractEncoder
from zksync_flow.manage_contracts.utils import paymaster_flow_abi_default


class PaymasterFlowEncoder(BaseContractEncoder):
    def __init__(self, web3: Optional[Web3] = None):
        super(PaymasterFlowEncoder, self).__init__(
            web3 if web3 is not None else Web3(), abi=paymaster_flow_abi_default()
        )

    def encode_approval_based(
        self, address: HexStr, min_allowance: int, inner_input: bytes
    ) -> HexStr:
        return self.encode_method(
            fn_name="approvalBased", args=(address, min_allowance, inner_input)
        )

    def encode_general(self, inputs: bytes) -> HexStr:
        return self.encode_method(fn_name="general", args=tuple([inputs]))


def get_general_paymaster_params(
    paymaster_address: str,
    inner_input: Union[bytes, HexStr] = b"",
    web3: Optional[Web3] = None,
) -> PaymasterParams:
    """
    Builds params for a paymaster that sponsors fees unconditionally.

    :param paymaster_address: Address of the paymaster contract.
    :param inner_input: Extra bytes forwarded to the paymaster.
    """
    paymaster = validate_address(paymaster_address, "paymaster address")
    encoded = PaymasterFlowEncoder(web3).encode_general(to_bytes(inner_input))
    return PaymasterParams(paymaster=paymaster, paymaster_input=to_bytes(encoded))


def get_approval_based_paymaster_params(
    paymaster_address: str,
    token_address: str,
    minimal_allowance: int,
    inner_input: Union[bytes, HexStr] = b"",
    web3: Optional[Web3] = None,
) -> PaymasterParams:
    """
    Builds params for a paymaster that takes fees in an ERC-20 token.

    The paymaster expects an allowance of at least ``minimal_allowance`` of
    ``token_address`` before it pays for the transaction.
    """
    paymaster = validate_address(paymaster_address, "paymaster address")
    token = validate_address(token_address, "token address")
    if isinstance(minimal_allowance, bool) or not isinstance(minimal_allowance, int):
        raise InvalidQuantity(f"Minimal allowance must be an integer: {minimal_allowance!r}")
    if minimal_allowance < 0:
        raise InvalidQuantity(f"Minimal allowance can't be negative: {minimal_allowance}")
    encoded = PaymasterFlowEncoder(web3).encode_approval_based(
        token, minimal_allowance, to_bytes(inner_input)
    )
    return PaymasterParams(paymaster=paymaster, paymaster_input=to_bytes(encoded))
