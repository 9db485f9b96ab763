import re
from typing import Any, Dict, List, Optional, Sequence

from eth_typing import HexStr
from eth_utils import is_address, to_checksum_address, to_hex

from zksync_flow.account.wallet import Wallet
from zksync_flow.client import ZkSyncClient, get_transaction_receipt
from zksync_flow.constants.tokens import find_token
from zksync_flow.core.errors import InvalidAddress
from zksync_flow.core.types import PaymasterParams
from zksync_flow.core.utils import (
    L2_BASE_TOKEN_ADDRESS,
    is_valid_address,
    to_bytes,
    validate_address,
)
from zksync_flow.manage_contracts.paymaster_utils import get_general_paymaster_params
from zksync_flow.node.parameters import NodeParameters

_ARRAY_TYPE = re.compile(r"^(.+)\[([0-9]*)\]$")

TRANSACTION_NOT_FOUND = {"error": "Transaction not found"}


def receipt_status(receipt: Optional[Dict[str, Any]]) -> str:
    return "success" if receipt is not None and receipt.get("status") == 1 else "failed"


def fetch_receipt(client: ZkSyncClient, tx_hash: HexStr):
    """Single receipt lookup, None while the transaction is unknown or pending."""
    return get_transaction_receipt(client.web3, tx_hash, retries=1)


def jsonable(value: Any) -> Any:
    """Stringifies integers and hex-encodes bytes, recursively."""
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return to_hex(bytes(value))
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    if hasattr(value, "items"):
        return {k: jsonable(v) for k, v in value.items()}
    return value


def coerce_abi_value(abi_type: str, value: Any) -> Any:
    """
    Converts JSON friendly values to what eth_abi expects for ``abi_type``:
    numeric strings to ints, hex strings to bytes, addresses to checksum form.
    """
    array = _ARRAY_TYPE.match(abi_type)
    if array is not None:
        return [coerce_abi_value(array.group(1), v) for v in value]
    if not isinstance(value, str):
        return value
    if abi_type.startswith(("uint", "int")):
        text = value.strip()
        return int(text, 16) if text.lower().startswith("0x") else int(text)
    if abi_type.startswith("bytes"):
        return to_bytes(HexStr(value))
    if abi_type == "address" and is_address(value):
        return to_checksum_address(value)
    if abi_type == "bool":
        return value.strip().lower() == "true"
    return value


def coerce_abi_values(types: Sequence[str], values: Sequence[Any]) -> List[Any]:
    return [coerce_abi_value(t, v) for t, v in zip(types, values)]


def coerce_function_args(abi: List[Dict[str, Any]], fn_name: str, args: Sequence[Any]) -> List[Any]:
    for entry in abi:
        if entry.get("type", "function") != "function" or entry.get("name") != fn_name:
            continue
        inputs = entry.get("inputs", [])
        if len(inputs) == len(args):
            return coerce_abi_values([i["type"] for i in inputs], args)
    return list(args)


def token_address(client: ZkSyncClient, params: NodeParameters, name: str = "contractAddress") -> HexStr:
    """Accepts a token contract address or the symbol of a well known token."""
    value = params.require(name)
    if is_valid_address(value):
        return validate_address(value, "contract address")
    try:
        token = find_token(client.network, str(value))
    except LookupError:
        raise InvalidAddress(value, "contract address") from None
    if token.is_eth():
        return to_checksum_address(L2_BASE_TOKEN_ADDRESS)
    return to_checksum_address(token.l2_address)


def paymaster_params_for(client: ZkSyncClient, params: NodeParameters) -> Optional[PaymasterParams]:
    """
    Paymaster for sends with ``usePaymaster`` set: the configured paymaster
    credentials when present, otherwise the network's testnet paymaster.
    """
    if not params.flag("usePaymaster"):
        return None
    if client.paymaster is not None:
        return client.paymaster.build_params(client.network_config)
    testnet_paymaster = client.network_config.testnet_paymaster
    if testnet_paymaster:
        return get_general_paymaster_params(testnet_paymaster)
    return None


def send_and_wait(
    client: ZkSyncClient,
    wallet: Wallet,
    to: HexStr,
    value: int = 0,
    data: HexStr = HexStr("0x"),
    paymaster_params: Optional[PaymasterParams] = None,
):
    tx_hash = wallet.send_transaction(to, value, data, paymaster_params)
    return tx_hash, client.wait_for_transaction(tx_hash)
