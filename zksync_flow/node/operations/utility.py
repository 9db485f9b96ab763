"""
Offline helpers. Apart from ``signMessage`` none of them need a connection
or a private key.
"""
from eth_abi import decode, encode
from eth_account import Account
from eth_utils import is_hex, keccak

from zksync_flow.client import ZkSyncClient
from zksync_flow.core.units import convert_units
from zksync_flow.core.utils import is_valid_address, to_bytes, to_hex, validate_address
from zksync_flow.node.operations.common import coerce_abi_values, jsonable
from zksync_flow.node.parameters import NodeParameters
from zksync_flow.signer.eth_signer import PrivateKeyEthSigner, recover_message_signer

NEW_WALLET_WARNING = "Store these credentials securely! Never share your private key."


def _abi_types(params: NodeParameters) -> list:
    types = params.json("abiTypes")
    if not isinstance(types, list):
        raise ValueError(f"abiTypes must be a JSON array of type names, got {types!r}")
    return types


def convert(client, params: NodeParameters) -> dict:
    value = str(params.require("convertValue"))
    from_unit = params.get("fromUnit", "ether")
    to_unit = params.get("toUnit", "wei")
    return {
        "input": value,
        "fromUnit": from_unit,
        "toUnit": to_unit,
        "result": convert_units(value, from_unit, to_unit),
    }


def validate(client, params: NodeParameters) -> dict:
    address = params.require("validateAddressInput")
    is_valid = is_valid_address(address)
    return {
        "address": address,
        "isValid": is_valid,
        "checksumAddress": validate_address(address) if is_valid else None,
    }


def hash_data(client, params: NodeParameters) -> dict:
    data = params.get("hashInput", "")
    if isinstance(data, str) and data.startswith("0x") and is_hex(data):
        digest = keccak(to_bytes(data))
    else:
        digest = keccak(text=str(data))
    return {"input": data, "keccak256": to_hex(digest)}


def encode_abi(client, params: NodeParameters) -> dict:
    types = _abi_types(params)
    values = params.json("abiValues")
    encoded = encode(types, coerce_abi_values(types, values))
    return {"types": types, "values": values, "encoded": to_hex(encoded)}


def decode_abi(client, params: NodeParameters) -> dict:
    types = _abi_types(params)
    data = params.require("encodedData")
    decoded = decode(types, to_bytes(data))
    return {"types": types, "data": data, "decoded": jsonable(list(decoded))}


def sign_message(client: ZkSyncClient, params: NodeParameters) -> dict:
    wallet = client.require_wallet("sign messages")
    message = str(params.require("signMessage"))
    signer = PrivateKeyEthSigner(wallet.account, wallet.chain_id)
    signed = signer.sign_message(message)
    return {
        "message": message,
        "signature": to_hex(signed.signature),
        "signer": wallet.address,
    }


def verify_message(client, params: NodeParameters) -> dict:
    message = str(params.require("verifyMessage"))
    signature = params.require("signature")
    recovered = recover_message_signer(message, signature)
    result = {"message": message, "signature": signature, "recoveredAddress": recovered}
    if "expectedSigner" in params:
        expected = params.address("expectedSigner", "expected signer")
        result["expectedSigner"] = expected
        result["isValid"] = recovered == expected
    return result


def generate_wallet(client, params: NodeParameters) -> dict:
    Account.enable_unaudited_hdwallet_features()
    account, mnemonic = Account.create_with_mnemonic()
    return {
        "address": account.address,
        "privateKey": to_hex(account.key),
        "mnemonic": mnemonic,
        "warning": NEW_WALLET_WARNING,
    }
