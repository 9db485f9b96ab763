from zksync_flow.client import ZkSyncClient
from zksync_flow.core.utils import to_hex
from zksync_flow.manage_contracts.contract_encoder_base import BaseContractEncoder
from zksync_flow.node.operations.common import (
    coerce_function_args,
    jsonable,
    paymaster_params_for,
    receipt_status,
    send_and_wait,
)
from zksync_flow.node.parameters import NodeParameters


def _call_arguments(params: NodeParameters):
    abi = params.json("contractAbi")
    function_name = params.require("functionName")
    args = params.json("functionArgs", [])
    if not isinstance(args, list):
        args = [args]
    return abi, function_name, coerce_function_args(abi, function_name, args)


def read(client: ZkSyncClient, params: NodeParameters) -> dict:
    address = params.address("address", "contract address")
    abi, function_name, args = _call_arguments(params)
    contract = client.web3.eth.contract(address=address, abi=abi)
    response = getattr(contract.functions, function_name)(*args).call()
    return {
        "address": address,
        "function": function_name,
        "result": jsonable(response),
    }


def write(client: ZkSyncClient, params: NodeParameters) -> dict:
    wallet = client.require_wallet("write to contracts")
    address = params.address("address", "contract address")
    abi, function_name, args = _call_arguments(params)
    data = BaseContractEncoder(client.web3, abi).encode_method(function_name, args)

    tx_hash, receipt = send_and_wait(
        client,
        wallet,
        address,
        value=params.integer("value", 0),
        data=data,
        paymaster_params=paymaster_params_for(client, params),
    )
    return {
        "address": address,
        "function": function_name,
        "hash": tx_hash,
        "status": receipt_status(receipt),
    }


def get_code(client: ZkSyncClient, params: NodeParameters) -> dict:
    address = params.address("address", "contract address")
    code = client.web3.eth.get_code(address)
    return {"address": address, "bytecode": to_hex(code), "hasCode": len(code) > 0}
