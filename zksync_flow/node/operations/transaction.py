from web3.exceptions import TransactionNotFound

from zksync_flow.client import ZkSyncClient
from zksync_flow.core.units import GWEI_DECIMALS, eth_to_wei, format_units, wei_to_eth
from zksync_flow.core.utils import to_hex
from zksync_flow.node.operations.common import (
    TRANSACTION_NOT_FOUND,
    fetch_receipt,
    paymaster_params_for,
    receipt_status,
    send_and_wait,
)
from zksync_flow.node.parameters import NodeParameters


def send_eth(client: ZkSyncClient, params: NodeParameters) -> dict:
    wallet = client.require_wallet("send transactions")
    to = params.address("toAddress", "recipient address")
    value = eth_to_wei(str(params.require("amount")))
    paymaster_params = paymaster_params_for(client, params)

    tx_hash, receipt = send_and_wait(
        client, wallet, to, value=value, paymaster_params=paymaster_params
    )
    return {
        "hash": tx_hash,
        "from": wallet.address,
        "to": to,
        "value": wei_to_eth(value),
        "status": receipt_status(receipt),
        "blockNumber": receipt.get("blockNumber"),
        "gasUsed": str(receipt.get("gasUsed")),
        "paymaster": paymaster_params.paymaster if paymaster_params else None,
    }


def get_transaction(client: ZkSyncClient, params: NodeParameters) -> dict:
    tx_hash = params.require("txHash")
    try:
        tx = client.web3.eth.get_transaction(tx_hash)
    except TransactionNotFound:
        return dict(TRANSACTION_NOT_FOUND)
    gas_price = tx.get("gasPrice")
    return {
        "hash": to_hex(tx["hash"]),
        "from": tx["from"],
        "to": tx.get("to"),
        "value": str(tx["value"]),
        "gasLimit": str(tx["gas"]),
        "gasPrice": str(gas_price) if gas_price is not None else None,
        "nonce": tx["nonce"],
        "blockNumber": tx.get("blockNumber"),
    }


def get_receipt(client: ZkSyncClient, params: NodeParameters) -> dict:
    receipt = fetch_receipt(client, params.require("txHash"))
    if receipt is None:
        return {"error": "Receipt not found"}
    return {
        "hash": to_hex(receipt["transactionHash"]),
        "status": receipt_status(receipt),
        "blockNumber": receipt["blockNumber"],
        "gasUsed": str(receipt["gasUsed"]),
        "from": receipt["from"],
        "to": receipt.get("to"),
        "logsCount": len(receipt.get("logs") or []),
    }


def get_status(client: ZkSyncClient, params: NodeParameters) -> dict:
    tx_hash = params.require("txHash")
    receipt = fetch_receipt(client, tx_hash)
    if receipt is None:
        return {"hash": tx_hash, "status": "pending"}
    confirmations = client.web3.eth.block_number - receipt["blockNumber"] + 1
    return {
        "hash": tx_hash,
        "status": receipt_status(receipt),
        "confirmations": confirmations,
        "blockNumber": receipt["blockNumber"],
    }


def estimate_gas(client: ZkSyncClient, params: NodeParameters) -> dict:
    tx = {
        "to": params.address("toAddress", "recipient address"),
        "value": eth_to_wei(str(params.get("amount", "0"))),
    }
    if client.wallet is not None:
        tx["from"] = client.wallet.address
    return {"estimatedGas": str(client.web3.eth.estimate_gas(tx))}


def get_fee_data(client: ZkSyncClient, params: NodeParameters) -> dict:
    # zkSync does not charge priority fees, the cap is twice the current base fee
    eth = client.web3.eth
    gas_price = eth.gas_price
    base_fee = eth.get_block("latest").get("baseFeePerGas")
    max_fee = base_fee * 2 if base_fee is not None else None
    return {
        "gasPrice": str(gas_price),
        "gasPriceGwei": format_units(gas_price, GWEI_DECIMALS),
        "maxFeePerGas": str(max_fee) if max_fee is not None else None,
        "maxPriorityFeePerGas": "0" if max_fee is not None else None,
    }
