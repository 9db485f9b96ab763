"""Read-only chain queries: bridges, blocks, batches, proofs, fees, logs and L1 metadata."""
from dataclasses import asdict
from typing import Any, Optional, Union

from eth_typing import BlockIdentifier
from web3.exceptions import BlockNotFound

from zksync_flow.client import ZkSyncClient
from zksync_flow.core.units import GWEI_DECIMALS, format_units
from zksync_flow.core.utils import timestamp_to_iso, to_hex
from zksync_flow.node.operations.common import fetch_receipt
from zksync_flow.node.parameters import NodeParameters

BLOCK_NOT_FOUND = {"error": "Block not found"}


def _block_identifier(value: Any) -> BlockIdentifier:
    """Block tags and hashes pass through, decimal and short hex numbers become ints."""
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    if text.startswith("0x") and len(text) < 66:
        return int(text, 16)
    return text


def _quantity(value: Union[int, str, None]) -> Optional[int]:
    if value is None or isinstance(value, int):
        return value
    return int(value, 16) if value.startswith("0x") else int(value)


def get_bridge_addresses(client: ZkSyncClient, params: NodeParameters) -> dict:
    bridges = client.web3.zksync.zks_get_bridge_contracts()
    return {
        "network": client.network,
        "l1Bridge": client.network_config.bridge_address,
        "l1SharedBridge": bridges.shared_l1_default_bridge,
        "l2SharedBridge": bridges.shared_l2_default_bridge,
    }


def get_l2_token_address(client: ZkSyncClient, params: NodeParameters) -> dict:
    l1_token = params.address("l1TokenAddress", "L1 token address")
    return {
        "l1TokenAddress": l1_token,
        "l2TokenAddress": client.web3.zksync.l2_token_address(l1_token),
    }


def get_block(client: ZkSyncClient, params: NodeParameters) -> dict:
    block_id = _block_identifier(params.get("blockId", "latest"))
    try:
        block = client.web3.eth.get_block(block_id)
    except BlockNotFound:
        return dict(BLOCK_NOT_FOUND)
    gas_limit = block.get("gasLimit")
    gas_used = block.get("gasUsed")
    return {
        "number": block["number"],
        "hash": to_hex(block["hash"]),
        "timestamp": block["timestamp"],
        "timestampDate": timestamp_to_iso(block["timestamp"]),
        "gasLimit": str(gas_limit) if gas_limit is not None else None,
        "gasUsed": str(gas_used) if gas_used is not None else None,
        "transactionCount": len(block.get("transactions") or []),
    }


def get_latest_block(client: ZkSyncClient, params: NodeParameters) -> dict:
    return {"latestBlockNumber": client.web3.eth.block_number}


def get_block_details(client: ZkSyncClient, params: NodeParameters) -> dict:
    block_id = params.get("blockId", "latest")
    if block_id == "latest":
        block_number = client.web3.eth.block_number
    else:
        block_number = params.integer("blockId")
    details = client.web3.zksync.zks_get_block_details(block_number)
    if details is None:
        return dict(BLOCK_NOT_FOUND)
    return {
        "number": details.number,
        "l1BatchNumber": details.l1_batch_number,
        "timestamp": details.timestamp,
        "l1TxCount": details.l1_tx_count,
        "l2TxCount": details.l2_tx_count,
        "rootHash": details.root_hash,
        "status": details.status,
    }


def get_l1_batch_number(client: ZkSyncClient, params: NodeParameters) -> dict:
    return {"l1BatchNumber": client.web3.zksync.zks_l1_batch_number()}


def get_l1_batch_details(client: ZkSyncClient, params: NodeParameters) -> dict:
    batch_number = params.integer("batchNumber")
    details = client.web3.zksync.zks_get_l1_batch_details(batch_number)
    if details is None:
        return {"error": "L1 batch not found"}
    return {
        "number": details.number,
        "timestamp": details.timestamp,
        "l1TxCount": details.l1_tx_count,
        "l2TxCount": details.l2_tx_count,
        "rootHash": details.root_hash,
        "status": details.status,
        "commitTxHash": details.commit_tx_hash,
        "proveTxHash": details.prove_tx_hash,
        "executeTxHash": details.execute_tx_hash,
    }


def get_transaction_proof(client: ZkSyncClient, params: NodeParameters) -> dict:
    # batch placement comes from the receipt, zks_getTransactionDetails omits it
    tx_hash = params.require("txHash")
    details = client.web3.zksync.zks_get_transaction_details(tx_hash)
    if details is None:
        return {"error": "Transaction not found"}
    receipt = fetch_receipt(client, tx_hash)
    return {
        "txHash": tx_hash,
        "l1BatchNumber": _quantity(receipt.get("l1BatchNumber")) if receipt else None,
        "l1BatchTxIndex": _quantity(receipt.get("l1BatchTxIndex")) if receipt else None,
        "status": details.status,
        "isL1Originated": details.is_l1_originated,
    }


def get_log_proof(client: ZkSyncClient, params: NodeParameters) -> dict:
    tx_hash = params.require("txHash")
    log_index = params.integer("logIndex", 0)
    proof = client.web3.zksync.zks_get_log_proof(tx_hash, log_index)
    return {
        "txHash": tx_hash,
        "logIndex": log_index,
        "proof": asdict(proof) if proof is not None else None,
    }


def get_gas_price(client: ZkSyncClient, params: NodeParameters) -> dict:
    gas_price = client.web3.eth.gas_price
    return {
        "gasPriceWei": str(gas_price),
        "gasPriceGwei": format_units(gas_price, GWEI_DECIMALS),
    }


def get_fee_params(client: ZkSyncClient, params: NodeParameters) -> dict:
    fee_params = client.web3.zksync.zks_get_fee_params()
    if fee_params.v2 is None:
        return {"V2": None}
    return {
        "V2": {
            "config": asdict(fee_params.v2.config),
            "l1GasPrice": str(fee_params.v2.l1_gas_price),
            "l1PubdataPrice": str(fee_params.v2.l1_pubdata_price),
        }
    }


def get_logs(client: ZkSyncClient, params: NodeParameters) -> dict:
    address = params.address("address", "contract address")
    log_filter = {
        "address": address,
        "fromBlock": _block_identifier(params.get("fromBlock", "latest")),
        "toBlock": _block_identifier(params.get("toBlock", "latest")),
    }
    event_topic = params.get("eventTopic", "")
    if event_topic:
        log_filter["topics"] = [event_topic]

    logs = client.web3.eth.get_logs(log_filter)
    return {
        "address": address,
        "logsCount": len(logs),
        "logs": [
            {
                "blockNumber": log["blockNumber"],
                "transactionHash": to_hex(log["transactionHash"]),
                "logIndex": log["logIndex"],
                "topics": [to_hex(t) for t in log["topics"]],
                "data": to_hex(log["data"]),
            }
            for log in logs
        ],
    }


def get_l1_chain_id(client: ZkSyncClient, params: NodeParameters) -> dict:
    return {"l1ChainId": client.web3.zksync.zks_l1_chain_id()}


def get_main_contract(client: ZkSyncClient, params: NodeParameters) -> dict:
    return {"mainContractAddress": client.web3.zksync.zks_main_contract()}


def get_base_token(client: ZkSyncClient, params: NodeParameters) -> dict:
    return {"baseTokenAddress": client.web3.zksync.zks_get_base_token_contract_address()}
