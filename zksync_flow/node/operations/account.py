from zksync_flow.client import ZkSyncClient
from zksync_flow.core.units import wei_to_eth
from zksync_flow.core.utils import to_hex
from zksync_flow.node.parameters import NodeParameters


def get_balance(client: ZkSyncClient, params: NodeParameters) -> dict:
    address = params.address("address")
    balance = client.web3.eth.get_balance(address)
    return {
        "address": address,
        "balanceWei": str(balance),
        "balanceEth": wei_to_eth(balance),
    }


def get_nonce(client: ZkSyncClient, params: NodeParameters) -> dict:
    address = params.address("address")
    return {"address": address, "nonce": client.web3.eth.get_transaction_count(address)}


def get_transaction_count(client: ZkSyncClient, params: NodeParameters) -> dict:
    address = params.address("address")
    return {
        "address": address,
        "transactionCount": client.web3.eth.get_transaction_count(address),
    }


def is_contract(client: ZkSyncClient, params: NodeParameters) -> dict:
    address = params.address("address")
    code = client.web3.eth.get_code(address)
    return {"address": address, "isContract": len(code) > 0}


def get_code(client: ZkSyncClient, params: NodeParameters) -> dict:
    address = params.address("address")
    return {"address": address, "bytecode": to_hex(client.web3.eth.get_code(address))}


def get_account_type(client: ZkSyncClient, params: NodeParameters) -> dict:
    # zkSync accounts are smart accounts as soon as they carry code
    address = params.address("address")
    has_code = len(client.web3.eth.get_code(address)) > 0
    return {
        "address": address,
        "accountType": "smart_account" if has_code else "eoa",
        "hasCode": has_code,
    }


def get_deployment_nonce(client: ZkSyncClient, params: NodeParameters) -> dict:
    address = params.address("address")
    nonce = client.web3.zksync.get_deployment_nonce(address)
    return {"address": address, "deploymentNonce": str(nonce)}
