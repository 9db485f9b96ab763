from zksync_flow.client import ZkSyncClient
from zksync_flow.constants.networks import Network
from zksync_flow.manage_contracts.paymaster_utils import (
    get_approval_based_paymaster_params,
    get_general_paymaster_params,
)
from zksync_flow.node.parameters import NodeParameters


def get_testnet_paymaster(client: ZkSyncClient, params: NodeParameters) -> dict:
    paymaster = client.network_config.testnet_paymaster
    if paymaster is None and client.network == Network.CUSTOM.value:
        # local and custom chains may expose their own testnet paymaster
        paymaster = client.web3.zksync.zks_get_testnet_paymaster_address()
    return {
        "network": client.network,
        "paymasterAddress": paymaster,
        "available": bool(paymaster),
    }


def build_general_params(client, params: NodeParameters) -> dict:
    paymaster_params = get_general_paymaster_params(params.require("paymasterAddress"))
    return {"type": "General", **paymaster_params.to_dict()}


def build_approval_params(client, params: NodeParameters) -> dict:
    minimal_allowance = params.integer("minimalAllowance")
    gas_token = params.require("gasTokenAddress")
    paymaster_params = get_approval_based_paymaster_params(
        params.require("paymasterAddress"), gas_token, minimal_allowance
    )
    return {
        "type": "ApprovalBased",
        **paymaster_params.to_dict(),
        "token": gas_token,
        "minimalAllowance": str(minimal_allowance),
    }
