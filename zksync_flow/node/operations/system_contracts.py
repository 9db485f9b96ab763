from zksync_flow.constants.system_contracts import (
    SystemContract,
    all_system_contracts,
    get_system_contract_info,
)
from zksync_flow.node.parameters import NodeParameters


def get_all_contracts(client, params: NodeParameters) -> dict:
    return {"systemContracts": all_system_contracts()}


def get_contract_deployer(client, params: NodeParameters) -> dict:
    return get_system_contract_info(SystemContract.CONTRACT_DEPLOYER).to_dict()


def get_nonce_holder(client, params: NodeParameters) -> dict:
    return get_system_contract_info(SystemContract.NONCE_HOLDER).to_dict()
