import logging
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple, Union

from zksync_flow.client import ZkSyncClient
from zksync_flow.core.errors import UnknownOperation
from zksync_flow.node.operations import (
    account,
    chain,
    contract,
    paymaster,
    system_contracts,
    tokens,
    transaction,
    utility,
)
from zksync_flow.node.parameters import NodeParameters

logger = logging.getLogger(__name__)

Handler = Callable[[Optional[ZkSyncClient], NodeParameters], Dict[str, Any]]


class Resource(Enum):
    ACCOUNT = "account"
    TRANSACTION = "transaction"
    ACCOUNT_ABSTRACTION = "accountAbstraction"
    PAYMASTER = "paymaster"
    TOKEN = "token"
    NFT = "nft"
    CONTRACT = "contract"
    BRIDGE = "bridge"
    BLOCK = "block"
    PROOF = "proof"
    FEE = "fee"
    EVENTS = "events"
    L1_INTERACTION = "l1Interaction"
    SYSTEM_CONTRACTS = "systemContracts"
    UTILITY = "utility"


class Operation(NamedTuple):
    handler: Handler
    # offline operations run without building a client
    offline: bool = False


OPERATIONS: Dict[Tuple[Resource, str], Operation] = {
    (Resource.ACCOUNT, "getBalance"): Operation(account.get_balance),
    (Resource.ACCOUNT, "getNonce"): Operation(account.get_nonce),
    (Resource.ACCOUNT, "getTransactionCount"): Operation(account.get_transaction_count),
    (Resource.ACCOUNT, "isContract"): Operation(account.is_contract),
    (Resource.ACCOUNT, "getCode"): Operation(account.get_code),
    (Resource.TRANSACTION, "sendEth"): Operation(transaction.send_eth),
    (Resource.TRANSACTION, "getTransaction"): Operation(transaction.get_transaction),
    (Resource.TRANSACTION, "getReceipt"): Operation(transaction.get_receipt),
    (Resource.TRANSACTION, "getStatus"): Operation(transaction.get_status),
    (Resource.TRANSACTION, "estimateGas"): Operation(transaction.estimate_gas),
    (Resource.TRANSACTION, "getGasPrice"): Operation(transaction.get_fee_data),
    (Resource.ACCOUNT_ABSTRACTION, "getAccountType"): Operation(account.get_account_type),
    (Resource.ACCOUNT_ABSTRACTION, "getDeploymentNonce"): Operation(account.get_deployment_nonce),
    (Resource.PAYMASTER, "getTestnetPaymaster"): Operation(paymaster.get_testnet_paymaster),
    (Resource.PAYMASTER, "buildGeneralParams"): Operation(paymaster.build_general_params, offline=True),
    (Resource.PAYMASTER, "buildApprovalParams"): Operation(paymaster.build_approval_params, offline=True),
    (Resource.TOKEN, "getBalance"): Operation(tokens.get_token_balance),
    (Resource.TOKEN, "getInfo"): Operation(tokens.get_token_info),
    (Resource.TOKEN, "transfer"): Operation(tokens.transfer_token),
    (Resource.TOKEN, "approve"): Operation(tokens.approve_token),
    (Resource.TOKEN, "getAllowance"): Operation(tokens.get_allowance),
    (Resource.NFT, "getBalance"): Operation(tokens.get_nft_balance),
    (Resource.NFT, "getOwner"): Operation(tokens.get_nft_owner),
    (Resource.NFT, "getTokenUri"): Operation(tokens.get_nft_token_uri),
    (Resource.NFT, "transfer"): Operation(tokens.transfer_nft),
    (Resource.CONTRACT, "read"): Operation(contract.read),
    (Resource.CONTRACT, "write"): Operation(contract.write),
    (Resource.CONTRACT, "getCode"): Operation(contract.get_code),
    (Resource.BRIDGE, "getBridgeAddresses"): Operation(chain.get_bridge_addresses),
    (Resource.BRIDGE, "getL2TokenAddress"): Operation(chain.get_l2_token_address),
    (Resource.BLOCK, "getBlock"): Operation(chain.get_block),
    (Resource.BLOCK, "getLatestBlock"): Operation(chain.get_latest_block),
    (Resource.BLOCK, "getBlockDetails"): Operation(chain.get_block_details),
    (Resource.BLOCK, "getL1BatchNumber"): Operation(chain.get_l1_batch_number),
    (Resource.BLOCK, "getL1BatchDetails"): Operation(chain.get_l1_batch_details),
    (Resource.PROOF, "getTransactionProof"): Operation(chain.get_transaction_proof),
    (Resource.PROOF, "getLogProof"): Operation(chain.get_log_proof),
    (Resource.FEE, "getGasPrice"): Operation(chain.get_gas_price),
    (Resource.FEE, "getFeeParams"): Operation(chain.get_fee_params),
    (Resource.FEE, "estimateGas"): Operation(transaction.estimate_gas),
    (Resource.EVENTS, "getLogs"): Operation(chain.get_logs),
    (Resource.L1_INTERACTION, "getL1ChainId"): Operation(chain.get_l1_chain_id),
    (Resource.L1_INTERACTION, "getMainContract"): Operation(chain.get_main_contract),
    (Resource.L1_INTERACTION, "getBaseToken"): Operation(chain.get_base_token),
    (Resource.SYSTEM_CONTRACTS, "getAllContracts"): Operation(system_contracts.get_all_contracts, offline=True),
    (Resource.SYSTEM_CONTRACTS, "getContractDeployer"): Operation(
        system_contracts.get_contract_deployer, offline=True
    ),
    (Resource.SYSTEM_CONTRACTS, "getNonceHolder"): Operation(system_contracts.get_nonce_holder, offline=True),
    (Resource.UTILITY, "convertUnits"): Operation(utility.convert, offline=True),
    (Resource.UTILITY, "validateAddress"): Operation(utility.validate, offline=True),
    (Resource.UTILITY, "hashData"): Operation(utility.hash_data, offline=True),
    (Resource.UTILITY, "encodeAbi"): Operation(utility.encode_abi, offline=True),
    (Resource.UTILITY, "decodeAbi"): Operation(utility.decode_abi, offline=True),
    (Resource.UTILITY, "signMessage"): Operation(utility.sign_message),
    (Resource.UTILITY, "verifyMessage"): Operation(utility.verify_message, offline=True),
    (Resource.UTILITY, "generateWallet"): Operation(utility.generate_wallet, offline=True),
}


def resolve(resource: Union[Resource, str], operation: str) -> Operation:
    try:
        key = (Resource(resource), operation)
    except ValueError:
        raise UnknownOperation(str(resource), operation) from None
    if key not in OPERATIONS:
        raise UnknownOperation(key[0].value, operation)
    return OPERATIONS[key]


def execute(
    resource: Union[Resource, str],
    operation: str,
    items: Iterable[Mapping[str, Any]],
    client_factory: Callable[[], ZkSyncClient],
    continue_on_fail: bool = False,
) -> List[Dict[str, Any]]:
    """
    Runs one operation for every input item, in order.

    The client is created on the first item that needs one and shared by the
    rest. With ``continue_on_fail`` a failing item yields
    ``{"error": message, "pairedItem": {"item": index}}`` instead of aborting.
    """
    op = resolve(resource, operation)
    client: Optional[ZkSyncClient] = None
    results: List[Dict[str, Any]] = []
    for i, item in enumerate(items):
        try:
            if not op.offline and client is None:
                client = client_factory()
            results.append(op.handler(client, NodeParameters(item)))
        except Exception as e:
            if not continue_on_fail:
                raise
            logger.warning(
                "%s/%s failed for item %d: %s", Resource(resource).value, operation, i, e
            )
            results.append({"error": str(e), "pairedItem": {"item": i}})
    return results
