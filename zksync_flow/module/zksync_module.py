from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

from eth_typing import HexStr
from eth_utils import is_address, is_integer, to_checksum_address, to_hex
from eth_utils.curried import (
    apply_formatter_at_index,
    apply_formatter_if,
    apply_formatters_to_dict,
)
from web3 import Web3
from web3.eth import Eth
from web3.method import Method, default_root_munger
from web3.types import RPCEndpoint

from zksync_flow.constants.system_contracts import SystemContract
from zksync_flow.core.types import (
    BaseSystemContractsHashes,
    BatchDetails,
    BlockDetails,
    BridgeAddresses,
    Config,
    FeeParams,
    TransactionDetails,
    V2,
    ZksMessageProof,
)
from zksync_flow.core.utils import (
    ADDRESS_DEFAULT,
    ETH_ADDRESS_IN_CONTRACTS,
    L2_BASE_TOKEN_ADDRESS,
    is_address_eq,
)
from zksync_flow.manage_contracts.utils import (
    l2_shared_bridge_abi_default,
    nonce_holder_abi_default,
)
from zksync_flow.module.request_types import EIP712Meta, Transaction

zks_l1_batch_number_rpc = RPCEndpoint("zks_L1BatchNumber")
zks_get_l1_batch_details_rpc = RPCEndpoint("zks_getL1BatchDetails")
zks_get_block_details_rpc = RPCEndpoint("zks_getBlockDetails")
zks_get_transaction_details_rpc = RPCEndpoint("zks_getTransactionDetails")
zks_main_contract_rpc = RPCEndpoint("zks_getMainContract")
zks_l1_chain_id_rpc = RPCEndpoint("zks_L1ChainId")
zks_get_bridge_contracts_rpc = RPCEndpoint("zks_getBridgeContracts")
zks_get_l2_to_l1_log_proof_prc = RPCEndpoint("zks_getL2ToL1LogProof")
zks_get_base_token_l1_address_rpc = RPCEndpoint("zks_getBaseTokenL1Address")
zks_get_fee_params_rpc = RPCEndpoint("zks_getFeeParams")
zks_get_testnet_paymaster_address = RPCEndpoint("zks_getTestnetPaymaster")
eth_estimate_gas_rpc = RPCEndpoint("eth_estimateGas")


def _to_hex_if_integer(value: Any) -> Any:
    if is_integer(value):
        return to_hex(value)
    return value


def _to_hex_if_bytes(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return to_hex(value)
    return value


def meta_formatter(eip712: EIP712Meta) -> dict:
    return eip712.to_rpc()


ZKS_TRANSACTION_PARAMS_FORMATTERS = {
    "data": _to_hex_if_bytes,
    "from": apply_formatter_if(is_address, to_checksum_address),
    "gas": _to_hex_if_integer,
    "gasPrice": _to_hex_if_integer,
    "maxFeePerGas": _to_hex_if_integer,
    "maxPriorityFeePerGas": _to_hex_if_integer,
    "nonce": _to_hex_if_integer,
    "to": apply_formatter_if(is_address, to_checksum_address),
    "value": _to_hex_if_integer,
    "chainId": _to_hex_if_integer,
    "transactionType": _to_hex_if_integer,
    "eip712Meta": meta_formatter,
}

zks_transaction_request_formatter = apply_formatters_to_dict(
    ZKS_TRANSACTION_PARAMS_FORMATTERS
)


def zksync_estimate_request_formatters(method_name: RPCEndpoint) -> Callable[..., Any]:
    return apply_formatter_at_index(zks_transaction_request_formatter, 0)


def _to_int(value: Union[int, str, None]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    return int(value)


def _to_datetime(value: Optional[str]) -> Optional[datetime]:
    # the node reports up to nanosecond precision, strptime stops at microseconds
    if not value:
        return None
    value = value.rstrip("Z")
    whole, _, fraction = value.partition(".")
    if fraction:
        return datetime.strptime(f"{whole}.{fraction[:6]}", "%Y-%m-%dT%H:%M:%S.%f")
    return datetime.strptime(whole, "%Y-%m-%dT%H:%M:%S")


def _to_checksum_or_none(value: Optional[str]) -> Optional[HexStr]:
    if not value:
        return None
    return HexStr(to_checksum_address(value))


def to_bridge_address(t: dict) -> BridgeAddresses:
    return BridgeAddresses(
        erc20_l1_default_bridge=_to_checksum_or_none(t.get("l1Erc20DefaultBridge")),
        erc20_l2_default_bridge=_to_checksum_or_none(t.get("l2Erc20DefaultBridge")),
        shared_l1_default_bridge=_to_checksum_or_none(t.get("l1SharedDefaultBridge")),
        shared_l2_default_bridge=_to_checksum_or_none(t.get("l2SharedDefaultBridge")),
        weth_bridge_l1=_to_checksum_or_none(t.get("l1WethBridge")),
        weth_bridge_l2=_to_checksum_or_none(t.get("l2WethBridge")),
    )


def to_batch_details(t: dict) -> BatchDetails:
    hashes = t.get("baseSystemContractsHashes")
    return BatchDetails(
        number=t["number"],
        timestamp=t["timestamp"],
        l1_tx_count=t["l1TxCount"],
        l2_tx_count=t["l2TxCount"],
        root_hash=t.get("rootHash"),
        status=t["status"],
        commit_tx_hash=t.get("commitTxHash"),
        committed_at=_to_datetime(t.get("committedAt")),
        prove_tx_hash=t.get("proveTxHash"),
        proven_at=_to_datetime(t.get("provenAt")),
        execute_tx_hash=t.get("executeTxHash"),
        executed_at=_to_datetime(t.get("executedAt")),
        l1_gas_price=_to_int(t.get("l1GasPrice")),
        l2_fair_gas_price=_to_int(t.get("l2FairGasPrice")),
        base_system_contracts_hashes=BaseSystemContractsHashes(
            bootloader=hashes["bootloader"], default_aa=hashes["default_aa"]
        )
        if hashes
        else None,
    )


def to_block_details(t: dict) -> BlockDetails:
    return BlockDetails(
        number=t["number"],
        timestamp=t["timestamp"],
        l1_tx_count=t["l1TxCount"],
        l2_tx_count=t["l2TxCount"],
        root_hash=t.get("rootHash"),
        status=t["status"],
        l1_batch_number=t.get("l1BatchNumber"),
        commit_tx_hash=t.get("commitTxHash"),
        committed_at=_to_datetime(t.get("committedAt")),
        prove_tx_hash=t.get("proveTxHash"),
        proven_at=_to_datetime(t.get("provenAt")),
        execute_tx_hash=t.get("executeTxHash"),
        executed_at=_to_datetime(t.get("executedAt")),
        operator_address=t.get("operatorAddress"),
    )


def to_transaction_details(t: dict) -> TransactionDetails:
    return TransactionDetails(
        is_l1_originated=t["isL1Originated"],
        status=t["status"],
        fee=_to_int(t.get("fee")),
        initiator_address=t.get("initiatorAddress"),
        received_at=_to_datetime(t.get("receivedAt")),
        gas_per_pubdata=_to_int(t.get("gasPerPubdata")),
        eth_commit_tx_hash=t.get("ethCommitTxHash"),
        eth_prove_tx_hash=t.get("ethProveTxHash"),
        eth_execute_tx_hash=t.get("ethExecuteTxHash"),
    )


def to_msg_proof(v: dict) -> ZksMessageProof:
    return ZksMessageProof(id=v["id"], proof=list(v["proof"]), root=v["root"])


def to_fee_params(v: dict) -> FeeParams:
    raw = dict(v)
    v2 = raw.get("V2")
    if v2 is None:
        return FeeParams(raw=raw)
    config = v2["config"]
    return FeeParams(
        v2=V2(
            config=Config(
                minimal_l2_gas_price=config["minimal_l2_gas_price"],
                compute_overhead_part=config["compute_overhead_part"],
                pubdata_overhead_part=config["pubdata_overhead_part"],
                batch_overhead_l1_gas=config["batch_overhead_l1_gas"],
                max_gas_per_batch=config["max_gas_per_batch"],
                max_pubdata_per_batch=config["max_pubdata_per_batch"],
            ),
            l1_gas_price=v2["l1_gas_price"],
            l1_pubdata_price=v2["l1_pubdata_price"],
        ),
        raw=raw,
    )


class ZkSync(Eth):
    _zks_l1_batch_number: Method[Callable[[], str]] = Method(
        zks_l1_batch_number_rpc, mungers=None
    )
    _zks_get_l1_batch_details: Method[Callable[[int], dict]] = Method(
        zks_get_l1_batch_details_rpc, mungers=[default_root_munger]
    )
    _zks_get_block_details: Method[Callable[[int], dict]] = Method(
        zks_get_block_details_rpc, mungers=[default_root_munger]
    )
    _zks_get_transaction_details: Method[Callable[[str], dict]] = Method(
        zks_get_transaction_details_rpc, mungers=[default_root_munger]
    )
    _zks_main_contract: Method[Callable[[], HexStr]] = Method(
        zks_main_contract_rpc, mungers=None
    )
    _zks_get_base_token_contract_address: Method[Callable[[], HexStr]] = Method(
        zks_get_base_token_l1_address_rpc, mungers=None
    )
    _zks_l1_chain_id: Method[Callable[[], str]] = Method(
        zks_l1_chain_id_rpc, mungers=None
    )
    _zks_get_bridge_contracts: Method[Callable[[], dict]] = Method(
        zks_get_bridge_contracts_rpc, mungers=None
    )
    _zks_get_l2_to_l1_log_proof: Method[
        Callable[[HexStr, Optional[int]], dict]
    ] = Method(zks_get_l2_to_l1_log_proof_prc, mungers=[default_root_munger])
    _zks_get_fee_params: Method[Callable[[], dict]] = Method(
        zks_get_fee_params_rpc, mungers=None
    )
    _zks_get_testnet_paymaster_address: Method[Callable[[], Optional[HexStr]]] = (
        Method(zks_get_testnet_paymaster_address, mungers=None)
    )
    _eth_estimate_gas: Method[Callable[[Transaction], int]] = Method(
        eth_estimate_gas_rpc,
        mungers=[default_root_munger],
        request_formatters=zksync_estimate_request_formatters,
    )

    def __init__(self, web3: "Web3"):
        super(ZkSync, self).__init__(web3)
        self.main_contract_address = None
        self.bridge_addresses = None
        self.base_token = None

    def zks_l1_batch_number(self) -> int:
        return int(self._zks_l1_batch_number(), 16)

    def zks_get_l1_batch_details(self, l1_batch_number: int) -> Optional[BatchDetails]:
        details = self._zks_get_l1_batch_details(l1_batch_number)
        return to_batch_details(details) if details is not None else None

    def zks_get_block_details(self, block: int) -> Optional[BlockDetails]:
        details = self._zks_get_block_details(block)
        return to_block_details(details) if details is not None else None

    def zks_get_transaction_details(self, tx_hash: str) -> Optional[TransactionDetails]:
        details = self._zks_get_transaction_details(tx_hash)
        return to_transaction_details(details) if details is not None else None

    def zks_get_log_proof(
        self, tx_hash: HexStr, index: Optional[int] = None
    ) -> Optional[ZksMessageProof]:
        proof = self._zks_get_l2_to_l1_log_proof(tx_hash, index)
        return to_msg_proof(proof) if proof is not None else None

    def zks_get_fee_params(self) -> FeeParams:
        return to_fee_params(self._zks_get_fee_params())

    def zks_main_contract(self) -> HexStr:
        if self.main_contract_address is None:
            self.main_contract_address = self._zks_main_contract()
        return self.main_contract_address

    def zks_get_base_token_contract_address(self) -> HexStr:
        """Returns the L1 base token address."""
        if self.base_token is None:
            self.base_token = self._zks_get_base_token_contract_address()
        return self.base_token

    def zks_l1_chain_id(self) -> int:
        return _to_int(self._zks_l1_chain_id())

    def zks_get_bridge_contracts(self) -> BridgeAddresses:
        if self.bridge_addresses is None:
            self.bridge_addresses = to_bridge_address(self._zks_get_bridge_contracts())
        return self.bridge_addresses

    def zks_get_testnet_paymaster_address(self) -> Optional[HexStr]:
        address = self._zks_get_testnet_paymaster_address()
        return _to_checksum_or_none(address)

    def eth_estimate_gas(self, tx: Transaction) -> int:
        return _to_int(self._eth_estimate_gas(tx))

    def l2_token_address(self, token: HexStr) -> HexStr:
        """
        Returns the L2 token address equivalent for a L1 token address as they are not equal.
        ETH address is set to zero address.

        :param token: The address of the token on L1.
        """
        if is_address_eq(token, ADDRESS_DEFAULT):
            token = ETH_ADDRESS_IN_CONTRACTS
        if is_address_eq(token, self.zks_get_base_token_contract_address()):
            return L2_BASE_TOKEN_ADDRESS

        bridge_addresses = self.zks_get_bridge_contracts()
        l2_shared_bridge = self.contract(
            Web3.to_checksum_address(bridge_addresses.shared_l2_default_bridge),
            abi=l2_shared_bridge_abi_default(),
        )
        return l2_shared_bridge.functions.l2TokenAddress(
            Web3.to_checksum_address(token)
        ).call()

    def get_deployment_nonce(self, address: HexStr) -> int:
        """Returns the number of contracts ``address`` has deployed, as tracked by NonceHolder."""
        nonce_holder = self.contract(
            Web3.to_checksum_address(SystemContract.NONCE_HOLDER.value),
            abi=nonce_holder_abi_default(),
        )
        return nonce_holder.functions.getDeploymentNonce(
            Web3.to_checksum_address(address)
        ).call()


def result_to_dict(value: Any) -> Any:
    """Turns web3 AttributeDict/HexBytes results into plain JSON-friendly values."""
    if isinstance(value, (bytes, bytearray)):
        return to_hex(value)
    if isinstance(value, dict) or hasattr(value, "items"):
        return {k: result_to_dict(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [result_to_dict(v) for v in value]
    return value
