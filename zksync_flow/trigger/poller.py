import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from eth_typing import HexStr
from web3 import Web3

from zksync_flow.client import get_transaction_receipt
from zksync_flow.config import ClientSettings, NetworkCredentials
from zksync_flow.constants.networks import get_network_config
from zksync_flow.core.errors import DecodeFailure, MissingParameter
from zksync_flow.core.units import wei_to_eth
from zksync_flow.core.utils import (
    TRANSFER_EVENT_TOPIC,
    is_address_eq,
    timestamp_to_iso,
    to_bytes,
    to_hex,
    topic_to_address,
    topic_to_int,
    validate_address,
)
from zksync_flow.manage_contracts.event_decoder import (
    EventSignature,
    parse_event_abi,
    stringify_event_value,
)
from zksync_flow.module.module_builder import ZkSyncBuilder
from zksync_flow.trigger.cursor_store import CursorStore
from zksync_flow.trigger.events import TriggerEvent, TriggerKind, TriggerParameters

logger = logging.getLogger(__name__)

DEFAULT_FINALIZED_BACKLOG = 10

LAST_BLOCK = "lastBlock"
LAST_L1_BATCH = "lastL1Batch"
LAST_CHECKED_BLOCK = "lastCheckedBlock"
LAST_TOKEN_BLOCK = "lastTokenBlock"
LAST_NFT_BLOCK = "lastNftBlock"
LAST_EVENT_BLOCK = "lastEventBlock"
LAST_FINALIZED_BATCH = "lastFinalizedBatch"
LAST_BALANCE = "lastBalance"

ScanResult = Tuple[List[TriggerEvent], Dict[str, Any]]


def tx_latch_key(tx_hash: str) -> str:
    return f"tx_{tx_hash}"


def batch_latch_key(batch_number: int) -> str:
    return f"batch_executed_{batch_number}"


class ZkSyncTrigger:
    """
    Polls a zkSync Era node and reports what changed since the previous poll.

    Watermarks and latches live in the ``CursorStore`` handed to :meth:`poll`.
    A scan collects its store updates and applies them only once it has
    finished, so a failing RPC call leaves the store untouched and the next
    poll covers the same range again.

    On the first poll a watermark starts one unit below the tip, so only the
    tip itself is reported. ``blockFinalized`` starts ``finalized_backlog``
    batches below the tip instead.
    """

    def __init__(
        self,
        web3: Web3,
        parameters: TriggerParameters,
        network: str,
        finalized_backlog: int = DEFAULT_FINALIZED_BACKLOG,
    ):
        self.web3 = web3
        self.parameters = parameters
        self.network = network
        self.finalized_backlog = finalized_backlog
        self._scanners: Dict[TriggerKind, Callable[[CursorStore], ScanResult]] = {
            TriggerKind.NEW_BLOCK: self._scan_new_blocks,
            TriggerKind.NEW_L1_BATCH: self._scan_new_l1_batches,
            TriggerKind.TRANSACTION_CONFIRMED: self._check_transaction_confirmed,
            TriggerKind.ETH_RECEIVED: self._scan_eth_transfers,
            TriggerKind.ETH_SENT: self._scan_eth_transfers,
            TriggerKind.TOKEN_TRANSFER: self._scan_token_transfers,
            TriggerKind.NFT_TRANSFER: self._scan_nft_transfers,
            TriggerKind.CONTRACT_EVENT: self._scan_contract_events,
            TriggerKind.BLOCK_FINALIZED: self._scan_finalized_batches,
            TriggerKind.BALANCE_CHANGE: self._check_balance,
        }

    @classmethod
    def from_credentials(
        cls,
        credentials: NetworkCredentials,
        parameters: TriggerParameters,
        settings: Optional[ClientSettings] = None,
        finalized_backlog: int = DEFAULT_FINALIZED_BACKLOG,
    ) -> "ZkSyncTrigger":
        settings = settings or ClientSettings()
        config = get_network_config(credentials.network, credentials.custom_rpc_url)
        web3 = ZkSyncBuilder.build(config.rpc_url, timeout=settings.request_timeout)
        return cls(web3, parameters, config.name, finalized_backlog)

    @property
    def kind(self) -> TriggerKind:
        return self.parameters.trigger_on

    def poll(self, store: CursorStore) -> List[TriggerEvent]:
        self._prepare()
        events, updates = self._scanners[self.kind](store)
        for key, value in updates.items():
            store.set(key, value)
        if events:
            logger.info("%s: %d new event(s) on %s", self.kind.value, len(events), self.network)
        return events

    def _prepare(self):
        # everything here runs before the first RPC call
        params = self.parameters
        self._watch: Optional[HexStr] = None
        self._contract: Optional[HexStr] = None
        self._filter: Optional[HexStr] = None
        self._event: Optional[EventSignature] = None

        if self.kind in (TriggerKind.ETH_RECEIVED, TriggerKind.ETH_SENT, TriggerKind.BALANCE_CHANGE):
            self._watch = validate_address(params.watch_address, "watch address")
        if self.kind in (
            TriggerKind.TOKEN_TRANSFER,
            TriggerKind.NFT_TRANSFER,
            TriggerKind.CONTRACT_EVENT,
        ):
            self._contract = validate_address(params.contract_address, "contract address")
        if self.kind in (TriggerKind.TOKEN_TRANSFER, TriggerKind.NFT_TRANSFER) and params.filter_address:
            self._filter = validate_address(params.filter_address, "filter address")
        if self.kind == TriggerKind.CONTRACT_EVENT:
            self._event = parse_event_abi(params.event_abi, params.event_name)
        if self.kind == TriggerKind.TRANSACTION_CONFIRMED and not params.tx_hash:
            raise MissingParameter("txHash")

    def _emit(self, data: Dict[str, Any]) -> TriggerEvent:
        return TriggerEvent(kind=self.kind, data={**data, "network": self.network})

    @staticmethod
    def _watermark(store: CursorStore, key: str, current: int) -> int:
        last = store.get(key)
        return current - 1 if last is None else int(last)

    def _scan_new_blocks(self, store: CursorStore) -> ScanResult:
        current = self.web3.eth.block_number
        last = self._watermark(store, LAST_BLOCK, current)
        if current <= last:
            return [], {}

        logger.debug("Scanning blocks %d..%d", last + 1, current)
        events = []
        for number in range(last + 1, current + 1):
            block = self.web3.eth.get_block(number)
            events.append(
                self._emit(
                    {
                        "blockNumber": block["number"],
                        "hash": to_hex(block["hash"]),
                        "timestamp": block["timestamp"],
                        "timestampDate": timestamp_to_iso(block["timestamp"]),
                        "gasLimit": str(block["gasLimit"]),
                        "gasUsed": str(block["gasUsed"]),
                        "transactionCount": len(block.get("transactions") or []),
                    }
                )
            )
        return events, {LAST_BLOCK: current}

    def _scan_new_l1_batches(self, store: CursorStore) -> ScanResult:
        zksync = self.web3.zksync
        current = zksync.zks_l1_batch_number()
        last = self._watermark(store, LAST_L1_BATCH, current)
        if current <= last:
            return [], {}

        logger.debug("Scanning L1 batches %d..%d", last + 1, current)
        events = []
        for number in range(last + 1, current + 1):
            details = zksync.zks_get_l1_batch_details(number)
            events.append(
                self._emit(
                    {
                        "batchNumber": details.number,
                        "timestamp": details.timestamp,
                        "l1TxCount": details.l1_tx_count,
                        "l2TxCount": details.l2_tx_count,
                        "rootHash": details.root_hash,
                        "status": details.status,
                        "commitTxHash": details.commit_tx_hash,
                        "proveTxHash": details.prove_tx_hash,
                        "executeTxHash": details.execute_tx_hash,
                    }
                )
            )
        return events, {LAST_L1_BATCH: current}

    def _check_transaction_confirmed(self, store: CursorStore) -> ScanResult:
        tx_hash = self.parameters.tx_hash
        latch = tx_latch_key(tx_hash)
        if store.get(latch):
            return [], {}

        receipt = get_transaction_receipt(self.web3, tx_hash, retries=1)
        if receipt is None or receipt.get("blockNumber") is None:
            return [], {}
        confirmations = self.web3.eth.block_number - receipt["blockNumber"] + 1
        if confirmations < self.parameters.confirmations:
            logger.debug(
                "%s has %d/%d confirmations", tx_hash, confirmations, self.parameters.confirmations
            )
            return [], {}

        event = self._emit(
            {
                "hash": to_hex(receipt["transactionHash"]),
                "status": "success" if receipt.get("status") == 1 else "failed",
                "blockNumber": receipt["blockNumber"],
                "confirmations": confirmations,
                "from": receipt["from"],
                "to": receipt.get("to"),
                "gasUsed": str(receipt["gasUsed"]),
            }
        )
        return [event], {latch: True}

    def _scan_eth_transfers(self, store: CursorStore) -> ScanResult:
        received = self.kind == TriggerKind.ETH_RECEIVED
        current = self.web3.eth.block_number
        last = self._watermark(store, LAST_CHECKED_BLOCK, current)
        if current <= last:
            return [], {}

        logger.debug("Scanning blocks %d..%d for transfers of %s", last + 1, current, self._watch)
        events = []
        for number in range(last + 1, current + 1):
            block = self.web3.eth.get_block(number, full_transactions=True)
            for tx in block.get("transactions") or []:
                counterpart = tx.get("to") if received else tx.get("from")
                if not counterpart or not is_address_eq(counterpart, self._watch):
                    continue
                value = tx.get("value") or 0
                events.append(
                    self._emit(
                        {
                            "type": "received" if received else "sent",
                            "hash": to_hex(tx["hash"]),
                            "from": tx.get("from"),
                            "to": tx.get("to"),
                            "valueWei": str(value),
                            "valueEth": wei_to_eth(value),
                            "blockNumber": block["number"],
                        }
                    )
                )
        return events, {LAST_CHECKED_BLOCK: current}

    def _get_logs(self, topic: Optional[HexStr], from_block: int, to_block: int) -> list:
        log_filter = {
            "address": self._contract,
            "fromBlock": from_block,
            "toBlock": to_block,
        }
        if topic is not None:
            log_filter["topics"] = [topic]
        return self.web3.eth.get_logs(log_filter)

    def _passes_filter(self, sender: str, recipient: str) -> bool:
        if self._filter is None:
            return True
        return is_address_eq(sender, self._filter) or is_address_eq(recipient, self._filter)

    def _scan_transfers(self, store: CursorStore, key: str, nft: bool) -> ScanResult:
        current = self.web3.eth.block_number
        last = self._watermark(store, key, current)
        if current <= last:
            return [], {}

        logs = self._get_logs(TRANSFER_EVENT_TOPIC, last + 1, current)
        logger.debug("%d Transfer log(s) in blocks %d..%d", len(logs), last + 1, current)
        events = []
        for log in logs:
            topics = log["topics"]
            # ERC-721 indexes tokenId as the fourth topic, ERC-20 keeps the value in data
            if (nft and len(topics) != 4) or (not nft and len(topics) < 3):
                continue
            sender = topic_to_address(topics[1])
            recipient = topic_to_address(topics[2])
            if not self._passes_filter(sender, recipient):
                continue

            data = {
                "type": self.kind.value,
                "contractAddress": self._contract,
                "from": sender,
                "to": recipient,
            }
            if nft:
                data["tokenId"] = str(topic_to_int(topics[3]))
            else:
                data["value"] = str(int.from_bytes(to_bytes(log["data"]), byteorder="big"))
            data.update(
                {
                    "blockNumber": log["blockNumber"],
                    "transactionHash": to_hex(log["transactionHash"]),
                    "logIndex": log["logIndex"],
                }
            )
            events.append(self._emit(data))
        return events, {key: current}

    def _scan_token_transfers(self, store: CursorStore) -> ScanResult:
        return self._scan_transfers(store, LAST_TOKEN_BLOCK, nft=False)

    def _scan_nft_transfers(self, store: CursorStore) -> ScanResult:
        return self._scan_transfers(store, LAST_NFT_BLOCK, nft=True)

    def _scan_contract_events(self, store: CursorStore) -> ScanResult:
        current = self.web3.eth.block_number
        last = self._watermark(store, LAST_EVENT_BLOCK, current)
        if current <= last:
            return [], {}

        signature = self._event
        topic = None if signature.anonymous else signature.topic
        events = []
        for log in self._get_logs(topic, last + 1, current):
            try:
                decoded = signature.decode_log(log)
            except DecodeFailure as e:
                logger.warning(
                    "Skipping log %s#%s: %s", to_hex(log["transactionHash"]), log["logIndex"], e
                )
                continue
            events.append(
                self._emit(
                    {
                        "type": TriggerKind.CONTRACT_EVENT.value,
                        "eventName": signature.name,
                        "contractAddress": self._contract,
                        "args": {k: stringify_event_value(v) for k, v in decoded.items()},
                        "blockNumber": log["blockNumber"],
                        "transactionHash": to_hex(log["transactionHash"]),
                        "logIndex": log["logIndex"],
                    }
                )
            )
        return events, {LAST_EVENT_BLOCK: current}

    def _scan_finalized_batches(self, store: CursorStore) -> ScanResult:
        zksync = self.web3.zksync
        current = zksync.zks_l1_batch_number()
        stored = store.get(LAST_FINALIZED_BATCH)
        last = current - self.finalized_backlog if stored is None else int(stored)
        if current <= last:
            return [], {}

        logger.debug("Checking finalization of batches %d..%d", last + 1, current)
        events = []
        updates: Dict[str, Any] = {}
        for number in range(last + 1, current + 1):
            details = zksync.zks_get_l1_batch_details(number)
            if details is None or not details.is_finalized:
                continue
            latch = batch_latch_key(number)
            if store.get(latch):
                continue
            events.append(
                self._emit(
                    {
                        "type": TriggerKind.BLOCK_FINALIZED.value,
                        "batchNumber": details.number,
                        "status": details.status,
                        "commitTxHash": details.commit_tx_hash,
                        "proveTxHash": details.prove_tx_hash,
                        "executeTxHash": details.execute_tx_hash,
                    }
                )
            )
            updates[latch] = True

        updates[LAST_FINALIZED_BATCH] = current
        return events, updates

    def _check_balance(self, store: CursorStore) -> ScanResult:
        current = self.web3.eth.get_balance(self._watch)
        stored = store.get(LAST_BALANCE)
        if stored is None:
            return [], {LAST_BALANCE: str(current)}
        previous = int(stored)
        if previous == current:
            return [], {}

        change = current - previous
        event = self._emit(
            {
                "type": TriggerKind.BALANCE_CHANGE.value,
                "address": self._watch,
                "previousBalanceWei": str(previous),
                "previousBalanceEth": wei_to_eth(previous),
                "currentBalanceWei": str(current),
                "currentBalanceEth": wei_to_eth(current),
                "changeWei": str(change),
                "changeEth": wei_to_eth(change),
                "direction": "increase" if change > 0 else "decrease",
            }
        )
        return [event], {LAST_BALANCE: str(current)}
