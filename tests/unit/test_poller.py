from unittest import TestCase

from hexbytes import HexBytes
from web3 import Web3

from tests.unit.fakes import FakeWeb3, address_topic, int_word, make_log
from zksync_flow.config import NetworkCredentials
from zksync_flow.core.errors import InvalidAddress, InvalidEventSignature, MissingParameter
from zksync_flow.core.utils import TRANSFER_EVENT_TOPIC, keccak256_text
from zksync_flow.trigger.cursor_store import InMemoryCursorStore
from zksync_flow.trigger.events import TriggerKind, TriggerParameters
from zksync_flow.trigger.poller import ZkSyncTrigger

TOKEN = "0x1111111111111111111111111111111111111111"
ALICE = Web3.to_checksum_address("0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa")
BOB = Web3.to_checksum_address("0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb")
CAROL = Web3.to_checksum_address("0xcccccccccccccccccccccccccccccccccccccccc")
NETWORK = "zkSync Era Sepolia Testnet"


class RecordingStore(InMemoryCursorStore):
    def __init__(self, initial=None):
        super(RecordingStore, self).__init__(initial)
        self.writes = []

    def set(self, key, value):
        self.writes.append((key, value))
        super(RecordingStore, self).set(key, value)


def transfer_log(block_number, sender, recipient, value, log_index=0):
    return make_log(
        block_number,
        [HexBytes(TRANSFER_EVENT_TOPIC), address_topic(sender), address_topic(recipient)],
        data=int_word(value),
        log_index=log_index,
        address=TOKEN,
    )


def nft_log(block_number, sender, recipient, token_id):
    return make_log(
        block_number,
        [
            HexBytes(TRANSFER_EVENT_TOPIC),
            address_topic(sender),
            address_topic(recipient),
            int_word(token_id),
        ],
        address=TOKEN,
    )


class NewBlockTriggerTests(TestCase):
    def setUp(self) -> None:
        self.web3 = FakeWeb3(block_number=10)
        for n in range(1, 11):
            self.web3.eth.add_block(n)
        self.trigger = ZkSyncTrigger(
            self.web3, TriggerParameters(trigger_on=TriggerKind.NEW_BLOCK), NETWORK
        )

    def test_first_poll_reports_only_the_tip(self):
        store = RecordingStore()
        events = self.trigger.poll(store)

        self.assertEqual(1, len(events))
        self.assertEqual(10, events[0].data["blockNumber"])
        self.assertEqual(NETWORK, events[0].data["network"])
        self.assertTrue(events[0].data["timestampDate"].endswith(".000Z"))
        self.assertEqual(10, store.get("lastBlock"))

    def test_scans_every_block_since_watermark(self):
        store = RecordingStore({"lastBlock": 7})
        events = self.trigger.poll(store)

        self.assertEqual([8, 9, 10], [e.data["blockNumber"] for e in events])
        self.assertEqual([("lastBlock", 10)], store.writes)

    def test_unchanged_tip_is_a_no_op(self):
        store = RecordingStore({"lastBlock": 10})
        self.assertEqual([], self.trigger.poll(store))
        self.assertEqual([], store.writes)

    def test_stale_tip_does_not_move_watermark_back(self):
        store = RecordingStore({"lastBlock": 12})
        self.assertEqual([], self.trigger.poll(store))
        self.assertEqual(12, store.get("lastBlock"))
        self.assertEqual([], store.writes)

    def test_failed_scan_keeps_watermark(self):
        self.web3.eth.fail_on_block = 9
        store = RecordingStore({"lastBlock": 7})
        with self.assertRaises(ConnectionError):
            self.trigger.poll(store)
        self.assertEqual(7, store.get("lastBlock"))
        self.assertEqual([], store.writes)

        self.web3.eth.fail_on_block = None
        events = self.trigger.poll(store)
        self.assertEqual([8, 9, 10], [e.data["blockNumber"] for e in events])


class NewL1BatchTriggerTests(TestCase):
    def test_reports_new_batches(self):
        web3 = FakeWeb3(l1_batch_number=42)
        for n in (41, 42):
            web3.zksync.add_batch(n)
        trigger = ZkSyncTrigger(web3, TriggerParameters(trigger_on=TriggerKind.NEW_L1_BATCH), NETWORK)
        store = InMemoryCursorStore({"lastL1Batch": 40})

        events = trigger.poll(store)

        self.assertEqual([41, 42], [e.data["batchNumber"] for e in events])
        self.assertEqual("sealed", events[0].data["status"])
        self.assertEqual(42, store.get("lastL1Batch"))


class TransactionConfirmedTriggerTests(TestCase):
    TX_HASH = "0x" + "ef" * 32

    def setUp(self) -> None:
        self.web3 = FakeWeb3(block_number=10)
        self.web3.eth.receipts[self.TX_HASH] = {
            "transactionHash": HexBytes(self.TX_HASH),
            "blockNumber": 8,
            "status": 1,
            "from": ALICE,
            "to": BOB,
            "gasUsed": 21000,
        }
        self.params = TriggerParameters(
            trigger_on=TriggerKind.TRANSACTION_CONFIRMED, tx_hash=self.TX_HASH, confirmations=3
        )

    def test_fires_once_when_confirmed(self):
        store = InMemoryCursorStore()
        trigger = ZkSyncTrigger(self.web3, self.params, NETWORK)

        events = trigger.poll(store)
        self.assertEqual(1, len(events))
        self.assertEqual(3, events[0].data["confirmations"])
        self.assertEqual("success", events[0].data["status"])
        self.assertTrue(store.get(f"tx_{self.TX_HASH}"))

        self.web3.eth.block_number = 20
        self.assertEqual([], trigger.poll(store))

    def test_waits_for_required_confirmations(self):
        self.params.confirmations = 5
        store = RecordingStore()
        self.assertEqual([], ZkSyncTrigger(self.web3, self.params, NETWORK).poll(store))
        self.assertEqual([], store.writes)

    def test_unknown_transaction_is_pending(self):
        self.params.tx_hash = "0x" + "00" * 32
        store = RecordingStore()
        self.assertEqual([], ZkSyncTrigger(self.web3, self.params, NETWORK).poll(store))
        self.assertEqual([], store.writes)

    def test_missing_hash(self):
        params = TriggerParameters(trigger_on=TriggerKind.TRANSACTION_CONFIRMED)
        with self.assertRaises(MissingParameter):
            ZkSyncTrigger(self.web3, params, NETWORK).poll(InMemoryCursorStore())


class EthTransferTriggerTests(TestCase):
    def setUp(self) -> None:
        self.web3 = FakeWeb3(block_number=3)
        self.web3.eth.add_block(2, [{"hash": HexBytes(b"\x01" * 32), "from": ALICE, "to": BOB, "value": 10**18}])
        self.web3.eth.add_block(
            3,
            [
                {"hash": HexBytes(b"\x02" * 32), "from": BOB, "to": CAROL, "value": 5 * 10**17},
                {"hash": HexBytes(b"\x03" * 32), "from": CAROL, "to": None, "value": 0},
            ],
        )

    def poll(self, kind, watch):
        params = TriggerParameters(trigger_on=kind, watch_address=watch)
        return ZkSyncTrigger(self.web3, params, NETWORK).poll(
            InMemoryCursorStore({"lastCheckedBlock": 1})
        )

    def test_received(self):
        events = self.poll(TriggerKind.ETH_RECEIVED, BOB.lower())
        self.assertEqual(1, len(events))
        self.assertEqual("received", events[0].data["type"])
        self.assertEqual("1.0", events[0].data["valueEth"])
        self.assertEqual(2, events[0].data["blockNumber"])

    def test_sent(self):
        events = self.poll(TriggerKind.ETH_SENT, BOB)
        self.assertEqual(1, len(events))
        self.assertEqual("sent", events[0].data["type"])
        self.assertEqual(str(5 * 10**17), events[0].data["valueWei"])
        self.assertEqual("0.5", events[0].data["valueEth"])

    def test_contract_creation_is_not_received(self):
        events = self.poll(TriggerKind.ETH_RECEIVED, CAROL)
        self.assertEqual(1, len(events))
        self.assertEqual(BOB, events[0].data["from"])

    def test_failed_scan_keeps_watermark(self):
        self.web3.eth.fail_on_block = 3
        store = RecordingStore({"lastCheckedBlock": 1})
        params = TriggerParameters(trigger_on=TriggerKind.ETH_RECEIVED, watch_address=BOB)
        trigger = ZkSyncTrigger(self.web3, params, NETWORK)
        with self.assertRaises(ConnectionError):
            trigger.poll(store)
        self.assertEqual([], store.writes)
        self.assertEqual(1, store.get("lastCheckedBlock"))

        self.web3.eth.fail_on_block = None
        self.assertEqual(1, len(trigger.poll(store)))
        self.assertEqual(3, store.get("lastCheckedBlock"))

    def test_invalid_watch_address_fails_before_rpc(self):
        with self.assertRaises(InvalidAddress):
            self.poll(TriggerKind.ETH_RECEIVED, "0x1234")
        self.assertEqual([], self.web3.eth.calls)


class TokenTransferTriggerTests(TestCase):
    def setUp(self) -> None:
        self.web3 = FakeWeb3(block_number=105)

    def trigger(self, filter_address=None):
        params = TriggerParameters(
            trigger_on=TriggerKind.TOKEN_TRANSFER,
            contract_address=TOKEN,
            filter_address=filter_address,
        )
        return ZkSyncTrigger(self.web3, params, NETWORK)

    def test_single_transfer_between_watermark_and_tip(self):
        self.web3.eth.logs = [transfer_log(103, ALICE, BOB, 500)]
        store = InMemoryCursorStore({"lastTokenBlock": 100})

        events = self.trigger().poll(store)

        self.assertEqual(1, len(events))
        data = events[0].data
        self.assertEqual("tokenTransfer", data["type"])
        self.assertEqual(ALICE, data["from"])
        self.assertEqual(BOB, data["to"])
        self.assertEqual("500", data["value"])
        self.assertEqual(103, data["blockNumber"])
        self.assertEqual(TOKEN, data["contractAddress"])
        self.assertEqual(105, store.get("lastTokenBlock"))

        (_, log_filter), = [c for c in self.web3.eth.calls if c[0] == "get_logs"]
        self.assertEqual(101, log_filter["fromBlock"])
        self.assertEqual(105, log_filter["toBlock"])

    def test_filter_matches_either_side(self):
        self.web3.eth.logs = [
            transfer_log(101, ALICE, BOB, 1, log_index=0),
            transfer_log(102, BOB, CAROL, 2, log_index=1),
            transfer_log(103, ALICE, CAROL, 3, log_index=2),
        ]
        events = self.trigger(filter_address=BOB.lower()).poll(
            InMemoryCursorStore({"lastTokenBlock": 100})
        )
        self.assertEqual(["1", "2"], [e.data["value"] for e in events])

    def test_failed_log_query_keeps_watermark(self):
        self.web3.eth.logs = [transfer_log(103, ALICE, BOB, 500)]
        self.web3.eth.fail_on_logs = True
        store = RecordingStore({"lastTokenBlock": 100})
        with self.assertRaises(ConnectionError):
            self.trigger().poll(store)
        self.assertEqual([], store.writes)

        self.web3.eth.fail_on_logs = False
        events = self.trigger().poll(store)
        self.assertEqual(["500"], [e.data["value"] for e in events])
        self.assertEqual([("lastTokenBlock", 105)], store.writes)

    def test_invalid_filter_address(self):
        with self.assertRaises(InvalidAddress):
            self.trigger(filter_address="not-an-address").poll(InMemoryCursorStore())


class NftTransferTriggerTests(TestCase):
    def test_only_logs_with_indexed_token_id(self):
        web3 = FakeWeb3(block_number=50)
        web3.eth.logs = [transfer_log(49, ALICE, BOB, 7), nft_log(50, BOB, CAROL, 1234)]
        params = TriggerParameters(trigger_on=TriggerKind.NFT_TRANSFER, contract_address=TOKEN)
        store = InMemoryCursorStore({"lastNftBlock": 45})

        events = ZkSyncTrigger(web3, params, NETWORK).poll(store)

        self.assertEqual(1, len(events))
        self.assertEqual("1234", events[0].data["tokenId"])
        self.assertEqual(CAROL, events[0].data["to"])
        self.assertEqual(50, store.get("lastNftBlock"))


class ContractEventTriggerTests(TestCase):
    EVENT = "event Deposit(address indexed account, uint256 amount, bool fromL1)"

    def test_decodes_logs_and_skips_malformed_ones(self):
        topic = HexBytes(keccak256_text("Deposit(address,uint256,bool)"))
        web3 = FakeWeb3(block_number=20)
        web3.eth.logs = [
            make_log(19, [topic, address_topic(ALICE)], int_word(42) + int_word(1), address=TOKEN),
            make_log(20, [topic], int_word(1) + int_word(0), log_index=3, address=TOKEN),
        ]
        params = TriggerParameters(
            trigger_on=TriggerKind.CONTRACT_EVENT, contract_address=TOKEN, event_abi=self.EVENT
        )
        store = InMemoryCursorStore({"lastEventBlock": 18})

        with self.assertLogs("zksync_flow.trigger.poller", level="WARNING"):
            events = ZkSyncTrigger(web3, params, NETWORK).poll(store)

        self.assertEqual(1, len(events))
        self.assertEqual("Deposit", events[0].data["eventName"])
        self.assertEqual(
            {"account": ALICE, "amount": "42", "fromL1": "true"}, events[0].data["args"]
        )
        self.assertEqual(20, store.get("lastEventBlock"))

    def test_bad_signature_fails_before_rpc(self):
        web3 = FakeWeb3(block_number=20)
        params = TriggerParameters(
            trigger_on=TriggerKind.CONTRACT_EVENT, contract_address=TOKEN, event_abi="event Broken("
        )
        with self.assertRaises(InvalidEventSignature):
            ZkSyncTrigger(web3, params, NETWORK).poll(InMemoryCursorStore())
        self.assertEqual([], web3.eth.calls)


class BlockFinalizedTriggerTests(TestCase):
    EXEC_HASH = "0x" + "03" * 32

    def setUp(self) -> None:
        self.web3 = FakeWeb3(l1_batch_number=20)
        zksync = self.web3.zksync
        for n in range(11, 21):
            zksync.add_batch(n)
        for n in (11, 12, 13, 15):
            zksync.add_batch(n, status="verified", execute_tx_hash=self.EXEC_HASH)
        zksync.add_batch(14, status="committed")
        self.trigger = ZkSyncTrigger(
            self.web3, TriggerParameters(trigger_on=TriggerKind.BLOCK_FINALIZED), NETWORK
        )

    def test_backlog_scan_and_latches(self):
        store = InMemoryCursorStore()

        events = self.trigger.poll(store)

        self.assertEqual(list(range(11, 21)), self.web3.zksync.requested)
        self.assertEqual([11, 12, 13, 15], [e.data["batchNumber"] for e in events])
        self.assertEqual(20, store.get("lastFinalizedBatch"))
        self.assertTrue(store.get("batch_executed_15"))

    def test_unchanged_tip_is_a_no_op(self):
        store = RecordingStore()
        self.trigger.poll(store)
        self.web3.zksync.requested = []
        store.writes = []

        self.web3.zksync.add_batch(14, status="verified", execute_tx_hash=self.EXEC_HASH)
        self.assertEqual([], self.trigger.poll(store))
        self.assertEqual([], self.web3.zksync.requested)
        self.assertEqual([], store.writes)

    def test_scans_only_new_batches(self):
        store = InMemoryCursorStore()
        self.trigger.poll(store)
        self.web3.zksync.requested = []

        self.web3.zksync.l1_batch_number = 21
        self.web3.zksync.add_batch(21, status="verified", execute_tx_hash=self.EXEC_HASH)
        events = self.trigger.poll(store)

        self.assertEqual([21], self.web3.zksync.requested)
        self.assertEqual([21], [e.data["batchNumber"] for e in events])
        self.assertEqual(21, store.get("lastFinalizedBatch"))

    def test_latched_batch_is_not_reported_again(self):
        store = InMemoryCursorStore({"lastFinalizedBatch": 12, "batch_executed_13": True})
        events = self.trigger.poll(store)
        self.assertEqual([15], [e.data["batchNumber"] for e in events])

    def test_failed_scan_writes_neither_watermark_nor_latches(self):
        self.web3.zksync.fail_on_batch = 14
        store = RecordingStore({"lastFinalizedBatch": 10})
        with self.assertRaises(ConnectionError):
            self.trigger.poll(store)
        self.assertEqual([], store.writes)
        self.assertIsNone(store.get("batch_executed_11"))

        self.web3.zksync.fail_on_batch = None
        events = self.trigger.poll(store)
        self.assertEqual([11, 12, 13, 15], [e.data["batchNumber"] for e in events])
        self.assertEqual(20, store.get("lastFinalizedBatch"))

    def test_backlog_is_configurable(self):
        trigger = ZkSyncTrigger(
            self.web3,
            TriggerParameters(trigger_on=TriggerKind.BLOCK_FINALIZED),
            NETWORK,
            finalized_backlog=3,
        )
        trigger.poll(InMemoryCursorStore())
        self.assertEqual([18, 19, 20], self.web3.zksync.requested)


class BalanceChangeTriggerTests(TestCase):
    def setUp(self) -> None:
        self.web3 = FakeWeb3()
        self.web3.eth.balances[ALICE] = 2 * 10**18
        self.trigger = ZkSyncTrigger(
            self.web3,
            TriggerParameters(trigger_on=TriggerKind.BALANCE_CHANGE, watch_address=ALICE),
            NETWORK,
        )

    def test_first_poll_takes_snapshot(self):
        store = InMemoryCursorStore()
        self.assertEqual([], self.trigger.poll(store))
        self.assertEqual(str(2 * 10**18), store.get("lastBalance"))

    def test_reports_decrease(self):
        store = InMemoryCursorStore({"lastBalance": str(3 * 10**18)})
        events = self.trigger.poll(store)

        self.assertEqual(1, len(events))
        data = events[0].data
        self.assertEqual("decrease", data["direction"])
        self.assertEqual(str(-(10**18)), data["changeWei"])
        self.assertEqual("-1.0", data["changeEth"])
        self.assertEqual("3.0", data["previousBalanceEth"])
        self.assertEqual(str(2 * 10**18), store.get("lastBalance"))

    def test_equal_balance_is_a_no_op(self):
        store = RecordingStore({"lastBalance": str(2 * 10**18)})
        self.assertEqual([], self.trigger.poll(store))
        self.assertEqual([], store.writes)


class TriggerConstructionTests(TestCase):
    def test_parameters_from_mapping(self):
        params = TriggerParameters.from_mapping(
            {
                "triggerOn": "tokenTransfer",
                "contractAddress": TOKEN,
                "filterAddress": "",
                "confirmations": "3",
            }
        )
        self.assertEqual(TriggerKind.TOKEN_TRANSFER, params.trigger_on)
        self.assertEqual(TOKEN, params.contract_address)
        self.assertIsNone(params.filter_address)
        self.assertEqual(3, params.confirmations)
        self.assertIn("event Transfer(", params.event_abi)

    def test_empty_confirmations_default_to_one(self):
        for value in (None, ""):
            params = TriggerParameters.from_mapping(
                {"triggerOn": "transactionConfirmed", "confirmations": value}
            )
            self.assertEqual(1, params.confirmations)

    def test_unknown_kind(self):
        with self.assertRaises(ValueError):
            TriggerParameters.from_mapping({"triggerOn": "newEpoch"})

    def test_from_credentials(self):
        trigger = ZkSyncTrigger.from_credentials(
            NetworkCredentials(network="sepolia"),
            TriggerParameters(trigger_on=TriggerKind.NEW_BLOCK),
            finalized_backlog=4,
        )
        self.assertEqual(NETWORK, trigger.network)
        self.assertEqual(4, trigger.finalized_backlog)
        self.assertEqual("https://sepolia.era.zksync.dev", trigger.web3.provider.endpoint_uri)
