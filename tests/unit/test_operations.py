from unittest import TestCase

from web3.datastructures import AttributeDict

from tests.unit.fakes import FakeWeb3, address_topic, int_word, make_log
from zksync_flow.client import ZkSyncClient
from zksync_flow.constants.networks import get_network_config
from zksync_flow.core.utils import TRANSFER_EVENT_TOPIC
from zksync_flow.node.operations import account, chain, transaction
from zksync_flow.node.parameters import NodeParameters

TOKEN = "0x3355df6D4c9C3035724Fd0e3914dE96A5a83aaf4"
ALICE = "0xaAaAaAaaAaAaAaaAaAAAAAAAAaaaAaAaAaaAaaAa"
TX_HASH = "0x" + "cd" * 32


class OperationTestCase(TestCase):
    def setUp(self) -> None:
        self.web3 = FakeWeb3(block_number=12, l1_batch_number=40)
        self.client = ZkSyncClient(
            web3=self.web3,
            network="sepolia",
            network_config=get_network_config("sepolia"),
            chain_id=300,
        )

    def run_op(self, handler, **values):
        return handler(self.client, NodeParameters(values))


class AccountOperationTests(OperationTestCase):
    def test_account_type(self):
        self.web3.eth.codes[TOKEN] = b"\x00\x01"

        smart = self.run_op(account.get_account_type, address=TOKEN)
        eoa = self.run_op(account.get_account_type, address=ALICE)

        self.assertEqual("smart_account", smart["accountType"])
        self.assertTrue(self.run_op(account.is_contract, address=TOKEN)["isContract"])
        self.assertEqual({"address": ALICE, "accountType": "eoa", "hasCode": False}, eoa)

    def test_code(self):
        self.web3.eth.codes[TOKEN] = b"\x60\x80"
        self.assertEqual("0x6080", self.run_op(account.get_code, address=TOKEN.lower())["bytecode"])


class TransactionOperationTests(OperationTestCase):
    def test_status_pending_while_unknown(self):
        self.assertEqual(
            {"hash": TX_HASH, "status": "pending"},
            self.run_op(transaction.get_status, txHash=TX_HASH),
        )

    def test_status_counts_confirmations(self):
        self.web3.eth.receipts[TX_HASH] = AttributeDict({"status": 1, "blockNumber": 10})
        result = self.run_op(transaction.get_status, txHash=TX_HASH)
        self.assertEqual("success", result["status"])
        self.assertEqual(3, result["confirmations"])

    def test_missing_receipt(self):
        self.assertEqual(
            {"error": "Receipt not found"}, self.run_op(transaction.get_receipt, txHash=TX_HASH)
        )

    def test_fee_data(self):
        self.web3.eth.add_block(12)
        result = self.run_op(transaction.get_fee_data)
        self.assertEqual("25000000", result["gasPrice"])
        self.assertEqual("0.025", result["gasPriceGwei"])
        self.assertEqual("50000000", result["maxFeePerGas"])
        self.assertEqual("0", result["maxPriorityFeePerGas"])


class ChainOperationTests(OperationTestCase):
    def test_block(self):
        self.web3.eth.add_block(5, transactions=[{"hash": b"\x01" * 32}])

        result = self.run_op(chain.get_block, blockId="5")

        self.assertEqual(5, result["number"])
        self.assertEqual("2023-11-14T22:13:25.000Z", result["timestampDate"])
        self.assertEqual("21000", result["gasUsed"])
        self.assertEqual(1, result["transactionCount"])

    def test_missing_block(self):
        self.assertEqual({"error": "Block not found"}, self.run_op(chain.get_block, blockId="0x63"))

    def test_latest_block(self):
        self.assertEqual({"latestBlockNumber": 12}, self.run_op(chain.get_latest_block))

    def test_l1_batches(self):
        self.web3.zksync.add_batch(39, status="verified")

        self.assertEqual({"l1BatchNumber": 40}, self.run_op(chain.get_l1_batch_number))
        details = self.run_op(chain.get_l1_batch_details, batchNumber="39")
        self.assertEqual("verified", details["status"])
        self.assertEqual("0x" + "02" * 32, details["proveTxHash"])
        self.assertEqual(
            {"error": "L1 batch not found"}, self.run_op(chain.get_l1_batch_details, batchNumber=41)
        )

    def test_gas_price(self):
        self.assertEqual(
            {"gasPriceWei": "25000000", "gasPriceGwei": "0.025"}, self.run_op(chain.get_gas_price)
        )

    def test_logs(self):
        self.web3.eth.logs.append(
            make_log(
                7,
                [bytes.fromhex(TRANSFER_EVENT_TOPIC[2:]), address_topic(ALICE), address_topic(TOKEN)],
                int_word(5),
                log_index=2,
                address=TOKEN,
            )
        )

        result = self.run_op(
            chain.get_logs, address=TOKEN, fromBlock="1", toBlock="12", eventTopic=TRANSFER_EVENT_TOPIC
        )

        self.assertEqual(1, result["logsCount"])
        log = result["logs"][0]
        self.assertEqual(7, log["blockNumber"])
        self.assertEqual(2, log["logIndex"])
        self.assertEqual(TRANSFER_EVENT_TOPIC, log["topics"][0])
        self.assertEqual("0x" + "00" * 31 + "05", log["data"])
