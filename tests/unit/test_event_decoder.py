import json
from unittest import TestCase

from eth_abi import encode
from eth_utils import keccak, to_checksum_address

from tests.unit.fakes import make_log
from zksync_flow.core.errors import DecodeFailure, InvalidEventSignature
from zksync_flow.core.utils import TRANSFER_EVENT_TOPIC
from zksync_flow.manage_contracts.event_decoder import parse_event_abi, stringify_event_value

ALICE = to_checksum_address("0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa")
BOB = to_checksum_address("0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb")


def topic(address):
    return bytes(12) + bytes.fromhex(address[2:])


class ParseEventAbiTests(TestCase):
    def test_human_readable(self):
        event = parse_event_abi(
            "event Transfer(address indexed from, address indexed to, uint256 value)"
        )
        self.assertEqual("Transfer", event.name)
        self.assertEqual("Transfer(address,address,uint256)", event.canonical)
        self.assertEqual(TRANSFER_EVENT_TOPIC, event.topic)
        self.assertEqual([True, True, False], [i.indexed for i in event.inputs])

    def test_aliases_and_unnamed_arguments(self):
        event = parse_event_abi("Ping(uint indexed, bytes)")
        self.assertEqual("Ping(uint256,bytes)", event.canonical)
        self.assertEqual(["arg0", "arg1"], [i.name for i in event.inputs])

    def test_json_abi_picks_event_by_name(self):
        abi = [
            {"type": "function", "name": "transfer", "inputs": []},
            {"type": "event", "name": "Approval", "inputs": [
                {"name": "owner", "type": "address", "indexed": True},
                {"name": "spender", "type": "address", "indexed": True},
                {"name": "value", "type": "uint256", "indexed": False},
            ]},
            {"type": "event", "name": "Transfer", "inputs": [
                {"name": "from", "type": "address", "indexed": True},
                {"name": "to", "type": "address", "indexed": True},
                {"name": "value", "type": "uint256", "indexed": False},
            ]},
        ]
        self.assertEqual("Approval", parse_event_abi(json.dumps(abi)).name)
        self.assertEqual("Transfer", parse_event_abi(json.dumps(abi), "Transfer").name)

    def test_invalid_signatures(self):
        for text in ("event Broken(", "event X(notatype y)", "[{\"type\": \"function\"}]", "{oops"):
            with self.assertRaises(InvalidEventSignature, msg=text):
                parse_event_abi(text)

    def test_tuples_are_rejected(self):
        with self.assertRaises(InvalidEventSignature):
            parse_event_abi("event Packed((uint256,address) data)")


class DecodeLogTests(TestCase):
    def setUp(self) -> None:
        self.event = parse_event_abi(
            "event Memo(address indexed sender, string indexed tag, uint256 amount, string note)"
        )
        self.topic0 = keccak(text="Memo(address,string,uint256,string)")

    def test_abi_entry(self):
        entry = self.event.abi_entry
        self.assertEqual("event", entry["type"])
        self.assertFalse(entry["anonymous"])
        self.assertEqual(
            {"name": "tag", "type": "string", "indexed": True}, entry["inputs"][1]
        )

    def test_decode(self):
        tag_hash = keccak(text="rent")
        data = encode(["uint256", "string"], [1200, "october"])

        decoded = self.event.decode_log(make_log(7, [self.topic0, topic(ALICE), tag_hash], data))

        self.assertEqual(["sender", "tag", "amount", "note"], list(decoded))
        self.assertEqual(ALICE, decoded["sender"])
        self.assertEqual(tag_hash, decoded["tag"])
        self.assertEqual("0x" + tag_hash.hex(), stringify_event_value(decoded["tag"]))
        self.assertEqual(1200, decoded["amount"])
        self.assertEqual("october", decoded["note"])

    def test_anonymous_event_has_no_signature_topic(self):
        event = parse_event_abi("event Tick(uint256 indexed round) anonymous")
        decoded = event.decode_log(make_log(7, [(5).to_bytes(32, "big")]))
        self.assertEqual({"round": 5}, decoded)

    def test_wrong_topic(self):
        with self.assertRaises(DecodeFailure):
            self.event.decode_log(make_log(7, [keccak(text="Other()"), topic(ALICE), bytes(32)]))

    def test_wrong_indexed_count(self):
        with self.assertRaises(DecodeFailure):
            self.event.decode_log(make_log(7, [self.topic0, topic(ALICE)]))

    def test_truncated_data(self):
        with self.assertRaises(DecodeFailure):
            self.event.decode_log(make_log(7, [self.topic0, topic(ALICE), bytes(32)], b"\x00" * 8))

    def test_stringify(self):
        self.assertEqual("true", stringify_event_value(True))
        self.assertEqual("12", stringify_event_value(12))
        self.assertEqual("0x0102", stringify_event_value(b"\x01\x02"))
        self.assertEqual(["1", BOB], stringify_event_value([1, BOB]))
