from unittest import TestCase

from eth_typing import HexStr

from zksync_flow.core.errors import InvalidAddress
from zksync_flow.core.utils import (
    TRANSFER_EVENT_TOPIC,
    is_address_eq,
    is_eth,
    is_valid_address,
    keccak256_text,
    timestamp_to_iso,
    topic_to_address,
    topic_to_int,
    validate_address,
)


class UtilsTest(TestCase):
    CHECKSUMMED = HexStr("0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045")

    def test_checksum_address(self):
        self.assertEqual(self.CHECKSUMMED, validate_address(self.CHECKSUMMED.lower()))

    def test_checksum_is_a_fixed_point(self):
        self.assertEqual(self.CHECKSUMMED, validate_address(self.CHECKSUMMED))

    def test_invalid_addresses(self):
        for address in ("0x123", "d8dA6BF26964aF9D7eEd9e03E53415D37aA960", None, 42):
            self.assertFalse(is_valid_address(address))
        with self.assertRaises(InvalidAddress) as ctx:
            validate_address("0x123", "recipient address")
        self.assertIn("recipient address", str(ctx.exception))

    def test_wrong_checksum_is_rejected(self):
        self.assertFalse(is_valid_address("0xd8DA6BF26964aF9D7eEd9e03E53415D37aA96045"))

    def test_keccak(self):
        self.assertEqual(
            "0x1c8aff950685c2ed4bc3174f3472287b56d9517b9c948127319a09a7a36deac8",
            keccak256_text("hello"),
        )
        self.assertEqual(
            "0xc5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470",
            keccak256_text(""),
        )

    def test_transfer_topic(self):
        self.assertEqual(
            "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef",
            TRANSFER_EVENT_TOPIC,
        )

    def test_topics(self):
        topic = HexStr("0x000000000000000000000000" + self.CHECKSUMMED[2:].lower())
        self.assertEqual(self.CHECKSUMMED, topic_to_address(topic))
        self.assertEqual(255, topic_to_int(HexStr("0x" + "00" * 31 + "ff")))

    def test_eth_addresses(self):
        self.assertTrue(is_eth(HexStr("0x" + "0" * 40)))
        self.assertTrue(is_eth(HexStr("0x000000000000000000000000000000000000800A")))
        self.assertFalse(is_eth(self.CHECKSUMMED))
        self.assertTrue(is_address_eq(self.CHECKSUMMED, self.CHECKSUMMED.lower()))

    def test_timestamp_to_iso(self):
        self.assertEqual("1970-01-01T00:00:00.000Z", timestamp_to_iso(0))
        self.assertEqual("2023-11-14T22:13:20.000Z", timestamp_to_iso(1_700_000_000))
