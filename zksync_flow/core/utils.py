import sys
from datetime import datetime, timezone
from typing import Union

from eth_typing import HexStr, Address, ChecksumAddress
from eth_utils import (
    is_address,
    keccak,
    remove_0x_prefix,
    to_checksum_address,
)
from web3 import Web3

from zksync_flow.core.errors import InvalidAddress

ADDRESS_DEFAULT = HexStr("0x" + "0" * 40)
LEGACY_ETH_ADDRESS = HexStr("0x" + "0" * 40)
ETH_ADDRESS_IN_CONTRACTS = HexStr("0x0000000000000000000000000000000000000001")
L2_BASE_TOKEN_ADDRESS = HexStr("0x000000000000000000000000000000000000800a")

MAX_PRIORITY_FEE_PER_GAS = 100_000_000

# keccak256("Transfer(address,address,uint256)"), shared by ERC-20 and ERC-721
TRANSFER_EVENT_SIGNATURE = "Transfer(address,address,uint256)"
TRANSFER_EVENT_TOPIC = HexStr("0x" + keccak(text=TRANSFER_EVENT_SIGNATURE).hex())


def int_to_bytes(x: int) -> bytes:
    return x.to_bytes((x.bit_length() + 7) // 8, byteorder=sys.byteorder)


def to_bytes(data: Union[bytes, HexStr]) -> bytes:
    if isinstance(data, bytes):
        return data
    return bytes.fromhex(remove_0x_prefix(data))


def to_hex(value: Union[bytes, int, str, None]) -> Union[HexStr, None]:
    if value is None:
        return None
    if isinstance(value, str):
        return HexStr(value)
    return HexStr(Web3.to_hex(value))


def encode_address(addr: Union[Address, ChecksumAddress, str]) -> bytes:
    if len(addr) == 0:
        return bytes()
    if isinstance(addr, bytes):
        return addr
    return bytes.fromhex(remove_0x_prefix(addr))


def is_eth(address: HexStr) -> bool:
    return (
        address.lower() == LEGACY_ETH_ADDRESS
        or address.lower() == L2_BASE_TOKEN_ADDRESS
    )


def is_address_eq(a: str, b: str) -> bool:
    return a.lower() == b.lower()


def is_valid_address(address) -> bool:
    return isinstance(address, str) and is_address(address)


def validate_address(address, label: str = "address") -> ChecksumAddress:
    """Returns the checksum form of ``address`` or raises InvalidAddress."""
    if not is_valid_address(address):
        raise InvalidAddress(address, label)
    return to_checksum_address(address)


def keccak256_text(data: str) -> HexStr:
    return HexStr("0x" + keccak(text=data).hex())


def topic_to_address(topic: Union[bytes, HexStr]) -> ChecksumAddress:
    """Extracts the address stored in the low 20 bytes of a 32-byte log topic."""
    return to_checksum_address(to_bytes(topic)[-20:])


def topic_to_int(topic: Union[bytes, HexStr]) -> int:
    return int.from_bytes(to_bytes(topic), byteorder="big")


def timestamp_to_iso(timestamp: int) -> str:
    """Unix seconds as ``YYYY-MM-DDTHH:MM:SS.000Z``."""
    moment = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"
