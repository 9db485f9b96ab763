import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import IntEnum
from typing import Union

from zksync_flow.core.errors import InvalidAmountFormat, InvalidQuantity

MAX_DECIMALS = 255
ETHER_DECIMALS = 18
GWEI_DECIMALS = 9
# longest accepted amount, kept below the interpreter limit on int <-> str digits
MAX_AMOUNT_DIGITS = 4000
_MAX_BASE_AMOUNT = 10 ** (MAX_AMOUNT_DIGITS + MAX_DECIMALS)

_AMOUNT_PATTERN = re.compile(r"^([0-9]*)(?:\.([0-9]*))?$")


class Denomination(IntEnum):
    """Ethereum denominations, valued by their power of ten over wei."""

    WEI = 0
    KWEI = 3
    MWEI = 6
    GWEI = 9
    SZABO = 12
    FINNEY = 15
    ETHER = 18

    @property
    def scale(self) -> int:
        return int(self.value)

    @classmethod
    def from_name(cls, unit: Union[str, "Denomination"]) -> "Denomination":
        if isinstance(unit, Denomination):
            return unit
        try:
            return cls[str(unit).strip().upper()]
        except KeyError:
            raise InvalidQuantity(f"Unknown unit: {unit!r}") from None


@dataclass(frozen=True)
class TransactionCost:
    wei: str
    gwei: str
    eth: str


def _check_decimals(decimals: int) -> int:
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise InvalidQuantity(f"Decimals must be an integer, got {decimals!r}")
    if decimals < 0 or decimals > MAX_DECIMALS:
        raise InvalidQuantity(f"Decimals out of range 0..{MAX_DECIMALS}: {decimals}")
    return decimals


def _to_integer(raw: Union[int, str]) -> int:
    if isinstance(raw, bool):
        raise InvalidQuantity(f"Expected an integer amount, got {raw!r}")
    if isinstance(raw, int):
        if abs(raw) >= _MAX_BASE_AMOUNT:
            raise InvalidQuantity(f"Amount too large: {raw.bit_length()} bits")
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        if len(text) > MAX_AMOUNT_DIGITS:
            raise InvalidAmountFormat(f"Amount exceeds {MAX_AMOUNT_DIGITS} digits")
        try:
            return int(text, 16) if text.lower().startswith("0x") else int(text)
        except ValueError:
            raise InvalidAmountFormat(f"Invalid integer amount: {raw!r}") from None
    raise InvalidQuantity(f"Expected an integer amount, got {type(raw).__name__}")


def parse_units(value: Union[str, int], decimals: int) -> int:
    """
    Parses a non-negative decimal string into base units.

    Trailing zeros past ``decimals`` are dropped; any other fractional digit past
    ``decimals`` is rejected instead of being rounded.

    :param value: Amount as a base-10 string, e.g. ``"1.5"``.
    :param decimals: Number of decimals of the unit the amount is expressed in.
    """
    decimals = _check_decimals(decimals)
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        raise InvalidAmountFormat(f"Amount must be a string, got {type(value).__name__}")

    match = _AMOUNT_PATTERN.match(value.strip())
    if match is None:
        raise InvalidAmountFormat(f"Invalid amount: {value!r}")
    whole, fraction = match.group(1), (match.group(2) or "")
    if not whole and not fraction:
        raise InvalidAmountFormat(f"Invalid amount: {value!r}")
    if len(whole) + len(fraction) > MAX_AMOUNT_DIGITS:
        raise InvalidAmountFormat(f"Amount exceeds {MAX_AMOUNT_DIGITS} digits")

    fraction = fraction.rstrip("0")
    if len(fraction) > decimals:
        raise InvalidAmountFormat(
            f"Too many decimals in {value!r}, at most {decimals} allowed"
        )
    fraction = fraction.ljust(decimals, "0")
    return int(whole or "0") * 10**decimals + int(fraction or "0")


def format_units(raw: Union[int, str], decimals: int) -> str:
    """
    Renders a base unit amount with ``decimals`` decimals.

    Scale 0 renders a plain integer. Otherwise at least one fractional digit is
    kept, so whole amounts render as ``"1.0"``.
    """
    decimals = _check_decimals(decimals)
    amount = _to_integer(raw)
    sign = "-" if amount < 0 else ""
    amount = abs(amount)
    if decimals == 0:
        return f"{sign}{amount}"

    whole, fraction = divmod(amount, 10**decimals)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0") or "0"
    return f"{sign}{whole}.{fraction_str}"


def convert_units(
    value: str,
    from_unit: Union[str, Denomination],
    to_unit: Union[str, Denomination],
) -> str:
    source = Denomination.from_name(from_unit)
    target = Denomination.from_name(to_unit)
    return format_units(parse_units(value, source.scale), target.scale)


def format_token_amount(raw: Union[int, str], decimals: int) -> str:
    return format_units(raw, decimals)


def parse_token_amount(value: str, decimals: int) -> int:
    return parse_units(value, decimals)


def eth_to_wei(value: str) -> int:
    return parse_units(value, ETHER_DECIMALS)


def wei_to_eth(wei: Union[int, str]) -> str:
    return format_units(wei, ETHER_DECIMALS)


def gwei_to_wei(value: str) -> int:
    return parse_units(value, GWEI_DECIMALS)


def wei_to_gwei(wei: Union[int, str]) -> str:
    return format_units(wei, GWEI_DECIMALS)


def compute_transaction_cost(gas_used: int, gas_price: int) -> TransactionCost:
    gas_used = _to_integer(gas_used)
    gas_price = _to_integer(gas_price)
    if gas_used < 0:
        raise InvalidQuantity(f"Gas used can't be negative: {gas_used}")
    if gas_price < 0:
        raise InvalidQuantity(f"Gas price can't be negative: {gas_price}")
    cost = gas_used * gas_price
    return TransactionCost(
        wei=str(cost),
        gwei=format_units(cost, GWEI_DECIMALS),
        eth=format_units(cost, ETHER_DECIMALS),
    )


def format_number(value: Union[int, str]) -> str:
    return f"{_to_integer(value):,}"


def truncate_address(address: str, chars: int = 4) -> str:
    return f"{address[:chars + 2]}...{address[-chars:]}"


def format_gas_price(gas_price_wei: Union[int, str]) -> str:
    gwei = Decimal(wei_to_gwei(gas_price_wei))
    return f"{gwei.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)} Gwei"
