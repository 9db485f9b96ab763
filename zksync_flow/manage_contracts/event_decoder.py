import json
import re
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Dict, List, Optional, Tuple

from eth_abi import is_encodable_type
from eth_abi.exceptions import DecodingError
from eth_typing import ABIEvent, HexStr
from web3 import Web3
from web3.exceptions import InvalidEventABI, LogTopicError, MismatchedABI
from web3.types import LogReceipt

from zksync_flow.core.errors import DecodeFailure, InvalidEventSignature
from zksync_flow.core.utils import keccak256_text

_SIGNATURE_PATTERN = re.compile(
    r"^\s*(?:event\s+)?([A-Za-z_$][A-Za-z0-9_$]*)\s*\((.*)\)\s*(anonymous)?\s*;?\s*$"
)
_TYPE_ALIASES = {"uint": "uint256", "int": "int256", "byte": "bytes1"}


@dataclass(frozen=True)
class EventInput:
    name: str
    type: str
    indexed: bool


@dataclass(frozen=True)
class EventSignature:
    name: str
    inputs: Tuple[EventInput, ...]
    anonymous: bool = False

    @property
    def canonical(self) -> str:
        return f"{self.name}({','.join(i.type for i in self.inputs)})"

    @property
    def topic(self) -> HexStr:
        return keccak256_text(self.canonical)

    @property
    def abi_entry(self) -> ABIEvent:
        return {
            "type": "event",
            "name": self.name,
            "anonymous": self.anonymous,
            "inputs": [{"name": i.name, "type": i.type, "indexed": i.indexed} for i in self.inputs],
        }

    @cached_property
    def contract_event(self):
        # decoding only needs the codec, so no provider is attached
        contract = Web3().eth.contract(abi=[self.abi_entry])
        return contract.events[self.name]()

    def decode_log(self, log: LogReceipt) -> Dict[str, Any]:
        """
        Decodes a log emitted by this event into ``{argument name: value}``.

        Dynamic indexed values come back as the 32 byte hash stored in the topic.
        Raises DecodeFailure when the log does not match the event layout.
        """
        try:
            args = self.contract_event.process_log(log)["args"]
        except (MismatchedABI, LogTopicError, InvalidEventABI, DecodingError) as e:
            raise DecodeFailure(f"Can't decode {self.canonical}: {e}") from e
        return {i.name: args[i.name] for i in self.inputs}


def _normalize_type(abi_type: str) -> str:
    abi_type = abi_type.strip()
    base, suffix = re.match(r"^([^\[]*)(.*)$", abi_type).groups()
    abi_type = _TYPE_ALIASES.get(base, base) + suffix
    if abi_type.startswith("(") or abi_type.startswith("tuple"):
        raise InvalidEventSignature(f"Tuple event arguments are not supported: {abi_type}")
    if not is_encodable_type(abi_type):
        raise InvalidEventSignature(f"Unknown ABI type: {abi_type}")
    return abi_type


def _parse_human_readable(text: str) -> EventSignature:
    match = _SIGNATURE_PATTERN.match(text)
    if match is None:
        raise InvalidEventSignature(f"Can't parse event signature: {text!r}")
    name, params, anonymous = match.groups()

    inputs: List[EventInput] = []
    for position, param in enumerate(p for p in params.split(",") if p.strip()):
        parts = param.split()
        abi_type = _normalize_type(parts[0])
        indexed = len(parts) > 1 and parts[1] == "indexed"
        rest = parts[2:] if indexed else parts[1:]
        if len(rest) > 1:
            raise InvalidEventSignature(f"Can't parse event argument: {param.strip()!r}")
        arg_name = rest[0] if rest else f"arg{position}"
        inputs.append(EventInput(name=arg_name, type=abi_type, indexed=indexed))

    return EventSignature(name=name, inputs=tuple(inputs), anonymous=bool(anonymous))


def _from_abi_entry(entry: Dict[str, Any]) -> EventSignature:
    inputs = tuple(
        EventInput(
            name=item.get("name") or f"arg{position}",
            type=_normalize_type(item["type"]),
            indexed=bool(item.get("indexed", False)),
        )
        for position, item in enumerate(entry.get("inputs", []))
    )
    return EventSignature(
        name=entry["name"], inputs=inputs, anonymous=bool(entry.get("anonymous", False))
    )


def parse_event_abi(text: str, event_name: Optional[str] = None) -> EventSignature:
    """
    Reads an event definition from a human-readable signature such as
    ``event Transfer(address indexed from, address indexed to, uint256 value)``
    or from a JSON ABI.

    A JSON ABI may hold several events; ``event_name`` picks one of them,
    otherwise the first event wins.
    """
    stripped = text.strip()
    if not stripped.startswith(("[", "{")):
        return _parse_human_readable(stripped)

    try:
        abi = json.loads(stripped)
    except json.JSONDecodeError as e:
        raise InvalidEventSignature(f"Invalid JSON ABI: {e}") from e
    entries = abi if isinstance(abi, list) else [abi]
    events = [e for e in entries if isinstance(e, dict) and e.get("type") == "event"]
    if event_name:
        events = [e for e in events if e.get("name") == event_name] or events
    if not events:
        raise InvalidEventSignature("ABI does not contain any event")
    return _from_abi_entry(events[0])


def stringify_event_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [stringify_event_value(v) for v in value]
    return str(value)
