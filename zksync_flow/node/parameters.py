import json
from typing import Any, Dict, Mapping, Optional

from eth_typing import ChecksumAddress

from zksync_flow.core.errors import InvalidQuantity, MissingParameter
from zksync_flow.core.utils import validate_address

_MISSING = object()


class NodeParameters:
    """Named parameter values of one input item."""

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = dict(values or {})

    def __contains__(self, name: str) -> bool:
        return self._values.get(name) is not None

    def get(self, name: str, default: Any = None) -> Any:
        value = self._values.get(name)
        return default if value is None else value

    def require(self, name: str) -> Any:
        value = self._values.get(name, _MISSING)
        if value is _MISSING or value is None or value == "":
            raise MissingParameter(name)
        return value

    def address(self, name: str, label: Optional[str] = None) -> ChecksumAddress:
        return validate_address(self.require(name), label or "address")

    def integer(self, name: str, default: Any = _MISSING) -> int:
        if default is not _MISSING and name not in self:
            return default
        value = self.require(name)
        if isinstance(value, bool):
            raise InvalidQuantity(f"Parameter '{name}' must be an integer, got {value!r}")
        if isinstance(value, int):
            return value
        text = str(value).strip()
        try:
            return int(text, 16) if text.lower().startswith("0x") else int(text)
        except ValueError:
            raise InvalidQuantity(
                f"Parameter '{name}' must be an integer, got {value!r}"
            ) from None

    def flag(self, name: str, default: bool = False) -> bool:
        value = self.get(name, default)
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)

    def json(self, name: str, default: Any = _MISSING) -> Any:
        """Returns the parameter, parsing it first when it is a JSON string."""
        if default is not _MISSING and name not in self:
            return default
        value = self.require(name)
        if isinstance(value, str):
            return json.loads(value)
        return value
