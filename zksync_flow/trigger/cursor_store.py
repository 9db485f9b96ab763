import json
import logging
import os
import tempfile
import threading
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class CursorStore(Protocol):
    """Durable key/value state of one trigger, surviving across polls."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class InMemoryCursorStore:
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)


class JsonFileCursorStore:
    """
    Keeps the cursor document in a JSON file.

    Every ``set`` rewrites the whole document through a temporary file in the
    same directory followed by ``os.replace``, so readers never observe a
    partially written file.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()
        self._values = self._load()

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            values = json.load(f)
        if not isinstance(values, dict):
            raise ValueError(f"Cursor file {self.path} does not hold a JSON object")
        return values

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = value
            self._flush()

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def _flush(self):
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(prefix=".cursor-", suffix=".json", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._values, f, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise
        logger.debug("Saved %d cursor keys to %s", len(self._values), self.path)
