"""Per-instance memory of memorized results.

Values are JSON text keyed by the operation's memorization label. Writes to
the same label are last-write-wins; a rewritten label moves to the end of
the insertion order.
"""

from __future__ import annotations

import threading
from typing import Protocol, runtime_checkable


@runtime_checkable
class MemoryStore(Protocol):
    """Storage backend for an instance's memory."""

    def get(self, key: str) -> str | None: ...
    def put(self, key: str, value: str) -> None: ...
    def get_all(self) -> dict[str, str]: ...
    def clear(self) -> None: ...


class InMemoryStore:
    """Lock-guarded dict store; ``get_all`` returns an independent snapshot.

    Example:
        >>> store = InMemoryStore()
        >>> store.put("Users Intent", '"book a flight"')
        >>> store.get_all()
        {'Users Intent': '"book a flight"'}
    """

    __slots__ = ("_data", "_lock")

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._data.pop(key, None)
            self._data[key] = value

    def get_all(self) -> dict[str, str]:
        with self._lock:
            return dict(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __repr__(self) -> str:
        return f"InMemoryStore({self.get_all()!r})"
