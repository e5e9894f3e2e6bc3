# backend/services/vintage_store.py
from __future__ import annotations

import threading
from typing import Dict, Optional, Protocol


class VintageStore(Protocol):
    """Transient keyed hand-off between the process and download steps."""

    def put(self, key: str, buffer: bytes) -> str: ...

    def get(self, key: str) -> Optional[bytes]: ...

    def clear(self) -> None: ...


class MemoryVintageStore:
    """
    In-process store keyed by vintage name. Last writer wins, nothing expires,
    and everything is lost when the process restarts.
    """

    def __init__(self):
        self._files: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def put(self, key: str, buffer: bytes) -> str:
        with self._lock:
            self._files[key] = bytes(buffer)
        return key

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._files.get(key)

    def clear(self) -> None:
        with self._lock:
            self._files.clear()

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._files)

    def __len__(self):
        with self._lock:
            return len(self._files)
