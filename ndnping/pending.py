"""Pending request table - in-flight probes keyed by their name suffix."""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from .errors import DuplicateKeyError, NotFoundError

Key = Tuple[bytes, ...]


@dataclass(frozen=True)
class PendingRequest:
    """A probe waiting for its Data or timeout."""
    number: int
    send_time: float


class PendingTable:
    """
    Map from probe name suffix to the request that produced it.

    The key is the tuple of name components after the fixed prefix, normally
    just the token. Inserting a key that is already pending and looking up a
    key that is not are both errors.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[Key, PendingRequest] = {}
        self._lock = threading.Lock()

    def insert(self, key: Key, number: int) -> PendingRequest:
        with self._lock:
            if key in self._entries:
                raise DuplicateKeyError(key)
            entry = PendingRequest(number=number, send_time=self._clock())
            self._entries[key] = entry
            return entry

    def lookup(self, key: Key) -> PendingRequest:
        with self._lock:
            try:
                return self._entries[key]
            except KeyError:
                raise NotFoundError(key) from None

    def remove(self, key: Key):
        with self._lock:
            if self._entries.pop(key, None) is None:
                raise NotFoundError(key)

    def pop(self, key: Key) -> PendingRequest:
        with self._lock:
            try:
                return self._entries.pop(key)
            except KeyError:
                raise NotFoundError(key) from None

    def numbers(self) -> List[int]:
        with self._lock:
            return [e.number for e in self._entries.values()]

    def __contains__(self, key) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
