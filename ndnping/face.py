"""Face - the named-data transport boundary consumed by client and server.

A face expresses Interests, registers Interest filters, puts Data and runs
one bounded step of its event loop. Handlers are plain callables taking an
``UpcallKind`` and an ``UpcallInfo`` and returning an ``UpcallResult``.
"""

import hashlib
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from .errors import FaceError
from .name import Name

logger = logging.getLogger(__name__)

DEFAULT_INTEREST_LIFETIME_MS = 4000


class UpcallKind(Enum):
    FINAL = "final"
    INTEREST = "interest"
    CONTENT = "content"
    INTEREST_TIMED_OUT = "interest_timed_out"


class UpcallResult(Enum):
    OK = 0
    ERR = -1
    INTEREST_CONSUMED = 1


@dataclass(frozen=True)
class Interest:
    name: Name
    lifetime_ms: int = DEFAULT_INTEREST_LIFETIME_MS


@dataclass(frozen=True)
class Data:
    name: Name
    content: bytes = b""
    freshness_seconds: Optional[int] = None
    signature: bytes = b""

    def digest(self) -> bytes:
        """SHA-256 over name, freshness and content."""
        h = hashlib.sha256()
        for component in self.name:
            h.update(len(component).to_bytes(4, "big"))
            h.update(component)
        if self.freshness_seconds is not None:
            h.update(self.freshness_seconds.to_bytes(8, "big", signed=True))
        h.update(self.content)
        return h.digest()

    def verify(self) -> bool:
        return self.signature == self.digest()


@dataclass
class UpcallInfo:
    face: "Face"
    interest: Optional[Interest] = None
    data: Optional[Data] = None


Handler = Callable[[UpcallKind, UpcallInfo], UpcallResult]


@dataclass
class _PendingInterest:
    interest: Interest
    handler: Handler
    expires_at: float


@dataclass
class _InterestFilter:
    prefix: Name
    handler: Handler


class Face(ABC):
    """Base face holding the pending-Interest and filter tables.

    Subclasses move Interests and Data; the base class matches them against
    registered handlers and expires Interests whose lifetime has passed.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._pending: List[_PendingInterest] = []
        self._filters: List[_InterestFilter] = []
        self._connected = False

    @abstractmethod
    def connect(self):
        """Open the underlying channel. Raises FaceError."""

    @abstractmethod
    def _send_interest(self, interest: Interest):
        """Hand an Interest to the network."""

    @abstractmethod
    def _send_data(self, data: Data) -> bool:
        """Hand Data to the network, False if nobody asked for it."""

    @abstractmethod
    def _poll(self, timeout_ms: int):
        """Receive and dispatch traffic for at most ``timeout_ms``."""

    def express_interest(self, name: Name, handler: Handler,
                         lifetime_ms: int = DEFAULT_INTEREST_LIFETIME_MS):
        if not self._connected:
            raise FaceError("face is not connected")
        interest = Interest(name=name, lifetime_ms=lifetime_ms)
        self._send_interest(interest)
        self._pending.append(_PendingInterest(
            interest=interest,
            handler=handler,
            expires_at=self._clock() + lifetime_ms / 1000.0,
        ))

    def set_interest_filter(self, prefix: Name, handler: Optional[Handler]):
        """Register ``handler`` for Interests under ``prefix``.

        Passing ``None`` unregisters the prefix.
        """
        if not self._connected:
            raise FaceError("face is not connected")
        for f in [f for f in self._filters if f.prefix == prefix]:
            self._filters.remove(f)
            f.handler(UpcallKind.FINAL, UpcallInfo(face=self))
        if handler is not None:
            self._filters.append(_InterestFilter(prefix=prefix, handler=handler))

    def sign(self, name: Name, content: bytes,
             freshness_seconds: Optional[int] = None) -> Data:
        unsigned = Data(name=name, content=content,
                        freshness_seconds=freshness_seconds)
        return Data(name=name, content=content,
                    freshness_seconds=freshness_seconds,
                    signature=unsigned.digest())

    def put(self, data: Data):
        if not self._connected:
            raise FaceError("face is not connected")
        if not self._send_data(data):
            logger.debug("no pending Interest for %s", data.name)

    def run(self, timeout_ms: int):
        """One bounded step of the event loop."""
        if not self._connected:
            raise FaceError("face is not connected")
        self._poll(max(0, timeout_ms))
        self._expire_interests()

    def close(self):
        if not self._connected:
            return
        self._connected = False
        handlers = [p.handler for p in self._pending] + [f.handler for f in self._filters]
        self._pending.clear()
        self._filters.clear()
        seen = set()
        for handler in handlers:
            if id(handler) in seen:
                continue
            seen.add(id(handler))
            handler(UpcallKind.FINAL, UpcallInfo(face=self))

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _dispatch_interest(self, interest: Interest) -> bool:
        """Offer an incoming Interest to matching filters, longest first."""
        matches = [f for f in self._filters if f.prefix.is_prefix_of(interest.name)]
        matches.sort(key=lambda f: len(f.prefix), reverse=True)
        for f in matches:
            res = f.handler(UpcallKind.INTEREST, UpcallInfo(face=self, interest=interest))
            if res == UpcallResult.INTEREST_CONSUMED:
                return True
        return False

    def _dispatch_data(self, data: Data) -> bool:
        """Satisfy pending Interests whose name is a prefix of the Data name."""
        matched = [p for p in self._pending if p.interest.name.is_prefix_of(data.name)]
        for p in matched:
            self._pending.remove(p)
        for p in matched:
            res = p.handler(UpcallKind.CONTENT,
                            UpcallInfo(face=self, interest=p.interest, data=data))
            if res == UpcallResult.ERR:
                logger.warning("handler rejected content %s", data.name)
        return bool(matched)

    def _expire_interests(self):
        now = self._clock()
        expired = [p for p in self._pending if p.expires_at <= now]
        for p in expired:
            self._pending.remove(p)
        for p in expired:
            p.handler(UpcallKind.INTEREST_TIMED_OUT,
                      UpcallInfo(face=self, interest=p.interest))

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
