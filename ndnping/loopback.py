"""Loopback face - in-process forwarder with simulated loss and delay."""

import heapq
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Union

from .face import Data, Face, Interest

logger = logging.getLogger(__name__)


@dataclass(order=True)
class _QueueEntry:
    """Packet in flight, ordered by delivery time then send order."""
    sort_key: tuple = field(compare=True)
    packet: Union[Interest, Data] = field(compare=False)


class LoopbackFace(Face):
    """
    Face whose Interests are answered by filters registered on the same face.

    Every packet takes ``delay`` seconds one way and is dropped with
    probability ``loss_rate``. ``clock`` and ``sleep`` may be replaced to
    drive the face from a simulated timeline.
    """

    def __init__(self,
                 delay: float = 0.0,
                 loss_rate: float = 0.0,
                 seed: Optional[int] = None,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        super().__init__(clock=clock)
        if not 0.0 <= loss_rate <= 1.0:
            raise ValueError(f"loss_rate out of range: {loss_rate}")
        if delay < 0:
            raise ValueError(f"delay must be non-negative: {delay}")
        self.delay = delay
        self.loss_rate = loss_rate
        self._rng = random.Random(seed)
        self._sleep = sleep
        self._queue: List[_QueueEntry] = []
        self._order = 0

    def connect(self):
        self._connected = True

    def _enqueue(self, packet: Union[Interest, Data]) -> bool:
        if self.loss_rate > 0 and self._rng.random() < self.loss_rate:
            logger.debug("dropped %s", packet.name)
            return False
        heapq.heappush(self._queue, _QueueEntry(
            sort_key=(self._clock() + self.delay, self._order),
            packet=packet,
        ))
        self._order += 1
        return True

    def _send_interest(self, interest: Interest):
        self._enqueue(interest)

    def _send_data(self, data: Data) -> bool:
        wanted = any(p.interest.name.is_prefix_of(data.name) for p in self._pending)
        self._enqueue(data)
        return wanted

    def _deliver_due(self) -> int:
        delivered = 0
        while self._queue and self._queue[0].sort_key[0] <= self._clock():
            packet = heapq.heappop(self._queue).packet
            if isinstance(packet, Interest):
                self._dispatch_interest(packet)
            else:
                self._dispatch_data(packet)
            delivered += 1
        return delivered

    def _poll(self, timeout_ms: int):
        if self._deliver_due() or timeout_ms == 0:
            return

        wait = timeout_ms / 1000.0
        if self._queue:
            wait = min(wait, max(0.0, self._queue[0].sort_key[0] - self._clock()))
        if self._pending:
            next_expiry = min(p.expires_at for p in self._pending)
            wait = min(wait, max(0.0, next_expiry - self._clock()))
        if wait > 0:
            self._sleep(wait)
        self._deliver_due()
