"""
ndnping run statistics

Accumulates, for the whole run:
- Interests transmitted and Data received
- RTT min / max / sum / sum of squares in milliseconds
- Wall time since start
"""

import math
import sys
import threading
import time
from typing import Callable, Optional, TextIO

RTT_MIN_SENTINEL = float(2 ** 31 - 1)


class RunStatistics:
    """
    Statistics aggregate owned by one ping session.

    Written by the emitter and the response handler; read by the final
    report and, when enabled, the status API thread.
    """

    def __init__(self, prefix: str, clock: Callable[[], float] = time.monotonic):
        self.prefix = prefix
        self._clock = clock
        self._lock = threading.Lock()

        self.sent = 0
        self.received = 0
        self.start = clock()
        self.min = RTT_MIN_SENTINEL
        self.max = 0.0
        self.tsum = 0.0
        self.tsum2 = 0.0

    def record_sent(self):
        with self._lock:
            self.sent += 1

    def record_received(self, rtt_ms: float):
        with self._lock:
            self.received += 1
            if rtt_ms < self.min:
                self.min = rtt_ms
            if rtt_ms > self.max:
                self.max = rtt_ms
            self.tsum += rtt_ms
            self.tsum2 += rtt_ms * rtt_ms

    @property
    def loss_percent(self) -> Optional[float]:
        if self.sent == 0:
            return None
        return (self.sent - self.received) * 100.0 / self.sent

    @property
    def avg(self) -> Optional[float]:
        if self.received == 0:
            return None
        return self.tsum / self.received

    @property
    def mdev(self) -> Optional[float]:
        if self.received == 0:
            return None
        avg = self.tsum / self.received
        # rounding can push the variance slightly below zero
        return math.sqrt(max(0.0, self.tsum2 / self.received - avg * avg))

    def elapsed_ms(self, now: Optional[float] = None) -> int:
        if now is None:
            now = self._clock()
        return int((now - self.start) * 1000)

    def format_report(self, now: Optional[float] = None) -> str:
        """Final statistics block, as printed on shutdown."""
        with self._lock:
            lines = ["", f"--- {self.prefix} ndnping statistics ---"]

            if self.sent > 0:
                lines.append(
                    f"{self.sent} Interests transmitted, {self.received} Data received, "
                    f"{self.loss_percent:.1f}% packet loss, time {self.elapsed_ms(now)} ms"
                )

            if self.received > 0:
                lines.append(
                    f"rtt min/avg/max/mdev = {self.min:.3f}/{self.avg:.3f}/"
                    f"{self.max:.3f}/{self.mdev:.3f} ms"
                )

            return "\n".join(lines)

    def report(self, stream: Optional[TextIO] = None, now: Optional[float] = None):
        stream = stream or sys.stdout
        stream.write(self.format_report(now) + "\n")
        stream.flush()

    def get_stats(self) -> dict:
        """Snapshot for the status API and the experiment summary."""
        with self._lock:
            received = self.received
            return {
                'prefix': self.prefix,
                'sent': self.sent,
                'received': received,
                'loss_percent': None if self.loss_percent is None else round(self.loss_percent, 1),
                'elapsed_ms': self.elapsed_ms(),
                'rtt_min_ms': round(self.min, 3) if received else None,
                'rtt_avg_ms': round(self.avg, 3) if received else None,
                'rtt_max_ms': round(self.max, 3) if received else None,
                'rtt_mdev_ms': round(self.mdev, 3) if received else None,
            }
