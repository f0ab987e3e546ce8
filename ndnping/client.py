"""ndnping client - expresses ping Interests and correlates Data and timeouts."""

import logging
import random
import threading
import time
from typing import Callable, Optional, TextIO

from .config import ClientConfig
from .errors import FaceError
from .face import Face, UpcallInfo, UpcallKind, UpcallResult
from .logger import ProbeLogger
from .metrics import RunStatistics
from .name import Name, build_ping_name, ping_prefix
from .pending import Key, PendingTable
from .scheduler import Schedule, ScheduledEvent

logger = logging.getLogger(__name__)

RANDOM_NUMBER_LIMIT = 2 ** 31
DEFAULT_STEP_MS = 10


class PingClient:
    """
    One ping session against a name prefix.

    The session owns the pending table, the counters and the statistics.
    ``do_ping`` runs from the schedule and ``incoming_content`` from the
    face; both are called on the thread that drives ``run``.
    """

    def __init__(self,
                 prefix: str,
                 face: Face,
                 interval: float = 1.0,
                 total: int = -1,
                 number: Optional[int] = None,
                 statistics: Optional[RunStatistics] = None,
                 probe_logger: Optional[ProbeLogger] = None,
                 clock: Callable[[], float] = time.monotonic,
                 rng: Optional[random.Random] = None,
                 out: Optional[TextIO] = None):
        self.original_prefix = prefix
        self.prefix: Name = ping_prefix(prefix)
        self.face = face
        self.interval = interval
        self.total = total
        self.number = number
        self.sent = 0
        self.received = 0

        self._clock = clock
        self._rng = rng or random.Random()
        self._out = out
        self._probe_logger = probe_logger

        self.table = PendingTable(clock=clock)
        self.statistics = statistics or RunStatistics(prefix, clock=clock)
        self.schedule = Schedule(clock=clock)
        self._event: Optional[ScheduledEvent] = None
        self._cancelled = threading.Event()

    @classmethod
    def from_config(cls, config: ClientConfig, face: Face, **kwargs) -> "PingClient":
        return cls(
            prefix=config.prefix,
            face=face,
            interval=config.interval,
            total=config.total,
            number=config.number,
            **kwargs,
        )

    @property
    def random_mode(self) -> bool:
        return self.number is None

    def budget_met(self) -> bool:
        return self.total >= 0 and self.sent >= self.total

    def should_continue(self) -> bool:
        return not self.budget_met() or len(self.table) > 0

    def key_for(self, name: Name) -> Key:
        return name.suffix(len(self.prefix))

    def start(self):
        if self._event is None:
            self._event = self.schedule.schedule_event(0, self.do_ping)

    def _next_number(self) -> int:
        if not self.random_mode:
            return self.number
        while True:
            number = self._rng.randrange(RANDOM_NUMBER_LIMIT)
            if self.key_for(build_ping_name(self.prefix, number)) not in self.table:
                return number

    def do_ping(self, schedule: Schedule, event: ScheduledEvent) -> Optional[int]:
        """Send one probe; delay in microseconds until the next, None when done."""
        if self.budget_met():
            return None

        number = self._next_number()
        name = build_ping_name(self.prefix, number)
        key = self.key_for(name)
        self.table.insert(key, number)

        try:
            self.face.express_interest(name, self.incoming_content)
        except FaceError as e:
            self.table.remove(key)
            logger.warning("failed to express %s: %s", name, e)
            return 0

        if not self.random_mode:
            self.number += 1
        self.sent += 1
        self.statistics.record_sent()
        if self._probe_logger:
            self._probe_logger.log_sent(number, name.to_uri())

        return int(self.interval * 1_000_000)

    def incoming_content(self, kind: UpcallKind, info: UpcallInfo) -> UpcallResult:
        if kind == UpcallKind.FINAL:
            return UpcallResult.OK

        if kind == UpcallKind.CONTENT:
            now = self._clock()
            entry = self.table.pop(self.key_for(info.interest.name))
            rtt = (now - entry.send_time) * 1000

            self.received += 1
            self.statistics.record_received(rtt)

            print(f"content from {self.original_prefix}: number = {entry.number} "
                  f"rtt = {rtt:.3f} ms", file=self._out)
            if self._probe_logger:
                self._probe_logger.log_content(entry.number, rtt)
            return UpcallResult.OK

        if kind == UpcallKind.INTEREST_TIMED_OUT:
            entry = self.table.pop(self.key_for(info.interest.name))

            print(f"timeout from {self.original_prefix}: number = {entry.number}",
                  file=self._out)
            if self._probe_logger:
                self._probe_logger.log_timeout(entry.number)
            return UpcallResult.OK

        logger.error("unexpected upcall of kind %s", kind)
        return UpcallResult.ERR

    def cancel(self):
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def step(self, timeout_ms: int = DEFAULT_STEP_MS):
        """One scheduler pass and one bounded face step."""
        if not self.budget_met():
            self.schedule.run()
        self.face.run(timeout_ms)

    def run(self, timeout_ms: int = DEFAULT_STEP_MS):
        """Ping until the budget is spent and every probe settled, or cancelled."""
        self.start()
        print(f"NDNPING {self.original_prefix}", file=self._out)

        try:
            while not self.cancelled and self.should_continue():
                self.step(timeout_ms)
        except FaceError as e:
            logger.error("face error, stopping: %s", e)

        self.report()

    def report(self):
        self.statistics.report(stream=self._out)
        if self._probe_logger:
            self._probe_logger.log_summary(self.get_stats())
            self._probe_logger.flush()

    def get_stats(self) -> dict:
        return {
            **self.statistics.get_stats(),
            'pending': len(self.table),
            'total': self.total,
            'interval': self.interval,
            'random_mode': self.random_mode,
        }
