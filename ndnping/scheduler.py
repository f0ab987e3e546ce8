"""ndnping Scheduler - one-shot timed events that re-arm themselves."""

import heapq
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

# An action returns the delay in microseconds until it should fire again,
# or None to retire the event.
Action = Callable[["Schedule", "ScheduledEvent"], Optional[int]]


@dataclass(order=True)
class ScheduledEvent:
    """Entry in the timer heap."""
    sort_key: tuple = field(compare=True)
    action: Action = field(compare=False)
    cancelled: bool = field(default=False, compare=False)
    fired: int = field(default=0, compare=False)

    @property
    def due(self) -> float:
        return self.sort_key[0]


class Schedule:
    """
    Timer heap driven by the caller's loop.

    Each ``run()`` pass fires every event that is due, at most once per pass,
    and re-arms it with the delay its action returns. A delay of 0 makes the
    event due again on the next pass.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._heap: List[ScheduledEvent] = []
        self._lock = threading.Lock()
        self._order = 0

    def schedule_event(self, delay_us: int, action: Action) -> ScheduledEvent:
        with self._lock:
            event = ScheduledEvent(
                sort_key=(self._clock() + delay_us / 1_000_000, self._order),
                action=action,
            )
            self._order += 1
            heapq.heappush(self._heap, event)
            return event

    def cancel(self, event: ScheduledEvent):
        event.cancelled = True

    def run(self) -> Optional[int]:
        """Fire due events; microseconds until the next one, None if idle."""
        now = self._clock()
        due = []
        with self._lock:
            while self._heap and self._heap[0].due <= now:
                due.append(heapq.heappop(self._heap))

        for event in due:
            if event.cancelled:
                continue
            delay = event.action(self, event)
            event.fired += 1
            if delay is None or event.cancelled:
                continue
            with self._lock:
                event.sort_key = (self._clock() + max(0, delay) / 1_000_000, self._order)
                self._order += 1
                heapq.heappush(self._heap, event)

        with self._lock:
            while self._heap and self._heap[0].cancelled:
                heapq.heappop(self._heap)
            if not self._heap:
                return None
            return max(0, int((self._heap[0].due - self._clock()) * 1_000_000))

    @property
    def armed(self) -> int:
        with self._lock:
            return sum(1 for e in self._heap if not e.cancelled)
