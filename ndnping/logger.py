"""ndnping logging - stderr diagnostics and JSONL probe logs."""

import json
import logging
import random
import threading
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def setup_logging(level: int = logging.WARNING) -> logging.Logger:
    """Attach one stderr handler to the ``ndnping`` logger."""
    root = logging.getLogger("ndnping")
    root.setLevel(level)

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    return root


@dataclass
class RunConfig:
    """Parameters of one ping run, written first for reproducibility."""
    run_id: str
    timestamp: str
    prefix: str
    interval: float
    count: int
    start_number: Optional[int]
    face: str

    def to_dict(self) -> dict:
        return asdict(self)


def generate_run_id(prefix: str = "ndnping") -> str:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{timestamp}_{random.randint(1000, 9999)}"


class ProbeLogger:
    """JSONL logger for ping runs."""

    def __init__(self,
                 output_dir: str = "./logs",
                 run_id: Optional[str] = None,
                 buffer_size: int = 100):
        if run_id is None:
            run_id = generate_run_id()

        self.run_id = run_id
        self.output_dir = Path(output_dir) / run_id
        self.output_dir.mkdir(parents=True, exist_ok=True)

        self._buffer_size = buffer_size
        self._event_buffer: List[dict] = []
        self._lock = threading.Lock()

        self._config_file: TextIO = open(self.output_dir / "config.jsonl", 'w')
        self._events_file: TextIO = open(self.output_dir / "events.jsonl", 'w')
        self._summary_file: TextIO = open(self.output_dir / "summary.jsonl", 'w')

        self._event_count = 0
        self._start_time = time.monotonic()

    def log_config(self, config: RunConfig):
        self._write_line(self._config_file, config.to_dict())

    def log_sent(self, number: int, name: str):
        self._buffer_event({
            'type': 'sent',
            'ts': time.time(),
            'number': number,
            'name': name,
        })

    def log_content(self, number: int, rtt_ms: float):
        self._buffer_event({
            'type': 'content',
            'ts': time.time(),
            'number': number,
            'rtt_ms': round(rtt_ms, 3),
        })

    def log_timeout(self, number: int):
        self._buffer_event({
            'type': 'timeout',
            'ts': time.time(),
            'number': number,
        })

    def log_summary(self, stats: dict):
        self._write_line(self._summary_file, {
            'type': 'summary',
            'run_id': self.run_id,
            'end_timestamp': datetime.now().isoformat(),
            'duration_ms': int((time.monotonic() - self._start_time) * 1000),
            'total_events': self._event_count,
            'stats': stats,
        })

    def _buffer_event(self, event: dict):
        with self._lock:
            self._event_buffer.append(event)
            self._event_count += 1

            if len(self._event_buffer) >= self._buffer_size:
                self._flush_events()

    def _flush_events(self):
        if not self._event_buffer:
            return

        for event in self._event_buffer:
            self._write_line(self._events_file, event)

        self._event_buffer.clear()
        self._events_file.flush()

    def _write_line(self, file: TextIO, data: dict):
        json.dump(data, file, separators=(',', ':'))
        file.write('\n')

    def flush(self):
        with self._lock:
            self._flush_events()
            self._config_file.flush()
            self._summary_file.flush()

    def close(self):
        if self._events_file.closed:
            return
        self.flush()
        self._config_file.close()
        self._events_file.close()
        self._summary_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
