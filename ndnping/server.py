"""ndnping server - answers ping Interests with signed acknowledgement Data."""

import logging
import threading
from typing import Optional

from .config import ServerConfig
from .errors import FaceError
from .face import Data, Face, UpcallInfo, UpcallKind, UpcallResult
from .name import Name, parse_token, ping_prefix

logger = logging.getLogger(__name__)

PING_ACK = b"ping ack"
DEFAULT_STEP_MS = 100


def is_valid_ping_interest(prefix: Name, name: Name) -> bool:
    """
    Whether ``name`` is a probe for ``prefix`` (which already ends in ``ping``).

    Accepted shapes are ``<prefix>/<number>`` and ``<prefix>/<id>/<number>``
    where ``<number>`` is a non-negative decimal integer.
    """
    if not prefix.is_prefix_of(name):
        return False
    if len(name) not in (len(prefix) + 1, len(prefix) + 2):
        return False
    return parse_token(name[-1]) >= 0


def construct_ping_response(face: Face, name: Name,
                            freshness: Optional[int] = None) -> Data:
    """Signed Data echoing the full Interest name."""
    if freshness is not None and freshness < 0:
        freshness = None
    return face.sign(name, PING_ACK, freshness_seconds=freshness)


class PingServer:
    """Registers ``<prefix>/ping`` on a face and answers valid probes."""

    def __init__(self, prefix: str, face: Face, freshness: Optional[int] = 1):
        self.original_prefix = prefix
        self.prefix: Name = ping_prefix(prefix)
        self.face = face
        self.freshness = freshness
        self.count = 0

        self._lock = threading.Lock()
        self._stop = threading.Event()

    @classmethod
    def from_config(cls, config: ServerConfig, face: Face) -> "PingServer":
        return cls(prefix=config.prefix, face=face, freshness=config.freshness)

    def register(self):
        """Set the Interest filter. Raises FaceError."""
        self.face.set_interest_filter(self.prefix, self.incoming_interest)
        logger.info("serving %s", self.prefix)

    def incoming_interest(self, kind: UpcallKind, info: UpcallInfo) -> UpcallResult:
        if kind != UpcallKind.INTEREST:
            return UpcallResult.OK

        name = info.interest.name
        if not is_valid_ping_interest(self.prefix, name):
            logger.debug("ignoring %s", name)
            return UpcallResult.OK

        data = construct_ping_response(info.face, name, self.freshness)
        try:
            info.face.put(data)
        except FaceError as e:
            logger.warning("failed to answer %s: %s", name, e)
            return UpcallResult.OK

        with self._lock:
            self.count += 1
        return UpcallResult.INTEREST_CONSUMED

    def stop(self):
        self._stop.set()

    @property
    def is_running(self) -> bool:
        return not self._stop.is_set()

    def run(self, timeout_ms: int = DEFAULT_STEP_MS):
        """Drive the face until ``stop()`` is called."""
        while not self._stop.is_set():
            self.face.run(timeout_ms)
        logger.info("answered %d ping Interests", self.count)

    def get_stats(self) -> dict:
        with self._lock:
            return {
                'prefix': self.original_prefix,
                'name': self.prefix.to_uri(),
                'freshness': self.freshness,
                'answered': self.count,
            }
