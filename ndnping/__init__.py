"""ndnping - reachability and RTT probing for named-data networks."""

from .errors import (
    PingError, InvalidNameError, FaceError, DuplicateKeyError, NotFoundError
)

from .name import Name, PING_COMPONENT, build_ping_name, ping_prefix, parse_token

from .face import (
    Face, Interest, Data, UpcallKind, UpcallResult, UpcallInfo,
    DEFAULT_INTEREST_LIFETIME_MS
)

from .loopback import LoopbackFace
from .udp import UdpFace

from .pending import PendingTable, PendingRequest
from .metrics import RunStatistics
from .scheduler import Schedule, ScheduledEvent

from .config import ClientConfig, ServerConfig, FaceConfig, PING_MIN_INTERVAL

from .client import PingClient
from .server import PingServer, PING_ACK, is_valid_ping_interest, construct_ping_response

from .logger import ProbeLogger, RunConfig, setup_logging

__version__ = "1.0.0"
__all__ = [
    'PingError', 'InvalidNameError', 'FaceError', 'DuplicateKeyError', 'NotFoundError',
    'Name', 'PING_COMPONENT', 'build_ping_name', 'ping_prefix', 'parse_token',
    'Face', 'Interest', 'Data', 'UpcallKind', 'UpcallResult', 'UpcallInfo',
    'DEFAULT_INTEREST_LIFETIME_MS',
    'LoopbackFace', 'UdpFace',
    'PendingTable', 'PendingRequest',
    'RunStatistics',
    'Schedule', 'ScheduledEvent',
    'ClientConfig', 'ServerConfig', 'FaceConfig', 'PING_MIN_INTERVAL',
    'PingClient',
    'PingServer', 'PING_ACK', 'is_valid_ping_interest', 'construct_ping_response',
    'ProbeLogger', 'RunConfig', 'setup_logging',
]
