"""UDP face - carries Interests and Data between processes as JSON datagrams.

This is a point-to-point stand-in for a forwarder: a listening face (the
server) remembers where each Interest came from and returns Data to that
address; a client face sends every Interest to one configured endpoint.
"""

import base64
import json
import logging
import select
import socket
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .errors import FaceError, InvalidNameError
from .face import Data, Face, Interest
from .name import Name

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 6363
MAX_DATAGRAM = 8800


@dataclass
class _IncomingInterest:
    name: Name
    addr: Tuple[str, int]
    expires_at: float


def encode_packet(packet) -> bytes:
    if isinstance(packet, Interest):
        body = {
            'type': 'interest',
            'name': packet.name.to_uri(),
            'lifetime': packet.lifetime_ms,
        }
    else:
        body = {
            'type': 'data',
            'name': packet.name.to_uri(),
            'content': base64.b64encode(packet.content).decode('ascii'),
            'freshness': packet.freshness_seconds,
            'signature': packet.signature.hex(),
        }
    return json.dumps(body, separators=(',', ':')).encode('utf-8')


def decode_packet(raw: bytes):
    """Decode a datagram into an Interest or Data. Raises ValueError."""
    try:
        body = json.loads(raw.decode('utf-8'))
        ptype = body['type']
        if not isinstance(body['name'], str):
            raise TypeError(f"name is not a string: {body['name']!r}")
        name = Name.from_uri(body['name'])
        if ptype == 'interest':
            return Interest(name=name, lifetime_ms=int(body['lifetime']))
        if ptype == 'data':
            freshness = body.get('freshness')
            return Data(
                name=name,
                content=base64.b64decode(body.get('content', '')),
                freshness_seconds=None if freshness is None else int(freshness),
                signature=bytes.fromhex(body.get('signature', '')),
            )
    except (UnicodeDecodeError, json.JSONDecodeError, KeyError,
            TypeError, OverflowError, InvalidNameError) as e:
        raise ValueError(f"malformed packet: {e}") from e
    raise ValueError(f"unknown packet type: {ptype!r}")


class UdpFace(Face):
    """Datagram face; ``listen=True`` binds to ``(host, port)`` to serve."""

    def __init__(self,
                 host: str = DEFAULT_HOST,
                 port: int = DEFAULT_PORT,
                 listen: bool = False,
                 clock: Callable[[], float] = time.monotonic):
        super().__init__(clock=clock)
        self.host = host
        self.port = port
        self.listen = listen
        self._socket: Optional[socket.socket] = None
        self._remote: Optional[Tuple[str, int]] = None
        self._incoming: List[_IncomingInterest] = []

    def connect(self):
        if self._connected:
            return
        try:
            infos = socket.getaddrinfo(self.host, self.port,
                                       socket.AF_INET, socket.SOCK_DGRAM)
            addr = infos[0][4]
            self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            if self.listen:
                self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                self._socket.bind(addr)
            else:
                self._socket.bind(('0.0.0.0', 0))
                self._remote = addr
            self._socket.setblocking(False)
        except OSError as e:
            if self._socket:
                self._socket.close()
                self._socket = None
            raise FaceError(f"{self.host}:{self.port}: {e}") from e
        self._connected = True

    @property
    def local_address(self) -> Tuple[str, int]:
        if not self._socket:
            raise FaceError("face is not connected")
        return self._socket.getsockname()

    def _sendto(self, packet, addr):
        try:
            self._socket.sendto(encode_packet(packet), addr)
        except OSError as e:
            raise FaceError(f"send to {addr[0]}:{addr[1]} failed: {e}") from e

    def _send_interest(self, interest: Interest):
        if self._remote is None:
            raise FaceError("listening face has no upstream")
        self._sendto(interest, self._remote)

    def _send_data(self, data: Data) -> bool:
        targets = [i for i in self._incoming if i.name.is_prefix_of(data.name)]
        for i in targets:
            self._incoming.remove(i)
        for addr in {i.addr for i in targets}:
            self._sendto(data, addr)
        return bool(targets)

    def _poll(self, timeout_ms: int):
        deadline = self._clock() + timeout_ms / 1000.0
        wait = timeout_ms / 1000.0
        while True:
            try:
                readable, _, _ = select.select([self._socket], [], [], wait)
            except OSError as e:
                raise FaceError(f"select failed: {e}") from e
            if not readable:
                break
            self._drain()
            wait = max(0.0, deadline - self._clock())
            if wait == 0.0:
                break
        now = self._clock()
        self._incoming = [i for i in self._incoming if i.expires_at > now]

    def _drain(self):
        while True:
            try:
                raw, addr = self._socket.recvfrom(MAX_DATAGRAM)
            except BlockingIOError:
                return
            except OSError as e:
                raise FaceError(f"receive failed: {e}") from e
            try:
                packet = decode_packet(raw)
            except ValueError as e:
                logger.debug("ignoring datagram from %s: %s", addr, e)
                continue
            if isinstance(packet, Interest):
                self._incoming.append(_IncomingInterest(
                    name=packet.name,
                    addr=addr,
                    expires_at=self._clock() + packet.lifetime_ms / 1000.0,
                ))
                self._dispatch_interest(packet)
            else:
                self._dispatch_data(packet)

    def close(self):
        super().close()
        if self._socket:
            self._socket.close()
            self._socket = None
