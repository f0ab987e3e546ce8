"""ndnping configuration models."""

import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, Field

from .face import Face
from .loopback import LoopbackFace
from .udp import DEFAULT_HOST, DEFAULT_PORT, UdpFace

PING_MIN_INTERVAL = 0.1


class ClientConfig(BaseModel):
    prefix: str
    interval: float = Field(default=1.0, ge=PING_MIN_INTERVAL, allow_inf_nan=False)
    count: Optional[int] = Field(default=None, gt=0)
    number: Optional[int] = Field(default=None, ge=0)
    log_dir: Optional[str] = None
    status_port: Optional[int] = Field(default=None, ge=1, le=65535)

    @property
    def total(self) -> int:
        """Request budget, -1 when unbounded."""
        return -1 if self.count is None else self.count


class ServerConfig(BaseModel):
    prefix: str
    freshness: int = Field(default=1, gt=0)
    daemon: bool = False
    status_port: Optional[int] = Field(default=None, ge=1, le=65535)


class FaceConfig(BaseModel):
    """Which face to open, read from NDNPING_* environment variables."""
    kind: Literal["udp", "loopback"] = "udp"
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "FaceConfig":
        environ = os.environ if environ is None else environ
        values = {}
        if environ.get("NDNPING_FACE"):
            values['kind'] = environ["NDNPING_FACE"].lower()
        if environ.get("NDNPING_HOST"):
            values['host'] = environ["NDNPING_HOST"]
        if environ.get("NDNPING_PORT"):
            values['port'] = environ["NDNPING_PORT"]
        return cls(**values)

    def create_face(self, listen: bool = False) -> Face:
        if self.kind == "loopback":
            return LoopbackFace()
        return UdpFace(host=self.host, port=self.port, listen=listen)
