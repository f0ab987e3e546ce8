"""
Tests for configuration models
"""

import pytest
from pydantic import ValidationError

from ndnping.config import ClientConfig, FaceConfig, ServerConfig
from ndnping.loopback import LoopbackFace
from ndnping.udp import DEFAULT_PORT, UdpFace


class TestClientConfig:
    def test_defaults(self):
        config = ClientConfig(prefix="/a")
        assert config.interval == 1.0
        assert config.total == -1
        assert config.number is None

    def test_minimum_interval_accepted(self):
        assert ClientConfig(prefix="/a", interval=0.1).interval == 0.1

    @pytest.mark.parametrize("field,value", [
        ("interval", 0.09), ("interval", float("inf")),
        ("count", 0), ("count", -3), ("number", -1), ("status_port", 0),
    ])
    def test_rejects(self, field, value):
        with pytest.raises(ValidationError):
            ClientConfig(prefix="/a", **{field: value})


class TestServerConfig:
    def test_freshness_must_be_positive(self):
        assert ServerConfig(prefix="/a").freshness == 1
        with pytest.raises(ValidationError):
            ServerConfig(prefix="/a", freshness=0)


class TestFaceConfig:
    def test_defaults(self):
        config = FaceConfig.from_env({})
        assert config.kind == "udp"
        assert config.port == DEFAULT_PORT
        assert isinstance(config.create_face(), UdpFace)

    def test_environment(self):
        config = FaceConfig.from_env({
            "NDNPING_FACE": "LOOPBACK",
            "NDNPING_HOST": "10.0.0.1",
            "NDNPING_PORT": "9000",
        })
        assert config.kind == "loopback"
        assert config.host == "10.0.0.1"
        assert config.port == 9000
        assert isinstance(config.create_face(), LoopbackFace)

    def test_listening_udp_face(self):
        face = FaceConfig(port=7000).create_face(listen=True)
        assert face.listen
        assert face.port == 7000

    def test_bad_kind(self):
        with pytest.raises(ValidationError):
            FaceConfig.from_env({"NDNPING_FACE": "tcp"})
