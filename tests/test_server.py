"""
Tests for the ping server: validation and response construction
"""

import pytest

from ndnping.errors import FaceError
from ndnping.face import UpcallInfo, UpcallKind, UpcallResult, Interest
from ndnping.loopback import LoopbackFace
from ndnping.name import Name, ping_prefix
from ndnping.server import PING_ACK, PingServer, construct_ping_response, is_valid_ping_interest


class TestValidator:
    """Test probe name validation"""

    @pytest.mark.parametrize("uri", [
        "/a/b/ping/42",
        "/a/b/ping/0",
        "/a/b/ping/client-7/42",
    ])
    def test_accepts(self, uri):
        assert is_valid_ping_interest(ping_prefix("/a/b"), Name.from_uri(uri))

    @pytest.mark.parametrize("uri", [
        "/a/b/ping/-1",
        "/a/b/ping/abc",
        "/a/b/ping/12x",
        "/a/b/ping/x/y/1",
        "/a/b/ping",
        "/a/b/ping/42/abc",
        "/c/d/ping/42",
    ])
    def test_rejects(self, uri):
        assert not is_valid_ping_interest(ping_prefix("/a/b"), Name.from_uri(uri))


class TestResponse:
    """Test answering probes"""

    def _face(self):
        face = LoopbackFace()
        face.connect()
        return face

    def test_answer_echoes_full_name(self):
        face = self._face()
        server = PingServer("/a/b", face, freshness=4)
        server.register()
        received = []

        def on_data(kind, info):
            received.append((kind, info.data))
            return UpcallResult.OK

        face.express_interest(Name.from_uri("/a/b/ping/42"), on_data)
        face.run(0)

        assert len(received) == 1
        kind, data = received[0]
        assert kind == UpcallKind.CONTENT
        assert data.name == Name.from_uri("/a/b/ping/42")
        assert data.content == PING_ACK == b"ping ack"
        assert data.freshness_seconds == 4
        assert data.verify()
        assert server.count == 1

    def test_invalid_interest_is_not_consumed(self):
        face = self._face()
        server = PingServer("/a/b", face)
        info = UpcallInfo(face=face, interest=Interest(Name.from_uri("/a/b/ping/abc")))

        assert server.incoming_interest(UpcallKind.INTEREST, info) == UpcallResult.OK
        assert server.count == 0

    def test_valid_interest_is_consumed(self):
        face = self._face()
        server = PingServer("/a/b", face)
        info = UpcallInfo(face=face, interest=Interest(Name.from_uri("/a/b/ping/id/1")))

        assert server.incoming_interest(UpcallKind.INTEREST, info) == UpcallResult.INTEREST_CONSUMED
        assert server.count == 1

    def test_put_failure_is_not_counted(self):
        class BrokenFace(LoopbackFace):
            def _send_data(self, data):
                raise FaceError("down")

        face = BrokenFace()
        face.connect()
        server = PingServer("/a/b", face)
        info = UpcallInfo(face=face, interest=Interest(Name.from_uri("/a/b/ping/1")))

        assert server.incoming_interest(UpcallKind.INTEREST, info) == UpcallResult.OK
        assert server.count == 0

    def test_other_kinds_ignored(self):
        face = self._face()
        server = PingServer("/a/b", face)
        assert server.incoming_interest(UpcallKind.FINAL, UpcallInfo(face=face)) == UpcallResult.OK

    def test_freshness_hint(self):
        face = self._face()
        name = Name.from_uri("/a/b/ping/1")
        assert construct_ping_response(face, name, 10).freshness_seconds == 10
        assert construct_ping_response(face, name, None).freshness_seconds is None
        assert construct_ping_response(face, name, -1).freshness_seconds is None

    def test_unregistered_server_leaves_interest_unanswered(self):
        face = self._face()
        PingServer("/a/b", face)
        received = []
        face.express_interest(Name.from_uri("/a/b/ping/1"), lambda k, i: received.append(k))
        face.run(0)

        assert received == []
        assert face.pending_count == 1

    def test_stop(self):
        face = self._face()
        server = PingServer("/a/b", face)
        server.stop()
        server.run()
        assert not server.is_running

    def test_get_stats(self):
        server = PingServer("/a/b", self._face(), freshness=3)
        assert server.get_stats() == {
            'prefix': '/a/b',
            'name': '/a/b/ping',
            'freshness': 3,
            'answered': 0,
        }
