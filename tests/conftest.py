"""Shared fixtures: a manual clock and a face that records what it is asked to send."""

import pytest

from ndnping.errors import FaceError
from ndnping.face import Face


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class RecordingFace(Face):
    """Face that never answers; ``fail_next`` makes sends raise FaceError."""

    def __init__(self, clock):
        super().__init__(clock=clock)
        self.interests = []
        self.data = []
        self.fail_next = 0
        self.polls = 0

    def connect(self):
        self._connected = True

    def _send_interest(self, interest):
        if self.fail_next:
            self.fail_next -= 1
            raise FaceError("send failed")
        self.interests.append(interest)

    def _send_data(self, data):
        self.data.append(data)
        return True

    def _poll(self, timeout_ms):
        self.polls += 1


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recording_face(clock):
    face = RecordingFace(clock)
    face.connect()
    return face
