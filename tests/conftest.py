"""
pytest fixtures shared by the tracker proxy tests
"""
import logging
from typing import Any, Dict, List

import pytest

from tracker_proxy.config import Settings
from tracker_proxy.server import TrackerTCPServer

SAMPLE_FRAME = "*HQ,123456789012345,V1,123456,A,4045.1234,N,07359.5678,W,0.5,180.0#"


class RecordingEventSink:
    """Keeps emitted events in memory"""

    def __init__(self):
        self.events: List[Dict[str, Any]] = []

    def emit(self, event: str, peer: str, level: int = logging.INFO, **fields: Any) -> None:
        self.events.append({"event": event, "peer": peer, "level": level, **fields})

    def kinds(self) -> List[str]:
        return [e["event"] for e in self.events]

    def of_kind(self, kind: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e["event"] == kind]


class RecordingSocket:
    """Remembers socket options set on it"""

    def __init__(self):
        self.options = {}

    def setsockopt(self, level, option, value):
        self.options[(level, option)] = value


class FakeTransport:
    """Just enough of asyncio.Transport for TrackerClientProtocol"""

    def __init__(self, peername=("10.0.0.7", 40123), sock=None):
        self.peername = peername
        self.sock = sock
        self.written = bytearray()
        self.closing = False
        self.aborted = False

    def get_extra_info(self, name, default=None):
        if name == "peername":
            return self.peername
        if name == "socket":
            return self.sock
        return default

    def write(self, data: bytes):
        self.written.extend(data)

    def is_closing(self) -> bool:
        return self.closing

    def close(self):
        self.closing = True

    def abort(self):
        self.closing = True
        self.aborted = True


def make_settings(**overrides) -> Settings:
    values = dict(
        HOST="127.0.0.1",
        PORT=0,
        SEND_ACK=True,
        CONNECTION_TIMEOUT=0,
        KEEPALIVE_INTERVAL=30,
        MAX_BUFFER_SIZE=8192,
        STATS_LOG_INTERVAL=0,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def sample_frame() -> str:
    return SAMPLE_FRAME


@pytest.fixture
def sink() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def server(sink) -> TrackerTCPServer:
    """Server object that is never bound, used as the connection owner"""
    return TrackerTCPServer(make_settings(), sink=sink)
