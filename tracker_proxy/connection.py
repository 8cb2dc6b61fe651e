"""
Per-connection handling for tracker devices
"""
import asyncio
import logging
import socket
import time
import traceback
from typing import Optional

from .events import record_payload
from .framing import FrameBufferOverflow, FrameExtractor
from .models import ParsedRecord

logger = logging.getLogger(__name__)


def format_peer(peername) -> str:
    """host:port for IPv4/IPv6 peer tuples"""
    if not peername:
        return "unknown"
    if isinstance(peername, (tuple, list)) and len(peername) >= 2:
        return f"{peername[0]}:{peername[1]}"
    return str(peername)


def enable_keepalive(sock: socket.socket, idle: int):
    """Turn on TCP keep-alive probing after ``idle`` seconds without traffic"""
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
    if hasattr(socket, 'TCP_KEEPIDLE'):
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, idle)
    elif hasattr(socket, 'TCP_KEEPALIVE'):
        # macOS names the idle option differently
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPALIVE, idle)
    if hasattr(socket, 'TCP_KEEPINTVL'):
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, idle)


class TrackerClientProtocol(asyncio.Protocol):
    """Handle one tracker connection: frames in, events and R12 acks out"""

    def __init__(self, server):
        self.server = server
        self.settings = server.settings
        self.sink = server.sink
        self.handler = server.handler
        self.transport: Optional[asyncio.Transport] = None
        self.peer = "unknown"
        self.extractor = FrameExtractor(self.settings.MAX_BUFFER_SIZE)
        self.last_activity = time.monotonic()
        self.frame_count = 0
        self.timeout_task: Optional[asyncio.Task] = None

    def connection_made(self, transport):
        """Handle new connection"""
        self.transport = transport
        self.peer = format_peer(transport.get_extra_info('peername'))
        try:
            sock = transport.get_extra_info('socket')
            if sock is not None:
                enable_keepalive(sock, self.settings.KEEPALIVE_INTERVAL)
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

            self.server.register(self)
            self.sink.emit("connected", self.peer)

            if self.settings.CONNECTION_TIMEOUT > 0:
                self.timeout_task = asyncio.get_running_loop().create_task(self._monitor_timeout())

        except Exception as e:
            logger.error(f"Error in connection_made for {self.peer}: {e}")
            self.server.stats['errors'] += 1
            transport.abort()

    def connection_lost(self, exc):
        """Handle connection loss"""
        if self.timeout_task:
            self.timeout_task.cancel()
            self.timeout_task = None

        self.extractor.reset()
        self.server.unregister(self)

        if exc:
            self.sink.emit("error", self.peer, level=logging.ERROR, error=str(exc))
        else:
            self.sink.emit("closed", self.peer)

    def data_received(self, data: bytes):
        """Split incoming bytes into frames and handle them in order"""
        self.last_activity = time.monotonic()
        try:
            for frame in self.extractor.feed(data):
                self.handle_frame(frame)

        except FrameBufferOverflow as e:
            self.server.stats['overflows'] += 1
            self.sink.emit("overflow", self.peer, level=logging.WARNING, buffered=e.buffered)
            self.transport.abort()

        except Exception as e:
            logger.error(f"Error processing data from {self.peer}: {e}\n{traceback.format_exc()}")
            self.server.stats['errors'] += 1
            self.transport.abort()

    def handle_frame(self, frame: str):
        """Parse one frame, report it, and acknowledge it when configured"""
        self.frame_count += 1
        self.server.stats['frames_received'] += 1

        record = self.handler.parse_message(frame)
        if record is None:
            self.server.stats['frames_unparsed'] += 1
            self.sink.emit("unparsed", self.peer, level=logging.WARNING, frame=frame)
            return

        self.server.stats['records_parsed'] += 1
        self.sink.emit("parsed", self.peer, **record_payload(record))

        if self.settings.SEND_ACK:
            self.send_ack(record)

    def send_ack(self, record: ParsedRecord):
        """Write the reply frame, best effort"""
        if not self.transport or self.transport.is_closing():
            return

        ack = self.handler.create_response(record)
        self.transport.write(ack.encode('utf-8'))
        self.server.stats['acks_sent'] += 1
        self.sink.emit("ack", self.peer, ack=ack)

    def close(self):
        if self.transport and not self.transport.is_closing():
            self.transport.close()

    async def _monitor_timeout(self):
        """Close the connection after CONNECTION_TIMEOUT seconds without data"""
        timeout = self.settings.CONNECTION_TIMEOUT
        try:
            while True:
                remaining = self.last_activity + timeout - time.monotonic()
                if remaining <= 0:
                    break
                await asyncio.sleep(remaining)

            self.server.stats['timeouts'] += 1
            self.sink.emit("timeout", self.peer, level=logging.WARNING)
            if self.transport and not self.transport.is_closing():
                self.transport.abort()

        except asyncio.CancelledError:
            pass
