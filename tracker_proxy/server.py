"""
TCP listener for HQ protocol GPS trackers
"""
import asyncio
import logging
import signal
from datetime import datetime
from typing import Dict, Optional

from .config import Settings, settings as default_settings
from .connection import TrackerClientProtocol
from .events import EventSink, LoggingEventSink
from .protocols import BaseProtocolHandler, HQProtocolHandler

logger = logging.getLogger(__name__)


class TrackerTCPServer:
    """Accepts tracker connections and hands each one to a TrackerClientProtocol"""

    def __init__(self, settings: Settings = None, sink: EventSink = None,
                 handler: BaseProtocolHandler = None):
        self.settings = settings or default_settings
        self.sink = sink or LoggingEventSink()
        self.handler = handler or HQProtocolHandler()
        self.server: Optional[asyncio.AbstractServer] = None
        self.active_connections: Dict[int, TrackerClientProtocol] = {}
        self.stats = {
            'start_time': None,
            'connections_total': 0,
            'frames_received': 0,
            'records_parsed': 0,
            'frames_unparsed': 0,
            'acks_sent': 0,
            'timeouts': 0,
            'overflows': 0,
            'errors': 0,
        }
        self.started = asyncio.Event()
        self.shutdown_event = asyncio.Event()

    @property
    def port(self) -> Optional[int]:
        """Port actually bound, useful when PORT=0"""
        if not self.server or not self.server.sockets:
            return None
        return self.server.sockets[0].getsockname()[1]

    def register(self, conn: TrackerClientProtocol):
        self.active_connections[id(conn)] = conn
        self.stats['connections_total'] += 1

    def unregister(self, conn: TrackerClientProtocol):
        self.active_connections.pop(id(conn), None)

    async def wait_started(self):
        await self.started.wait()

    async def start(self, install_signal_handlers: bool = True):
        """Bind and serve until shutdown() is called"""
        loop = asyncio.get_running_loop()
        self.stats['start_time'] = datetime.now()

        if install_signal_handlers:
            for sig in (signal.SIGTERM, signal.SIGINT):
                try:
                    loop.add_signal_handler(sig, lambda: asyncio.ensure_future(self.shutdown()))
                except (NotImplementedError, RuntimeError, ValueError):
                    # Not on the main thread, or not supported by this platform
                    pass

        self.server = await loop.create_server(
            lambda: TrackerClientProtocol(self),
            self.settings.HOST,
            self.settings.PORT,
            reuse_address=True,
        )

        logger.info(f"LISTENING on port {self.port}")
        logger.info(f"Configuration: host={self.settings.HOST} send_ack={self.settings.SEND_ACK} "
                    f"timeout={self.settings.CONNECTION_TIMEOUT}s keepalive={self.settings.KEEPALIVE_INTERVAL}s "
                    f"max_buffer={self.settings.MAX_BUFFER_SIZE}")
        self.started.set()

        monitor_task = None
        if self.settings.STATS_LOG_INTERVAL > 0:
            monitor_task = asyncio.create_task(self._monitor_server())

        try:
            async with self.server:
                await self.shutdown_event.wait()
        finally:
            if monitor_task:
                monitor_task.cancel()

    async def shutdown(self):
        """Graceful shutdown, safe to call more than once"""
        if self.shutdown_event.is_set():
            return
        logger.info("Shutting down tracker TCP server...")

        for conn in list(self.active_connections.values()):
            conn.close()

        if self.server:
            self.server.close()
            await self.server.wait_closed()

        self.shutdown_event.set()
        logger.info("Tracker TCP server stopped")

    async def _monitor_server(self):
        """Log statistics periodically"""
        try:
            while True:
                await asyncio.sleep(self.settings.STATS_LOG_INTERVAL)
                status = self.get_status()
                logger.info(
                    f"Server statistics: uptime={status['uptime']} "
                    f"active={status['active_connections']} frames={status['frames_received']} "
                    f"parsed={status['records_parsed']} unparsed={status['frames_unparsed']} "
                    f"acks={status['acks_sent']} errors={status['errors']}"
                )
        except asyncio.CancelledError:
            pass

    def get_status(self):
        """Snapshot of server state"""
        start_time = self.stats['start_time']
        uptime = datetime.now() - start_time if start_time else None

        status = {k: v for k, v in self.stats.items() if k != 'start_time'}
        status.update({
            'running': self.server is not None and self.server.is_serving(),
            'port': self.port,
            'uptime': str(uptime) if uptime else None,
            'active_connections': len(self.active_connections),
            'connections': [
                {'peer': conn.peer, 'frames': conn.frame_count}
                for conn in self.active_connections.values()
            ],
        })
        return status
