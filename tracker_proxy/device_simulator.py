#!/usr/bin/env python3
"""
HQ tracker device simulator
Connects to the proxy, sends one location frame and prints the R12 reply
"""
import argparse
import asyncio
import logging
from typing import Optional

from .protocols import build_location_frame

logger = logging.getLogger(__name__)

SAMPLE_FRAME = "*HQ,123456789012345,V1,123456,A,4045.1234,N,07359.5678,W,0.5,180.0#"


class TrackerDeviceSimulator:
    """Plays the device side of one short session"""

    def __init__(self, host: str = "127.0.0.1", port: int = 5001, timeout: float = 5.0):
        self.host = host
        self.port = port
        self.timeout = timeout

    async def send_frame(self, frame: str) -> Optional[str]:
        """Send ``frame`` and return the reply, or None when nothing arrives in time"""
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(self.host, self.port), self.timeout
        )
        logger.info(f"Connected to {self.host}:{self.port}")
        try:
            # Give the server a moment to finish accepting
            await asyncio.sleep(0.1)
            writer.write(frame.encode('utf-8'))
            await writer.drain()
            logger.info(f"Sent: {frame}")

            try:
                data = await asyncio.wait_for(reader.readuntil(b"#"), self.timeout)
            except asyncio.TimeoutError:
                logger.warning("Timeout - no reply")
                return None
            except asyncio.IncompleteReadError as e:
                logger.warning(f"Connection closed before a full reply: {e.partial!r}")
                return None

            reply = data.decode('utf-8', errors='replace')
            logger.info(f"ACK: {reply}")
            return reply
        finally:
            writer.close()
            await writer.wait_closed()
            logger.info("Closed")


def cli():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    parser = argparse.ArgumentParser(description="Send one HQ frame to a tracker proxy")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=5001)
    parser.add_argument("--imei", default="123456789012345")
    parser.add_argument("--lat", type=float, help="decimal degrees, negative for south")
    parser.add_argument("--lon", type=float, help="decimal degrees, negative for west")
    parser.add_argument("--speed", type=float, default=0.0, help="knots")
    parser.add_argument("--heading", type=float, default=0.0)
    args = parser.parse_args()

    if args.lat is not None and args.lon is not None:
        frame = build_location_frame(args.imei, args.lat, args.lon, args.speed, args.heading)
    else:
        frame = SAMPLE_FRAME

    simulator = TrackerDeviceSimulator(args.host, args.port)
    asyncio.run(simulator.send_frame(frame))


if __name__ == "__main__":
    cli()
