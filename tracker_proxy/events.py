"""
Structured connection events

The connection handler reports everything through an EventSink so tests
can record events instead of reading log output.
"""
import logging
import math
from typing import Any, Dict, Optional, Protocol

from .models import ParsedRecord

EVENT_LOGGER_NAME = "tracker_proxy.events"


class EventSink(Protocol):
    def emit(self, event: str, peer: str, level: int = logging.INFO, **fields: Any) -> None:
        ...


class LoggingEventSink:
    """Forwards events to stdlib logging with the payload attached to the record"""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(EVENT_LOGGER_NAME)

    def emit(self, event: str, peer: str, level: int = logging.INFO, **fields: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        details = " ".join(f"{key}={value}" for key, value in fields.items())
        message = f"{event.upper()} ({peer}) {details}".rstrip()
        self.logger.log(level, message, extra={"event": event, "peer": peer, "payload": fields})


def _rounded(value: float) -> Optional[float]:
    return round(value, 6) if math.isfinite(value) else None


def record_payload(record: ParsedRecord) -> Dict[str, Any]:
    """Payload of a `parsed` event"""
    return {
        "imei": record.imei,
        "lat": _rounded(record.lat),
        "lon": _rounded(record.lon),
        "spd_kn": record.speed_knots,
        "dir_deg": record.direction_deg,
        "valid": record.valid.value,
        "type": record.type,
    }
