import json
import logging
from datetime import datetime, timezone


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line.

    Records carrying an ``event`` attribute (see tracker_proxy.events) are
    rendered as {"ts", "lvl", "ev", "peer", ...payload}; plain records as
    {"ts", "lvl", "logger", "msg"}.
    """

    def __init__(self, session_id_run: str = None):
        super().__init__()
        self.session_id_run = session_id_run

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "lvl": record.levelname.lower(),
        }
        event = getattr(record, "event", None)
        if event:
            entry["ev"] = event
            entry["peer"] = getattr(record, "peer", None)
            entry.update(getattr(record, "payload", None) or {})
        else:
            entry["logger"] = record.name
            entry["msg"] = record.getMessage()

        if self.session_id_run:
            entry["session"] = self.session_id_run
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
