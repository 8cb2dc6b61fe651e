import logging
import queue
from logging.config import dictConfig
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from typing import List, Optional

from ..config import Settings, settings as default_settings
from .formatters import JsonFormatter

LOG_FILE_MAX_BYTES = 1024 * 1024 * 5  # 5 MB
LOG_FILE_BACKUPS = 10
LOG_QUEUE_SIZE = 10000

# Listener feeding the real handlers in production, see configure_logging
_listener: Optional[QueueListener] = None


def _build_formatter(session_id_run: str, settings: Settings) -> logging.Formatter:
    if settings.LOG_FORMAT == "json":
        return JsonFormatter(session_id_run)
    return logging.Formatter(
        f'%(asctime)s %(name)-12s %(levelname)-8s [SESSION_ID: {session_id_run}] %(message)s'
    )


def _build_handlers(session_id_run: str, settings: Settings, log_level: int) -> List[logging.Handler]:
    formatter = _build_formatter(session_id_run, settings)

    handlers = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(RotatingFileHandler(
            filename=settings.LOG_FILE,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
        ))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
    return handlers


def stop_logging():
    """Flush and stop the production queue listener, if one is running"""
    global _listener
    if _listener is None:
        return
    _listener.stop()
    for handler in _listener.handlers:
        handler.close()
    _listener = None


def configure_logging(session_id_run: str, settings: Settings = None) -> Optional[QueueListener]:
    """
    Configure root logging for the tracker proxy.

    Console output always; a rotating file when LOG_FILE is set. In
    production the handlers run on a QueueListener thread so logging never
    blocks frame processing; the listener is returned and must be stopped
    with stop_logging() on the way out.
    """
    settings = settings or default_settings
    log_level = settings.get_log_level()

    # Reconfiguring replaces any earlier listener
    stop_logging()

    if settings.PROD:
        # Handlers are built inside dictConfig, after it has closed the old ones
        def queue_handler():
            global _listener
            log_queue = queue.Queue(maxsize=LOG_QUEUE_SIZE)
            handlers = _build_handlers(session_id_run, settings, log_level)
            _listener = QueueListener(log_queue, *handlers, respect_handler_level=True)
            _listener.start()
            return QueueHandler(log_queue)

        LOGGING_CONFIG = dict(
            version=1,
            disable_existing_loggers=False,
            handlers={
                'queue': {
                    '()': queue_handler,
                },
            },
            root={
                'handlers': ['queue'],
                'level': log_level,
            },
        )
    else:
        handlers = ['h', 'file'] if settings.LOG_FILE else ['h']

        LOGGING_CONFIG = dict(
            version=1,
            disable_existing_loggers=False,
            formatters={
                'f': {
                    '()': lambda: _build_formatter(session_id_run, settings),
                },
            },
            handlers={
                'h': {
                    'class': 'logging.StreamHandler',
                    'formatter': 'f',
                    'level': log_level,
                },
            },
            root={
                'handlers': handlers,
                'level': log_level,
            },
        )

        if settings.LOG_FILE:
            LOGGING_CONFIG['handlers']['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'filename': settings.LOG_FILE,
                'formatter': 'f',
                'level': log_level,
                'maxBytes': LOG_FILE_MAX_BYTES,
                'backupCount': LOG_FILE_BACKUPS,
            }

    dictConfig(LOGGING_CONFIG)
    return _listener
