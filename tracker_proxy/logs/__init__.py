from .logconfig import configure_logging, stop_logging
from .formatters import JsonFormatter

__all__ = ['configure_logging', 'stop_logging', 'JsonFormatter']
