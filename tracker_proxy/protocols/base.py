"""
Base protocol handler for GPS trackers
"""
from abc import ABC, abstractmethod
from typing import Optional

from ..models import ParsedRecord


class BaseProtocolHandler(ABC):
    """Base class for tracker protocol handlers"""

    @abstractmethod
    def parse_message(self, data: str) -> Optional[ParsedRecord]:
        """Parse one complete frame from the device"""
        pass

    @abstractmethod
    def create_response(self, record: ParsedRecord) -> str:
        """Create the reply frame for a parsed record"""
        pass

    @abstractmethod
    def get_protocol_name(self) -> str:
        """Get the name of this protocol"""
        pass
