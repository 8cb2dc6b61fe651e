"""
GPS Tracker Protocol Handlers
"""
from .base import BaseProtocolHandler
from .hq import (
    HQProtocolHandler,
    build_ack_r12,
    build_location_frame,
    ddmm_to_degrees,
    degrees_to_ddmm,
    parse_frame,
)

__all__ = [
    'BaseProtocolHandler',
    'HQProtocolHandler',
    'build_ack_r12',
    'build_location_frame',
    'ddmm_to_degrees',
    'degrees_to_ddmm',
    'parse_frame',
]
