"""
HQ protocol handler
Comma separated ASCII frames: *MFG,IMEI,TYPE,HHMMSS,A/V,DDMM.MMMM,N/S,DDDMM.MMMM,E/W,SPD,HDG#
"""
from datetime import datetime, timezone
from typing import Optional
import math
import re

from ..models import FixValidity, FrameFields, ParsedRecord
from .base import BaseProtocolHandler

FRAME_START = "*"
FRAME_END = "#"
DEFAULT_MANUFACTURER = "HQ"
ACK_COMMAND = "R12"

DIGITS = re.compile(r"\d+", re.ASCII)
# Plain decimal notation, optionally signed or with an exponent
NUMBER = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)


def ddmm_to_degrees(value: Optional[str]) -> float:
    """
    Convert DDMM.MMMM / DDDMM.MMMM to decimal degrees.

    The degree width comes from the field itself: everything before the
    last two integer digits is degrees, the rest is minutes.
    Returns NaN for empty or malformed input.
    """
    if not value:
        return math.nan

    pieces = value.split(".")
    whole = pieces[0]
    frac = pieces[1] if len(pieces) > 1 else "0"

    deg_digits = len(whole) - 2
    if deg_digits <= 0:
        return math.nan
    if not DIGITS.fullmatch(whole) or (frac and not DIGITS.fullmatch(frac)):
        return math.nan

    degrees = int(whole[:deg_digits])
    minutes = int(whole[deg_digits:]) + float(f"0.{frac}")

    return degrees + minutes / 60.0


def degrees_to_ddmm(value: float, is_longitude: bool = False) -> str:
    """Encode absolute decimal degrees as DDMM.MMMM (DDDMM.MMMM for longitude)"""
    value = abs(value)
    degrees = int(value)
    minutes = round((value - degrees) * 60.0, 4)
    if minutes >= 60.0:
        degrees, minutes = degrees + 1, 0.0
    width = 3 if is_longitude else 2
    return f"{degrees:0{width}d}{minutes:07.4f}"


def _to_number(value: Optional[str]) -> float:
    """Lenient numeric conversion, anything unusable becomes 0"""
    if not value or not NUMBER.fullmatch(value):
        return 0.0
    number = float(value)
    return number if math.isfinite(number) else 0.0


def parse_frame(frame: str) -> Optional[ParsedRecord]:
    """Parse one `*...#` frame. Returns None when the frame has no IMEI or bad delimiters."""
    if not frame.startswith(FRAME_START) or not frame.endswith(FRAME_END):
        return None

    body = frame[1:-1]
    fields = FrameFields.from_parts([part.strip() for part in body.split(",")])

    if not fields.imei:
        return None

    lat = ddmm_to_degrees(fields.lat)
    if fields.lat_hemisphere == "S":
        lat = -lat

    lon = ddmm_to_degrees(fields.lon)
    if fields.lon_hemisphere == "W":
        lon = -lon

    return ParsedRecord(
        manufacturer=fields.manufacturer or DEFAULT_MANUFACTURER,
        imei=fields.imei,
        type=fields.type or "",
        time_hhmmss=fields.hhmmss or "",
        valid=FixValidity.from_flag(fields.valid),
        lat=lat,
        lon=lon,
        speed_knots=_to_number(fields.speed),
        direction_deg=_to_number(fields.direction),
        raw=frame,
    )


def build_ack_r12(manufacturer: Optional[str], imei: str, now: Optional[datetime] = None) -> str:
    """Build the R12 heartbeat reply: *MFG,IMEI,R12,HHMMSS# (UTC)"""
    now = now or datetime.now(timezone.utc)
    hhmmss = now.astimezone(timezone.utc).strftime("%H%M%S")
    return f"{FRAME_START}{manufacturer or DEFAULT_MANUFACTURER},{imei},{ACK_COMMAND},{hhmmss}{FRAME_END}"


def build_location_frame(imei: str, lat: float, lon: float, speed_knots: float = 0.0,
                         direction_deg: float = 0.0, valid: bool = True,
                         manufacturer: str = DEFAULT_MANUFACTURER, msg_type: str = "V1",
                         now: Optional[datetime] = None) -> str:
    """Build an inbound location frame the way a device would send it"""
    now = now or datetime.now(timezone.utc)
    fields = [
        manufacturer,
        imei,
        msg_type,
        now.astimezone(timezone.utc).strftime("%H%M%S"),
        FixValidity.ACTIVE.value if valid else FixValidity.VOID_FIX.value,
        degrees_to_ddmm(lat),
        "S" if lat < 0 else "N",
        degrees_to_ddmm(lon, is_longitude=True),
        "W" if lon < 0 else "E",
        f"{speed_knots:g}",
        f"{direction_deg:g}",
    ]
    return f"{FRAME_START}{','.join(fields)}{FRAME_END}"


class HQProtocolHandler(BaseProtocolHandler):
    """Handler for the HQ comma separated protocol"""

    def get_protocol_name(self) -> str:
        return "HQ"

    def parse_message(self, data: str) -> Optional[ParsedRecord]:
        return parse_frame(data)

    def create_response(self, record: ParsedRecord) -> str:
        return build_ack_r12(record.manufacturer, record.imei)
