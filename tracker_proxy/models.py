"""
Typed records produced from tracker frames
"""
from enum import Enum
from typing import NamedTuple, Optional
from pydantic import BaseModel, ConfigDict


class FixValidity(str, Enum):
    """Whether the device had a positioning fix when the frame was sent"""
    ACTIVE = "A"
    VOID_FIX = "V"

    @classmethod
    def from_flag(cls, flag: Optional[str]) -> "FixValidity":
        if flag == cls.ACTIVE.value:
            return cls.ACTIVE
        return cls.VOID_FIX


class FrameFields(NamedTuple):
    """Fixed positional layout of an inbound frame body.

    Positions missing from the frame stay None.
    """
    manufacturer: Optional[str] = None
    imei: Optional[str] = None
    type: Optional[str] = None
    hhmmss: Optional[str] = None
    valid: Optional[str] = None
    lat: Optional[str] = None
    lat_hemisphere: Optional[str] = None
    lon: Optional[str] = None
    lon_hemisphere: Optional[str] = None
    speed: Optional[str] = None
    direction: Optional[str] = None

    @classmethod
    def from_parts(cls, parts) -> "FrameFields":
        # Extra trailing fields are not part of the layout
        return cls(*parts[:len(cls._fields)])


class ParsedRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    manufacturer: str = "HQ"
    imei: str
    type: str = ""
    time_hhmmss: str = ""
    valid: FixValidity = FixValidity.VOID_FIX
    lat: float = float("nan")
    lon: float = float("nan")
    speed_knots: float = 0.0
    direction_deg: float = 0.0
    raw: str
