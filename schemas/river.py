"""
Pydantic schema for the normalized river record with validation
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, validator

from models.base import Tendency


class RiverRecord(BaseModel):
    """
    One normalized station reading, produced by a source adapter.

    Ensures:
    - river and station are present after stripping
    - timestamp is timezone-aware (the instant of the reading, not of the scrape)
    - optional readings are empty strings, never None
    """

    id: Optional[int] = None

    # Natural key
    river: str = Field(..., min_length=1)
    station: str = Field(..., min_length=1)
    timestamp: datetime

    # Readings, kept verbatim
    water_level: str
    water_change: str = ""
    discharge: str = ""
    water_temp: str = ""
    tendency: Tendency = Tendency.UNKNOWN

    @validator("river", "station", pre=True)
    def strip_name(cls, v):
        if isinstance(v, str):
            v = v.strip()
        return v

    @validator("water_level", "water_change", "discharge", "water_temp", pre=True)
    def empty_for_missing(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    @validator("timestamp")
    def require_timezone(cls, v):
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("timestamp must be timezone-aware")
        return v

    class Config:
        frozen = True
