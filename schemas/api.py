"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
from models.base import Tendency


def utc_now() -> datetime:
    return datetime.now(timezone.utc)

# ============================================================================
# Health Check Schemas
# ============================================================================

class HealthCheckResponse(BaseModel):
    """Health check response model"""
    timestamp: datetime = Field(default_factory=utc_now)
    database_connected: bool
    last_update: Optional[datetime] = None
    refresh_running: bool = False
    scheduler_running: bool = False
    # Declared last so the validator sees the fields above
    status: str = Field("", description="Overall system status: healthy, degraded, unhealthy")

    @validator("status", pre=True, always=True)
    def determine_status(cls, v, values):
        """Determine overall health status"""
        if not values.get("database_connected", False):
            return "unhealthy"
        if values.get("last_update") is None:
            return "degraded"  # Store reachable but never refreshed
        return "healthy"

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "timestamp": "2025-04-18T06:05:00Z",
                "database_connected": True,
                "last_update": "2025-04-18T06:00:00Z",
                "refresh_running": False,
                "scheduler_running": True
            }
        }

# ============================================================================
# River Data Schemas
# ============================================================================

class RiverReadingResponse(BaseModel):
    """Latest reading of one station"""
    river: str
    station: str
    timestamp: datetime
    water_level: str
    water_change: str = ""
    discharge: str = ""
    water_temp: str = ""
    tendency: Tendency = Tendency.UNKNOWN

    class Config:
        from_attributes = True
        use_enum_values = True


class RiverListResponse(BaseModel):
    """Rivers with at least one stored reading"""
    rivers: List[str] = Field(default_factory=list)
    total: int = 0


class RiverDataResponse(BaseModel):
    """Latest readings of every station of a river"""
    river: str
    stations: List[RiverReadingResponse] = Field(default_factory=list)
    total_stations: int = 0

    class Config:
        json_schema_extra = {
            "example": {
                "river": "ДУНАВ",
                "total_stations": 1,
                "stations": [
                    {
                        "river": "ДУНАВ",
                        "station": "БЕЗДАН",
                        "timestamp": "2025-04-18T06:00:00Z",
                        "water_level": "250",
                        "water_change": "-3",
                        "discharge": "1450",
                        "water_temp": "11.2",
                        "tendency": "falling"
                    }
                ]
            }
        }


class LastUpdateResponse(BaseModel):
    last_update: Optional[datetime] = None


class LiveDataResponse(BaseModel):
    """Aggregate fetch served from the read-through cache"""
    fetched_at: datetime
    total_records: int = 0
    records: List[RiverReadingResponse] = Field(default_factory=list)

# ============================================================================
# Refresh Schemas
# ============================================================================

class RefreshResponse(BaseModel):
    """Outcome of an on-demand refresh"""
    status: str = Field(..., description="success, partial_success or skipped")
    records_saved: int = 0
    sources: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    failed_sources: List[str] = Field(default_factory=list)
    duration_seconds: Optional[float] = None

# ============================================================================
# Natural-language Query Schemas
# ============================================================================

class AskRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000, description="Free-form question about a river")

    @validator("message")
    def strip_message(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("message must not be blank")
        return v


class AskResponse(BaseModel):
    reply: str

# ============================================================================
# Error Schemas
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response"""
    error: str
    message: str
    request_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
