"""
Pydantic schemas for data validation and serialization.

Schemas:
    river: RiverRecord, the normalized reading every source adapter produces
    api: API endpoint request/response schemas

Usage:
    from schemas.river import RiverRecord
    from schemas.api import RiverDataResponse, HealthCheckResponse

Example:
    record = RiverRecord(
        river="ДУНАВ",
        station="БЕЗДАН",
        timestamp=datetime(2025, 4, 18, 8, 0, tzinfo=ZoneInfo("Europe/Belgrade")),
        water_level="250",
        water_change=None,
    )

    # Missing readings become empty strings, naive timestamps are rejected
    assert record.water_change == ""
"""

__all__ = [
    "RiverRecord",
    "HealthCheckResponse",
    "RiverReadingResponse",
    "RiverListResponse",
    "RiverDataResponse",
    "LastUpdateResponse",
    "LiveDataResponse",
    "RefreshResponse",
    "AskRequest",
    "AskResponse",
    "ErrorResponse",
]
