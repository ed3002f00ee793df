"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class and shared enums (Tendency)
    river_data: Station readings keyed by (river, station, timestamp)

Usage:
    from models.base import Base, Tendency
    from models.river_data import RiverReading
"""

__all__ = [
    "Base",
    "Tendency",
    "RiverReading",
]
