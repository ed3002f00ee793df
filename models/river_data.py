from sqlalchemy import Column, Integer, String, Text, Index, UniqueConstraint
from models.base import Base


class RiverReading(Base):
    """
    One station reading as published by a source.

    Design:
    - (river, station, timestamp) is the natural key; a later fetch with
      the same key updates the reading instead of adding a row
    - Readings are kept as text because sources publish placeholders and
      locale-specific decimals
    - timestamp holds UTC text "YYYY-MM-DD HH:MM:SS+00:00" so that MAX()
      and string comparison follow chronological order
    """
    __tablename__ = "river_data"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Natural key
    river = Column(Text, nullable=False)
    station = Column(Text, nullable=False)
    timestamp = Column(String(40), nullable=False)

    # Readings
    water_level = Column(Text, nullable=True)
    water_change = Column(Text, nullable=True)
    discharge = Column(Text, nullable=True)
    water_temp = Column(Text, nullable=True)
    tendency = Column(String(16), nullable=True)

    __table_args__ = (
        UniqueConstraint("river", "station", "timestamp", name="uq_river_station_timestamp"),
        Index("idx_river", "river"),
        Index("idx_timestamp", "timestamp"),
    )
