from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class Tendency(str, enum.Enum):
    """Direction of the recent water-level change"""
    RISING = "rising"
    FALLING = "falling"
    STABLE = "stable"
    UNKNOWN = ""
