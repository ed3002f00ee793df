"""
Cell-level normalization shared by the source adapters.

Sources publish readings as free text with their own placeholder and
tendency conventions. These helpers map them onto the RiverRecord shape:

- whitespace (including non-breaking spaces) collapsed and stripped
- "-" placeholders become empty strings for optional readings
- missing levels default to "0" where a source requires it
- tendency glyphs and image labels map onto Tendency
"""

from typing import Optional
import logging

from models.base import Tendency

logger = logging.getLogger(__name__)

PLACEHOLDERS = {"-", "–", "—"}

TENDENCY_GLYPHS = {
    "▲": Tendency.RISING,
    "▼": Tendency.FALLING,
    "●": Tendency.STABLE,
}

# Image labels seen on bulletin tendency icons, matched as substrings
TENDENCY_LABEL_KEYWORDS = (
    ("пораст", Tendency.RISING),
    ("раст", Tendency.RISING),
    ("rast", Tendency.RISING),
    ("rising", Tendency.RISING),
    ("опад", Tendency.FALLING),
    ("opad", Tendency.FALLING),
    ("falling", Tendency.FALLING),
    ("стагн", Tendency.STABLE),
    ("stagn", Tendency.STABLE),
    ("мирује", Tendency.STABLE),
    ("stable", Tendency.STABLE),
)


def clean_text(value: Optional[str]) -> str:
    """Collapse whitespace and strip a cell's text."""
    if not value:
        return ""
    return " ".join(value.replace("\xa0", " ").split())


def normalize_optional(value: Optional[str]) -> str:
    """Optional reading: placeholders become empty."""
    text = clean_text(value)
    if text in PLACEHOLDERS:
        return ""
    return text


def normalize_level(value: Optional[str], default: str = "0") -> str:
    """Level reading: empty or placeholder becomes the default."""
    text = normalize_optional(value)
    return text or default


def tendency_from_glyph(value: Optional[str]) -> Tendency:
    """Map a ▲/▼/● cell onto Tendency; anything else is unknown."""
    return TENDENCY_GLYPHS.get(clean_text(value), Tendency.UNKNOWN)


def tendency_from_label(value: Optional[str]) -> Tendency:
    """Map a descriptive image label (alt/title) onto Tendency."""
    text = clean_text(value).lower()
    if not text:
        return Tendency.UNKNOWN

    glyph = TENDENCY_GLYPHS.get(text)
    if glyph:
        return glyph

    for keyword, tendency in TENDENCY_LABEL_KEYWORDS:
        if keyword in text:
            return tendency

    logger.debug(f"Unrecognized tendency label: {text!r}")
    return Tendency.UNKNOWN
