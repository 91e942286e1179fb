"""Domain enumerations for the yield optimizer.

All string-valued enums use str mixin so they serialize cleanly to JSON
and remain comparable to plain strings (Pydantic default behaviour).
"""

from enum import Enum


class SelectionSource(str, Enum):
    """Which branch of the portfolio search produced the returned weights."""

    IN_BAND = "in_band"
    FALLBACK = "fallback"
    EQUAL_WEIGHT = "equal_weight"


class BandPosition(str, Enum):
    BELOW = "below"
    INSIDE = "inside"
    ABOVE = "above"
