"""
Soil Moisture Classification
============================
Pure helpers that map a moisture percentage to a qualitative band and to
the binary "needs water" signal used by the controller.
"""

from __future__ import annotations

import math
from numbers import Real

from app.domain.exceptions import InvalidRangeError
from app.enums.device import MoistureBand

MOISTURE_MIN = 0.0
MOISTURE_MAX = 100.0

# Lower bounds of each band, highest first. WET is closed at MOISTURE_MAX.
_BAND_FLOORS: tuple[tuple[float, MoistureBand], ...] = (
    (80.0, MoistureBand.WET),
    (50.0, MoistureBand.OPTIMAL),
    (30.0, MoistureBand.MODERATE),
    (MOISTURE_MIN, MoistureBand.DRY),
)

DEFAULT_DRY_THRESHOLD = 30.0


def validate_percentage(value: object) -> float:
    """Return *value* as a float, or raise InvalidRangeError if it is not in [0, 100]."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidRangeError(
            f"moisture_percentage must be a number, got {type(value).__name__}",
            detail={"value": repr(value)},
        )
    number = float(value)
    if math.isnan(number) or number < MOISTURE_MIN or number > MOISTURE_MAX:
        raise InvalidRangeError(
            f"moisture_percentage {value} outside [{MOISTURE_MIN:g}, {MOISTURE_MAX:g}]",
            detail={"value": number},
        )
    return number


def classify(percentage: float) -> MoistureBand:
    """Map a moisture percentage to its band.

    >>> classify(29).value, classify(30).value, classify(80).value
    ('dry', 'moderate', 'wet')
    """
    value = validate_percentage(percentage)
    for floor, band in _BAND_FLOORS:
        if value >= floor:
            return band
    return MoistureBand.DRY  # pragma: no cover - unreachable after validation


def needs_water(percentage: float, threshold: float = DEFAULT_DRY_THRESHOLD) -> bool:
    """Digital dry signal: True when the soil is drier than *threshold*."""
    return validate_percentage(percentage) < threshold
