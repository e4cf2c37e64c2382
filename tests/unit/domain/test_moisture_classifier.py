import math

import pytest

from app.domain.exceptions import InvalidRangeError, ValidationError
from app.domain.moisture import classify, needs_water, validate_percentage
from app.enums.device import MoistureBand


@pytest.mark.parametrize(
    ("percentage", "band"),
    [
        (0, MoistureBand.DRY),
        (29, MoistureBand.DRY),
        (29.99, MoistureBand.DRY),
        (30, MoistureBand.MODERATE),
        (49, MoistureBand.MODERATE),
        (50, MoistureBand.OPTIMAL),
        (79, MoistureBand.OPTIMAL),
        (80, MoistureBand.WET),
        (100, MoistureBand.WET),
    ],
)
def test_classify_band_boundaries(percentage, band):
    assert classify(percentage) is band


@pytest.mark.parametrize("value", [-1, 101, -0.01, 100.5, math.nan])
def test_classify_rejects_out_of_range(value):
    with pytest.raises(InvalidRangeError):
        classify(value)


@pytest.mark.parametrize("value", [True, "42", None])
def test_validate_percentage_rejects_non_numbers(value):
    with pytest.raises(InvalidRangeError):
        validate_percentage(value)


def test_invalid_range_is_a_validation_error():
    with pytest.raises(ValidationError) as exc_info:
        validate_percentage(150)
    assert exc_info.value.http_status == 400
    assert exc_info.value.detail == {"value": 150.0}


def test_validate_percentage_returns_float():
    assert validate_percentage(42) == 42.0
    assert isinstance(validate_percentage(42), float)


def test_needs_water_matches_firmware_threshold():
    assert needs_water(29.9) is True
    assert needs_water(30) is False
    assert needs_water(45, threshold=50) is True
