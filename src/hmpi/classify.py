"""
HPI classification
==================
Maps a Heavy Metal Pollution Index value to a water-quality label and a
risk level. Pure threshold logic over half-open bands [lower, upper).

Default bands:
    [0, 50)     Excellent                 LOW
    [50, 100)   Slightly Polluted         MODERATE
    [100, 200)  Unsuitable for Drinking   HIGH
    [200, inf)  Unsuitable for Drinking   CRITICAL
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple

from .errors import InvalidIndexError


class RiskLevel(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    CRITICAL = "Critical"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ClassificationBand:
    lower: float
    upper: float
    classification: str
    risk_level: RiskLevel

    def contains(self, value: float) -> bool:
        return self.lower <= value < self.upper


DEFAULT_BANDS: Tuple[ClassificationBand, ...] = (
    ClassificationBand(0.0, 50.0, "Excellent", RiskLevel.LOW),
    ClassificationBand(50.0, 100.0, "Slightly Polluted", RiskLevel.MODERATE),
    ClassificationBand(100.0, 200.0, "Unsuitable for Drinking", RiskLevel.HIGH),
    ClassificationBand(200.0, math.inf, "Unsuitable for Drinking", RiskLevel.CRITICAL),
)


def validate_bands(bands: Iterable[ClassificationBand]) -> Tuple[ClassificationBand, ...]:
    """
    Check that bands tile [0, inf) without gaps or overlaps.

    Returns the bands as a tuple; raises ValueError otherwise.
    """
    bands = tuple(bands)
    if not bands:
        raise ValueError("At least one classification band is required")
    if bands[0].lower != 0:
        raise ValueError(f"First band must start at 0, got {bands[0].lower}")
    for prev, band in zip(bands, bands[1:]):
        if band.lower != prev.upper:
            raise ValueError(
                f"Bands must be contiguous: [{prev.lower}, {prev.upper}) is followed by "
                f"[{band.lower}, {band.upper})"
            )
    for band in bands:
        if not band.lower < band.upper:
            raise ValueError(f"Empty band [{band.lower}, {band.upper})")
        RiskLevel(band.risk_level)
    if not math.isinf(bands[-1].upper):
        raise ValueError(f"Last band must be open-ended, got upper={bands[-1].upper}")
    return bands


def classify(hpi: float, bands: Iterable[ClassificationBand] = DEFAULT_BANDS) -> Tuple[str, RiskLevel]:
    """
    Classify an HPI value.

    Args:
        hpi: Heavy Metal Pollution Index, finite and >= 0.
        bands: Band table; must tile [0, inf) (see validate_bands).

    Returns:
        (classification, risk_level)

    Raises:
        InvalidIndexError: hpi is negative or not a finite number.
    """
    try:
        value = float(hpi)
    except (TypeError, ValueError):
        raise InvalidIndexError(f"HPI must be a number, got {hpi!r}") from None
    if not math.isfinite(value) or value < 0:
        raise InvalidIndexError(f"HPI must be finite and non-negative, got {hpi!r}")

    for band in bands:
        if band.contains(value):
            return band.classification, RiskLevel(band.risk_level)

    # Unreachable with a validated band table
    raise InvalidIndexError(f"No classification band covers HPI={value}")
