from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from numbers import Integral
from typing import Mapping, Optional, Tuple

from .classify import DEFAULT_BANDS, ClassificationBand, validate_bands
from .indices import DEFAULT_CF_CEILING, DEFAULT_DECIMALS, DEFAULT_QI_CEILING
from .standards import DEFAULT_STANDARDS, StandardsTable, normalize_metal


def _check_threshold(name: str, value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"{name} must be finite and >= 0, got {value!r}")
    return value


def _check_ceiling(name: str, value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    if math.isnan(value) or value <= 0:
        raise ValueError(f"{name} must be > 0 or None, got {value!r}")
    return value


@dataclass(frozen=True)
class EngineConfig:
    """
    Everything the engine reads besides the samples themselves.

    Args:
        standards: metal -> standard/ideal table
        cf_ceiling: cap on each contamination factor (None = uncapped)
        qi_ceiling: cap on each HPI sub-index (None = uncapped)
        bands: HPI classification bands, must tile [0, inf)
        decimals: rounding applied to reported indices
        hpi_alert_threshold: HPI at or above which a result is flagged (None = off)
        metal_alert_thresholds: metal -> concentration (mg/L) above which the
            metal is flagged; a mapping is accepted and stored as sorted pairs
    """

    standards: StandardsTable = DEFAULT_STANDARDS
    cf_ceiling: Optional[float] = DEFAULT_CF_CEILING
    qi_ceiling: Optional[float] = DEFAULT_QI_CEILING
    bands: Tuple[ClassificationBand, ...] = DEFAULT_BANDS
    decimals: int = DEFAULT_DECIMALS
    hpi_alert_threshold: Optional[float] = None
    metal_alert_thresholds: Tuple[Tuple[str, float], ...] = ()

    def __post_init__(self):
        if not isinstance(self.standards, StandardsTable):
            raise TypeError(f"standards must be a StandardsTable, got {type(self.standards).__name__}")
        object.__setattr__(self, "cf_ceiling", _check_ceiling("cf_ceiling", self.cf_ceiling))
        object.__setattr__(self, "qi_ceiling", _check_ceiling("qi_ceiling", self.qi_ceiling))
        object.__setattr__(self, "bands", validate_bands(self.bands))
        if isinstance(self.decimals, bool) or not isinstance(self.decimals, Integral) or self.decimals < 0:
            raise ValueError(f"decimals must be a non-negative integer, got {self.decimals!r}")
        object.__setattr__(self, "decimals", int(self.decimals))
        object.__setattr__(self, "hpi_alert_threshold",
                           _check_threshold("hpi_alert_threshold", self.hpi_alert_threshold))
        object.__setattr__(self, "metal_alert_thresholds", self._metal_thresholds())

    def _metal_thresholds(self) -> Tuple[Tuple[str, float], ...]:
        thresholds = self.metal_alert_thresholds
        items = thresholds.items() if isinstance(thresholds, Mapping) else thresholds
        out = {}
        for metal, limit in items:
            key = normalize_metal(metal)
            if key not in self.standards:
                raise ValueError(f"Alert threshold given for metal without a standard: '{key}'")
            if limit is None:
                raise ValueError(f"Alert threshold for '{key}' must be a number, got None")
            out[key] = _check_threshold(f"alert threshold for '{key}'", limit)
        return tuple(sorted(out.items()))

    def replace(self, **changes) -> "EngineConfig":
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)


DEFAULT_CONFIG = EngineConfig()
