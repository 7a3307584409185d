"""
Pollution indices computed from a single metal panel.

CF and HPI read raw concentrations; HEI, MPI and PLI are derived from the
unrounded contamination-factor vector only.
"""
from __future__ import annotations

import logging
import math
from numbers import Real
from typing import Mapping, Optional, Tuple

import numpy as np

from .errors import InsufficientDataError, InvalidConcentrationError, UnknownMetalError
from .standards import DEFAULT_STANDARDS, StandardsTable, normalize_metal

logger = logging.getLogger(__name__)

DEFAULT_CF_CEILING = 100.0
DEFAULT_QI_CEILING = 500.0
DEFAULT_DECIMALS = 3


def _round(value: float, decimals: Optional[int]) -> float:
    return float(value) if decimals is None else round(float(value), decimals)


def _concentration(metal: str, value, sample_id=None) -> float:
    if value is None or isinstance(value, bool) or not isinstance(value, (Real, np.number)):
        raise InvalidConcentrationError(metal, value, sample_id)
    c = float(value)
    if not math.isfinite(c) or c < 0:
        raise InvalidConcentrationError(metal, value, sample_id)
    return c


def usable_concentrations(
    panel: Mapping[str, float],
    standards: StandardsTable = DEFAULT_STANDARDS,
    *,
    sample_id=None,
) -> Tuple[dict, list]:
    """
    Filter a metal panel down to the metals the indices can use.

    Unknown metals and metals with a zero standard are dropped and reported
    in the returned warning list; every remaining concentration is validated.

    Returns:
        (concentrations, warnings): concentrations keyed by normalised metal
        id in panel order, and human-readable warning messages.

    Raises:
        InvalidConcentrationError: a known metal has a negative, non-finite,
            non-numeric or missing concentration.
    """
    values = {}
    warnings = []
    for metal, value in panel.items():
        key = normalize_metal(metal)
        try:
            entry = standards.standard_of(key)
        except UnknownMetalError as exc:
            warnings.append(f"Ignored unknown metal '{exc.metal}'")
            continue
        if key in values:
            # duplicate after normalisation, e.g. "Lead" and "lead"
            raise InvalidConcentrationError(key, value, sample_id)
        c = _concentration(key, value, sample_id)
        if not entry.usable:
            warnings.append(f"Excluded '{key}': zero standard")
            continue
        values[key] = c
    return values, warnings


def _contamination_factors(values: Mapping[str, float], standards: StandardsTable,
                           ceiling: Optional[float]) -> dict:
    cf = {}
    for metal, c in values.items():
        ratio = c / standards.standard_of(metal).standard
        cf[metal] = ratio if ceiling is None else min(ratio, ceiling)
    return cf


def _pollution_index(values: Mapping[str, float], standards: StandardsTable,
                     ceiling: Optional[float]) -> float:
    if not values:
        return 0.0
    entries = [standards.standard_of(m) for m in values]
    c = np.fromiter(values.values(), dtype=float, count=len(values))
    s = np.array([e.standard for e in entries])
    ideal = np.array([e.ideal for e in entries])

    with np.errstate(over="ignore"):
        qi = np.abs(c - ideal) / (s - ideal) * 100.0
    if ceiling is not None:
        qi = np.minimum(qi, ceiling)
    w = 1.0 / s
    w = w / w.sum()
    return float(np.sum(w * qi))


def _log_warnings(warnings: list) -> None:
    for message in warnings:
        logger.warning(message)


def contamination_factors(
    panel: Mapping[str, float],
    standards: StandardsTable = DEFAULT_STANDARDS,
    *,
    ceiling: Optional[float] = DEFAULT_CF_CEILING,
    decimals: Optional[int] = None,
) -> dict:
    """
    Contamination factor CF = concentration / standard for every usable metal.

    Args:
        panel: metal -> concentration (mg/L)
        standards: standards table
        ceiling: cap applied to each CF (None disables it)
        decimals: round for display; leave None when feeding HEI/MPI/PLI

    Returns:
        dict metal -> CF, in panel order
    """
    values, warnings = usable_concentrations(panel, standards)
    _log_warnings(warnings)
    cf = _contamination_factors(values, standards, ceiling)
    return {m: _round(v, decimals) for m, v in cf.items()}


def heavy_metal_pollution_index(
    panel: Mapping[str, float],
    standards: StandardsTable = DEFAULT_STANDARDS,
    *,
    ceiling: Optional[float] = DEFAULT_QI_CEILING,
    decimals: Optional[int] = DEFAULT_DECIMALS,
) -> float:
    """
    HPI = sum(w_i * Q_i) with Q_i = |c_i - ideal_i| / (S_i - ideal_i) * 100
    (capped at `ceiling`) and w_i = (1/S_i) / sum(1/S_j) over the metals present.

    Returns 0 when no metal has a usable standard.
    """
    values, warnings = usable_concentrations(panel, standards)
    _log_warnings(warnings)
    return _round(_pollution_index(values, standards, ceiling), decimals)


def heavy_metal_evaluation_index(cf: Mapping[str, float], *,
                                 decimals: Optional[int] = DEFAULT_DECIMALS) -> float:
    """HEI: sum of contamination factors."""
    return _round(np.sum(np.fromiter(cf.values(), dtype=float, count=len(cf))), decimals)


def geometric_mean(values) -> float:
    """
    Geometric mean of non-negative values; 0 if any value is 0.

    Raises InsufficientDataError for an empty input.
    """
    x = np.asarray(list(values), dtype=float)
    if x.size == 0:
        raise InsufficientDataError("Geometric mean of an empty contamination-factor vector is undefined")
    if np.any(x == 0):
        return 0.0
    return float(np.exp(np.mean(np.log(x))))


def metal_pollution_index(cf: Mapping[str, float], *,
                          decimals: Optional[int] = DEFAULT_DECIMALS) -> float:
    """MPI: geometric mean of contamination factors."""
    return _round(geometric_mean(cf.values()), decimals)


def pollution_load_index(cf: Mapping[str, float], *,
                         decimals: Optional[int] = DEFAULT_DECIMALS) -> float:
    """PLI: geometric mean of contamination factors (same construction as MPI)."""
    return metal_pollution_index(cf, decimals=decimals)


def exceeding_metals(cf: Mapping[str, float]) -> tuple:
    """Metals whose contamination factor is above 1, i.e. over the standard."""
    return tuple(m for m, v in cf.items() if v > 1.0)
