"""
Regulatory standards for heavy metals in drinking water.

- Metal enumerates the canonical metal identifiers.
- WHO_STANDARDS maps each metal to its permissible limit (mg/L).
- StandardsTable is the immutable lookup used by every index computation;
  build it with build_standards_table() to override individual limits.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Union

import pandas as pd

from .errors import UnknownMetalError

logger = logging.getLogger(__name__)


class Metal(str, Enum):
    ARSENIC = "arsenic"
    LEAD = "lead"
    CADMIUM = "cadmium"
    CHROMIUM = "chromium"
    MERCURY = "mercury"
    COPPER = "copper"
    ZINC = "zinc"
    IRON = "iron"
    MANGANESE = "manganese"
    NICKEL = "nickel"

    def __str__(self) -> str:
        return self.value


# WHO guideline values (mg/L)
WHO_STANDARDS = {
    Metal.ARSENIC: 0.01,
    Metal.LEAD: 0.01,
    Metal.CADMIUM: 0.003,
    Metal.CHROMIUM: 0.05,
    Metal.MERCURY: 0.001,
    Metal.COPPER: 2.0,
    Metal.ZINC: 3.0,
    Metal.IRON: 0.3,
    Metal.MANGANESE: 0.4,
    Metal.NICKEL: 0.07,
}

# Ideal (baseline) concentration for the HPI sub-index
DEFAULT_IDEAL = 0.0


def normalize_metal(name) -> str:
    """Canonical key for a metal identifier: stripped, lower-case string."""
    if isinstance(name, Metal):
        return name.value
    return str(name).strip().lower()


@dataclass(frozen=True)
class StandardsEntry:
    """Permissible limit and HPI baseline for one metal."""

    standard: float
    ideal: float = DEFAULT_IDEAL

    def __post_init__(self):
        standard = float(self.standard)
        ideal = float(self.ideal)
        if not math.isfinite(standard) or standard < 0:
            raise ValueError(f"standard must be finite and >= 0, got {self.standard!r}")
        if not math.isfinite(ideal) or ideal < 0:
            raise ValueError(f"ideal must be finite and >= 0, got {self.ideal!r}")
        if standard > 0 and ideal >= standard:
            raise ValueError(f"ideal ({ideal}) must be below the standard ({standard})")
        object.__setattr__(self, "standard", standard)
        object.__setattr__(self, "ideal", ideal)

    @property
    def usable(self) -> bool:
        """False for zero standards, which are never divided by."""
        return self.standard > 0


class StandardsTable:
    """
    Read-only mapping of metal identifier -> StandardsEntry.

    Entries cannot be added or removed after construction;
    build a new table to track revised guidance.
    """

    def __init__(self, entries: Mapping[str, StandardsEntry]):
        normalized = {}
        for metal, entry in entries.items():
            key = normalize_metal(metal)
            if key in normalized:
                raise ValueError(f"Duplicate standard for metal '{key}'")
            if not isinstance(entry, StandardsEntry):
                entry = _coerce_entry(entry)
            normalized[key] = entry
        self._entries = MappingProxyType(normalized)

    def standard_of(self, metal) -> StandardsEntry:
        """Return the entry for `metal`, raising UnknownMetalError if absent."""
        key = normalize_metal(metal)
        try:
            return self._entries[key]
        except KeyError:
            raise UnknownMetalError(key) from None

    @property
    def metals(self) -> tuple:
        return tuple(self._entries)

    def unit_weights(self) -> dict:
        """Unit weight 1/standard for every usable metal."""
        return {m: 1.0 / e.standard for m, e in self._entries.items() if e.usable}

    def to_frame(self) -> pd.DataFrame:
        """Display view: one row per metal with standard, ideal and unit weight."""
        weights = self.unit_weights()
        rows = [
            {"metal": m, "standard": e.standard, "ideal": e.ideal, "unit_weight": weights.get(m, float("nan"))}
            for m, e in self._entries.items()
        ]
        return pd.DataFrame(rows, columns=["metal", "standard", "ideal", "unit_weight"]).set_index("metal")

    def __contains__(self, metal) -> bool:
        return normalize_metal(metal) in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, StandardsTable):
            return NotImplemented
        return dict(self._entries) == dict(other._entries)

    def __hash__(self):
        return hash(tuple(sorted(self._entries.items())))

    def __repr__(self):
        return f"StandardsTable(metals={list(self._entries)})"


OverrideValue = Union[float, Mapping[str, float], StandardsEntry]


def _coerce_entry(value: OverrideValue, base: Optional[StandardsEntry] = None) -> StandardsEntry:
    if isinstance(value, StandardsEntry):
        return value
    if isinstance(value, Mapping):
        standard = value.get("standard", base.standard if base is not None else None)
        if standard is None:
            raise ValueError(f"Override {dict(value)!r} has no 'standard'")
        ideal = value.get("ideal", base.ideal if base is not None else DEFAULT_IDEAL)
        return StandardsEntry(standard=standard, ideal=ideal)
    ideal = base.ideal if base is not None else DEFAULT_IDEAL
    return StandardsEntry(standard=value, ideal=ideal)


def build_standards_table(
    standards: Optional[Mapping[str, float]] = None,
    *,
    ideals: Optional[Mapping[str, float]] = None,
    overrides: Optional[Mapping[str, OverrideValue]] = None,
) -> StandardsTable:
    """Build a standards table with optional per-metal overrides.

    Precedence (highest to lowest):
    1) overrides[metal]: a bare standard, {"standard": .., "ideal": ..} or StandardsEntry
    2) standards[metal] / ideals[metal]
    3) WHO_STANDARDS with DEFAULT_IDEAL

    Passing `standards` replaces the default metal set; `overrides` may add
    metals that are in neither.

    Usage examples:
    - build_standards_table()                                   # WHO defaults
    - build_standards_table(overrides={"lead": 0.015})
    - build_standards_table({"lead": 0.01, "cadmium": 0.003})
    """
    base = WHO_STANDARDS if standards is None else standards
    ideals = {normalize_metal(k): v for k, v in (ideals or {}).items()}

    entries = {}
    for metal, standard in base.items():
        key = normalize_metal(metal)
        entries[key] = StandardsEntry(standard=standard, ideal=ideals.pop(key, DEFAULT_IDEAL))

    for metal, value in (overrides or {}).items():
        key = normalize_metal(metal)
        entries[key] = _coerce_entry(value, base=entries.get(key))

    if ideals:
        raise ValueError(f"Ideal values given for metals without a standard: {sorted(ideals)}")

    table = StandardsTable(entries)
    logger.debug("Built standards table for %d metals", len(table))
    return table


DEFAULT_STANDARDS = build_standards_table()
