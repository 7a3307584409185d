from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from .classify import RiskLevel
from .evaluate import Sample, SampleOutcome
from .standards import DEFAULT_STANDARDS, StandardsTable

INDEX_COLUMNS = ["hpi", "mpi", "hei", "pli"]


_SPACES = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^0-9a-z_]")


def normalize_name(name) -> str:
    """' Sample ID ' -> 'sample_id', 'Lead (mg/L)' -> 'lead_mgl'."""
    return _NON_WORD.sub("", _SPACES.sub("_", str(name).strip().lower()))


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy whose column labels went through normalize_name()."""
    return df.rename(columns=normalize_name)


def harmonize_ids(df: pd.DataFrame, id_col: str = "sample_id") -> pd.DataFrame:
    """
    Standardize ID column values by converting to strings and stripping whitespace.

    Args:
        df: Input DataFrame
        id_col: Name of the ID column to harmonize (default: "sample_id")

    Returns:
        DataFrame with standardized ID column
    """
    if id_col in df.columns:
        df = df.copy()
        df[id_col] = df[id_col].astype(str).str.strip()
    return df


def _cell(value):
    """Missing cells become None; everything else is passed through untouched."""
    if value is None:
        return None
    if isinstance(value, float) and np.isnan(value):
        return None
    if value is pd.NA or value is pd.NaT:
        return None
    return value


def samples_from_frame(
    df: pd.DataFrame,
    *,
    id_col: str = "sample_id",
    metals: Optional[Sequence[str]] = None,
    standards: StandardsTable = DEFAULT_STANDARDS,
    date_col: str = "collection_date",
    latitude_col: str = "latitude",
    longitude_col: str = "longitude",
    depth_col: str = "depth",
) -> List[Sample]:
    """
    Build Sample records from an already-typed wide frame (one row per sample).

    Metal columns default to every normalized column name found in the
    standards table. Missing metal cells are kept as None so the engine
    reports them for that row only.
    """
    df = harmonize_ids(normalize_columns(df), id_col=id_col)
    if id_col not in df.columns:
        raise KeyError(f"ID column '{id_col}' not found. Available: {list(df.columns)[:20]}")

    if metals is None:
        metal_cols = [c for c in df.columns if c in standards]
    else:
        metal_cols = [normalize_name(m) for m in metals]
        missing = [c for c in metal_cols if c not in df.columns]
        if missing:
            raise KeyError(f"Metal columns not found: {missing}")

    def optional(row, col):
        return _cell(row[col]) if col in df.columns else None

    samples = []
    for _, row in df.iterrows():
        samples.append(Sample(
            sample_id=row[id_col],
            metals={m: _cell(row[m]) for m in metal_cols},
            collected_at=optional(row, date_col),
            latitude=optional(row, latitude_col),
            longitude=optional(row, longitude_col),
            depth=optional(row, depth_col),
        ))
    return samples


def outcomes_to_frame(outcomes: Iterable[SampleOutcome]) -> pd.DataFrame:
    """
    Flatten outcomes into a display table: one row per sample with the
    indices, classification, risk level, one cf_<metal> column per metal and
    the error message for failed samples.
    """
    rows = []
    for o in outcomes:
        row = {"sample_id": o.sample_id}
        if o.ok:
            r = o.result
            row.update({k: getattr(r, k) for k in INDEX_COLUMNS})
            row["classification"] = r.classification
            row["risk_level"] = r.risk_level.value
            row.update({f"cf_{m}": v for m, v in r.cf.items()})
            row["error"] = None
        else:
            row["error"] = f"{type(o.error).__name__}: {o.error}"
        rows.append(row)

    fixed = ["sample_id", *INDEX_COLUMNS, "classification", "risk_level"]
    out = pd.DataFrame(rows, columns=None if rows else fixed + ["error"])
    for col in fixed:
        if col not in out.columns:
            out[col] = np.nan
    cf_cols = [c for c in out.columns if c.startswith("cf_")]
    return out[fixed + cf_cols + ["error"]]


def summarize_outcomes(outcomes: Iterable[SampleOutcome]) -> pd.Series:
    """
    Batch summary: sample counts, mean of each index over evaluated samples
    (NaN when none) and the number of samples per risk level.
    """
    outcomes = list(outcomes)
    results = [o.result for o in outcomes if o.ok]
    summary = {
        "n_samples": len(outcomes),
        "n_evaluated": len(results),
        "n_failed": len(outcomes) - len(results),
    }
    for key in INDEX_COLUMNS:
        values = np.array([getattr(r, key) for r in results], dtype=float)
        summary[f"mean_{key}"] = float(values.mean()) if values.size else float("nan")
    for level in RiskLevel:
        summary[f"risk_{level.value.lower()}"] = sum(1 for r in results if r.risk_level is level)
    return pd.Series(summary, dtype=object)
