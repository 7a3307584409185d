from __future__ import annotations
from typing import Iterable, Optional

import pandas as pd
import pandera as pa
from pandera import Column, DataFrameSchema, Check

from .standards import DEFAULT_STANDARDS


def sample_frame_schema(metals: Optional[Iterable[str]] = None) -> DataFrameSchema:
    """
    Schema for a typed sample frame: unique sample ids, plausible coordinates
    and depth, and non-negative metal concentrations (missing allowed; the
    engine reports those per sample).
    """
    metals = list(DEFAULT_STANDARDS.metals if metals is None else metals)
    columns = {
        "sample_id": Column(str, nullable=False, unique=True, coerce=True),
        "collection_date": Column(pa.DateTime, nullable=True, required=False, coerce=True),
        "latitude": Column(float, Check.in_range(-90, 90), nullable=True, required=False, coerce=True),
        "longitude": Column(float, Check.in_range(-180, 180), nullable=True, required=False, coerce=True),
        "depth": Column(float, Check.ge(0), nullable=True, required=False, coerce=True),
    }
    for metal in metals:
        columns[str(metal)] = Column(float, Check.ge(0), nullable=True, required=False, coerce=True)
    return DataFrameSchema(columns, strict=False)


def validate_sample_frame(df: pd.DataFrame, metals: Optional[Iterable[str]] = None) -> pd.DataFrame:
    """Validate lazily so that every failing row/column is reported at once."""
    return sample_frame_schema(metals).validate(df, lazy=True)
