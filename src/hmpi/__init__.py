"""
HMPI - Heavy Metal Pollution Indices for groundwater samples

Stateless computation of contamination factors (CF), the Heavy Metal
Pollution Index (HPI), the Heavy Metal Evaluation Index (HEI), the Metal
Pollution Index (MPI) and the Pollution Load Index (PLI), plus an HPI-based
water-quality classification.

Modules:
- standards: metal identifiers and regulatory limits
- indices: per-panel index formulas
- classify: HPI classification bands
- evaluate: per-sample evaluation and batch orchestration
- frame / validators: pandas adapters and pandera schema
"""

from .errors import (
    PollutionIndexError, SampleError, UnknownMetalError,
    InvalidConcentrationError, InsufficientDataError, InvalidIndexError
)
from .standards import (
    Metal, StandardsEntry, StandardsTable, WHO_STANDARDS,
    DEFAULT_STANDARDS, build_standards_table
)
from .indices import (
    contamination_factors, heavy_metal_pollution_index,
    heavy_metal_evaluation_index, metal_pollution_index,
    pollution_load_index, geometric_mean, exceeding_metals
)
from .classify import RiskLevel, ClassificationBand, DEFAULT_BANDS, classify
from .config import EngineConfig, DEFAULT_CONFIG
from .evaluate import (
    Sample, EvaluationResult, SampleOutcome,
    evaluate, evaluate_outcome, evaluate_all
)
from .frame import samples_from_frame, outcomes_to_frame, summarize_outcomes
from .validators import sample_frame_schema, validate_sample_frame

__all__ = [
    # Errors
    "PollutionIndexError", "SampleError", "UnknownMetalError",
    "InvalidConcentrationError", "InsufficientDataError", "InvalidIndexError",

    # Standards
    "Metal", "StandardsEntry", "StandardsTable", "WHO_STANDARDS",
    "DEFAULT_STANDARDS", "build_standards_table",

    # Indices
    "contamination_factors", "heavy_metal_pollution_index",
    "heavy_metal_evaluation_index", "metal_pollution_index",
    "pollution_load_index", "geometric_mean", "exceeding_metals",

    # Classification
    "RiskLevel", "ClassificationBand", "DEFAULT_BANDS", "classify",

    # Evaluation
    "EngineConfig", "DEFAULT_CONFIG",
    "Sample", "EvaluationResult", "SampleOutcome",
    "evaluate", "evaluate_outcome", "evaluate_all",

    # pandas / pandera
    "samples_from_frame", "outcomes_to_frame", "summarize_outcomes",
    "sample_frame_schema", "validate_sample_frame",
]

__version__ = "0.1.0"
