"""
Per-sample evaluation and batch orchestration.

evaluate() computes CF, HPI, MPI, HEI, PLI and the HPI classification for
one sample. evaluate_all() maps it over a sequence, optionally on a thread
pool, and captures per-sample failures as SampleOutcome items so that one
malformed sample never aborts the batch.
"""
from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from .classify import RiskLevel, classify
from .config import DEFAULT_CONFIG, EngineConfig
from .errors import InsufficientDataError, InvalidConcentrationError, SampleError
from .indices import (
    _contamination_factors,
    _pollution_index,
    exceeding_metals,
    geometric_mean,
    usable_concentrations,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Sample:
    """One groundwater observation. The metal panel is frozen on construction."""

    sample_id: str
    metals: Mapping[str, Any]
    collected_at: Optional[Union[datetime, date, str]] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    depth: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "metals", MappingProxyType(dict(self.metals)))


@dataclass(frozen=True)
class EvaluationResult:
    sample_id: str
    hpi: float
    mpi: float
    hei: float
    pli: float
    cf: Mapping[str, float]
    classification: str
    risk_level: RiskLevel
    exceeding_metals: Tuple[str, ...] = ()
    hpi_alert: bool = False
    alert_metals: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "cf", MappingProxyType(dict(self.cf)))

    def to_dict(self) -> dict:
        return {
            "sample_id": self.sample_id,
            "hpi": self.hpi,
            "mpi": self.mpi,
            "hei": self.hei,
            "pli": self.pli,
            "cf": dict(self.cf),
            "classification": self.classification,
            "risk_level": self.risk_level.value,
            "exceeding_metals": list(self.exceeding_metals),
            "hpi_alert": self.hpi_alert,
            "alert_metals": list(self.alert_metals),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class SampleOutcome:
    """Either a result or the SampleError that prevented one."""

    sample_id: Any
    result: Optional[EvaluationResult] = None
    error: Optional[SampleError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> EvaluationResult:
        """Return the result or re-raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.result


def _check_finite(sample: Sample, values: Mapping[str, float], cf: Mapping[str, float], **indices) -> None:
    """Reject a sample whose readings overflow an uncapped index."""
    for metal, v in cf.items():
        if not math.isfinite(v):
            raise InvalidConcentrationError(metal, values[metal], sample.sample_id,
                                            reason="contamination factor overflows")
    for name, v in indices.items():
        if not math.isfinite(v):
            worst = max(cf, key=cf.get)
            raise InvalidConcentrationError(worst, values[worst], sample.sample_id,
                                            reason=f"{name.upper()} overflows")


def evaluate(sample: Sample, config: EngineConfig = DEFAULT_CONFIG) -> EvaluationResult:
    """
    Evaluate one sample.

    Raises:
        InvalidConcentrationError: a known metal has an invalid concentration.
        InsufficientDataError: no usable metal remains after filtering.
        InvalidIndexError: the computed HPI violates the classifier's domain.
    """
    values, warnings = usable_concentrations(sample.metals, config.standards, sample_id=sample.sample_id)
    for message in warnings:
        logger.warning("Sample %s: %s", sample.sample_id, message)
    if not values:
        raise InsufficientDataError(f"Sample '{sample.sample_id}' has no metals with a usable standard")

    cf = _contamination_factors(values, config.standards, config.cf_ceiling)
    hpi = _pollution_index(values, config.standards, config.qi_ceiling)
    gm = geometric_mean(cf.values())
    hei = sum(cf.values())
    _check_finite(sample, values, cf, hpi=hpi, hei=hei, mpi=gm)

    hpi = round(hpi, config.decimals)
    classification, risk_level = classify(hpi, config.bands)
    hpi_alert = config.hpi_alert_threshold is not None and hpi >= config.hpi_alert_threshold
    limits = dict(config.metal_alert_thresholds)
    alert_metals = tuple(m for m, c in values.items() if m in limits and c > limits[m])

    return EvaluationResult(
        sample_id=sample.sample_id,
        hpi=hpi,
        mpi=round(gm, config.decimals),
        hei=round(hei, config.decimals),
        pli=round(gm, config.decimals),
        cf={m: round(v, config.decimals) for m, v in cf.items()},
        classification=classification,
        risk_level=risk_level,
        exceeding_metals=exceeding_metals(cf),
        hpi_alert=hpi_alert,
        alert_metals=alert_metals,
        warnings=tuple(warnings),
    )


def evaluate_outcome(sample: Sample, config: EngineConfig = DEFAULT_CONFIG) -> SampleOutcome:
    """evaluate() with SampleError captured into the outcome."""
    try:
        return SampleOutcome(sample.sample_id, result=evaluate(sample, config))
    except SampleError as exc:
        logger.info("Sample %s failed: %s", sample.sample_id, exc)
        return SampleOutcome(sample.sample_id, error=exc)


def evaluate_all(
    samples: Iterable[Sample],
    config: EngineConfig = DEFAULT_CONFIG,
    *,
    max_workers: Optional[int] = None,
) -> List[SampleOutcome]:
    """
    Evaluate every sample, preserving input order.

    Args:
        samples: ordered samples
        config: engine configuration shared by all evaluations
        max_workers: thread-pool size; None or 1 evaluates sequentially

    Returns:
        One SampleOutcome per sample, in input order.
    """
    samples = list(samples)
    logger.debug("Evaluating %d samples (max_workers=%s)", len(samples), max_workers)

    if max_workers is None or max_workers <= 1 or len(samples) < 2:
        outcomes = [evaluate_outcome(s, config) for s in samples]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            # map() yields in submission order
            outcomes = list(executor.map(lambda s: evaluate_outcome(s, config), samples))

    n_failed = sum(1 for o in outcomes if not o.ok)
    logger.debug("Evaluated %d samples, %d failed", len(outcomes), n_failed)
    return outcomes
