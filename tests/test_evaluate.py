import importlib
import logging
import math

import pytest

from hmpi.classify import RiskLevel
from hmpi.config import DEFAULT_CONFIG, EngineConfig
from hmpi.errors import InsufficientDataError, InvalidConcentrationError, InvalidIndexError
from hmpi.evaluate import Sample, SampleOutcome, evaluate, evaluate_all, evaluate_outcome
from hmpi.standards import build_standards_table


def _sample(sample_id="GW-001", **metals):
    return Sample(sample_id=sample_id, metals=metals, latitude=28.6, longitude=77.2, depth=40.0)


def test_reference_scenario():
    config = EngineConfig(standards=build_standards_table({"lead": 0.01, "cadmium": 0.003}))
    result = evaluate(_sample(lead=0.15, cadmium=0.008), config)

    assert dict(result.cf) == {"lead": 15.0, "cadmium": 2.667}
    assert result.hei == pytest.approx(17.667)
    assert result.mpi == pytest.approx(6.325)
    assert result.pli == result.mpi
    assert result.hpi > 100
    assert result.classification == "Unsuitable for Drinking"
    assert result.risk_level is RiskLevel.CRITICAL
    assert result.exceeding_metals == ("lead", "cadmium")
    assert result.warnings == ()


def test_aggregates_use_unrounded_cf():
    # cf = 1/3 each; rounding first would give HEI 0.999
    config = EngineConfig(standards=build_standards_table({"a": 3.0, "b": 3.0, "c": 3.0}))
    result = evaluate(_sample(a=1.0, b=1.0, c=1.0), config)
    assert dict(result.cf) == {"a": 0.333, "b": 0.333, "c": 0.333}
    assert result.hei == 1.0


def test_all_at_standard():
    result = evaluate(_sample(lead=0.01, cadmium=0.003, zinc=3.0))
    assert set(result.cf.values()) == {1.0}
    assert result.hpi == pytest.approx(100.0)
    assert result.risk_level is RiskLevel.HIGH


def test_zero_reading_collapses_geometric_mean():
    result = evaluate(_sample(lead=0.0, zinc=6.0))
    assert result.mpi == 0.0
    assert result.pli == 0.0
    assert result.hei == pytest.approx(2.0)


def test_boundary_through_evaluate():
    result = evaluate(_sample(lead=0.005))
    assert result.hpi == 50.0
    assert result.classification == "Slightly Polluted"
    assert result.risk_level is RiskLevel.MODERATE


def test_unknown_metal_is_ignored_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="hmpi.evaluate"):
        result = evaluate(_sample(lead=0.01, unobtainium=4.0))
    assert list(result.cf) == ["lead"]
    assert result.warnings == ("Ignored unknown metal 'unobtainium'",)
    assert "unobtainium" in caplog.text


def test_no_usable_metal():
    with pytest.raises(InsufficientDataError):
        evaluate(_sample(unobtainium=4.0))
    with pytest.raises(InsufficientDataError):
        evaluate(_sample())


def test_missing_concentration():
    with pytest.raises(InvalidConcentrationError) as exc:
        evaluate(_sample(lead=None))
    assert exc.value.sample_id == "GW-001"


def test_cf_ceiling_configurable():
    assert evaluate(_sample(lead=2.0)).cf["lead"] == 100.0
    uncapped = evaluate(_sample(lead=2.0), DEFAULT_CONFIG.replace(cf_ceiling=None))
    assert uncapped.cf["lead"] == pytest.approx(200.0)


def test_idempotent():
    sample = _sample(lead=0.02, cadmium=0.001, iron=0.5, nickel=0.03)
    assert evaluate(sample).to_dict() == evaluate(sample).to_dict()


def test_sample_is_immutable():
    sample = _sample(lead=0.02)
    with pytest.raises(TypeError):
        sample.metals["lead"] = 1.0
    with pytest.raises(AttributeError):
        sample.sample_id = "other"


def test_sample_panel_is_copied():
    metals = {"lead": 0.02}
    sample = Sample("GW-9", metals)
    metals["lead"] = 9.0
    assert sample.metals["lead"] == 0.02


def test_partial_failure_isolation():
    samples = [
        _sample("A", lead=0.02, cadmium=0.001),
        _sample("B", lead=-0.01, cadmium=0.001),
        _sample("C", lead=0.001),
    ]
    outcomes = evaluate_all(samples)
    assert [o.sample_id for o in outcomes] == ["A", "B", "C"]
    assert outcomes[0].ok and outcomes[2].ok
    assert not outcomes[1].ok
    assert isinstance(outcomes[1].error, InvalidConcentrationError)
    assert outcomes[1].result is None
    with pytest.raises(InvalidConcentrationError):
        outcomes[1].unwrap()
    assert outcomes[0].unwrap().sample_id == "A"


def test_order_preserved_in_parallel():
    samples = [_sample(f"S{i:03d}", lead=0.001 * i, zinc=0.1) for i in range(200)]
    sequential = evaluate_all(samples)
    parallel = evaluate_all(samples, max_workers=8)
    assert [o.sample_id for o in parallel] == [s.sample_id for s in samples]
    assert [o.result.to_dict() for o in parallel] == [o.result.to_dict() for o in sequential]


def test_evaluate_outcome_captures_insufficient_data():
    outcome = evaluate_outcome(_sample("X", unobtainium=1.0))
    assert isinstance(outcome, SampleOutcome)
    assert isinstance(outcome.error, InsufficientDataError)


def test_engine_config_validation():
    with pytest.raises(ValueError):
        EngineConfig(cf_ceiling=0)
    with pytest.raises(ValueError):
        EngineConfig(qi_ceiling=-5)
    with pytest.raises(ValueError):
        EngineConfig(decimals=-1)
    with pytest.raises(TypeError):
        EngineConfig(standards={"lead": 0.01})


def test_to_dict():
    d = evaluate(_sample(lead=0.02)).to_dict()
    assert d["risk_level"] == "Critical"
    assert d["cf"] == {"lead": 2.0}
    assert d["exceeding_metals"] == ["lead"]


def test_uncapped_overflow_is_a_sample_error():
    config = DEFAULT_CONFIG.replace(cf_ceiling=None)
    with pytest.raises(InvalidConcentrationError) as exc:
        evaluate(_sample("A", lead=1e308, zinc=1.0), config)
    assert exc.value.metal == "lead"
    assert exc.value.sample_id == "A"


def test_uncapped_hpi_overflow_is_a_sample_error():
    config = DEFAULT_CONFIG.replace(qi_ceiling=None)
    with pytest.raises(InvalidConcentrationError) as exc:
        evaluate(_sample("A", lead=1e308), config)
    assert "HPI" in str(exc.value)


def test_overflow_does_not_abort_batch():
    config = DEFAULT_CONFIG.replace(cf_ceiling=None, qi_ceiling=None)
    samples = [_sample("A", lead=0.02), _sample("B", lead=1e308), _sample("C", zinc=1.0)]
    outcomes = evaluate_all(samples, config)
    assert [o.ok for o in outcomes] == [True, False, True]
    assert isinstance(outcomes[1].error, InvalidConcentrationError)
    for o in (outcomes[0], outcomes[2]):
        r = o.result
        assert all(math.isfinite(v) for v in (r.hpi, r.mpi, r.hei, r.pli, *r.cf.values()))


@pytest.mark.parametrize("max_workers", [None, 4])
def test_invalid_index_error_propagates_out_of_batch(monkeypatch, max_workers):
    def broken_classify(hpi, bands):
        raise InvalidIndexError(f"HPI must be finite and non-negative, got {-hpi}")

    monkeypatch.setattr(importlib.import_module("hmpi.evaluate"), "classify", broken_classify)
    samples = [_sample("A", lead=0.02), _sample("B", lead=0.01), _sample("C", zinc=1.0)]
    with pytest.raises(InvalidIndexError):
        evaluate_all(samples, max_workers=max_workers)


def test_zero_standard_metal_excluded_with_warning():
    config = EngineConfig(standards=build_standards_table({"lead": 0.01, "iron": 0.0}))
    result = evaluate(_sample(lead=0.02, iron=1.0), config)
    assert list(result.cf) == ["lead"]
    assert result.hei == pytest.approx(2.0)
    assert result.warnings == ("Excluded 'iron': zero standard",)


def test_zero_standard_only_is_insufficient():
    config = EngineConfig(standards=build_standards_table({"lead": 0.01, "iron": 0.0}))
    outcome = evaluate_outcome(_sample("X", iron=1.0), config)
    assert isinstance(outcome.error, InsufficientDataError)


def test_alerts_off_by_default():
    result = evaluate(_sample(lead=0.5))
    assert result.hpi_alert is False
    assert result.alert_metals == ()


def test_hpi_and_metal_alerts():
    config = DEFAULT_CONFIG.replace(
        hpi_alert_threshold=100,
        metal_alert_thresholds={"Lead": 0.01, "cadmium": 0.003},
    )
    assert config.metal_alert_thresholds == (("cadmium", 0.003), ("lead", 0.01))

    flagged = evaluate(_sample(lead=0.05, cadmium=0.001), config)
    assert flagged.hpi >= 100
    assert flagged.hpi_alert is True
    assert flagged.alert_metals == ("lead",)
    assert flagged.to_dict()["alert_metals"] == ["lead"]

    quiet = evaluate(_sample(lead=0.004, cadmium=0.001), config)
    assert quiet.hpi < 100
    assert quiet.hpi_alert is False
    assert quiet.alert_metals == ()


def test_hpi_alert_at_threshold():
    config = DEFAULT_CONFIG.replace(hpi_alert_threshold=50)
    assert evaluate(_sample(lead=0.005), config).hpi_alert is True


def test_alert_threshold_validation():
    with pytest.raises(ValueError):
        EngineConfig(hpi_alert_threshold=-1)
    with pytest.raises(ValueError):
        EngineConfig(metal_alert_thresholds={"unobtainium": 1.0})
    with pytest.raises(ValueError):
        EngineConfig(metal_alert_thresholds={"lead": None})


@pytest.mark.parametrize("decimals", [None, "3", 2.5, True])
def test_decimals_must_be_an_integer(decimals):
    with pytest.raises(ValueError):
        EngineConfig(decimals=decimals)


def test_failed_outcomes_compare_by_error():
    sample = _sample("B", lead=-1.0)
    first = evaluate_outcome(sample)
    second = evaluate_outcome(sample)
    assert first.error is not second.error
    assert first != second
    assert evaluate_outcome(_sample("A", lead=0.02)) == evaluate_outcome(_sample("A", lead=0.02))
