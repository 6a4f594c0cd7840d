"""Tests for the readiness aggregator and its override rules."""

from __future__ import annotations

import pytest

from defect_intel.readiness import (
    DIMENSIONS,
    DimensionScore,
    Signal,
    SignalKind,
    calculate_readiness,
    classify_signal,
    parse_dimensions,
)
from defect_intel.readiness.aggregator import readiness_for, risk_level_for

HTTPS = Signal(severity="CRITICAL", message="Non-HTTPS protocol detected.")
CSP = Signal(severity="HIGH", message="Missing Content Security Policy (CSP).")
STRESS = Signal(severity="HIGH", message="Concurrency stress test failure.")


def dims(score: int = 100, **overrides: DimensionScore) -> dict[str, DimensionScore]:
    out = {name: DimensionScore(score=score) for name in DIMENSIONS}
    out.update(overrides)
    return out


class TestSignals:
    def test_tagged_from_message(self):
        assert HTTPS.kind == SignalKind.HTTPS_MISSING
        assert CSP.kind == SignalKind.CSP_MISSING
        assert STRESS.kind == SignalKind.STRESS_TEST_FAILURE
        assert classify_signal("HSTS not enabled.") == SignalKind.OTHER

    def test_explicit_kind_wins(self):
        s = Signal(message="Transport is plaintext", kind=SignalKind.HTTPS_MISSING)
        assert s.kind == SignalKind.HTTPS_MISSING

    def test_accepts_msg_key(self):
        s = Signal.model_validate({"severity": "HIGH", "msg": "Missing Content Security Policy (CSP)."})
        assert s.message.startswith("Missing")
        assert s.kind == SignalKind.CSP_MISSING
        assert s.model_dump(by_alias=True)["msg"] == s.message


class TestBands:
    @pytest.mark.parametrize("score,level", [(49, "CRITICAL"), (50, "HIGH"), (74, "HIGH"),
                                             (75, "MEDIUM"), (89, "MEDIUM"), (90, "LOW")])
    def test_risk_levels(self, score, level):
        assert risk_level_for(score) == level

    def test_readiness_labels(self):
        assert readiness_for(40, "CRITICAL") == "CRITICAL FAILURE"
        assert readiness_for(60, "HIGH") == "HIGH RISK"
        assert readiness_for(85, "MEDIUM") == "NEEDS IMPROVEMENT"
        assert readiness_for(95, "LOW") == "READY"


class TestCalculateReadiness:
    def test_all_perfect(self):
        r = calculate_readiness(dims(100))
        assert r.overall_score == 100
        assert r.risk_level == "LOW"
        assert r.readiness == "READY"
        assert r.regression_prob == 0
        assert r.overrides == []
        assert r.scalability_forecast == "HIGH"

    def test_mean_rounds_half_up(self):
        d = dims(90, security=DimensionScore(score=70), codeQuality=DimensionScore(score=65),
                 reliability=DimensionScore(score=80), devOps=DimensionScore(score=100))
        # 585 / 7 = 83.57
        assert calculate_readiness(d).overall_score == 84

    def test_missing_dimensions_are_neutral(self):
        r = calculate_readiness({"performance": DimensionScore(score=30)})
        # (30 + 6*100) / 7 = 90
        assert r.overall_score == 90
        assert set(r.dimensions) == set(DIMENSIONS)

    def test_no_dimensions_at_all(self):
        r = calculate_readiness(None)
        assert r.overall_score == 100
        assert r.readiness == "READY"

    def test_https_clamps_overall_to_40(self):
        r = calculate_readiness(dims(70, security=DimensionScore(score=70, signals=[HTTPS])))
        assert r.overall_score == 40
        assert len(r.overrides) == 1
        assert "HTTPS" in r.overrides[0]

    def test_https_below_cap_is_not_an_override(self):
        r = calculate_readiness(dims(30, security=DimensionScore(score=30, signals=[HTTPS])))
        assert r.overall_score == 30
        assert r.overrides == []

    def test_https_and_stress_interact(self):
        """The HTTPS clamp lands below the stress cap, so only one override applies
        and the 40 score pushes risk to CRITICAL."""
        d = dims(
            70,
            security=DimensionScore(score=70, signals=[HTTPS]),
            reliability=DimensionScore(score=70, signals=[STRESS]),
        )
        r = calculate_readiness(d)
        assert r.overall_score == 40
        assert len(r.overrides) == 1
        assert "HTTPS" in r.overrides[0]
        assert r.risk_level == "CRITICAL"
        assert r.readiness == "CRITICAL FAILURE"
        # (100 - 40) * 1.2 + 30 = 102
        assert r.regression_prob == 99

    def test_stress_clamps_overall_to_60(self):
        r = calculate_readiness(dims(90, reliability=DimensionScore(score=90, signals=[STRESS])))
        assert r.overall_score == 60
        assert r.risk_level == "HIGH"
        assert r.readiness == "HIGH RISK"
        assert r.regression_prob == 48
        assert r.overrides == ["Readiness lowered to Growth stage due to reliability stress failures."]

    def test_csp_clamps_security_not_overall(self):
        d = dims(
            80,
            security=DimensionScore(score=80, signals=[CSP]),
            codeQuality=DimensionScore(score=65),
        )
        r = calculate_readiness(d)
        # (80*6 + 65) / 7 = 77.86
        assert r.overall_score == 78
        assert r.dimensions["security"].score == 50
        assert len(r.overrides) == 1
        assert "CSP" in r.overrides[0]

    def test_csp_needs_low_code_quality(self):
        d = dims(80, security=DimensionScore(score=80, signals=[CSP]), codeQuality=DimensionScore(score=70))
        r = calculate_readiness(d)
        assert r.dimensions["security"].score == 80
        assert r.overrides == []

    def test_inputs_not_mutated(self):
        security = DimensionScore(score=80, signals=[CSP])
        d = dims(80, security=security, codeQuality=DimensionScore(score=60))
        calculate_readiness(d)
        assert security.score == 80

    def test_all_overrides_compound_in_order(self):
        d = dims(
            90,
            security=DimensionScore(score=90, signals=[HTTPS, CSP]),
            codeQuality=DimensionScore(score=60),
            reliability=DimensionScore(score=90, signals=[STRESS]),
        )
        r = calculate_readiness(d)
        assert r.overall_score == 40
        assert [("HTTPS" in o, "CSP" in o) for o in r.overrides] == [(True, False), (False, True)]

    def test_critical_defect_count_informational(self):
        from defect_intel.scoring import build_registry
        r = calculate_readiness(dims(100), build_registry([]))
        assert r.critical_defects == 0
        assert r.overall_score == 100

    def test_serializes_camel_case(self):
        data = calculate_readiness(dims(100)).model_dump(by_alias=True)
        for key in ("overallScore", "riskLevel", "readiness", "overrides", "regressionProb"):
            assert key in data


class TestParseDimensions:
    def test_invalid_entry_becomes_neutral(self):
        parsed = parse_dimensions({
            "security": {"score": "high", "signals": []},
            "performance": {"score": 40, "signals": [{"msg": "Slow", "severity": "HIGH"}]},
            "unknownDimension": {"score": 0},
        })
        assert "security" not in parsed
        assert parsed["performance"].score == 40
        assert "unknownDimension" not in parsed

    def test_none(self):
        assert parse_dimensions(None) == {}

    def test_out_of_range_and_fractional_scores_clamped(self):
        parsed = parse_dimensions({
            "security": {"score": 101},
            "performance": {"score": 72.5},
            "reliability": {"score": -3},
        })
        assert parsed["security"].score == 100
        assert parsed["performance"].score == 73
        assert parsed["reliability"].score == 0

    def test_clamped_scores_feed_the_mean(self):
        parsed = parse_dimensions({name: {"score": 72.5} for name in DIMENSIONS})
        assert calculate_readiness(parsed).overall_score == 73

    def test_maturity(self):
        assert DimensionScore(score=59).maturity == "EARLY_STAGE"
        assert DimensionScore(score=60).maturity == "GROWTH"
        assert DimensionScore(score=85).maturity == "ENTERPRISE"
