"""Tests for platform, market and stage context boosts."""

import pytest

from matchmaking.configs.weights import ContextRules
from matchmaking.signals.schema import SignalKind


def _signal(signals, field_name):
    return next((s for s in signals if s.field == field_name), None)


class TestPlatformBoost:

    def test_boost_scales_overlap(self, engine, company_a, company_b, test_weights):
        """Should multiply the 1/3 platform overlap by the mobile boost."""
        boost = _signal(engine.calculate_signals(company_a, company_b, test_weights), "platform_context_boost")

        assert boost is not None
        assert boost.kind == SignalKind.CONTEXT_BOOST
        assert boost.score == pytest.approx(40.0, abs=0.01)
        assert "mobile" in boost.explanation

    def test_unconfigured_platform_defaults_to_one(self, engine, make_profile, test_weights):
        """Should use a 1.0 multiplier for platforms without a boost."""
        a = make_profile(id="a", platforms=["web", "switch"])
        b = make_profile(id="b", platforms=["web"])

        boost = _signal(engine.calculate_signals(a, b, test_weights), "platform_context_boost")

        assert boost.score == 50

    def test_capped_at_100(self, engine, company_a, test_weights):
        """Should never exceed 100 even with boosts above 1."""
        boost = _signal(engine.calculate_signals(company_a, company_a, test_weights), "platform_context_boost")

        assert boost.score == 100

    def test_no_overlap_no_boost(self, engine, make_profile, test_weights):
        """Should not emit a boost without shared platforms."""
        a = make_profile(id="a", platforms=["pc"])
        b = make_profile(id="b", platforms=["console"])

        evaluation = engine.evaluate(a, b, test_weights)

        assert _signal(evaluation.signals, "platform_context_boost") is None

    def test_rule_keys_are_case_insensitive(self, engine, make_profile, test_weights):
        """Should match configured keys regardless of case."""
        test_weights.context_rules = ContextRules(platform_boosts={"VR": 1.4})
        a = make_profile(id="a", platforms=["vr", "pc"])
        b = make_profile(id="b", platforms=["VR", "mobile"])

        boost = _signal(engine.calculate_signals(a, b, test_weights), "platform_context_boost")

        assert boost.score == pytest.approx(100 / 3 * 1.4, abs=0.01)


class TestMarketBoost:

    def test_default_synergy_without_rules(self, engine, company_a, company_b, test_weights):
        """Should fall back to 1.0 when no market pair is configured."""
        boost = _signal(engine.calculate_signals(company_a, company_b, test_weights), "market_context_boost")

        assert boost is not None
        assert boost.kind == SignalKind.CONTEXT_BOOST
        assert boost.score == pytest.approx(100 / 3, abs=0.01)

    def test_configured_synergy(self, engine, make_profile, test_weights):
        """Should average the configured synergies of all market pairs."""
        a = make_profile(id="a", markets=["b2b"])
        b = make_profile(id="b", markets=["b2b", "b2c"])

        boost = _signal(engine.calculate_signals(a, b, test_weights), "market_context_boost")

        # overlap 1/2, synergies (b2b, b2b)=1.0 and (b2b, b2c)=0.7
        assert boost.score == pytest.approx(50 * 0.85, abs=0.01)

    def test_no_shared_market_no_boost(self, engine, make_profile, test_weights):
        """Should require an actual market overlap."""
        a = make_profile(id="a", markets=["b2b"])
        b = make_profile(id="b", markets=["b2c"])

        assert _signal(engine.calculate_signals(a, b, test_weights), "market_context_boost") is None


class TestStageBoost:

    def test_configured_stage_pair(self, engine, company_a, company_b, test_weights):
        """Should score growth vs mature at the configured 0.8."""
        boost = _signal(engine.calculate_signals(company_a, company_b, test_weights), "stage_context_boost")

        assert boost is not None
        assert boost.kind == SignalKind.CONTEXT_BOOST
        assert boost.score == 80

    def test_lookup_in_both_directions(self, engine, company_a, company_b, test_weights):
        """Should find the pair when the profiles are swapped."""
        boost = _signal(engine.calculate_signals(company_b, company_a, test_weights), "stage_context_boost")

        assert boost.score == 80

    def test_unconfigured_stage_pair(self, engine, make_profile, test_weights):
        """Should not emit or count a stage pair without a rule."""
        a = make_profile(id="a", stage="idea")
        b = make_profile(id="b", stage="launched")

        evaluation = engine.evaluate(a, b, test_weights)

        assert _signal(evaluation.signals, "stage_context_boost") is None

    def test_missing_stage(self, engine, company_a, make_profile, test_weights):
        """Should skip the boost when a stage is missing."""
        company_c = make_profile(stage=None)

        assert _signal(engine.calculate_signals(company_a, company_c, test_weights), "stage_context_boost") is None
