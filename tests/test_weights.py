"""Tests for weights profiles: templates, merging, validation, import/export and variants."""

import json

import pytest
import yaml

from matchmaking.configs.weights import (
    ContextRules,
    Thresholds,
    WeightsProfile,
    build_weights_profile,
    export_weights_profile,
    generate_test_variants,
    get_weights_profile,
    import_weights_profile,
    load_persona_templates,
    load_weights_profiles,
    validate_weights_profile,
)

SIGNAL_FIELDS = {
    "foundedYear", "lastFundingDate", "industry", "platforms", "technologies", "markets",
    "capabilities_needs", "employees", "revenue", "lastFundingAmount", "size_compatibility",
    "funding_stage_alignment", "company_name", "location_proximity", "pitch", "description",
    "lookingFor", "platform_context_boost", "market_context_boost", "stage_context_boost",
}


class TestPersonaTemplates:

    def test_packaged_personas(self):
        templates = load_persona_templates()

        assert set(templates) == {"general", "investor", "publisher", "developer", "service_provider"}

    def test_templates_weight_every_signal_field(self):
        for persona, template in load_persona_templates().items():
            assert set(template["weights"]) == SIGNAL_FIELDS, persona

    def test_templates_are_copies(self):
        load_persona_templates()["general"]["weights"]["pitch"] = 0

        assert load_persona_templates()["general"]["weights"]["pitch"] == 60


class TestBuildWeightsProfile:

    def test_requires_name_and_persona(self):
        with pytest.raises(ValueError, match="Name and persona are required"):
            build_weights_profile({"name": "No persona"})

    def test_merges_over_template_and_defaults(self):
        profile = build_weights_profile({
            "name": "Custom",
            "persona": "investor",
            "weights": {"pitch": 5},
            "thresholds": {"maximumResults": 20},
            "contextRules": {"platformBoosts": {"Switch": 1.5}},
        })

        assert profile.weight_for("pitch") == 5
        assert profile.weight_for("funding_stage_alignment") == 95
        assert profile.thresholds.maximum_results == 20
        assert profile.thresholds.minimum_overall_score == 45
        assert profile.context_rules.platform_boost("switch") == 1.5
        assert profile.context_rules.platform_boost("vr") == 1.4

    def test_unknown_persona_uses_general_template(self):
        profile = build_weights_profile({"name": "Press", "persona": "media"})

        assert profile.persona == "media"
        assert profile.weight_for("capabilities_needs") == 85

    def test_default_tables(self):
        profile = build_weights_profile({"name": "Defaults", "persona": "general"})

        assert profile.thresholds == Thresholds(40, 30, 100)
        assert profile.context_rules.market_synergy("b2c", "b2b") == 0.7
        assert profile.context_rules.stage_compatibility_value("mature", "launched") == 0.8


class TestWeightsProfile:

    def test_missing_or_invalid_weight_is_zero(self):
        profile = WeightsProfile(name="p", persona="general", weights={"pitch": "high", "industry": 80})

        assert profile.weight_for("pitch") == 0
        assert profile.weight_for("unknown") == 0
        assert profile.weight_for("industry") == 80

    def test_round_trip_through_dict(self):
        profile = build_weights_profile({"name": "Round", "persona": "publisher", "id": "wp-1"})

        assert WeightsProfile.from_dict(profile.to_dict()) == profile

    def test_save_and_load(self, tmp_path):
        profile = build_weights_profile({"name": "Saved", "persona": "developer"})
        path = tmp_path / "profile.yaml"

        profile.save(str(path))

        assert WeightsProfile.load(str(path)) == profile

    def test_context_rule_lookups(self):
        rules = ContextRules(stage_compatibility={"Growth": {"Mature": 0.9}})

        assert rules.stage_compatibility_value("mature", "growth") == 0.9
        assert rules.stage_compatibility_value("idea", "growth") is None
        assert rules.market_synergy("b2b", "b2c") is None
        assert rules.platform_boost("pc") == 1.0


class TestValidation:

    def test_valid_profile(self):
        assert validate_weights_profile(build_weights_profile({"name": "ok", "persona": "general"})) == []

    def test_amplifying_weights_are_allowed(self):
        profile = build_weights_profile({"name": "amp", "persona": "general", "weights": {"pitch": 250}})

        assert validate_weights_profile(profile) == []

    def test_reports_every_issue(self):
        profile = build_weights_profile({
            "name": "bad",
            "persona": "general",
            "weights": {"pitch": -1, "industry": "lots"},
            "thresholds": {"minimumOverallScore": 120, "minimumConfidence": -5, "maximumResults": 0},
        })

        issues = validate_weights_profile(profile)

        assert len(issues) == 5
        assert any("Maximum results" in issue for issue in issues)


class TestImportExport:

    def test_export_envelope(self):
        profile = build_weights_profile({"name": "Share", "persona": "investor", "id": "wp-9"})

        exported = export_weights_profile(profile)

        assert exported["version"] == "1.0"
        assert "exportedAt" in exported
        assert exported["profile"]["name"] == "Share"
        assert "id" not in exported["profile"]
        json.dumps(exported)

    def test_import_round_trip(self):
        profile = build_weights_profile({"name": "Share", "persona": "investor",
                                         "weights": {"pitch": 12}, "isDefault": True})

        imported = import_weights_profile(export_weights_profile(profile))

        assert imported.name == "Share"
        assert imported.weight_for("pitch") == 12
        assert imported.is_default is False
        assert "(Imported " in imported.description

    @pytest.mark.parametrize("data", [{}, {"profile": {}}, {"profile": {"persona": "general"}}, None])
    def test_import_rejects_invalid_data(self, data):
        with pytest.raises(ValueError, match="Invalid import data format"):
            import_weights_profile(data)


class TestVariants:

    def test_generate_test_variants(self):
        base = build_weights_profile({"name": "Base", "persona": "general", "id": "wp-1", "isDefault": True})

        variants = generate_test_variants(base, [
            {"name": "Text Heavy", "adjustments": {"pitch": 90, "lookingFor": 95}},
            {"name": "No Names", "adjustments": {"company_name": 0}},
        ])

        assert [v.name for v in variants] == ["Base - Text Heavy", "Base - No Names"]
        assert variants[0].weight_for("pitch") == 90
        assert variants[0].weight_for("industry") == base.weight_for("industry")
        assert variants[1].weight_for("company_name") == 0
        assert all(not v.is_default and v.id is None for v in variants)
        assert base.weight_for("pitch") == 60


class TestLoadWeightsProfiles:

    def test_load_and_select_default(self, tmp_path):
        path = tmp_path / "weights.yaml"
        path.write_text(yaml.safe_dump({"weights_profiles": [
            {"name": "Investor A", "persona": "investor"},
            {"name": "Investor B", "persona": "investor", "isDefault": True},
            {"name": "Broken", "persona": "investor", "thresholds": {"maximumResults": 5000}},
            {"persona": "general"},
        ]}))

        profiles = load_weights_profiles(str(path))

        assert [p.name for p in profiles] == ["Investor A", "Investor B"]
        assert get_weights_profile("investor", str(path)).name == "Investor B"

    def test_persona_missing_from_file_falls_back(self, tmp_path):
        path = tmp_path / "weights.yaml"
        path.write_text(yaml.safe_dump({"weights_profiles": [{"name": "Only", "persona": "investor"}]}))

        profile = get_weights_profile("publisher", str(path))

        assert profile.name == "Publisher Focus"
        assert profile.is_default

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_weights_profiles(str(tmp_path / "missing.yaml"))
