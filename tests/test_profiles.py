"""Tests for the Profile record, vocabularies and profile loaders."""

import json
import math

import pytest
import yaml

from matchmaking.profiles import CompanySize, FundingStage, Profile, load_profiles


class TestProfile:

    def test_from_dict_accepts_camel_case(self):
        profile = Profile.from_dict({
            "id": "p1",
            "foundedYear": "2019",
            "lookingFor": "Publishing partners",
            "fundingStage": "Series A",
            "lastFundingAmount": "2500000",
            "unknownField": "ignored",
        })

        assert profile.founded_year == 2019
        assert profile.looking_for == "Publishing partners"
        assert profile.funding_stage == "Series A"
        assert profile.last_funding_amount == 2500000.0

    def test_lists_from_delimited_strings(self):
        profile = Profile.from_dict({"id": "p1", "platforms": "mobile; ios | web", "industry": None})

        assert profile.platforms == ("mobile", "ios", "web")
        assert profile.industry == ()

    def test_blanks_and_nan_become_none(self):
        profile = Profile.from_dict({"id": "p1", "name": "  ", "employees": math.nan, "pitch": ""})

        assert profile.name is None
        assert profile.employees is None
        assert profile.pitch is None

    def test_non_numeric_values_are_dropped(self):
        profile = Profile.from_dict({"id": "p1", "revenue": "lots"})

        assert profile.revenue is None

    def test_non_finite_numbers_are_dropped(self):
        profile = Profile.from_dict({
            "id": "p1",
            "employees": "inf",
            "revenue": float("-inf"),
            "lastFundingAmount": "nan",
            "foundedYear": "inf",
        })

        assert profile.employees is None
        assert profile.revenue is None
        assert profile.last_funding_amount is None
        assert profile.founded_year is None

    def test_booleans_are_not_numbers(self):
        profile = Profile.from_dict({"id": "p1", "employees": True, "foundedYear": False})

        assert profile.employees is None
        assert profile.founded_year is None

    def test_missing_id(self):
        with pytest.raises(ValueError):
            Profile.from_dict({"name": "Nameless"})

    def test_to_dict_uses_camel_case(self):
        record = Profile.from_dict({"id": "p1", "lookingFor": "Investors", "platforms": ["pc"]}).to_dict()

        assert record["lookingFor"] == "Investors"
        assert record["platforms"] == ["pc"]
        assert "looking_for" not in record


class TestVocabularies:

    @pytest.mark.parametrize("label,expected", [
        ("small", CompanySize.SMALL),
        ("Startup", CompanySize.SMALL),
        ("SME", CompanySize.MEDIUM),
        ("mid-size", CompanySize.MEDIUM),
        ("Enterprise", CompanySize.ENTERPRISE),
        ("gigantic", None),
        (None, None),
    ])
    def test_company_size(self, label, expected):
        assert CompanySize.parse(label) is expected

    @pytest.mark.parametrize("label,expected", [
        ("Series A", FundingStage.SERIES_A),
        ("pre-seed", FundingStage.PRE_SEED),
        ("Angel", FundingStage.PRE_SEED),
        ("bootstrapped", FundingStage.BOOTSTRAP),
        ("Series D", FundingStage.GROWTH),
        ("public", FundingStage.IPO),
        ("crowdfunding", None),
    ])
    def test_funding_stage(self, label, expected):
        assert FundingStage.parse(label) is expected

    def test_ordinals(self):
        assert CompanySize.MICRO.ordinal == 0
        assert CompanySize.ENTERPRISE.ordinal == 4
        assert FundingStage.SEED.ordinal < FundingStage.SERIES_A.ordinal < FundingStage.IPO.ordinal


class TestLoadProfiles:

    def test_load_csv(self, tmp_path):
        path = tmp_path / "profiles.csv"
        path.write_text(
            "id,name,platforms,employees,foundedYear\n"
            "a,Alpha,mobile;ios,15,2020\n"
            "b,Beta,\"mobile, android\",,2018\n"
            ",Orphan,pc,3,2001\n"
        )

        profiles = load_profiles(str(path))

        assert [p.id for p in profiles] == ["a", "b"]
        assert profiles[0].platforms == ("mobile", "ios")
        assert profiles[0].employees == 15.0
        assert profiles[1].platforms == ("mobile", "android")
        assert profiles[1].employees is None
        assert profiles[1].founded_year == 2018

    def test_csv_row_with_infinite_year_is_kept(self, tmp_path):
        """Should load every row and drop only the unusable value."""
        path = tmp_path / "profiles.csv"
        path.write_text("id,name,foundedYear\na,A,inf\nb,B,2019\n")

        profiles = load_profiles(str(path))

        assert [p.id for p in profiles] == ["a", "b"]
        assert profiles[0].founded_year is None
        assert profiles[1].founded_year == 2019

    def test_load_json_with_profiles_key(self, tmp_path):
        path = tmp_path / "profiles.json"
        path.write_text(json.dumps({"profiles": [{"id": "a"}, {"id": "b", "name": "Beta"}]}))

        profiles = load_profiles(str(path))

        assert len(profiles) == 2
        assert profiles[1].name == "Beta"

    def test_load_yaml_list(self, tmp_path):
        path = tmp_path / "profiles.yaml"
        path.write_text(yaml.safe_dump([{"id": "a", "markets": ["b2b"]}]))

        assert load_profiles(str(path))[0].markets == ("b2b",)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_profiles(str(tmp_path / "nope.csv"))

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "profiles.txt"
        path.write_text("id\na\n")

        with pytest.raises(ValueError):
            load_profiles(str(path))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "profiles.json"
        path.write_text("[]")

        with pytest.raises(ValueError):
            load_profiles(str(path))
