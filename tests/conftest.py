"""
Pytest configuration and fixtures.

Provides two realistic company profiles (a mobile game studio and a mobile
publisher), a weights profile that weights every signal field, and a fresh
SignalEngine per test.
"""

import pytest

from matchmaking.configs.weights import ContextRules, Thresholds, WeightsProfile
from matchmaking.profiles.schema import Profile
from matchmaking.signals.engine import SignalEngine


COMPANY_A = {
    "id": "company-a",
    "name": "GameStudio Alpha",
    "description": "Independent game development studio",
    "country": "United States",
    "city": "San Francisco",
    "type": "game_developer",
    "size": "small",
    "stage": "growth",
    "industry": ["gaming", "mobile"],
    "platforms": ["mobile", "ios"],
    "technologies": ["unity", "c#"],
    "markets": ["b2c", "casual"],
    "capabilities": ["game development", "mobile optimization"],
    "needs": ["publishing", "marketing"],
    "fundingStage": "seed",
    "employees": 15,
    "foundedYear": 2020,
    "revenue": 500000,
    "lastFundingAmount": 2000000,
    "lastFundingDate": "2023-01-15T00:00:00Z",
    "pitch": "We create engaging mobile games for casual players.",
    "lookingFor": "Publisher for our puzzle game series.",
    "source": "manual",
}

COMPANY_B = {
    "id": "company-b",
    "name": "MobilePublisher Corp",
    "description": "Mobile game publisher and distributor",
    "country": "United States",
    "city": "Los Angeles",
    "type": "publisher",
    "size": "medium",
    "stage": "mature",
    "industry": ["gaming", "publishing"],
    "platforms": ["mobile", "android"],
    "technologies": ["analytics", "monetization"],
    "markets": ["b2c", "premium"],
    "capabilities": ["publishing", "marketing"],
    "needs": ["game content", "developers"],
    "fundingStage": "series_a",
    "employees": 50,
    "foundedYear": 2018,
    "revenue": 5000000,
    "lastFundingAmount": 10000000,
    "lastFundingDate": "2022-06-20T00:00:00Z",
    "pitch": "Leading mobile game publisher with global reach.",
    "lookingFor": "High-quality mobile games for our platform.",
    "source": "manual",
}

TEST_WEIGHTS = {
    "foundedYear": 50,
    "lastFundingDate": 60,
    "industry": 80,
    "platforms": 70,
    "technologies": 60,
    "markets": 75,
    "capabilities_needs": 85,
    "size_compatibility": 65,
    "funding_stage_alignment": 70,
    "revenue": 55,
    "employees": 50,
    "lastFundingAmount": 40,
    "company_name": 10,
    "location_proximity": 35,
    "pitch": 60,
    "lookingFor": 70,
    "description": 45,
    "platform_context_boost": 20,
    "market_context_boost": 25,
    "stage_context_boost": 20,
}


@pytest.fixture
def company_a() -> Profile:
    return Profile.from_dict(COMPANY_A)


@pytest.fixture
def company_b() -> Profile:
    return Profile.from_dict(COMPANY_B)


@pytest.fixture
def make_profile():
    """Build a profile from company B's record with overrides (camelCase or snake_case keys)."""
    def _make(base=None, **overrides):
        record = dict(base or COMPANY_B)
        record.update(overrides)
        return Profile.from_dict(record)
    return _make


@pytest.fixture
def test_weights() -> WeightsProfile:
    return WeightsProfile(
        id="test-profile",
        name="Test Profile",
        description="Test weights profile",
        persona="general",
        weights=dict(TEST_WEIGHTS),
        thresholds=Thresholds(minimum_overall_score=40, minimum_confidence=30, maximum_results=100),
        context_rules=ContextRules(
            platform_boosts={"mobile": 1.2, "pc": 1.1},
            market_synergies={"b2b": {"b2b": 1.0, "b2c": 0.7}},
            stage_compatibility={"growth": {"growth": 1.0, "mature": 0.8}},
        ),
        is_default=False,
    )


@pytest.fixture
def engine() -> SignalEngine:
    engine = SignalEngine()
    yield engine
    engine.clear_caches()
