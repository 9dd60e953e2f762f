"""
Weights profiles for compatibility scoring.

A weights profile is the persona-specific configuration that controls how
signals combine into an overall score:

- weights: signal field name -> weight (0-100, larger values amplify)
- thresholds: minimum overall score, minimum confidence, maximum results
- context rules: platform boosts, market synergies, stage compatibility

Profiles are built by layering user data over a persona template over the
built-in defaults. Persona templates ship in weights.yaml next to this module.
"""

import copy
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

TEMPLATES_PATH = Path(__file__).parent / "weights.yaml"
EXPORT_VERSION = "1.0"
DEFAULT_PERSONA = "general"

DEFAULT_THRESHOLDS = {
    "minimum_overall_score": 40.0,
    "minimum_confidence": 30.0,
    "maximum_results": 100,
}

DEFAULT_CONTEXT_RULES = {
    "platform_boosts": {
        "mobile": 1.2,
        "pc": 1.1,
        "console": 1.3,
        "vr": 1.4,
        "web": 1.0,
    },
    "market_synergies": {
        "b2b": {"b2b": 1.0, "b2c": 0.7},
        "b2c": {"b2b": 0.7, "b2c": 1.0},
    },
    "stage_compatibility": {
        "idea": {"idea": 1.0, "prototype": 0.9, "alpha": 0.7},
        "prototype": {"idea": 0.9, "prototype": 1.0, "alpha": 0.9, "beta": 0.8},
        "alpha": {"prototype": 0.9, "alpha": 1.0, "beta": 0.9, "launched": 0.7},
        "beta": {"alpha": 0.9, "beta": 1.0, "launched": 0.9, "growth": 0.8},
        "launched": {"beta": 0.7, "launched": 1.0, "growth": 0.9, "mature": 0.8},
        "growth": {"launched": 0.9, "growth": 1.0, "mature": 0.9},
        "mature": {"growth": 0.9, "mature": 1.0},
    },
}

# Wire-format (camelCase) keys accepted alongside the attribute names
_KEY_ALIASES = {
    "minimumOverallScore": "minimum_overall_score",
    "minimumConfidence": "minimum_confidence",
    "maximumResults": "maximum_results",
    "platformBoosts": "platform_boosts",
    "marketSynergies": "market_synergies",
    "stageCompatibility": "stage_compatibility",
    "contextRules": "context_rules",
    "isDefault": "is_default",
}
_WIRE_KEYS = {v: k for k, v in _KEY_ALIASES.items()}


def _snake_keys(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {_KEY_ALIASES.get(k, k): v for k, v in (data or {}).items()}


def _lower_keys(table: Dict[str, Any]) -> Dict[str, Any]:
    """Lower-case the keys of a (possibly nested) lookup table."""
    result = {}
    for key, value in (table or {}).items():
        if isinstance(value, dict):
            value = _lower_keys(value)
        result[str(key).strip().lower()] = value
    return result


@dataclass
class Thresholds:
    """
    Inclusion thresholds applied by the ranker.

    Attributes:
        minimum_overall_score: Minimum weighted score (0-100)
        minimum_confidence: Minimum confidence (0-100)
        maximum_results: Maximum number of ranked results
    """
    minimum_overall_score: float = 40.0
    minimum_confidence: float = 30.0
    maximum_results: int = 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "minimumOverallScore": self.minimum_overall_score,
            "minimumConfidence": self.minimum_confidence,
            "maximumResults": self.maximum_results,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Thresholds":
        values = {**DEFAULT_THRESHOLDS, **_snake_keys(d)}
        return cls(
            minimum_overall_score=float(values["minimum_overall_score"]),
            minimum_confidence=float(values["minimum_confidence"]),
            maximum_results=int(values["maximum_results"]),
        )


@dataclass
class ContextRules:
    """
    Lookup tables for context boost signals.

    Keys are lower-cased on construction. An absent key means "no boost".
    """
    platform_boosts: Dict[str, float] = field(default_factory=dict)
    market_synergies: Dict[str, Dict[str, float]] = field(default_factory=dict)
    stage_compatibility: Dict[str, Dict[str, float]] = field(default_factory=dict)

    def __post_init__(self):
        self.platform_boosts = _lower_keys(self.platform_boosts)
        self.market_synergies = _lower_keys(self.market_synergies)
        self.stage_compatibility = _lower_keys(self.stage_compatibility)

    def platform_boost(self, platform: str, default: float = 1.0) -> float:
        return float(self.platform_boosts.get(platform.strip().lower(), default))

    def market_synergy(self, market_a: str, market_b: str) -> Optional[float]:
        """Configured synergy for an (a, b) market pair, or None."""
        row = self.market_synergies.get(market_a.strip().lower())
        if row is None:
            return None
        value = row.get(market_b.strip().lower())
        return None if value is None else float(value)

    def stage_compatibility_value(self, stage_a: str, stage_b: str) -> Optional[float]:
        """Configured compatibility of two stages, looked up in both directions."""
        a = stage_a.strip().lower()
        b = stage_b.strip().lower()
        for row_key, col_key in ((a, b), (b, a)):
            value = self.stage_compatibility.get(row_key, {}).get(col_key)
            if value is not None:
                return float(value)
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platformBoosts": dict(self.platform_boosts),
            "marketSynergies": copy.deepcopy(self.market_synergies),
            "stageCompatibility": copy.deepcopy(self.stage_compatibility),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ContextRules":
        values = _snake_keys(d)
        return cls(
            platform_boosts=values.get("platform_boosts", {}),
            market_synergies=values.get("market_synergies", {}),
            stage_compatibility=values.get("stage_compatibility", {}),
        )


@dataclass
class WeightsProfile:
    """
    Persona-scoped weights, thresholds and context rules.

    Attributes:
        name: Display name
        persona: Persona tag (general, investor, publisher, ...)
        weights: Signal field name -> weight
        thresholds: Ranker thresholds
        context_rules: Context boost tables
        id: Identifier assigned by the configuration store
        description: Free text
        is_default: Whether this is the persona's default profile
    """
    name: str
    persona: str
    weights: Dict[str, float] = field(default_factory=dict)
    thresholds: Thresholds = field(default_factory=Thresholds)
    context_rules: ContextRules = field(default_factory=ContextRules)
    id: Optional[str] = None
    description: str = ""
    is_default: bool = False

    def weight_for(self, signal_field: str) -> float:
        """Weight of a signal field; a missing or non-numeric entry counts as 0."""
        value = self.weights.get(signal_field)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0.0
        return float(value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "persona": self.persona,
            "weights": dict(self.weights),
            "thresholds": self.thresholds.to_dict(),
            "contextRules": self.context_rules.to_dict(),
            "isDefault": self.is_default,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WeightsProfile":
        """Create from a complete record (no template merging)."""
        values = _snake_keys(d)
        return cls(
            id=values.get("id"),
            name=values["name"],
            persona=values["persona"],
            description=values.get("description") or "",
            weights=dict(values.get("weights") or {}),
            thresholds=Thresholds.from_dict(values.get("thresholds") or {}),
            context_rules=ContextRules.from_dict(values.get("context_rules") or {}),
            is_default=bool(values.get("is_default", False)),
        )

    def save(self, filepath: str) -> None:
        """Save to YAML file."""
        with open(filepath, "w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)
        logger.info(f"Saved weights profile '{self.name}' to {filepath}")

    @classmethod
    def load(cls, filepath: str) -> "WeightsProfile":
        """Load from a YAML file written by save()."""
        with open(filepath, "r") as f:
            return cls.from_dict(yaml.safe_load(f))


def load_persona_templates(filepath: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
    """
    Load persona templates keyed by persona.

    Args:
        filepath: YAML file with a "weights_profiles" list (default: packaged templates)

    Returns:
        Dictionary persona -> template record (a fresh copy on every call)
    """
    if filepath is None:
        return copy.deepcopy(_packaged_templates())
    return _read_templates(filepath)


@lru_cache(maxsize=1)
def _packaged_templates() -> Dict[str, Dict[str, Any]]:
    return _read_templates(str(TEMPLATES_PATH))


def _read_templates(filepath: str) -> Dict[str, Dict[str, Any]]:
    with open(filepath, "r") as f:
        data = yaml.safe_load(f) or {}
    templates = {}
    for record in data.get("weights_profiles", []):
        persona = record.get("persona")
        if persona and persona not in templates:
            templates[persona] = record
    logger.debug(f"Loaded {len(templates)} persona templates from {filepath}")
    return templates


def build_weights_profile(
    data: Dict[str, Any],
    templates: Optional[Dict[str, Dict[str, Any]]] = None
) -> WeightsProfile:
    """
    Build a complete profile from partial data.

    Layers, lowest first: built-in defaults, the persona template (falling
    back to the general template), then the supplied data. Context rule
    tables are merged table by table.

    Raises:
        ValueError: If name or persona is missing
    """
    values = _snake_keys(data)
    if not values.get("name") or not values.get("persona"):
        raise ValueError("Name and persona are required")

    templates = templates if templates is not None else load_persona_templates()
    persona = values["persona"]
    template = templates.get(persona)
    if template is None:
        logger.info(f"No template for persona '{persona}', using '{DEFAULT_PERSONA}'")
        template = templates.get(DEFAULT_PERSONA, {})
    template = _snake_keys(template)

    weights = {**(template.get("weights") or {}), **(values.get("weights") or {})}
    thresholds = {
        **DEFAULT_THRESHOLDS,
        **_snake_keys(template.get("thresholds")),
        **_snake_keys(values.get("thresholds")),
    }

    template_rules = _snake_keys(template.get("context_rules"))
    data_rules = _snake_keys(values.get("context_rules"))
    context_rules = {
        table: {
            **DEFAULT_CONTEXT_RULES[table],
            **(template_rules.get(table) or {}),
            **(data_rules.get(table) or {}),
        }
        for table in DEFAULT_CONTEXT_RULES
    }

    return WeightsProfile(
        id=values.get("id"),
        name=values["name"],
        persona=persona,
        description=values.get("description") or "",
        weights=weights,
        thresholds=Thresholds.from_dict(thresholds),
        context_rules=ContextRules.from_dict(context_rules),
        is_default=bool(values.get("is_default", False)),
    )


def validate_weights_profile(profile: WeightsProfile) -> List[str]:
    """
    Validate a weights profile and return a list of issues (empty if valid).

    Weights above 100 are accepted as amplifiers.
    """
    issues = []

    for key, value in profile.weights.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            issues.append(f"Weight '{key}' must be a number, got {value!r}")
        elif value < 0:
            issues.append(f"Weight '{key}' must not be negative, got {value}")

    thresholds = profile.thresholds
    if not 0 <= thresholds.minimum_overall_score <= 100:
        issues.append("Minimum overall score must be between 0 and 100")
    if not 0 <= thresholds.minimum_confidence <= 100:
        issues.append("Minimum confidence must be between 0 and 100")
    if not 1 <= thresholds.maximum_results <= 1000:
        issues.append("Maximum results must be between 1 and 1000")

    for platform, boost in profile.context_rules.platform_boosts.items():
        if not isinstance(boost, (int, float)) or boost < 0:
            issues.append(f"Platform boost '{platform}' must be a non-negative number")

    return issues


def export_weights_profile(profile: WeightsProfile) -> Dict[str, Any]:
    """Export a profile in the versioned backup/sharing envelope."""
    record = profile.to_dict()
    for key in ("id", "isDefault"):
        record.pop(key)
    return {
        "version": EXPORT_VERSION,
        "exportedAt": datetime.now(timezone.utc).isoformat(),
        "profile": record,
    }


def import_weights_profile(
    import_data: Dict[str, Any],
    templates: Optional[Dict[str, Dict[str, Any]]] = None
) -> WeightsProfile:
    """
    Import a profile from an export envelope.

    Imported profiles are never defaults and carry an import note in their
    description.

    Raises:
        ValueError: If the envelope has no profile name
    """
    record = import_data.get("profile") if isinstance(import_data, dict) else None
    if not isinstance(record, dict) or not record.get("name"):
        raise ValueError("Invalid import data format")

    record = dict(record)
    note = f"(Imported {datetime.now(timezone.utc).date().isoformat()})"
    record["description"] = f"{record.get('description') or ''} {note}".strip()
    record["isDefault"] = False
    record.pop("id", None)

    return build_weights_profile(record, templates)


def generate_test_variants(
    base: WeightsProfile,
    variations: List[Dict[str, Any]]
) -> List[WeightsProfile]:
    """
    Create A/B test variants of a profile.

    Args:
        base: Profile to derive from
        variations: List of {"name": str, "adjustments": {field: weight}}

    Returns:
        One non-default profile per variation, named "<base> - <variation>"
    """
    variants = []
    for variation in variations:
        variant = WeightsProfile.from_dict(base.to_dict())
        variant.id = None
        variant.name = f"{base.name} - {variation['name']}"
        variant.description = f"A/B test variant: {variation['name']}"
        variant.weights = {**base.weights, **(variation.get("adjustments") or {})}
        variant.is_default = False
        variants.append(variant)
    logger.info(f"Generated {len(variants)} variants of '{base.name}'")
    return variants


def load_weights_profiles(filepath: str) -> List[WeightsProfile]:
    """
    Load and build every profile listed under "weights_profiles" in a YAML
    or JSON file. Invalid profiles are logged and skipped.
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Weights file not found: {filepath}")

    with open(path, "r") as f:
        data = json.load(f) if path.suffix.lower() == ".json" else yaml.safe_load(f)
    if not data:
        raise ValueError(f"Weights file is empty: {filepath}")

    records = data.get("weights_profiles", []) if isinstance(data, dict) else data
    profiles = []
    for record in records:
        try:
            profile = build_weights_profile(record)
        except (ValueError, TypeError) as e:
            logger.warning(f"Skipping weights profile in {filepath}: {e}")
            continue
        issues = validate_weights_profile(profile)
        if issues:
            logger.warning(f"Skipping weights profile '{profile.name}': {', '.join(issues)}")
            continue
        profiles.append(profile)

    logger.info(f"Loaded {len(profiles)} weights profiles from {filepath}")
    return profiles


def get_weights_profile(persona: str = DEFAULT_PERSONA, filepath: Optional[str] = None) -> WeightsProfile:
    """
    Default weights profile for a persona.

    Looks in filepath when given (profiles marked as default first), then in
    the packaged templates; unknown personas fall back to the general template.
    """
    if filepath is not None:
        candidates = [p for p in load_weights_profiles(filepath) if p.persona == persona]
        candidates.sort(key=lambda p: not p.is_default)
        if candidates:
            return candidates[0]
        logger.info(f"No '{persona}' profile in {filepath}, using packaged template")

    templates = load_persona_templates()
    template = templates.get(persona) or templates[DEFAULT_PERSONA]
    return build_weights_profile({**template, "persona": persona, "isDefault": True}, templates)
