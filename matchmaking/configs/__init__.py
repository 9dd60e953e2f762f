"""Configuration loading and weights profiles."""

from .loader import load_config, validate_config, get_config_value
from .weights import (
    Thresholds,
    ContextRules,
    WeightsProfile,
    DEFAULT_CONTEXT_RULES,
    load_persona_templates,
    build_weights_profile,
    validate_weights_profile,
    export_weights_profile,
    import_weights_profile,
    generate_test_variants,
    load_weights_profiles,
    get_weights_profile,
)

__all__ = [
    "load_config",
    "validate_config",
    "get_config_value",
    "Thresholds",
    "ContextRules",
    "WeightsProfile",
    "DEFAULT_CONTEXT_RULES",
    "load_persona_templates",
    "build_weights_profile",
    "validate_weights_profile",
    "export_weights_profile",
    "import_weights_profile",
    "generate_test_variants",
    "load_weights_profiles",
    "get_weights_profile",
]
