"""
Runtime configuration for the scoring engine.

Reads the YAML run config (engine, ranking, logging, optional
weights_profiles overrides) and reports settings the engine would reject.
"""

import logging
from pathlib import Path
from typing import Dict, Any, List

import yaml

logger = logging.getLogger(__name__)


def load_config(filepath: str) -> Dict[str, Any]:
    """
    Read the run config.

    Raises:
        FileNotFoundError: If the file is missing
        ValueError: If the file holds no YAML document
        yaml.YAMLError: On malformed YAML
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {filepath}")

    logger.info(f"Reading run config from {filepath}")
    with open(path, "r") as f:
        config = yaml.safe_load(f)

    if config is None:
        raise ValueError(f"Configuration file is empty: {filepath}")

    return config


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration and return list of warnings/errors.

    Args:
        config: Configuration dictionary

    Returns:
        List of warning/error messages (empty if valid)
    """
    issues = []

    engine = config.get("engine", {}) or {}
    min_text_length = engine.get("min_text_length", 20)
    if not isinstance(min_text_length, int) or min_text_length < 0:
        issues.append(f"engine.min_text_length must be a non-negative integer, got {min_text_length}")

    cache_entries = engine.get("cache_max_entries", 50000)
    if not isinstance(cache_entries, int) or cache_entries < 1:
        issues.append(f"engine.cache_max_entries must be >= 1, got {cache_entries}")

    temperature = engine.get("numeric_temperature", 1.0)
    if not isinstance(temperature, (int, float)) or temperature <= 0:
        issues.append(f"engine.numeric_temperature must be positive, got {temperature}")

    ranking = config.get("ranking", {}) or {}
    max_workers = ranking.get("max_workers", 4)
    if not isinstance(max_workers, int) or max_workers < 1:
        issues.append(f"ranking.max_workers must be >= 1, got {max_workers}")

    jitter = ranking.get("jitter", 0.0)
    if not isinstance(jitter, (int, float)) or jitter < 0:
        issues.append(f"ranking.jitter must be >= 0, got {jitter}")
    elif jitter > 0 and ranking.get("seed") is None:
        issues.append("ranking.seed is not set; jittered rankings will not be reproducible")

    profiles = config.get("weights_profiles", [])
    if not isinstance(profiles, list):
        issues.append("weights_profiles must be a list")
    else:
        for i, profile in enumerate(profiles):
            if not isinstance(profile, dict):
                issues.append(f"weights_profiles[{i}] must be a mapping")
                continue
            for key in ("name", "persona"):
                if key not in profile:
                    issues.append(f"weights_profiles[{i}] is missing '{key}'")

    return issues


def get_config_value(config: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Look up a dotted key such as "ranking.seed".

    An explicit None in the config is returned as is; default is used only
    when a key along the path is absent.
    """
    node: Any = config
    for key in path.split("."):
        if not isinstance(node, dict) or key not in node:
            return default
        node = node[key]
    return node
