"""
Command line runner for the compatibility scoring engine.

Usage:
    python -m matchmaking.run --profiles profiles.csv --persona investor
    python -m matchmaking.run --profiles profiles.json --source company-a --output matches.json

The runner performs the following steps:
1. Load configuration (optional) and profiles
2. Build the weights profile for the persona
3. Fit corpus statistics (TF-IDF, numeric scales)
4. Rank one source against the pool, or all pairs
5. Report the score distribution and write results as JSON
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from .configs.loader import load_config, validate_config, get_config_value
from .configs.weights import DEFAULT_PERSONA, get_weights_profile, validate_weights_profile
from .evaluation.metrics import create_ranking_report
from .profiles.loaders import load_profiles
from .ranking.aggregator import JitterPolicy, Ranker
from .signals.engine import SignalEngine

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def setup_logging(log_level: str) -> None:
    """Configure logging level from config."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.getLogger().setLevel(level)


def run_matching(
    profiles_path: str,
    persona: str = DEFAULT_PERSONA,
    config_path: Optional[str] = None,
    weights_path: Optional[str] = None,
    source_id: Optional[str] = None,
    max_pairs: Optional[int] = None,
    jitter: Optional[float] = None,
    seed: Optional[int] = None,
    output_path: Optional[str] = None,
    log_level: Optional[str] = None
) -> Dict[str, Any]:
    """
    Rank profile pairs and return the results.

    Args:
        profiles_path: CSV / JSON / YAML file with profiles
        persona: Persona whose weights profile is used
        config_path: Optional YAML config (engine, ranking, weights_profiles)
        weights_path: Optional file with weights_profiles (overrides config)
        source_id: Rank this profile against the others instead of all pairs
        max_pairs: Cap on scored pairs in all-pairs mode
        jitter: Ranking jitter amount (overrides config)
        seed: Seed for jitter and pair sampling (overrides config)
        output_path: Write the JSON result here
        log_level: Logging level (overrides config)

    Returns:
        Dictionary with the weights profile, results and report

    Raises:
        ValueError: If the configuration or weights profile is invalid, or
            source_id is not in the pool
    """
    config: Dict[str, Any] = {}
    if config_path:
        config = load_config(config_path)
        issues = validate_config(config)
        for issue in issues:
            logger.warning(f"Config: {issue}")
        if weights_path is None and config.get("weights_profiles"):
            weights_path = config_path
    setup_logging(log_level or get_config_value(config, "logging.level", "INFO"))

    # =========================================================================
    # 1. Load profiles and weights
    # =========================================================================
    profiles = load_profiles(profiles_path)
    if len(profiles) < 2:
        raise ValueError(f"Need at least two profiles to rank, got {len(profiles)}")

    weights = get_weights_profile(persona, weights_path)
    issues = validate_weights_profile(weights)
    if issues:
        raise ValueError(f"Invalid weights profile '{weights.name}': {', '.join(issues)}")
    logger.info(f"Using weights profile '{weights.name}' ({weights.persona})")

    # =========================================================================
    # 2. Score
    # =========================================================================
    engine = SignalEngine.from_config(config)
    engine.fit_corpus(profiles)

    jitter_policy = JitterPolicy.from_config(config)
    if jitter is not None:
        jitter_policy.amount = jitter
    if seed is not None:
        jitter_policy.seed = seed

    ranker = Ranker(
        engine=engine,
        weights=weights,
        jitter=jitter_policy,
        max_workers=get_config_value(config, "ranking.max_workers", 4),
        top_reasons=get_config_value(config, "ranking.top_reasons", 3),
    )

    if source_id is not None:
        by_id = {p.id: p for p in profiles}
        if source_id not in by_id:
            raise ValueError(f"Source profile not found: {source_id}")
        results = ranker.rank(by_id[source_id], profiles)
    else:
        results = ranker.rank_all_pairs(profiles, max_pairs=max_pairs, random_seed=jitter_policy.seed)

    # =========================================================================
    # 3. Report
    # =========================================================================
    report = create_ranking_report(weights.name, weights.persona, results)
    logger.info("\n" + report.summary())
    logger.info(f"Similarity cache: {engine.cache.stats().to_dict()}")

    output = {
        "weightsProfile": weights.name,
        "persona": weights.persona,
        "source": source_id,
        "results": [r.to_dict() for r in results],
        "report": report.to_dict(),
    }

    if output_path:
        with open(output_path, "w") as f:
            json.dump(output, f, indent=2)
        logger.info(f"Wrote {len(results)} results to {output_path}")

    return output


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the runner."""
    parser = argparse.ArgumentParser(
        description="Rank organizational profiles for networking introductions"
    )
    parser.add_argument(
        "--profiles",
        type=str,
        required=True,
        help="Path to profiles file (.csv, .json, .yaml)"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--weights-file",
        type=str,
        default=None,
        help="YAML/JSON file with weights_profiles (defaults to packaged templates)"
    )
    parser.add_argument(
        "--persona",
        type=str,
        default=DEFAULT_PERSONA,
        help="Persona of the weights profile to use"
    )
    parser.add_argument(
        "--source",
        type=str,
        default=None,
        help="Rank this profile id against the pool (default: all pairs)"
    )
    parser.add_argument(
        "--max-pairs",
        type=int,
        default=None,
        help="Maximum number of pairs to score in all-pairs mode"
    )
    parser.add_argument(
        "--jitter",
        type=float,
        default=None,
        help="Ranking jitter amount (0 for a deterministic order)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for jitter and pair sampling"
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write results as JSON to this file (default: print)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (overrides config)"
    )

    args = parser.parse_args(argv)

    try:
        output = run_matching(
            args.profiles,
            persona=args.persona,
            config_path=args.config,
            weights_path=args.weights_file,
            source_id=args.source,
            max_pairs=args.max_pairs,
            jitter=args.jitter,
            seed=args.seed,
            output_path=args.output,
            log_level=args.log_level,
        )
    except Exception as e:
        logger.exception(f"Matching failed with error: {e}")
        return 1

    if not args.output:
        print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
