"""
Profile loading functions.

Profiles normally come from the profile store; these loaders read exported
snapshots from CSV, YAML or JSON so the engine can be run offline.
No scoring is done here.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd
import yaml

from .schema import Profile

logger = logging.getLogger(__name__)


def load_profiles(filepath: str, delimiter: str = ",") -> List[Profile]:
    """
    Load profiles from a CSV, YAML or JSON export.

    CSV exports hold one profile per row; list columns (industry, platforms,
    ...) are delimited with ';' or '|'. YAML / JSON exports hold either a
    list of records or a mapping with a "profiles" key.

    Args:
        filepath: Path to the export
        delimiter: Field delimiter for CSV files

    Returns:
        List of Profile records (rows without an id are skipped)

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is empty or has an unsupported extension
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Profiles file not found: {filepath}")

    suffix = path.suffix.lower()
    if suffix == ".csv":
        records = _read_csv_records(path, delimiter)
    elif suffix in (".yaml", ".yml"):
        with open(path, "r") as f:
            records = _unwrap_records(yaml.safe_load(f), filepath)
    elif suffix == ".json":
        with open(path, "r") as f:
            records = _unwrap_records(json.load(f), filepath)
    else:
        raise ValueError(f"Unsupported profiles file type: {suffix}")

    if not records:
        raise ValueError(f"Profiles file is empty: {filepath}")

    profiles = []
    for i, record in enumerate(records):
        try:
            profiles.append(Profile.from_dict(record))
        except ValueError as e:
            logger.warning(f"Skipping record {i} in {filepath}: {e}")

    logger.info(f"Loaded {len(profiles)} profiles from {filepath}")
    return profiles


def _read_csv_records(path: Path, delimiter: str) -> List[Dict[str, Any]]:
    logger.info(f"Loading profiles from {path} (delimiter: {repr(delimiter)})")
    # Keep ids and labels as strings; numeric columns are coerced by Profile
    df = pd.read_csv(path, sep=delimiter, dtype=str, keep_default_na=True)
    if df.empty:
        return []
    df = df.astype(object).where(pd.notna(df), None)
    logger.info(f"Read {len(df)} rows with {len(df.columns)} columns")
    return df.to_dict(orient="records")


def _unwrap_records(data: Any, filepath: str) -> List[Dict[str, Any]]:
    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("profiles", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of profiles in {filepath}")
    return [record for record in data if isinstance(record, dict)]
