"""
Similarity primitives.

Stateless comparison functions shared by the signal calculators. Every
function returns a raw similarity (usually in [0, 1]) or a distance; scaling
to the 0-100 signal range happens in the calculators.

Primitive Types:
- Set overlap: Jaccard similarity of normalized category lists
- Edit distance: Levenshtein distance / normalized similarity
- Bipartite matching: maximum one-to-one need/capability assignment
- Decay curves: exponential and Gaussian decay of a distance
- Temporal distance: years between two date-like values
"""

import logging
import math
import re
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, Set, Tuple, Union

import numpy as np
from scipy.optimize import linear_sum_assignment

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.25

_WHITESPACE = re.compile(r"\s+")


def normalize_text(value: Optional[str]) -> str:
    """Lower-case and collapse whitespace."""
    if value is None:
        return ""
    return _WHITESPACE.sub(" ", str(value)).strip().lower()


def normalize_terms(values: Iterable[str]) -> Set[str]:
    """Normalize a category list into a set, dropping blanks."""
    terms = (normalize_text(v) for v in values)
    return {t for t in terms if t}


def jaccard_similarity(list_a: Iterable[str], list_b: Iterable[str]) -> float:
    """
    Jaccard similarity of two category lists.

    Comparison is case- and whitespace-insensitive. Two empty lists have
    similarity 0; callers decide whether an empty side should be skipped.

    Returns:
        |A & B| / |A | B| in [0, 1]
    """
    set_a = normalize_terms(list_a)
    set_b = normalize_terms(list_b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def levenshtein_distance(str_a: str, str_b: str) -> int:
    """
    Minimum number of single-character edits turning str_a into str_b.

    Uses the two-row dynamic programming formulation, O(len(a) * len(b)).
    """
    if str_a == str_b:
        return 0
    if not str_a:
        return len(str_b)
    if not str_b:
        return len(str_a)

    # Iterate over the longer string so the rows stay short
    if len(str_a) < len(str_b):
        str_a, str_b = str_b, str_a

    previous = list(range(len(str_b) + 1))
    for i, char_a in enumerate(str_a, start=1):
        current = [i]
        for j, char_b in enumerate(str_b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                previous[j] + 1,        # deletion
                current[j - 1] + 1,     # insertion
                previous[j - 1] + cost  # substitution
            ))
        previous = current
    return previous[-1]


def levenshtein_similarity(str_a: str, str_b: str) -> float:
    """
    Normalized Levenshtein similarity: 1 - distance / max(len(a), len(b)).

    Inputs are normalized first (case, whitespace). Empty input gives 0.
    """
    a = normalize_text(str_a)
    b = normalize_text(str_b)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / max(len(a), len(b))


def terms_match(need: str, capability: str) -> bool:
    """A need is met by a capability when one normalized term contains the other."""
    n = normalize_text(need)
    c = normalize_text(capability)
    if not n or not c:
        return False
    return n in c or c in n


def max_bipartite_matches(
    needs: Iterable[str],
    capabilities: Iterable[str]
) -> List[Tuple[str, str]]:
    """
    Maximum one-to-one assignment of needs to capabilities.

    Builds a 0/1 compatibility matrix (need x capability) and solves the
    assignment problem, so each capability satisfies at most one need.

    Args:
        needs: Needs of one side
        capabilities: Capabilities of the other side

    Returns:
        List of (need, capability) pairs that were matched
    """
    need_list = sorted(normalize_terms(needs))
    capability_list = sorted(normalize_terms(capabilities))
    if not need_list or not capability_list:
        return []

    matrix = np.array([
        [1.0 if terms_match(n, c) else 0.0 for c in capability_list]
        for n in need_list
    ])
    if not matrix.any():
        return []

    rows, cols = linear_sum_assignment(matrix, maximize=True)
    return [
        (need_list[r], capability_list[c])
        for r, c in zip(rows, cols)
        if matrix[r, c] > 0
    ]


def exponential_decay(distance: float, scale: float) -> float:
    """exp(-distance / scale), 1 at distance 0 and approaching 0 for large gaps."""
    if scale <= 0:
        raise ValueError(f"scale must be positive, got {scale}")
    return math.exp(-abs(distance) / scale)


def gaussian_decay(distance: float, sigma: float) -> float:
    """exp(-distance^2 / (2 sigma^2))."""
    if sigma <= 0:
        raise ValueError(f"sigma must be positive, got {sigma}")
    return math.exp(-(distance ** 2) / (2 * sigma ** 2))


def to_datetime(value: Union[str, date, datetime, int, None]) -> Optional[datetime]:
    """
    Parse a date-like value into an aware UTC datetime.

    Integers are read as years (January 1st). ISO strings may end with 'Z'.
    Unparseable values give None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, np.integer)):
        try:
            return datetime(int(value), 1, 1, tzinfo=timezone.utc)
        except ValueError:
            return None

    text = str(value).strip()
    if not text:
        return None
    if text.isdigit() and len(text) == 4:
        return datetime(int(text), 1, 1, tzinfo=timezone.utc)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug(f"Could not parse date value {value!r}")
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def years_between(value_a, value_b) -> Optional[float]:
    """Absolute distance in years between two date-like values (None if either is unparseable)."""
    dt_a = to_datetime(value_a)
    dt_b = to_datetime(value_b)
    if dt_a is None or dt_b is None:
        return None
    return abs((dt_a - dt_b).total_seconds()) / (DAYS_PER_YEAR * 24 * 60 * 60)
