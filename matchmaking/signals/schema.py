"""
Signal records produced by the signal engine.

A Signal is one scored comparison between the same logical field of two
profiles. Signals are immutable; the contribution is fixed at creation as
score * weight.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, NamedTuple


class SignalKind(Enum):
    """Comparison algorithm that produced a signal."""
    DATE_PROXIMITY = "date_proximity"
    LIST_JACCARD = "list_jaccard"
    BIPARTITE_MATCHING = "bipartite_matching"
    NUMERIC_ZEXP = "numeric_zexp"
    STRING_LEVENSHTEIN = "string_levenshtein"
    TEXT_TFIDF = "text_tfidf"
    CONTEXT_BOOST = "context_boost"


class Measurement(NamedTuple):
    """Raw output of a field calculator, before weighting."""
    score: float
    value_a: Any
    value_b: Any
    explanation: str


def _serializable(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_serializable(v) for v in value]
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


@dataclass(frozen=True)
class Signal:
    """
    One weighted comparison of two profiles.

    Attributes:
        kind: Comparison algorithm
        field: Logical field name (foundedYear, capabilities_needs, ...)
        score: Similarity in (0, 100]
        weight: Weight copied from the weights profile
        contribution: score * weight
        value_a: Raw value compared on profile A
        value_b: Raw value compared on profile B
        explanation: Human-readable rationale
    """
    kind: SignalKind
    field: str
    score: float
    weight: float
    contribution: float
    value_a: Any
    value_b: Any
    explanation: str

    @classmethod
    def create(cls, kind: SignalKind, field_name: str, score: float, weight: float,
               value_a: Any, value_b: Any, explanation: str) -> "Signal":
        """Create a signal, deriving the contribution from score and weight."""
        return cls(
            kind=kind,
            field=field_name,
            score=score,
            weight=weight,
            contribution=score * weight,
            value_a=value_a,
            value_b=value_b,
            explanation=explanation,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly record with camelCase keys."""
        return {
            "type": self.kind.value,
            "field": self.field,
            "score": self.score,
            "weight": self.weight,
            "contribution": self.contribution,
            "valueA": _serializable(self.value_a),
            "valueB": _serializable(self.value_b),
            "explanation": self.explanation,
        }


@dataclass
class PairEvaluation:
    """
    Signals for one profile pair plus the number of comparable fields.

    A field is comparable when both profiles carry data for it, whether or
    not it ended up producing a signal.
    """
    signals: List[Signal] = field(default_factory=list)
    comparable_fields: int = 0

    @property
    def emitted(self) -> int:
        return len(self.signals)
