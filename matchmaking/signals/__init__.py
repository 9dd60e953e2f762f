"""Signal records, field calculators and the signal engine."""

from .schema import SignalKind, Signal, Measurement, PairEvaluation
from .field_signals import FieldCalculator, ScoringContext, FIELD_CALCULATORS
from .context_boosts import CONTEXT_BOOST_CALCULATORS
from .engine import SignalEngine
from .reasons import generate_reasons

__all__ = [
    "SignalKind",
    "Signal",
    "Measurement",
    "PairEvaluation",
    "FieldCalculator",
    "ScoringContext",
    "FIELD_CALCULATORS",
    "CONTEXT_BOOST_CALCULATORS",
    "SignalEngine",
    "generate_reasons",
]
