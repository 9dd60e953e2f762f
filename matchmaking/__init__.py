"""
Compatibility Signal Engine

This package scores pairs of organizational profiles (companies, exhibitors,
attendees) for networking recommendations. Every comparison produces a set of
explainable signals which are combined into a single weighted score.

Key Design Decisions:
- Each signal is an independent, stateless comparison of one field pair
- Absent data suppresses a signal instead of producing a zero score
- Weights, thresholds and context rules come from persona weights profiles
- The only shared state is an explicit, lock-protected similarity cache
"""

__version__ = "1.0.0"
