"""
Scoring Module
==============

Frame scoring and top-N thumbnail selection.
"""

from smart_thumbnail.scoring.engine import (
    IdealDefaults,
    ScoringEngine,
    ScoringWeights,
    get_top_n,
    score_optimal,
)

__all__ = [
    "IdealDefaults",
    "ScoringEngine",
    "ScoringWeights",
    "get_top_n",
    "score_optimal",
]
