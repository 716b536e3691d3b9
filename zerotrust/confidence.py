"""
ZeroTrust Oracle - Confidence Logic
===================================
"""

from typing import List, Mapping

from .config import (
    BOUNDARY_SPAN,
    CONFIDENCE_BOUNDARIES,
    DEGRADED_PENALTY_PER_SCORER,
    MAX_DEGRADED_PENALTY,
)
from .schemas import ScoreResult


def calculate_base_confidence(consensus_score: float, scores: Mapping[str, ScoreResult]) -> float:
    """Agreement between scorers blended with distance from the nearest action boundary."""
    normalized = [r.score / 100 for r in scores.values()]

    if len(normalized) > 1:
        mean_score = sum(normalized) / len(normalized)
        variance = sum((s - mean_score) ** 2 for s in normalized) / len(normalized)
        agreement_confidence = 1.0 - min(1.0, variance * 4)
    else:
        agreement_confidence = 0.7

    position = consensus_score / 100
    min_boundary_distance = min(abs(position - b) for b in CONFIDENCE_BOUNDARIES)
    boundary_confidence = min(1.0, min_boundary_distance / BOUNDARY_SPAN)

    return round((agreement_confidence * 0.6) + (boundary_confidence * 0.4), 4)


def calculate_degraded_penalty(degraded: List[str]) -> float:
    return round(min(MAX_DEGRADED_PENALTY, len(degraded) * DEGRADED_PENALTY_PER_SCORER), 4)


def calculate_confidence(
    consensus_score: float,
    scores: Mapping[str, ScoreResult],
    degraded: List[str],
) -> float:
    base_confidence = calculate_base_confidence(consensus_score, scores)
    penalty = calculate_degraded_penalty(degraded)
    return round(max(0.0, min(1.0, base_confidence * (1.0 - penalty))), 4)
