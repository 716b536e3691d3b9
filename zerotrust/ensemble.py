"""
ZeroTrust Oracle - Ensemble Logic
=================================
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .config import (
    CONSENSUS_MONITOR_FLOOR,
    CONSENSUS_THRESHOLDS,
    NEUTRAL_SCORE,
    RISK_LEVEL_THRESHOLDS,
    SCORER_IDS,
    WEIGHT_PROFILES,
    DEFAULT_WEIGHT_PROFILE,
)
from .confidence import calculate_confidence
from .schemas import Action, RiskLevel, ScoreResult, ScorerStatus

ACTION_REASONING: Dict[Action, str] = {
    Action.BLOCK: "Consensus threat score critical, transaction blocked",
    Action.ALERT: "Consensus threat score elevated, human review recommended",
    Action.MONITOR: "Consensus threat score moderate, continued monitoring",
    Action.ALLOW: "Consensus threat score low, no action required",
}


@dataclass(frozen=True)
class ConsensusResult:
    consensus_score: int
    raw_score: float
    action: Action
    reasoning: str
    confidence: float
    risk_level: RiskLevel
    scores: Dict[str, ScoreResult]
    weights: Dict[str, float]
    degraded: List[str] = field(default_factory=list)


def neutral_result(scorer_id: str, reason: str = "Scorer unavailable") -> ScoreResult:
    """Stand-in for a failed or missing scorer: score 50, confidence 0."""
    return ScoreResult(
        scorer_id=scorer_id,
        score=NEUTRAL_SCORE,
        reasoning=f"Neutral default used: {reason}",
        confidence=0.0,
        status=ScorerStatus.DEGRADED,
    )


def resolve_weights(profile: str = DEFAULT_WEIGHT_PROFILE) -> Dict[str, float]:
    """
    Look up a named weight vector over the four scorer ids.

    Raises ValueError for an unknown profile or one that does not sum to 1.
    """
    if profile not in WEIGHT_PROFILES:
        raise ValueError(f"Unknown weight profile '{profile}'")
    weights = dict(WEIGHT_PROFILES[profile])
    if set(weights) != set(SCORER_IDS):
        raise ValueError(f"Weight profile '{profile}' must cover exactly {SCORER_IDS}")
    if not math.isclose(sum(weights.values()), 1.0, abs_tol=1e-9):
        raise ValueError(f"Weight profile '{profile}' does not sum to 1.0")
    return weights


def complete_scores(scores: Mapping[str, Optional[ScoreResult]]) -> Dict[str, ScoreResult]:
    """Return exactly one result per scorer id, filling gaps with the neutral default."""
    completed = {}
    for scorer_id in SCORER_IDS:
        result = scores.get(scorer_id)
        completed[scorer_id] = result if result is not None else neutral_result(scorer_id, "result missing")
    return completed


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_consensus_score(scores: Mapping[str, ScoreResult], weights: Mapping[str, float]) -> float:
    """Weighted mean of the four scorer outputs, in [0, 100]."""
    total = sum(weights[scorer_id] * scores[scorer_id].score for scorer_id in SCORER_IDS)
    return max(0.0, min(100.0, total))


def determine_action(consensus_score: float) -> Action:
    """
    Ordered threshold table:
      > 80 block | > 60 alert | >= 30 monitor | < 30 allow
    """
    if consensus_score > CONSENSUS_THRESHOLDS["block"]:
        return Action.BLOCK
    elif consensus_score > CONSENSUS_THRESHOLDS["alert"]:
        return Action.ALERT
    elif consensus_score >= CONSENSUS_MONITOR_FLOOR:
        return Action.MONITOR
    else:
        return Action.ALLOW


def determine_risk_level(consensus_score: float) -> RiskLevel:
    if consensus_score < RISK_LEVEL_THRESHOLDS["low"][1]:
        return RiskLevel.LOW
    elif consensus_score <= RISK_LEVEL_THRESHOLDS["medium"][1]:
        return RiskLevel.MEDIUM
    elif consensus_score <= RISK_LEVEL_THRESHOLDS["high"][1]:
        return RiskLevel.HIGH
    else:
        return RiskLevel.CRITICAL


def implied_action(result: ScoreResult) -> Action:
    """The action a single scorer would take on its own, using the consensus table."""
    return determine_action(round_half_up(result.score))


def combine(
    scores: Mapping[str, Optional[ScoreResult]],
    weights: Optional[Mapping[str, float]] = None,
) -> ConsensusResult:
    """
    Combine the four scorer outputs into one consensus decision.

    Missing entries are replaced by the neutral default instead of raising.
    """
    weights = dict(weights) if weights is not None else resolve_weights()
    completed = complete_scores(scores)
    degraded = [sid for sid, r in completed.items() if r.status == ScorerStatus.DEGRADED]

    raw = compute_consensus_score(completed, weights)
    consensus_score = round_half_up(raw)
    action = determine_action(consensus_score)
    confidence = calculate_confidence(consensus_score, completed, degraded)

    return ConsensusResult(
        consensus_score=consensus_score,
        raw_score=raw,
        action=action,
        reasoning=ACTION_REASONING[action],
        confidence=confidence,
        risk_level=determine_risk_level(consensus_score),
        scores=completed,
        weights=weights,
        degraded=degraded,
    )
