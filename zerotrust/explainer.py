"""
ZeroTrust Oracle - Decision Explanations
========================================
"""

from typing import Dict, List, Mapping

from .config import (
    CONSENSUS_MONITOR_FLOOR,
    CONSENSUS_THRESHOLDS,
    NEUTRAL_SCORE,
    SCORER_IDS,
    TOP_FACTORS_COUNT,
)
from .schemas import Action, Explanation, FeatureVector, ScoreResult, TopFactor

FEATURE_DISPLAY_NAMES: Dict[str, str] = {
    "amount": "Transaction Amount",
    "speed": "Execution Speed",
    "contracts": "Contract Interactions",
    "time_of_day": "Time of Day",
    "reputation": "Sender Reputation",
}

SCORER_DISPLAY_NAMES: Dict[str, str] = {
    "risk": "Risk",
    "privacy_compliance": "Privacy Compliance",
    "treasury_impact": "Treasury Impact",
    "guardian": "Guardian",
}


def calculate_contributions(
    scores: Mapping[str, ScoreResult],
    weights: Mapping[str, float],
) -> Dict[str, float]:
    """Signed pull of each scorer away from the neutral score, in consensus points."""
    return {
        scorer_id: round(weights[scorer_id] * (scores[scorer_id].score - NEUTRAL_SCORE), 4)
        for scorer_id in SCORER_IDS
    }


def extract_top_factors(features: FeatureVector, num_factors: int = TOP_FACTORS_COUNT) -> List[TopFactor]:
    factors = []
    for name, value in features.model_dump().items():
        # High reputation lowers risk, so flip it before ranking
        risk_value = 1.0 - value if name == "reputation" else value
        factors.append(TopFactor(
            feature=FEATURE_DISPLAY_NAMES.get(name, name),
            impact=round(abs(risk_value - 0.5) * 2, 4),
            direction="positive" if risk_value > 0.5 else "negative",
        ))

    factors.sort(key=lambda f: f.impact, reverse=True)
    return factors[:num_factors]


def generate_narrative(
    consensus_score: int,
    action: Action,
    top_factors: List[TopFactor],
    contributions: Mapping[str, float],
) -> str:
    if consensus_score > CONSENSUS_THRESHOLDS["block"]:
        risk_desc = "Critical threat"
    elif consensus_score > CONSENSUS_THRESHOLDS["alert"]:
        risk_desc = "Elevated threat"
    elif consensus_score >= CONSENSUS_MONITOR_FLOOR:
        risk_desc = "Moderate threat"
    else:
        risk_desc = "Low threat"

    leading = max(contributions, key=lambda sid: contributions[sid])
    if contributions[leading] > 0:
        leading_desc = f"{SCORER_DISPLAY_NAMES[leading]} scorer pushed hardest toward {action.value}."
    else:
        leading_desc = "No scorer rose above the neutral score."

    if top_factors:
        factor_strs = [f"{f.feature} ({f.direction})" for f in top_factors]
        factors_desc = f"Primary factors: {', '.join(factor_strs)}."
    else:
        factors_desc = "No significant risk factors identified."

    return f"{risk_desc} ({consensus_score}/100). {leading_desc} {factors_desc}"


def generate_degraded_note(degraded: List[str]):
    if not degraded:
        return None
    names = " and ".join(SCORER_DISPLAY_NAMES.get(sid, sid) for sid in degraded)
    return f"{names} unavailable; neutral score of {NEUTRAL_SCORE:.0f} substituted."


def generate_explanation(
    consensus_score: int,
    action: Action,
    features: FeatureVector,
    scores: Mapping[str, ScoreResult],
    weights: Mapping[str, float],
    degraded: List[str],
) -> Explanation:
    contributions = calculate_contributions(scores, weights)
    top_factors = extract_top_factors(features)
    return Explanation(
        top_factors=top_factors,
        contributions=contributions,
        narrative=generate_narrative(consensus_score, action, top_factors, contributions),
        degraded_note=generate_degraded_note(degraded),
    )
