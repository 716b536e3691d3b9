"""
ZeroTrust Oracle - Signal Scorers
=================================

Three stateless, rule-based scorers. Each one reads the event (and the
shared FeatureVector where useful) and returns a ScoreResult in [0, 100].
New scorers subclass SignalScorer; CallableScorer adapts any plain function,
such as a trained model's predict wrapper.
"""

from abc import ABC, abstractmethod
from typing import Callable, List

from .config import FAST_EXECUTION_SECONDS, NEUTRAL_SCORE, PRIVACY_RULES, RISK_RULES
from .features import is_vulnerable_hour
from .schemas import FeatureVector, ScoreResult, TransactionEvent


def clamp_score(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


def decisiveness(score: float) -> float:
    """Confidence of a rule-based score: distance from the neutral 50, scaled to [0, 1]."""
    return round(min(1.0, abs(score - NEUTRAL_SCORE) / NEUTRAL_SCORE), 4)


class SignalScorer(ABC):
    """Interface shared by every scorer feeding the ensemble."""

    scorer_id: str = ""
    # Blocking scorers run on the engine's worker pool under the scorer timeout
    blocking: bool = True

    @abstractmethod
    def score(self, event: TransactionEvent, features: FeatureVector) -> ScoreResult:
        ...

    def _result(self, score: float, reasons: List[str], empty_reason: str) -> ScoreResult:
        score = clamp_score(score)
        reasoning = "; ".join(reasons) if reasons else empty_reason
        return ScoreResult(
            scorer_id=self.scorer_id,
            score=score,
            reasoning=reasoning,
            confidence=decisiveness(score),
        )


class RiskScorer(SignalScorer):
    """Additive pattern score: amount size, flash-loan speed, contract fan-out, hour."""

    scorer_id = "risk"
    blocking = False

    def score(self, event: TransactionEvent, features: FeatureVector) -> ScoreResult:
        risk = 0.0
        reasons: List[str] = []

        if event.amount > RISK_RULES["large_amount_threshold"]:
            risk += RISK_RULES["large_amount_points"]
            reasons.append("amount above 1,000,000")
        elif event.amount > RISK_RULES["medium_amount_threshold"]:
            risk += RISK_RULES["medium_amount_points"]
            reasons.append("amount above 100,000")

        # Flash loans settle within a single block window
        if event.execution_time_seconds < FAST_EXECUTION_SECONDS:
            risk += RISK_RULES["fast_execution_points"]
            reasons.append("execution under 60s")

        if event.contract_interactions > RISK_RULES["contract_interactions_threshold"]:
            risk += RISK_RULES["contract_interactions_points"]
            reasons.append("more than 5 contract interactions")

        if is_vulnerable_hour(event.timestamp_millis):
            risk += RISK_RULES["vulnerable_hour_points"]
            reasons.append("submitted between 02:00 and 06:59 UTC")

        return self._result(risk, reasons, "No risk indicators")


class PrivacyComplianceScorer(SignalScorer):
    """GDPR-style compliance exposure. Higher score means higher compliance risk."""

    scorer_id = "privacy_compliance"
    blocking = False

    def score(self, event: TransactionEvent, features: FeatureVector) -> ScoreResult:
        exposure = 0.0
        reasons: List[str] = []

        if event.has_personal_data:
            exposure += PRIVACY_RULES["personal_data_points"]
            reasons.append("carries personal data")
        if event.jurisdiction == "EU":
            exposure += PRIVACY_RULES["eu_jurisdiction_points"]
            reasons.append("EU jurisdiction")
        if not event.consent_given:
            exposure += PRIVACY_RULES["missing_consent_points"]
            reasons.append("consent not given")

        return self._result(exposure, reasons, "No compliance exposure")


class TreasuryImpactScorer(SignalScorer):
    """Share of the treasury moved by this transaction, as a percentage."""

    scorer_id = "treasury_impact"
    blocking = False

    def score(self, event: TransactionEvent, features: FeatureVector) -> ScoreResult:
        treasury = event.treasury_size
        impact = min(100.0, event.amount / treasury * 100)
        return self._result(
            impact,
            [f"moves {impact:.2f}% of a {treasury:,.0f} treasury"] if impact > 0 else [],
            "No treasury impact",
        )


class CallableScorer(SignalScorer):
    """
    Wrap a plain function `fn(event, features) -> float` as a scorer.

    The returned value is clamped to [0, 100]. Exceptions propagate so the
    orchestrator can degrade the slot to the neutral score.
    """

    def __init__(
        self,
        scorer_id: str,
        fn: Callable[[TransactionEvent, FeatureVector], float],
        reasoning: str = "External model score",
    ):
        self.scorer_id = scorer_id
        self._fn = fn
        self._reasoning = reasoning

    def score(self, event: TransactionEvent, features: FeatureVector) -> ScoreResult:
        raw = float(self._fn(event, features))
        if raw != raw:
            raise ValueError(f"Scorer '{self.scorer_id}' returned NaN")
        return self._result(raw, [self._reasoning], self._reasoning)
