"""
ZeroTrust Oracle - Adaptive Guardian
====================================

The fourth scorer. Computes a weighted threat probability from the feature
vector, nudges it with the personality profile and with pattern memory, and
remembers every committed decision.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from .config import GUARDIAN_ADJUSTMENTS, GUARDIAN_FEATURE_WEIGHTS, GUARDIAN_THRESHOLDS
from .features import is_vulnerable_hour
from .memory import PatternMemory
from .schemas import (
    Action,
    DecisionRecord,
    FeatureVector,
    MemoryEntry,
    PersonalityProfile,
    ScoreResult,
    TransactionEvent,
)

logger = logging.getLogger(__name__)

GUARDIAN_REASONING: Dict[Action, str] = {
    Action.BLOCK: "High threat probability detected, immediate protection required",
    Action.ALERT: "Moderate threat detected, human review recommended",
    Action.MONITOR: "Low threat detected, continued monitoring",
    Action.ALLOW: "Normal transaction pattern, no threat detected",
}


@dataclass(frozen=True)
class GuardianAssessment:
    base_probability: float
    adjustment: float
    final_probability: float
    action: Action
    reasoning: str
    confidence: float
    known_pattern: bool

    def to_score(self) -> ScoreResult:
        return ScoreResult(
            scorer_id=AdaptiveGuardian.scorer_id,
            score=round(self.final_probability * 100, 4),
            reasoning=self.reasoning,
            confidence=round(self.confidence, 4),
        )


def guardian_action(probability: float) -> Tuple[Action, str, float]:
    """Map a threat probability to (action, reasoning, confidence)."""
    if probability > GUARDIAN_THRESHOLDS["block"]:
        action, confidence = Action.BLOCK, probability
    elif probability > GUARDIAN_THRESHOLDS["alert"]:
        action, confidence = Action.ALERT, probability
    elif probability > GUARDIAN_THRESHOLDS["monitor"]:
        action, confidence = Action.MONITOR, probability
    else:
        action, confidence = Action.ALLOW, 1.0 - probability
    return action, GUARDIAN_REASONING[action], confidence


class AdaptiveGuardian:
    """
    Personality-driven threat scorer backed by a shared PatternMemory.

    The profile is immutable; tune() swaps in a new one and is never called
    from the scoring path.
    """

    scorer_id = "guardian"

    def __init__(self, memory: PatternMemory, profile: Optional[PersonalityProfile] = None):
        self.memory = memory
        self._profile = profile or PersonalityProfile()
        self._profile_lock = threading.Lock()
        self._weight_names = list(GUARDIAN_FEATURE_WEIGHTS)
        self._weights = np.array([GUARDIAN_FEATURE_WEIGHTS[n] for n in self._weight_names])
        self.decisions_remembered = 0

    @property
    def profile(self) -> PersonalityProfile:
        return self._profile

    def tune(self, **changes) -> PersonalityProfile:
        """Replace the personality profile. Unknown keys raise ValueError."""
        unknown = set(changes) - set(PersonalityProfile.model_fields)
        if unknown:
            raise ValueError(f"Unknown personality fields: {sorted(unknown)}")
        with self._profile_lock:
            updated = PersonalityProfile.model_validate({**self._profile.model_dump(), **changes})
            self._profile = updated
        logger.info("Guardian personality tuned: %s", updated.model_dump())
        return updated

    def base_probability(self, features: FeatureVector) -> float:
        return float(np.dot(self._weights, features.to_array(self._weight_names)))

    def assess(self, event: TransactionEvent, features: FeatureVector) -> GuardianAssessment:
        """Score an event against the current memory snapshot without changing state."""
        profile = self._profile
        base = self.base_probability(features)

        adjustment = 0.0
        if event.amount > GUARDIAN_ADJUSTMENTS["large_amount_threshold"]:
            adjustment += GUARDIAN_ADJUSTMENTS["large_amount_factor"] * profile.risk_tolerance
        if is_vulnerable_hour(event.timestamp_millis):
            adjustment += GUARDIAN_ADJUSTMENTS["vulnerable_hour_boost"]

        known_pattern = self._is_known_pattern(event)
        if known_pattern:
            adjustment -= GUARDIAN_ADJUSTMENTS["known_pattern_dampening"]

        final = max(0.0, min(1.0, base + adjustment))
        action, reasoning, confidence = guardian_action(final)

        return GuardianAssessment(
            base_probability=base,
            adjustment=adjustment,
            final_probability=final,
            action=action,
            reasoning=reasoning,
            confidence=confidence,
            known_pattern=known_pattern,
        )

    def score(self, event: TransactionEvent, features: FeatureVector) -> ScoreResult:
        return self.assess(event, features).to_score()

    def remember(self, event: TransactionEvent, record: DecisionRecord) -> None:
        """Append a committed decision to pattern memory with an unknown outcome."""
        self.memory.append(MemoryEntry(event=event, decision=record))
        self.decisions_remembered += 1

    def _is_known_pattern(self, event: TransactionEvent) -> bool:
        # Size and similarity must come from the same snapshot
        entries = self.memory.snapshot()
        if len(entries) < GUARDIAN_ADJUSTMENTS["known_pattern_min_memory"]:
            return False
        similarity = self.memory.best_similarity(event, entries)
        return similarity > GUARDIAN_ADJUSTMENTS["known_pattern_similarity"]
