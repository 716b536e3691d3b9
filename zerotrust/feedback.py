"""
ZeroTrust Oracle - Feedback / Learning Loop
===========================================

Ground truth arrives after the fact. Each recorded outcome scores every
scorer's own implied action, bumps its counters, and stamps the outcome on
the remembered decision.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable

from .config import INITIAL_RECENT_ACCURACY, SCORER_IDS
from .errors import UnknownDecisionError
from .memory import PatternMemory
from .schemas import Action, Outcome, ScorerAccuracy

logger = logging.getLogger(__name__)

CONSENSUS_KEY = "consensus"


def is_correct(action: Action, outcome: Outcome) -> bool:
    """block/alert are right for threats, allow/monitor are right for safe outcomes."""
    return action.is_threat == (outcome == Outcome.THREAT)


@dataclass
class AccuracyMetrics:
    correct: int = 0
    total: int = 0
    recent_accuracy: float = INITIAL_RECENT_ACCURACY

    def record(self, hit: bool, learning_rate: float) -> None:
        self.total += 1
        if hit:
            self.correct += 1
        self.recent_accuracy += learning_rate * ((1.0 if hit else 0.0) - self.recent_accuracy)

    @property
    def accuracy_percent(self) -> float:
        if self.total == 0:
            return 0.0
        return round(self.correct / self.total * 100, 1)

    def to_schema(self) -> ScorerAccuracy:
        return ScorerAccuracy(
            correct=self.correct,
            total=self.total,
            accuracy_percent=self.accuracy_percent,
            recent_accuracy=round(self.recent_accuracy, 4),
        )


class AccuracyTracker:
    """Process-lifetime counters, one per scorer plus the consensus itself."""

    def __init__(self, scorer_ids: Iterable[str] = SCORER_IDS):
        self._metrics: Dict[str, AccuracyMetrics] = {sid: AccuracyMetrics() for sid in scorer_ids}
        self._metrics[CONSENSUS_KEY] = AccuracyMetrics()
        self._lock = threading.Lock()

    def record(self, hits: Dict[str, bool], learning_rate: float) -> None:
        with self._lock:
            for key, hit in hits.items():
                self._metrics[key].record(hit, learning_rate)

    def snapshot(self) -> Dict[str, ScorerAccuracy]:
        with self._lock:
            return {key: m.to_schema() for key, m in self._metrics.items()}


class FeedbackLoop:
    def __init__(
        self,
        memory: PatternMemory,
        tracker: AccuracyTracker,
        learning_rate: Callable[[], float],
    ):
        self.memory = memory
        self.tracker = tracker
        self._learning_rate = learning_rate
        # Serializes the check-then-mark on an entry's outcome
        self._lock = threading.Lock()
        self.outcomes_recorded = 0

    def record_outcome(self, decision_id: int, outcome) -> bool:
        """
        Apply a ground-truth outcome to a prior decision.

        Returns False when the id is unknown (never issued or already evicted)
        or when an outcome was already recorded for it. Counters are only
        touched on a True return.
        """
        outcome = Outcome(outcome)
        with self._lock:
            try:
                entry = self.memory.get(decision_id)
            except UnknownDecisionError:
                logger.warning("Outcome for unknown decision %s ignored", decision_id)
                return False

            if entry.outcome is not None:
                logger.warning(
                    "Decision %s already has outcome '%s', ignoring '%s'",
                    decision_id, entry.outcome.value, outcome.value,
                )
                return False

            record = entry.decision
            hits = {sid: is_correct(action, outcome) for sid, action in record.scorer_actions.items()}
            hits[CONSENSUS_KEY] = is_correct(record.action, outcome)

            self.tracker.record(hits, self._learning_rate())
            self.memory.mark_outcome(decision_id, outcome)
            self.outcomes_recorded += 1

        logger.info(
            "Decision %s (%s) resolved as %s: %s",
            decision_id, record.action.value, outcome.value,
            "correct" if hits[CONSENSUS_KEY] else "incorrect",
        )
        return True
