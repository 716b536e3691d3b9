"""
ZeroTrust Oracle - Request Orchestrator
=======================================
"""

import asyncio
import itertools
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .config import EXTERNAL_SCORER_WORKERS, MODEL_VERSION, EngineSettings
from .ensemble import combine, implied_action, neutral_result, resolve_weights
from .errors import ScorerFailure
from .explainer import generate_explanation
from .features import coerce_event, extract_features
from .feedback import CONSENSUS_KEY, AccuracyTracker, FeedbackLoop
from .fingerprint import generate_fingerprint
from .guardian import AdaptiveGuardian, GuardianAssessment
from .memory import PatternMemory
from .schemas import (
    Decision,
    DecisionRecord,
    FeatureVector,
    MetricsResponse,
    PersonalityProfile,
    ScoreResult,
    ScorerBreakdown,
    TransactionEvent,
    now_millis,
)
from .scorers import PrivacyComplianceScorer, RiskScorer, SignalScorer, TreasuryImpactScorer

logger = logging.getLogger(__name__)


class ConsensusEngine:
    """Transport-agnostic entry point: analyze, record_outcome, get_metrics."""

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        profile: Optional[PersonalityProfile] = None,
        memory: Optional[PatternMemory] = None,
        risk: Optional[SignalScorer] = None,
        privacy_compliance: Optional[SignalScorer] = None,
        treasury_impact: Optional[SignalScorer] = None,
    ):
        self.settings = settings or EngineSettings()
        self.weights = resolve_weights(self.settings.weight_profile)
        self.memory = memory or PatternMemory(self.settings.memory_capacity)
        self.guardian = AdaptiveGuardian(self.memory, profile)
        self.scorers: Dict[str, SignalScorer] = {
            "risk": risk or RiskScorer(),
            "privacy_compliance": privacy_compliance or PrivacyComplianceScorer(),
            "treasury_impact": treasury_impact or TreasuryImpactScorer(),
        }
        self.tracker = AccuracyTracker()
        self.feedback = FeedbackLoop(
            self.memory, self.tracker, lambda: self.guardian.profile.learning_rate
        )

        self._ids = itertools.count(1)
        self._commit_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=EXTERNAL_SCORER_WORKERS, thread_name_prefix="zerotrust-scorer"
        )
        self._started = time.monotonic()
        self.total_analyses = 0
        self.threats_flagged = 0

    # =========================================================================
    # PUBLIC CONTRACT
    # =========================================================================

    async def analyze(self, event: Union[TransactionEvent, Mapping[str, Any]]) -> Decision:
        """Score a transaction with all four scorers and commit the consensus decision."""
        start_time = time.perf_counter()

        # Step 1: Validate and normalize (only step allowed to raise)
        event = coerce_event(event)
        features = extract_features(event)

        # Step 2: Run the scorers concurrently
        scores, assessment = await self._run_scorers(event, features)

        # Step 3: Aggregate
        consensus = combine(scores, self.weights)

        # Step 4: Explain
        explanation = generate_explanation(
            consensus.consensus_score, consensus.action, features,
            consensus.scores, consensus.weights, consensus.degraded,
        )

        # Step 5: Commit (id, memory append and counters together)
        record = self._commit(event, features, consensus, assessment)

        processing_time = (time.perf_counter() - start_time) * 1000
        decision = Decision(
            consensus_score=consensus.consensus_score,
            action=consensus.action,
            reasoning=consensus.reasoning,
            confidence=consensus.confidence,
            scorer_breakdown=ScorerBreakdown(**consensus.scores),
            fingerprint=generate_fingerprint(event, self.settings.fingerprint_length),
            decision_id=record.id,
            timestamp_millis=record.created_at,
            risk_level=consensus.risk_level,
            low_confidence=consensus.confidence < self.guardian.profile.confidence_threshold,
            degraded_scorers=consensus.degraded,
            explanation=explanation,
            processing_time_ms=round(processing_time, 2),
        )

        logger.info(
            "Decision %d: %s (score=%d, confidence=%.2f, degraded=%s)",
            decision.decision_id, decision.action.value, decision.consensus_score,
            decision.confidence, decision.degraded_scorers or "none",
        )
        return decision

    def record_outcome(self, decision_id: int, outcome) -> bool:
        return self.feedback.record_outcome(decision_id, outcome)

    def get_metrics(self) -> MetricsResponse:
        accuracy = self.tracker.snapshot()
        consensus_accuracy = accuracy.pop(CONSENSUS_KEY)
        with self._commit_lock:
            total_analyses = self.total_analyses
            threats_flagged = self.threats_flagged

        return MetricsResponse(
            total_analyses=total_analyses,
            threats_flagged=threats_flagged,
            outcomes_recorded=self.feedback.outcomes_recorded,
            per_scorer_accuracy=accuracy,
            consensus_accuracy=consensus_accuracy,
            memory_size=len(self.memory),
            memory_capacity=self.memory.capacity,
            personality=self.guardian.profile,
            weight_profile=self.settings.weight_profile,
            uptime_seconds=round(time.monotonic() - self._started, 2),
        )

    @property
    def model_version(self) -> str:
        return MODEL_VERSION

    def close(self) -> None:
        """Release the worker pool. Scorer calls still queued are cancelled."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    async def _run_scorers(
        self,
        event: TransactionEvent,
        features: FeatureVector,
    ) -> Tuple[Dict[str, ScoreResult], Optional[GuardianAssessment]]:
        """
        Run every scorer concurrently; failures become neutral results.

        Built-in scorers are pure and run inline. Blocking scorers (external
        models) run on the engine's own worker pool under the scorer timeout,
        so a hung model can only starve its own slot.
        """
        jobs = {
            scorer_id: self._schedule(scorer.blocking, scorer.score, event, features)
            for scorer_id, scorer in self.scorers.items()
        }
        jobs[AdaptiveGuardian.scorer_id] = self._schedule(False, self.guardian.assess, event, features)

        names = list(jobs)
        results = await asyncio.gather(*jobs.values(), return_exceptions=True)

        scores: Dict[str, ScoreResult] = {}
        assessment: Optional[GuardianAssessment] = None
        for scorer_id, result in zip(names, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                failure = self._as_failure(scorer_id, result)
                logger.warning("%s", failure)
                scores[scorer_id] = neutral_result(scorer_id, failure.reason)
                continue
            if isinstance(result, GuardianAssessment):
                assessment = result
                result = result.to_score()
            scores[scorer_id] = result

        return scores, assessment

    def _schedule(self, blocking: bool, fn, *args):
        if not blocking:
            return self._call_inline(fn, *args)
        loop = asyncio.get_running_loop()
        return asyncio.wait_for(
            loop.run_in_executor(self._executor, fn, *args), self.settings.scorer_timeout
        )

    @staticmethod
    async def _call_inline(fn, *args):
        return fn(*args)

    @staticmethod
    def _as_failure(scorer_id: str, exc: BaseException) -> ScorerFailure:
        if isinstance(exc, asyncio.TimeoutError):
            return ScorerFailure(scorer_id, "timed out")
        return ScorerFailure(scorer_id, f"{type(exc).__name__}: {exc}")

    def _commit(self, event, features, consensus, assessment) -> DecisionRecord:
        with self._commit_lock:
            record = DecisionRecord(
                id=next(self._ids),
                input_features=features,
                predicted_probability=assessment.final_probability if assessment else None,
                action=consensus.action,
                reasoning=consensus.reasoning,
                confidence=consensus.confidence,
                created_at=now_millis(),
                scorer_actions=self._scorer_actions(consensus.scores, assessment),
            )
            self.guardian.remember(event, record)
            self.total_analyses += 1
            if consensus.action.is_threat:
                self.threats_flagged += 1
        return record

    @staticmethod
    def _scorer_actions(scores, assessment):
        actions = {sid: implied_action(result) for sid, result in scores.items()}
        if assessment is not None:
            actions[AdaptiveGuardian.scorer_id] = assessment.action
        return actions
