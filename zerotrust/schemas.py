"""
ZeroTrust Oracle - Pydantic Schema Definitions
==============================================
"""

import time
from enum import Enum
from typing import Dict, List, Literal, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from .config import DEFAULT_PERSONALITY, DEFAULT_TREASURY_SIZE


def now_millis() -> int:
    return int(time.time() * 1000)


# =============================================================================
# ENUMS
# =============================================================================

class Action(str, Enum):
    ALLOW = "allow"
    MONITOR = "monitor"
    ALERT = "alert"
    BLOCK = "block"

    @property
    def is_threat(self) -> bool:
        return self in (Action.ALERT, Action.BLOCK)


class Outcome(str, Enum):
    THREAT = "threat"
    SAFE = "safe"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ScorerStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class TransactionEvent(BaseModel):
    """A caller-supplied transaction description. Immutable once received."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    amount: float = Field(default=0.0, ge=0)
    execution_time_seconds: float = Field(default=0.0, ge=0)
    contract_interactions: int = Field(default=0, ge=0)
    timestamp_millis: int = Field(default_factory=now_millis)
    sender_score: float = Field(default=50.0, ge=0, le=100)
    has_personal_data: bool = Field(default=False)
    jurisdiction: str = Field(default="")
    consent_given: bool = Field(default=True)
    treasury_size: float = Field(default=DEFAULT_TREASURY_SIZE, gt=0)


class OutcomeRequest(BaseModel):
    decision_id: int = Field(...)
    outcome: Outcome = Field(...)


# =============================================================================
# INTERNAL VALUE OBJECTS
# =============================================================================

class FeatureVector(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: float = Field(..., ge=0, le=1)
    speed: float = Field(..., ge=0, le=1)
    contracts: float = Field(..., ge=0, le=1)
    time_of_day: float = Field(..., ge=0, le=1)
    reputation: float = Field(..., ge=0, le=1)

    def to_array(self, names: Optional[List[str]] = None) -> np.ndarray:
        names = names or list(type(self).model_fields)
        return np.array([getattr(self, name) for name in names], dtype=np.float64)


class ScoreResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    scorer_id: str = Field(...)
    score: float = Field(..., ge=0, le=100)
    reasoning: str = Field(...)
    confidence: float = Field(..., ge=0, le=1)
    status: ScorerStatus = Field(default=ScorerStatus.OK)


class PersonalityProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    risk_tolerance: float = Field(default=DEFAULT_PERSONALITY["risk_tolerance"], ge=0, le=1)
    learning_rate: float = Field(default=DEFAULT_PERSONALITY["learning_rate"], ge=0, le=1)
    confidence_threshold: float = Field(default=DEFAULT_PERSONALITY["confidence_threshold"], ge=0, le=1)


class DecisionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1)
    input_features: FeatureVector = Field(...)
    predicted_probability: Optional[float] = Field(default=None, ge=0, le=1)
    action: Action = Field(...)
    reasoning: str = Field(...)
    confidence: float = Field(..., ge=0, le=1)
    created_at: int = Field(...)
    scorer_actions: Dict[str, Action] = Field(default_factory=dict)


class MemoryEntry(BaseModel):
    """One remembered decision. Only `outcome` changes after creation."""

    event: TransactionEvent = Field(...)
    decision: DecisionRecord = Field(...)
    outcome: Optional[Outcome] = Field(default=None)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class ScorerBreakdown(BaseModel):
    risk: ScoreResult = Field(...)
    privacy_compliance: ScoreResult = Field(...)
    treasury_impact: ScoreResult = Field(...)
    guardian: ScoreResult = Field(...)


class TopFactor(BaseModel):
    feature: str = Field(...)
    impact: float = Field(...)
    direction: Literal["positive", "negative"] = Field(...)


class Explanation(BaseModel):
    top_factors: List[TopFactor] = Field(...)
    contributions: Dict[str, float] = Field(...)
    narrative: str = Field(...)
    degraded_note: Optional[str] = Field(default=None)


class Decision(BaseModel):
    consensus_score: int = Field(..., ge=0, le=100)
    action: Action = Field(...)
    reasoning: str = Field(...)
    confidence: float = Field(..., ge=0, le=1)
    scorer_breakdown: ScorerBreakdown = Field(...)
    fingerprint: str = Field(...)
    decision_id: int = Field(..., ge=1)
    timestamp_millis: int = Field(...)
    risk_level: RiskLevel = Field(...)
    low_confidence: bool = Field(default=False)
    degraded_scorers: List[str] = Field(default_factory=list)
    explanation: Explanation = Field(...)
    processing_time_ms: float = Field(default=0.0)


class OutcomeResponse(BaseModel):
    decision_id: int = Field(...)
    recorded: bool = Field(...)


class ScorerAccuracy(BaseModel):
    correct: int = Field(...)
    total: int = Field(...)
    accuracy_percent: float = Field(...)
    recent_accuracy: float = Field(...)


class MetricsResponse(BaseModel):
    total_analyses: int = Field(...)
    threats_flagged: int = Field(...)
    outcomes_recorded: int = Field(...)
    per_scorer_accuracy: Dict[str, ScorerAccuracy] = Field(...)
    consensus_accuracy: ScorerAccuracy = Field(...)
    memory_size: int = Field(...)
    memory_capacity: int = Field(...)
    personality: PersonalityProfile = Field(...)
    weight_profile: str = Field(...)
    uptime_seconds: float = Field(...)


class HealthResponse(BaseModel):
    status: Literal["healthy", "degraded", "unhealthy"] = Field(...)
    version: str = Field(...)
    memory_size: int = Field(...)
    scorers: List[str] = Field(...)
