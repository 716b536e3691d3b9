"""
ZeroTrust Oracle - Configuration Constants
==========================================

Fixed scoring constants plus the runtime settings read from the environment.
"""

import os
from dataclasses import dataclass
from typing import Dict, Tuple

from dotenv import load_dotenv

# =============================================================================
# SCORER IDENTIFIERS
# =============================================================================

SCORER_IDS: Tuple[str, ...] = (
    "risk",
    "privacy_compliance",
    "treasury_impact",
    "guardian",
)

# =============================================================================
# ENSEMBLE WEIGHTS
# =============================================================================

WEIGHT_PROFILES: Dict[str, Dict[str, float]] = {
    "equal": {
        "risk": 0.25,
        "privacy_compliance": 0.25,
        "treasury_impact": 0.25,
        "guardian": 0.25,
    },
    # 0.5 / 0.2 / 0.3 agent split scaled to 0.75, guardian keeps 0.25
    "agent_weighted": {
        "risk": 0.375,
        "privacy_compliance": 0.15,
        "treasury_impact": 0.225,
        "guardian": 0.25,
    },
}

DEFAULT_WEIGHT_PROFILE: str = "equal"

NEUTRAL_SCORE: float = 50.0

# =============================================================================
# DECISION THRESHOLDS
# =============================================================================

# Consensus score (integer, 0-100). Checked top-down with strict ">".
CONSENSUS_THRESHOLDS: Dict[str, float] = {
    "block": 80,
    "alert": 60,
}
# Anything at or above this and not alert/block is "monitor"
CONSENSUS_MONITOR_FLOOR: float = 30

# Guardian probability (0-1). Checked top-down with strict ">".
GUARDIAN_THRESHOLDS: Dict[str, float] = {
    "block": 0.8,
    "alert": 0.6,
    "monitor": 0.3,
}

RISK_LEVEL_THRESHOLDS: Dict[str, Tuple[float, float]] = {
    "low": (0, 30),
    "medium": (30, 60),
    "high": (60, 80),
    "critical": (80, 100),
}

# =============================================================================
# FEATURE NORMALIZATION
# =============================================================================

AMOUNT_SCALE: float = 1_000_000
FAST_EXECUTION_SECONDS: float = 60
FAST_EXECUTION_FEATURE: float = 0.9
SLOW_EXECUTION_FEATURE: float = 0.1
CONTRACTS_SCALE: float = 10
VULNERABLE_HOURS: Tuple[int, int] = (2, 6)
MILLIS_PER_HOUR: int = 3_600_000

# =============================================================================
# SIGNAL SCORER RULES
# =============================================================================

RISK_RULES: Dict[str, float] = {
    "large_amount_threshold": 1_000_000,
    "large_amount_points": 40,
    "medium_amount_threshold": 100_000,
    "medium_amount_points": 20,
    "fast_execution_points": 30,
    "contract_interactions_threshold": 5,
    "contract_interactions_points": 20,
    "vulnerable_hour_points": 10,
}

PRIVACY_RULES: Dict[str, float] = {
    "personal_data_points": 30,
    "eu_jurisdiction_points": 20,
    "missing_consent_points": 25,
}

DEFAULT_TREASURY_SIZE: float = 1_000_000

# =============================================================================
# ADAPTIVE GUARDIAN
# =============================================================================

GUARDIAN_FEATURE_WEIGHTS: Dict[str, float] = {
    "amount": 0.4,
    "speed": 0.3,
    "contracts": 0.2,
    "time_of_day": 0.1,
}

GUARDIAN_ADJUSTMENTS: Dict[str, float] = {
    "large_amount_threshold": 500_000,
    "large_amount_factor": 0.1,
    "vulnerable_hour_boost": 0.15,
    "known_pattern_dampening": 0.05,
    "known_pattern_similarity": 0.8,
    "known_pattern_min_memory": 10,
}

DEFAULT_PERSONALITY: Dict[str, float] = {
    "risk_tolerance": 0.3,
    "learning_rate": 0.01,
    "confidence_threshold": 0.7,
}

# =============================================================================
# CONFIDENCE
# =============================================================================

CONFIDENCE_BOUNDARIES: Tuple[float, ...] = (0.30, 0.60, 0.80)
BOUNDARY_SPAN: float = 0.20
DEGRADED_PENALTY_PER_SCORER: float = 0.10
MAX_DEGRADED_PENALTY: float = 0.60

INITIAL_RECENT_ACCURACY: float = 0.5

# =============================================================================
# RUNTIME DEFAULTS
# =============================================================================

MODEL_VERSION: str = "1.0.0"

DEFAULT_MEMORY_CAPACITY: int = 1000
DEFAULT_SCORER_TIMEOUT: float = 2.0
EXTERNAL_SCORER_WORKERS: int = 4
DEFAULT_FINGERPRINT_LENGTH: int = 16
TOP_FACTORS_COUNT: int = 3


@dataclass(frozen=True)
class EngineSettings:
    """Runtime settings for one engine instance.

    Override from the environment (or a .env file) via from_env().
    """

    memory_capacity: int = DEFAULT_MEMORY_CAPACITY
    scorer_timeout: float = DEFAULT_SCORER_TIMEOUT
    weight_profile: str = DEFAULT_WEIGHT_PROFILE
    fingerprint_length: int = DEFAULT_FINGERPRINT_LENGTH
    log_level: str = "INFO"

    def __post_init__(self):
        if self.memory_capacity < 1:
            raise ValueError(f"memory_capacity must be >= 1, got {self.memory_capacity}")
        if self.scorer_timeout <= 0:
            raise ValueError(f"scorer_timeout must be > 0, got {self.scorer_timeout}")
        if self.weight_profile not in WEIGHT_PROFILES:
            raise ValueError(
                f"Unknown weight profile '{self.weight_profile}', "
                f"expected one of {sorted(WEIGHT_PROFILES)}"
            )
        if not 8 <= self.fingerprint_length <= 64:
            raise ValueError(f"fingerprint_length must be in [8, 64], got {self.fingerprint_length}")

    @property
    def weights(self) -> Dict[str, float]:
        return dict(WEIGHT_PROFILES[self.weight_profile])

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Build settings from ZEROTRUST_* environment variables."""
        load_dotenv()
        return cls(
            memory_capacity=int(os.getenv("ZEROTRUST_MEMORY_CAPACITY", DEFAULT_MEMORY_CAPACITY)),
            scorer_timeout=float(os.getenv("ZEROTRUST_SCORER_TIMEOUT", DEFAULT_SCORER_TIMEOUT)),
            weight_profile=os.getenv("ZEROTRUST_WEIGHT_PROFILE", DEFAULT_WEIGHT_PROFILE).strip().lower(),
            fingerprint_length=int(os.getenv("ZEROTRUST_FINGERPRINT_LENGTH", DEFAULT_FINGERPRINT_LENGTH)),
            log_level=os.getenv("ZEROTRUST_LOG_LEVEL", "INFO").strip().upper(),
        )
