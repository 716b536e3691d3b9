"""
ZeroTrust Oracle - Error Taxonomy
=================================

Only TransactionValidationError reaches callers of analyze(). Scorer
failures are absorbed by the orchestrator and unknown decision ids are
turned into a False return by the feedback loop.
"""


class OracleError(Exception):
    """Base class for every error raised by the engine."""


class TransactionValidationError(OracleError, ValueError):
    """Malformed transaction description, rejected before scoring."""


class ScorerFailure(OracleError):
    """A single scorer raised or timed out."""

    def __init__(self, scorer_id: str, reason: str):
        super().__init__(f"Scorer '{scorer_id}' failed: {reason}")
        self.scorer_id = scorer_id
        self.reason = reason


class UnknownDecisionError(OracleError, KeyError):
    """No decision with this id is held in pattern memory."""

    def __init__(self, decision_id: int):
        super().__init__(decision_id)
        self.decision_id = decision_id

    def __str__(self) -> str:
        return f"Unknown decision id {self.decision_id}"
