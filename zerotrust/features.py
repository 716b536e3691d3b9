"""
features.py
-----------
Turns a raw TransactionEvent into the bounded FeatureVector shared by every
scorer.

Normalization rules:
  - amount      : amount / 1,000,000, capped at 1
  - speed       : 0.9 when execution is under 60 s (flash-loan heuristic), else 0.1
  - contracts   : contract_interactions / 10, capped at 1
  - time_of_day : UTC hour of timestamp_millis / 24
  - reputation  : sender_score / 100
"""

from __future__ import annotations

from typing import Any, Mapping, Union

from pydantic import ValidationError

from .config import (
    AMOUNT_SCALE,
    CONTRACTS_SCALE,
    FAST_EXECUTION_FEATURE,
    FAST_EXECUTION_SECONDS,
    MILLIS_PER_HOUR,
    SLOW_EXECUTION_FEATURE,
    VULNERABLE_HOURS,
)
from .errors import TransactionValidationError
from .schemas import FeatureVector, TransactionEvent


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def coerce_event(data: Union[TransactionEvent, Mapping[str, Any]]) -> TransactionEvent:
    """
    Accept either a TransactionEvent or a plain mapping and return a
    validated TransactionEvent. Unknown keys in a mapping are ignored.

    Raises
    ------
    TransactionValidationError if any field is malformed.
    """
    if isinstance(data, TransactionEvent):
        validate_event(data)
        return data
    try:
        return TransactionEvent.model_validate(dict(data))
    except ValidationError as exc:
        raise TransactionValidationError(_summarize(exc)) from exc
    except TypeError as exc:
        raise TransactionValidationError(f"Transaction must be a mapping: {exc}") from exc


def validate_event(event: TransactionEvent) -> None:
    """
    Re-check the numeric fields of an already built event.

    Events created through model_construct() skip pydantic validation, so
    the normalizer does not trust them blindly.
    """
    if event.amount < 0:
        raise TransactionValidationError(f"amount must be non-negative, got {event.amount}")
    if event.execution_time_seconds < 0:
        raise TransactionValidationError(
            f"execution_time_seconds must be non-negative, got {event.execution_time_seconds}"
        )
    if event.contract_interactions < 0:
        raise TransactionValidationError(
            f"contract_interactions must be non-negative, got {event.contract_interactions}"
        )
    if not 0 <= event.sender_score <= 100:
        raise TransactionValidationError(f"sender_score must be in [0, 100], got {event.sender_score}")
    if event.treasury_size <= 0:
        raise TransactionValidationError(f"treasury_size must be positive, got {event.treasury_size}")


def extract_features(event: TransactionEvent) -> FeatureVector:
    """Normalize an event into a FeatureVector with every value in [0, 1]."""
    validate_event(event)

    speed = (
        FAST_EXECUTION_FEATURE
        if event.execution_time_seconds < FAST_EXECUTION_SECONDS
        else SLOW_EXECUTION_FEATURE
    )

    return FeatureVector(
        amount=min(event.amount / AMOUNT_SCALE, 1.0),
        speed=speed,
        contracts=min(event.contract_interactions / CONTRACTS_SCALE, 1.0),
        time_of_day=hour_of_day(event.timestamp_millis) / 24,
        reputation=event.sender_score / 100,
    )


def hour_of_day(timestamp_millis: int) -> int:
    """UTC hour (0-23) of an epoch-millisecond timestamp."""
    return (timestamp_millis // MILLIS_PER_HOUR) % 24


def is_vulnerable_hour(timestamp_millis: int) -> bool:
    """True between 02:00 and 06:59 UTC (hours 2..6 inclusive)."""
    start, end = VULNERABLE_HOURS
    return start <= hour_of_day(timestamp_millis) <= end


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _summarize(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ())) or "transaction"
        parts.append(f"{location}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)
