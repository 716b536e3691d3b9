from datetime import datetime, timezone

import pytest

from zerotrust.config import EngineSettings
from zerotrust.orchestrator import ConsensusEngine
from zerotrust.schemas import TransactionEvent


def millis_at_hour(hour: int, minute: int = 0) -> int:
    """Epoch millis for a fixed UTC date at the given hour."""
    return int(datetime(2024, 3, 15, hour, minute, tzinfo=timezone.utc).timestamp() * 1000)


@pytest.fixture
def engine():
    return ConsensusEngine(settings=EngineSettings(memory_capacity=50))


@pytest.fixture
def attack_event():
    return TransactionEvent(
        amount=2_000_000,
        execution_time_seconds=10,
        contract_interactions=12,
        sender_score=5,
        timestamp_millis=millis_at_hour(3),
        has_personal_data=True,
        jurisdiction="EU",
        consent_given=False,
    )


@pytest.fixture
def benign_event():
    return TransactionEvent(
        amount=100,
        execution_time_seconds=600,
        contract_interactions=0,
        sender_score=95,
        timestamp_millis=millis_at_hour(14),
    )


@pytest.fixture
def at_hour():
    return millis_at_hour
