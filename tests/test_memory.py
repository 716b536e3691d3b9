import threading

import pytest

from zerotrust.errors import UnknownDecisionError
from zerotrust.features import extract_features
from zerotrust.memory import PatternMemory, cosine_similarity
from zerotrust.schemas import Action, DecisionRecord, MemoryEntry, Outcome, TransactionEvent


def make_entry(decision_id, amount=1000.0, contracts=1, seconds=120.0):
    event = TransactionEvent(
        amount=amount,
        contract_interactions=contracts,
        execution_time_seconds=seconds,
        timestamp_millis=0,
    )
    record = DecisionRecord(
        id=decision_id,
        input_features=extract_features(event),
        action=Action.MONITOR,
        reasoning="test",
        confidence=0.5,
        created_at=0,
    )
    return MemoryEntry(event=event, decision=record)


def test_cosine_similarity_identical_direction():
    a = TransactionEvent(amount=100, contract_interactions=2, execution_time_seconds=10)
    b = TransactionEvent(amount=200, contract_interactions=4, execution_time_seconds=20)
    assert cosine_similarity(a, b) == pytest.approx(1.0)


def test_cosine_similarity_zero_norm():
    zero = TransactionEvent()
    other = TransactionEvent(amount=5)
    assert cosine_similarity(zero, other) == 0.0
    assert cosine_similarity(zero, zero) == 0.0


def test_cosine_similarity_orthogonal():
    a = TransactionEvent(amount=100)
    b = TransactionEvent(contract_interactions=3)
    assert cosine_similarity(a, b) == 0.0


def test_fifo_eviction_keeps_most_recent():
    capacity, extra = 5, 3
    memory = PatternMemory(capacity=capacity)
    for i in range(1, capacity + extra + 1):
        memory.append(make_entry(i))

    ids = [e.decision.id for e in memory.snapshot()]
    assert ids == list(range(extra + 1, capacity + extra + 1))
    assert len(memory) == capacity
    assert 1 not in memory


def test_append_returns_evicted_entry():
    memory = PatternMemory(capacity=1)
    assert memory.append(make_entry(1)) is None
    evicted = memory.append(make_entry(2))
    assert evicted.decision.id == 1


def test_duplicate_id_rejected():
    memory = PatternMemory(capacity=3)
    memory.append(make_entry(1))
    with pytest.raises(ValueError):
        memory.append(make_entry(1))


def test_get_unknown_raises():
    memory = PatternMemory(capacity=3)
    with pytest.raises(UnknownDecisionError):
        memory.get(42)


def test_mark_outcome():
    memory = PatternMemory(capacity=3)
    memory.append(make_entry(7))
    memory.mark_outcome(7, Outcome.SAFE)
    assert memory.get(7).outcome == Outcome.SAFE


def test_find_similar_threshold_is_inclusive():
    memory = PatternMemory(capacity=10)
    memory.append(make_entry(1, amount=1000, contracts=1, seconds=120))
    memory.append(make_entry(2, amount=0, contracts=9, seconds=0))

    query = TransactionEvent(amount=2000, contract_interactions=2, execution_time_seconds=240)
    matches = memory.find_similar(query, threshold=1.0 - 1e-12)
    assert [m.decision.id for m in matches] == [1]
    assert memory.find_similar(query, threshold=0.0) == list(memory.snapshot())


def test_concurrent_appends_are_not_lost():
    memory = PatternMemory(capacity=10_000)
    per_thread, threads = 200, 8

    def writer(offset):
        for i in range(per_thread):
            memory.append(make_entry(offset * per_thread + i + 1))

    workers = [threading.Thread(target=writer, args=(t,)) for t in range(threads)]
    for w in workers:
        w.start()
    for w in workers:
        w.join()

    assert len(memory) == per_thread * threads


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        PatternMemory(capacity=0)
