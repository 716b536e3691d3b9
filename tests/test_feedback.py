import asyncio

import pytest

from zerotrust.config import EngineSettings
from zerotrust.feedback import AccuracyMetrics, is_correct
from zerotrust.orchestrator import ConsensusEngine
from zerotrust.schemas import Action, Outcome


@pytest.mark.parametrize("action, outcome, expected", [
    (Action.BLOCK, Outcome.THREAT, True),
    (Action.ALERT, Outcome.THREAT, True),
    (Action.MONITOR, Outcome.THREAT, False),
    (Action.ALLOW, Outcome.THREAT, False),
    (Action.BLOCK, Outcome.SAFE, False),
    (Action.ALERT, Outcome.SAFE, False),
    (Action.MONITOR, Outcome.SAFE, True),
    (Action.ALLOW, Outcome.SAFE, True),
])
def test_correctness_table(action, outcome, expected):
    assert is_correct(action, outcome) is expected


def test_recent_accuracy_moves_by_learning_rate():
    metrics = AccuracyMetrics()
    metrics.record(True, learning_rate=0.5)
    assert metrics.recent_accuracy == pytest.approx(0.75)
    metrics.record(False, learning_rate=0.5)
    assert metrics.recent_accuracy == pytest.approx(0.375)
    assert (metrics.correct, metrics.total) == (1, 2)
    assert metrics.accuracy_percent == 50.0


def test_block_confirmed_as_threat(engine, attack_event):
    decision = asyncio.run(engine.analyze(attack_event))
    assert decision.action == Action.BLOCK

    before = engine.get_metrics().per_scorer_accuracy["guardian"]
    assert engine.record_outcome(decision.decision_id, "threat") is True
    after = engine.get_metrics().per_scorer_accuracy["guardian"]

    assert after.correct == before.correct + 1
    assert after.total == before.total + 1
    assert engine.memory.get(decision.decision_id).outcome == Outcome.THREAT


def test_every_scorer_is_scored(engine, attack_event):
    decision = asyncio.run(engine.analyze(attack_event))
    engine.record_outcome(decision.decision_id, Outcome.SAFE)

    metrics = engine.get_metrics()
    for scorer_id, accuracy in metrics.per_scorer_accuracy.items():
        assert accuracy.total == 1, scorer_id
    # Every scorer called this one a threat
    assert all(a.correct == 0 for a in metrics.per_scorer_accuracy.values())
    assert metrics.consensus_accuracy.correct == 0
    assert metrics.outcomes_recorded == 1


def test_unknown_decision_leaves_metrics_untouched(engine, benign_event):
    asyncio.run(engine.analyze(benign_event))
    before = engine.get_metrics()

    assert engine.record_outcome(999999, "threat") is False

    after = engine.get_metrics()
    assert after.per_scorer_accuracy == before.per_scorer_accuracy
    assert after.consensus_accuracy == before.consensus_accuracy
    assert after.outcomes_recorded == 0


def test_outcome_is_recorded_once(engine, benign_event):
    decision = asyncio.run(engine.analyze(benign_event))

    assert engine.record_outcome(decision.decision_id, "safe") is True
    assert engine.record_outcome(decision.decision_id, "threat") is False

    guardian = engine.get_metrics().per_scorer_accuracy["guardian"]
    assert (guardian.correct, guardian.total) == (1, 1)


def test_evicted_decision_is_unknown(benign_event):
    engine = ConsensusEngine(settings=EngineSettings(memory_capacity=2))
    first = asyncio.run(engine.analyze(benign_event))
    asyncio.run(engine.analyze(benign_event))
    asyncio.run(engine.analyze(benign_event))

    assert engine.record_outcome(first.decision_id, "safe") is False


def test_invalid_outcome_label(engine, benign_event):
    decision = asyncio.run(engine.analyze(benign_event))
    with pytest.raises(ValueError):
        engine.record_outcome(decision.decision_id, "maybe")
