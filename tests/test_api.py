import pytest
from fastapi.testclient import TestClient

from zerotrust.api import app


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("ZEROTRUST_MEMORY_CAPACITY", "25")
    with TestClient(app) as client:
        yield client


def test_analyze_and_record_outcome(client, at_hour):
    response = client.post("/api/v1/oracle/analyze", json={
        "amount": 2_000_000,
        "execution_time_seconds": 10,
        "contract_interactions": 12,
        "sender_score": 5,
        "timestamp_millis": at_hour(3),
        "has_personal_data": True,
        "jurisdiction": "EU",
        "consent_given": False,
    })
    assert response.status_code == 200
    body = response.json()
    assert body["action"] == "block"
    assert set(body["scorer_breakdown"]) == {"risk", "privacy_compliance", "treasury_impact", "guardian"}
    assert len(body["fingerprint"]) == 16

    outcome = client.post("/api/v1/oracle/outcome", json={
        "decision_id": body["decision_id"],
        "outcome": "threat",
    })
    assert outcome.status_code == 200
    assert outcome.json() == {"decision_id": body["decision_id"], "recorded": True}

    metrics = client.get("/api/v1/oracle/metrics").json()
    assert metrics["total_analyses"] == 1
    assert metrics["threats_flagged"] == 1
    assert metrics["memory_capacity"] == 25
    assert metrics["per_scorer_accuracy"]["guardian"] == {
        "correct": 1,
        "total": 1,
        "accuracy_percent": 100.0,
        "recent_accuracy": pytest.approx(0.505),
    }


def test_unknown_outcome_is_not_an_error(client):
    response = client.post("/api/v1/oracle/outcome", json={"decision_id": 999999, "outcome": "threat"})
    assert response.status_code == 200
    assert response.json()["recorded"] is False


def test_negative_amount_rejected(client):
    response = client.post("/api/v1/oracle/analyze", json={"amount": -1})
    assert response.status_code == 422


def test_health_and_root(client):
    health = client.get("/api/v1/oracle/health").json()
    assert health["status"] == "healthy"
    assert health["scorers"] == ["risk", "privacy_compliance", "treasury_impact", "guardian"]

    assert client.get("/").json()["name"] == "ZeroTrust Oracle"


@pytest.mark.parametrize("decision_id", [0, -5])
def test_non_positive_decision_id_is_unknown(client, decision_id):
    response = client.post("/api/v1/oracle/outcome", json={"decision_id": decision_id, "outcome": "safe"})
    assert response.status_code == 200
    assert response.json() == {"decision_id": decision_id, "recorded": False}


def test_far_future_timestamp_is_accepted(client):
    response = client.post("/api/v1/oracle/analyze", json={"amount": 10, "timestamp_millis": 10**17})
    assert response.status_code == 200
    assert response.json()["degraded_scorers"] == []
