import pytest

from zerotrust.config import EngineSettings


def test_defaults():
    settings = EngineSettings()
    assert settings.memory_capacity == 1000
    assert settings.weight_profile == "equal"
    assert sum(settings.weights.values()) == pytest.approx(1.0)


def test_from_env(monkeypatch):
    monkeypatch.setenv("ZEROTRUST_MEMORY_CAPACITY", "10")
    monkeypatch.setenv("ZEROTRUST_SCORER_TIMEOUT", "0.5")
    monkeypatch.setenv("ZEROTRUST_WEIGHT_PROFILE", " Agent_Weighted ")
    monkeypatch.setenv("ZEROTRUST_FINGERPRINT_LENGTH", "24")

    settings = EngineSettings.from_env()

    assert settings.memory_capacity == 10
    assert settings.scorer_timeout == 0.5
    assert settings.weight_profile == "agent_weighted"
    assert settings.fingerprint_length == 24


@pytest.mark.parametrize("kwargs", [
    {"memory_capacity": 0},
    {"scorer_timeout": 0},
    {"weight_profile": "random"},
    {"fingerprint_length": 4},
])
def test_invalid_settings(kwargs):
    with pytest.raises(ValueError):
        EngineSettings(**kwargs)
