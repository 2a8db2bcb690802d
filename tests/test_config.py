import pytest

from bloodbank.app import create_app
from bloodbank.config import _env_bool

from conftest import MEMORY_CONFIG


def test_env_bool(monkeypatch):
    monkeypatch.setenv("SEED_ON_STARTUP", "Yes")
    assert _env_bool("SEED_ON_STARTUP") is True
    monkeypatch.setenv("SEED_ON_STARTUP", "0")
    assert _env_bool("SEED_ON_STARTUP") is False
    monkeypatch.delenv("SEED_ON_STARTUP")
    assert _env_bool("SEED_ON_STARTUP") is False


def test_unknown_backend_is_rejected():
    with pytest.raises(ValueError, match="Unknown STORAGE_BACKEND"):
        create_app(dict(MEMORY_CONFIG, STORAGE_BACKEND="redis"))


def test_critical_threshold_reaches_storage():
    app = create_app(dict(MEMORY_CONFIG, CRITICAL_THRESHOLD=3))
    client = app.test_client()
    client.post("/api/inventory", json={"blood_type": "A+", "units": 4})
    summary = {s["bloodType"]: s for s in client.get("/api/dashboard/blood-summary").get_json()}
    assert summary["A+"]["isCritical"] is False
    assert summary["B+"]["isCritical"] is True
