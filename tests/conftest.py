from datetime import datetime, timedelta

import pytest

from bloodbank.app import create_app
from bloodbank.storage import MemStorage

NOW = datetime(2026, 3, 10, 9, 0)

MEMORY_CONFIG = {
    "TESTING": True,
    "STORAGE_BACKEND": "memory",
    "SEED_ON_STARTUP": False,
    "CRITICAL_THRESHOLD": 10,
}

SQL_CONFIG = dict(
    MEMORY_CONFIG,
    STORAGE_BACKEND="sql",
    SQLALCHEMY_DATABASE_URI="sqlite:///:memory:",
)


def make_unit(blood_type="A+", units=1, expires_in=30, status="available", now=NOW, **extra):
    unit = {
        "blood_type": blood_type,
        "units": units,
        "donation_date": now - timedelta(days=5),
        "expiry_date": now + timedelta(days=expires_in),
        "status": status,
        "donor_id": None,
    }
    unit.update(extra)
    return unit


@pytest.fixture
def now():
    return NOW


class FrozenDateTime(datetime):
    @classmethod
    def now(cls, tz=None):
        return NOW if tz is None else NOW.astimezone(tz)


@pytest.fixture
def frozen_now(monkeypatch):
    """Pin the storage clock to NOW."""
    monkeypatch.setattr("bloodbank.storage.datetime", FrozenDateTime)
    return NOW


@pytest.fixture
def mem_storage():
    return MemStorage()


@pytest.fixture(params=["memory", "sql"])
def storage(request):
    if request.param == "memory":
        yield MemStorage()
        return
    app = create_app(SQL_CONFIG)
    with app.app_context():
        yield app.extensions["bloodbank"]


@pytest.fixture
def app():
    return create_app(MEMORY_CONFIG)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sql_app():
    return create_app(SQL_CONFIG)


@pytest.fixture
def sql_client(sql_app):
    return sql_app.test_client()
