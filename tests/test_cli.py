import logging

import pytest

from bloodbank import cli
from bloodbank.config import Config
from bloodbank.storage import MemStorage

from conftest import make_unit


def feed(monkeypatch, *answers):
    answers = iter(answers)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))


def test_console_summary_and_exit(monkeypatch, capsys):
    storage = MemStorage()
    storage.create_blood_inventory_item(make_unit("A+", units=12))
    feed(monkeypatch, "1", "0")

    cli.console(storage)

    out = capsys.readouterr().out
    assert " A+: 12 units (100.0%)" in out
    assert "O-: 0 units (0.0%) CRITICAL" in out
    assert "Bye." in out


def test_console_add_and_change_status(monkeypatch, capsys):
    storage = MemStorage()
    feed(monkeypatch, "2", "o+", "4", "3", "3", "1", "reserved", "0")

    cli.console(storage)

    item = storage.get_blood_inventory_item(1)
    assert item["blood_type"] == "O+"
    assert item["units"] == 4
    assert item["status"] == "reserved"
    assert "Item 1 is now reserved." in capsys.readouterr().out


def test_console_reports_validation_errors(monkeypatch, capsys):
    storage = MemStorage()
    storage.create_blood_inventory_item(make_unit(status="expired"))
    feed(monkeypatch, "3", "1", "available", "9", "0")

    cli.console(storage)

    out = capsys.readouterr().out
    assert "Error: Cannot change unit status from expired to available" in out
    assert "Invalid choice." in out
    assert storage.get_blood_inventory_item(1)["status"] == "expired"


def test_console_alerts(monkeypatch, capsys):
    storage = MemStorage()
    feed(monkeypatch, "4", "5", "4", "6", "0")

    cli.console(storage)

    out = capsys.readouterr().out
    assert "No active alerts." in out
    assert "8 stock alert(s) active." in out
    assert "[critical] Critical shortage of A+ blood type (0 units available)" in out
    assert "No units expiring within 7 days." in out


def test_main_seed_command(monkeypatch, caplog):
    monkeypatch.setattr(Config, "STORAGE_BACKEND", "memory")
    monkeypatch.setattr(Config, "SEED_ON_STARTUP", False)
    with caplog.at_level(logging.INFO, logger="bloodbank"):
        cli.main(["seed"])
    assert "Seeding completed" in caplog.text


def test_main_rejects_unknown_command():
    with pytest.raises(SystemExit):
        cli.main(["explode"])
