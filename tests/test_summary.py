from datetime import date, datetime, timedelta

import pytest

from bloodbank.constants import BLOOD_TYPES
from bloodbank.summary import days_between, expiring_units, summarize_inventory

from conftest import NOW, make_unit

EMPTY = {"units": 0, "percentage": 0, "expiringUnits": 0, "expiringDays": 0, "isCritical": True}


def by_type(summaries):
    return {s["bloodType"]: s for s in summaries}


def strip(summary):
    return {k: v for k, v in summary.items() if k != "bloodType"}


# ── Example scenarios ───────────────────────────────────────────────


def test_two_a_positive_batches():
    units = [
        make_unit("A+", units=5, expires_in=3),
        make_unit("A+", units=10, expires_in=20),
    ]
    summaries = by_type(summarize_inventory(units, NOW))

    assert strip(summaries["A+"]) == {
        "units": 15,
        "percentage": 100,
        "expiringUnits": 5,
        "expiringDays": 3,
        "isCritical": False,
    }
    for bt in BLOOD_TYPES:
        if bt != "A+":
            assert strip(summaries[bt]) == EMPTY


def test_empty_input():
    summaries = summarize_inventory([], NOW)
    assert [s["bloodType"] for s in summaries] == BLOOD_TYPES
    assert all(strip(s) == EMPTY for s in summaries)


def test_reserved_units_are_excluded():
    summaries = by_type(summarize_inventory([make_unit("O-", units=50, status="reserved")], NOW))
    assert summaries["O-"]["units"] == 0
    assert summaries["O-"]["isCritical"] is True


# ── Properties ──────────────────────────────────────────────────────


MIXED = [
    make_unit("A+", units=12, expires_in=2),
    make_unit("A-", units=3, expires_in=40),
    make_unit("B+", units=7, expires_in=7),
    make_unit("AB+", units=9, expires_in=8),
    make_unit("O+", units=20, expires_in=-1),
    make_unit("O-", units=4, status="expired"),
    make_unit("O-", units=6, status="discarded"),
    make_unit("B-", units=2, status="reserved"),
]


def test_every_blood_type_present_once():
    summaries = summarize_inventory(MIXED, NOW)
    assert sorted(s["bloodType"] for s in summaries) == sorted(BLOOD_TYPES)


def test_units_are_conserved():
    summaries = summarize_inventory(MIXED, NOW)
    available = sum(u["units"] for u in MIXED if u["status"] == "available")
    assert sum(s["units"] for s in summaries) == available == 51


def test_percentages_sum_to_100():
    summaries = summarize_inventory(MIXED, NOW)
    assert sum(s["percentage"] for s in summaries) == pytest.approx(100)


def test_critical_iff_below_threshold():
    for s in summarize_inventory(MIXED, NOW):
        assert s["isCritical"] == (s["units"] < 10)


def test_critical_threshold_is_configurable():
    summaries = by_type(summarize_inventory(MIXED, NOW, critical_threshold=5))
    assert summaries["B+"]["isCritical"] is False
    assert summaries["A-"]["isCritical"] is True


def test_idempotent():
    assert summarize_inventory(MIXED, NOW) == summarize_inventory(MIXED, NOW)


def test_input_is_not_mutated():
    units = [make_unit("A+", units=5, expires_in=3)]
    before = [dict(u) for u in units]
    summarize_inventory(units, NOW)
    assert units == before


# ── Expiry window ───────────────────────────────────────────────────


def test_seven_days_in_eight_days_out_yesterday_out():
    units = [
        make_unit("B+", units=1, expires_in=7),
        make_unit("B+", units=2, expires_in=8),
        make_unit("B+", units=4, expires_in=-1),
    ]
    b_pos = by_type(summarize_inventory(units, NOW))["B+"]
    assert b_pos["units"] == 7
    assert b_pos["expiringUnits"] == 1
    assert b_pos["expiringDays"] == 7


def test_calendar_days_not_elapsed_hours():
    # 7 days and 14 hours away is still the 7th calendar day
    late = datetime.combine(NOW.date() + timedelta(days=7), datetime.min.time()).replace(hour=23)
    # earlier today has already passed in hours but is day 0
    earlier_today = NOW.replace(hour=1)
    units = [
        make_unit("AB-", units=3, expiry_date=late),
        make_unit("AB-", units=2, expiry_date=earlier_today),
    ]
    ab_neg = by_type(summarize_inventory(units, NOW))["AB-"]
    assert ab_neg["expiringUnits"] == 5
    assert ab_neg["expiringDays"] == 0


def test_expiring_days_is_nearest_in_window():
    units = [
        make_unit("O+", units=1, expires_in=6),
        make_unit("O+", units=1, expires_in=4),
        make_unit("O+", units=1, expires_in=30),
    ]
    assert by_type(summarize_inventory(units, NOW))["O+"]["expiringDays"] == 4


def test_days_between_accepts_dates_and_strings():
    assert days_between(NOW, date(2026, 3, 13)) == 3
    assert days_between(NOW, "2026-03-09T23:00:00") == -1
    assert days_between("2026-03-10", "2026-03-17T00:00:00Z") == 7


def test_expiring_units_sorted_soonest_first():
    units = [
        make_unit("A+", units=1, expires_in=5, id=1),
        make_unit("B+", units=2, expires_in=1, id=2),
        make_unit("O-", units=3, expires_in=9, id=3),
        make_unit("A-", units=4, expires_in=2, status="reserved", id=4),
    ]
    result = expiring_units(units, NOW)
    assert [u["id"] for u in result] == [2, 1]
    assert [u["days_until_expiry"] for u in result] == [1, 5]
