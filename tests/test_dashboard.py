from datetime import timedelta

from bloodbank.dashboard import format_time_ago, recent_activities, stats_summary, stock_alerts
from bloodbank.summary import summarize_inventory

from conftest import NOW, make_unit


def test_format_time_ago():
    assert format_time_ago(NOW - timedelta(seconds=30), NOW) == "just now"
    assert format_time_ago(NOW - timedelta(minutes=5), NOW) == "5 min ago"
    assert format_time_ago(NOW - timedelta(hours=3, minutes=10), NOW) == "3 hours ago"
    assert format_time_ago(NOW - timedelta(days=2, hours=1), NOW) == "2 days ago"


def test_stats_summary():
    transactions = [
        {"transaction_type": "donation"},
        {"transaction_type": "donation"},
        {"transaction_type": "distribution"},
    ]
    requests = [
        {"hospital_id": 1, "status": "pending"},
        {"hospital_id": 1, "status": "fulfilled"},
        {"hospital_id": 2, "status": "pending"},
    ]
    donors = [{"is_eligible": True}, {"is_eligible": False}]

    assert stats_summary(transactions, requests, donors) == {
        "totalDonations": 2,
        "hospitalsServed": 2,
        "activeDonors": 1,
        "pendingRequests": 2,
    }


def test_recent_activities_labels_and_order():
    donors = [{"id": 1, "first_name": "Jane", "last_name": "Smith"}]
    hospitals = [{"id": 2, "name": "Memorial Hospital"}]
    transactions = [
        {"id": 1, "transaction_type": "donation", "blood_type": "O-", "units": 1,
         "source": "1", "destination": "inventory", "created_at": NOW - timedelta(hours=2)},
        {"id": 2, "transaction_type": "distribution", "blood_type": "B+", "units": 2,
         "source": "inventory", "destination": "2", "created_at": NOW - timedelta(minutes=10)},
        {"id": 3, "transaction_type": "transfer", "blood_type": "A+", "units": 1,
         "source": None, "destination": None, "created_at": NOW},
    ]
    alerts = [
        {"id": 1, "alert_type": "critical_shortage", "message": "Low O-", "is_active": True,
         "created_at": NOW - timedelta(days=1)},
        {"id": 2, "alert_type": "expiring_soon", "message": "AB+ expiring", "is_active": False,
         "created_at": NOW},
    ]

    feed = recent_activities(transactions, alerts, donors, hospitals, NOW)

    assert [a["id"] for a in feed] == [1002, 1, 2001]
    assert feed[0]["description"] == "2 units of B+ sent to Memorial Hospital"
    assert feed[0]["time"] == "10 min ago"
    assert feed[1]["description"] == "1 units of O- blood donated by Jane S."
    assert feed[2]["type"] == "alert"
    assert feed[2]["iconColor"] == "text-danger"


def test_recent_activities_unknown_donor_and_limit():
    transactions = [
        {"id": i, "transaction_type": "donation", "blood_type": "A+", "units": 1,
         "source": "99", "destination": "inventory", "created_at": NOW - timedelta(minutes=i)}
        for i in range(1, 6)
    ]
    feed = recent_activities(transactions, [], [], [], NOW, limit=3)
    assert len(feed) == 3
    assert feed[0]["description"].endswith("donated by a donor")


def test_stock_alerts_from_summary():
    units = [
        make_unit("A+", units=20, expires_in=30),
        make_unit("B+", units=15, expires_in=3),
    ]
    alerts = stock_alerts(summarize_inventory(units, NOW), NOW)

    critical = {a["blood_type"] for a in alerts if a["alert_type"] == "critical_shortage"}
    assert critical == {"A-", "B-", "AB+", "AB-", "O+", "O-"}

    expiring = [a for a in alerts if a["alert_type"] == "expiring_soon"]
    assert len(expiring) == 1
    assert expiring[0]["message"] == "15 units of B+ blood expiring in 3 days"
    assert expiring[0]["level"] == "warning"
    assert expiring[0]["expires_at"] == NOW + timedelta(days=3)
