# Dashboard derivations: headline stats, the activity feed and stock alerts.

from datetime import timedelta


def stats_summary(transactions, requests, donors) -> dict:
    return {
        "totalDonations": sum(1 for t in transactions if t["transaction_type"] == "donation"),
        "hospitalsServed": len({r["hospital_id"] for r in requests}),
        "activeDonors": sum(1 for d in donors if d["is_eligible"]),
        "pendingRequests": sum(1 for r in requests if r["status"] == "pending"),
    }


def format_time_ago(when, now) -> str:
    minutes = int((now - when).total_seconds() // 60)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes} min ago"
    if minutes < 24 * 60:
        return f"{minutes // 60} hours ago"
    return f"{minutes // (60 * 24)} days ago"


def _source_id(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def recent_activities(transactions, alerts, donors, hospitals, now, limit=10):
    donors_by_id = {d["id"]: d for d in donors}
    hospitals_by_id = {h["id"]: h for h in hospitals}
    activities = []

    for t in transactions:
        if t["transaction_type"] == "donation":
            donor = donors_by_id.get(_source_id(t["source"]))
            who = f"{donor['first_name']} {donor['last_name'][:1]}." if donor else "a donor"
            activities.append({
                "id": t["id"],
                "type": "donation",
                "title": "New donation received",
                "description": f"{t['units']} units of {t['blood_type']} blood donated by {who}",
                "timestamp": t["created_at"],
                "iconColor": "text-success",
                "icon": "inventory",
            })
        elif t["transaction_type"] == "distribution":
            hospital = hospitals_by_id.get(_source_id(t["destination"]))
            where = hospital["name"] if hospital else "a hospital"
            activities.append({
                "id": t["id"] + 1000,
                "type": "request",
                "title": "Hospital request fulfilled",
                "description": f"{t['units']} units of {t['blood_type']} sent to {where}",
                "timestamp": t["created_at"],
                "iconColor": "text-info",
                "icon": "local_hospital",
            })

    for a in alerts:
        if not a["is_active"]:
            continue
        critical = a["alert_type"] == "critical_shortage"
        if critical:
            icon, color = "warning", "text-danger"
        elif a["alert_type"] == "expiring_soon":
            icon, color = "schedule", "text-warning"
        else:
            icon, color = "warning", "text-warning"
        activities.append({
            "id": a["id"] + 2000,
            "type": "alert" if critical else "expiry",
            "title": "Critical inventory alert" if critical else "Expiration notice",
            "description": a["message"],
            "timestamp": a["created_at"],
            "iconColor": color,
            "icon": icon,
        })

    activities.sort(key=lambda item: item["timestamp"], reverse=True)
    activities = activities[:limit]
    for item in activities:
        item["time"] = format_time_ago(item["timestamp"], now)
    return activities


def stock_alerts(summaries, now) -> list:
    """Alert payloads for critical and soon-to-expire blood types."""
    alerts = []
    for s in summaries:
        if s["isCritical"]:
            alerts.append({
                "alert_type": "critical_shortage",
                "message": f"Critical shortage of {s['bloodType']} blood type ({s['units']} units available)",
                "blood_type": s["bloodType"],
                "level": "critical",
                "is_active": True,
                "expires_at": now + timedelta(days=7),
            })
        if s["expiringUnits"] > 0:
            alerts.append({
                "alert_type": "expiring_soon",
                "message": f"{s['expiringUnits']} units of {s['bloodType']} blood expiring in {s['expiringDays']} days",
                "blood_type": s["bloodType"],
                "level": "warning",
                "is_active": True,
                "expires_at": now + timedelta(days=s["expiringDays"]),
            })
    return alerts
