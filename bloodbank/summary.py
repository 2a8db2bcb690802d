"""Inventory summarization for the dashboard.

``summarize_inventory`` rolls a snapshot of inventory units up into one
record per blood type. It only reads its input and builds a fresh result,
so it can be called from any request handler without coordination.
"""

from datetime import date, datetime

from .constants import BLOOD_TYPES, CRITICAL_THRESHOLD, EXPIRING_WINDOW_DAYS


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()


def days_between(now, when) -> int:
    """Calendar days from ``now`` to ``when``; negative once ``when`` has passed."""
    return (_as_date(when) - _as_date(now)).days


def _available(units):
    return [u for u in units if u["status"] == "available"]


def summarize_inventory(units, now, critical_threshold=CRITICAL_THRESHOLD):
    """Return one summary per blood type, zero-stock types included.

    Only ``available`` units are counted. A unit is "expiring" when its
    expiry falls 0 to 7 calendar days after ``now``; ``expiringDays`` is the
    nearest of those, or 0 when none are expiring.
    """
    available = _available(units)
    total = sum(u["units"] for u in available)

    summaries = []
    for blood_type in BLOOD_TYPES:
        group = [u for u in available if u["blood_type"] == blood_type]
        count = sum(u["units"] for u in group)

        expiring_days = []
        expiring_count = 0
        for u in group:
            days = days_between(now, u["expiry_date"])
            if 0 <= days <= EXPIRING_WINDOW_DAYS:
                expiring_days.append(days)
                expiring_count += u["units"]

        summaries.append({
            "bloodType": blood_type,
            "units": count,
            "percentage": (count / total) * 100 if total > 0 else 0,
            "expiringUnits": expiring_count,
            "expiringDays": min(expiring_days) if expiring_days else 0,
            "isCritical": count < critical_threshold,
        })
    return summaries


def expiring_units(units, now, window_days=EXPIRING_WINDOW_DAYS):
    """Available units expiring within ``window_days``, soonest first."""
    result = []
    for u in _available(units):
        days = days_between(now, u["expiry_date"])
        if 0 <= days <= window_days:
            result.append(dict(u, days_until_expiry=days))
    result.sort(key=lambda u: (u["days_until_expiry"], u.get("id") or 0))
    return result
