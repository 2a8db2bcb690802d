"""Storage abstraction for blood bank records.

``Storage`` declares the record operations every backend provides and
implements the dashboard operations once on top of them. Records cross the
boundary as plain dicts, so ``MemStorage`` and the relational
``SqlStorage`` (see ``bloodbank.database``) are interchangeable.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime

from werkzeug.security import check_password_hash, generate_password_hash

from .constants import CRITICAL_THRESHOLD, UNIT_TRANSITIONS
from .dashboard import recent_activities, stats_summary, stock_alerts
from .summary import expiring_units, summarize_inventory
from .validation import DEFAULTS, ValidationError

logger = logging.getLogger("bloodbank.storage")

STOCK_ALERT_TYPES = ("critical_shortage", "expiring_soon")


class Storage(ABC):
    backend = "abstract"

    def __init__(self, critical_threshold=CRITICAL_THRESHOLD):
        self.critical_threshold = critical_threshold

    # Users
    @abstractmethod
    def get_user(self, user_id): ...

    @abstractmethod
    def get_user_by_username(self, username): ...

    @abstractmethod
    def create_user(self, values): ...

    @abstractmethod
    def list_users(self): ...

    # Hospitals
    @abstractmethod
    def get_hospital(self, hospital_id): ...

    @abstractmethod
    def create_hospital(self, values): ...

    @abstractmethod
    def update_hospital(self, hospital_id, values): ...

    @abstractmethod
    def list_hospitals(self): ...

    # Donors
    @abstractmethod
    def get_donor(self, donor_id): ...

    @abstractmethod
    def create_donor(self, values): ...

    @abstractmethod
    def update_donor(self, donor_id, values): ...

    @abstractmethod
    def list_donors(self): ...

    # Recipients
    @abstractmethod
    def get_recipient(self, recipient_id): ...

    @abstractmethod
    def create_recipient(self, values): ...

    @abstractmethod
    def update_recipient(self, recipient_id, values): ...

    @abstractmethod
    def list_recipients(self): ...

    # Inventory
    @abstractmethod
    def get_blood_inventory_item(self, item_id): ...

    @abstractmethod
    def create_blood_inventory_item(self, values): ...

    @abstractmethod
    def update_blood_inventory_item(self, item_id, values): ...

    @abstractmethod
    def list_blood_inventory(self, status=None): ...

    # Requests
    @abstractmethod
    def get_blood_request(self, request_id): ...

    @abstractmethod
    def create_blood_request(self, values): ...

    @abstractmethod
    def update_blood_request(self, request_id, values): ...

    @abstractmethod
    def list_blood_requests(self, status=None): ...

    # Transactions
    @abstractmethod
    def get_transaction(self, transaction_id): ...

    @abstractmethod
    def create_transaction(self, values): ...

    @abstractmethod
    def list_transactions(self): ...

    # Alerts
    @abstractmethod
    def get_alert(self, alert_id): ...

    @abstractmethod
    def create_alert(self, values): ...

    @abstractmethod
    def update_alert(self, alert_id, values): ...

    @abstractmethod
    def list_alerts(self, active_only=False): ...

    # Shared rules, applied by every backend before writing

    @staticmethod
    def _hash_user_password(values: dict) -> dict:
        values = dict(values)
        values["password"] = generate_password_hash(values["password"])
        return values

    @staticmethod
    def check_password(user: dict, password: str) -> bool:
        return bool(user) and check_password_hash(user["password"], password or "")

    @staticmethod
    def _inventory_changes(current: dict, values: dict, now: datetime) -> dict:
        changes = dict(values)
        new_status = changes.get("status")
        if new_status is not None and new_status != current["status"]:
            if new_status not in UNIT_TRANSITIONS[current["status"]]:
                raise ValidationError(
                    f"Cannot change unit status from {current['status']} to {new_status}"
                )
            logger.info("Inventory item %s: %s -> %s", current["id"], current["status"], new_status)
        donated = changes.get("donation_date", current["donation_date"])
        expires = changes.get("expiry_date", current["expiry_date"])
        if expires <= donated:
            raise ValidationError("expiry_date must be after donation_date")
        changes["updated_at"] = now
        return changes

    @staticmethod
    def _request_changes(current: dict, values: dict, now: datetime) -> dict:
        changes = dict(values)
        changes["updated_at"] = now
        if values.get("status") == "fulfilled":
            changes["fulfilled_at"] = now
        return changes

    # Dashboard

    def get_blood_type_summary(self, now=None):
        return summarize_inventory(
            self.list_blood_inventory(),
            now or datetime.now(),
            critical_threshold=self.critical_threshold,
        )

    def get_expiring_inventory(self, now=None):
        return expiring_units(self.list_blood_inventory("available"), now or datetime.now())

    def get_stats_summary(self):
        return stats_summary(self.list_transactions(), self.list_blood_requests(), self.list_donors())

    def get_recent_activities(self, limit=10, now=None):
        return recent_activities(
            self.list_transactions(),
            self.list_alerts(active_only=True),
            self.list_donors(),
            self.list_hospitals(),
            now or datetime.now(),
            limit=limit,
        )

    def refresh_stock_alerts(self, now=None):
        """Replace active stock alerts with ones derived from the current summary."""
        now = now or datetime.now()
        for alert in self.list_alerts(active_only=True):
            if alert["alert_type"] in STOCK_ALERT_TYPES:
                self.update_alert(alert["id"], {"is_active": False})
        created = [self.create_alert(a) for a in stock_alerts(self.get_blood_type_summary(now), now)]
        logger.info("Refreshed stock alerts: %d active", len(created))
        return created


class MemStorage(Storage):
    """Dict-backed storage with auto-increment ids."""

    backend = "memory"
    KINDS = ("users", "hospitals", "donors", "recipients", "inventory", "requests",
             "transactions", "alerts")
    # column defaults the relational models declare
    COLUMN_DEFAULTS = {
        "hospitals": DEFAULTS["hospital"],
        "donors": DEFAULTS["donor"],
        "inventory": DEFAULTS["inventory"],
        "requests": DEFAULTS["request"],
        "alerts": DEFAULTS["alert"],
    }

    def __init__(self, critical_threshold=CRITICAL_THRESHOLD):
        super().__init__(critical_threshold)
        self._tables = {kind: {} for kind in self.KINDS}
        self._next_ids = {kind: 1 for kind in self.KINDS}

    def _get(self, kind, record_id):
        record = self._tables[kind].get(record_id)
        return dict(record) if record is not None else None

    def _insert(self, kind, values, **stamps):
        record_id = self._next_ids[kind]
        self._next_ids[kind] += 1
        record = dict(self.COLUMN_DEFAULTS.get(kind, {}))
        record.update(values, id=record_id, **stamps)
        self._tables[kind][record_id] = record
        return dict(record)

    def _update(self, kind, record_id, values):
        record = self._tables[kind].get(record_id)
        if record is None:
            return None
        record.update(values)
        return dict(record)

    def _list(self, kind):
        return [dict(r) for r in self._tables[kind].values()]

    def get_user(self, user_id):
        return self._get("users", user_id)

    def get_user_by_username(self, username):
        return next((dict(u) for u in self._tables["users"].values() if u["username"] == username), None)

    def create_user(self, values):
        return self._insert("users", self._hash_user_password(values), created_at=datetime.now())

    def list_users(self):
        return self._list("users")

    def get_hospital(self, hospital_id):
        return self._get("hospitals", hospital_id)

    def create_hospital(self, values):
        return self._insert("hospitals", values, created_at=datetime.now())

    def update_hospital(self, hospital_id, values):
        return self._update("hospitals", hospital_id, values)

    def list_hospitals(self):
        return self._list("hospitals")

    def get_donor(self, donor_id):
        return self._get("donors", donor_id)

    def create_donor(self, values):
        return self._insert("donors", values, created_at=datetime.now())

    def update_donor(self, donor_id, values):
        return self._update("donors", donor_id, values)

    def list_donors(self):
        return self._list("donors")

    def get_recipient(self, recipient_id):
        return self._get("recipients", recipient_id)

    def create_recipient(self, values):
        return self._insert("recipients", values, created_at=datetime.now())

    def update_recipient(self, recipient_id, values):
        return self._update("recipients", recipient_id, values)

    def list_recipients(self):
        return self._list("recipients")

    def get_blood_inventory_item(self, item_id):
        return self._get("inventory", item_id)

    def create_blood_inventory_item(self, values):
        now = datetime.now()
        return self._insert("inventory", values, created_at=now, updated_at=now)

    def update_blood_inventory_item(self, item_id, values):
        current = self._tables["inventory"].get(item_id)
        if current is None:
            return None
        return self._update("inventory", item_id, self._inventory_changes(current, values, datetime.now()))

    def list_blood_inventory(self, status=None):
        items = self._list("inventory")
        return [i for i in items if i["status"] == status] if status else items

    def get_blood_request(self, request_id):
        return self._get("requests", request_id)

    def create_blood_request(self, values):
        now = datetime.now()
        return self._insert("requests", values, created_at=now, updated_at=now, fulfilled_at=None)

    def update_blood_request(self, request_id, values):
        current = self._tables["requests"].get(request_id)
        if current is None:
            return None
        return self._update("requests", request_id, self._request_changes(current, values, datetime.now()))

    def list_blood_requests(self, status=None):
        requests = self._list("requests")
        return [r for r in requests if r["status"] == status] if status else requests

    def get_transaction(self, transaction_id):
        return self._get("transactions", transaction_id)

    def create_transaction(self, values):
        return self._insert("transactions", values, created_at=datetime.now())

    def list_transactions(self):
        return self._list("transactions")

    def get_alert(self, alert_id):
        return self._get("alerts", alert_id)

    def create_alert(self, values):
        return self._insert("alerts", values, created_at=datetime.now())

    def update_alert(self, alert_id, values):
        return self._update("alerts", alert_id, values)

    def list_alerts(self, active_only=False):
        alerts = self._list("alerts")
        return [a for a in alerts if a["is_active"]] if active_only else alerts
