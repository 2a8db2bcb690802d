# Fixed vocabularies shared by the API, storage adapters and the summarizer.
# The string literals are the contract with the dashboard; do not rename them.

BLOOD_TYPES = ["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]

UNIT_STATUSES = ["available", "reserved", "expired", "discarded"]

# current status -> statuses it may move to
UNIT_TRANSITIONS = {
    "available": {"reserved", "expired", "discarded"},
    "reserved": {"expired", "discarded"},
    "expired": {"discarded"},
    "discarded": set(),
}

REQUEST_PRIORITIES = ["standard", "urgent", "emergency"]
REQUEST_STATUSES = ["pending", "approved", "rejected", "fulfilled", "cancelled"]
TRANSACTION_TYPES = ["donation", "distribution", "transfer", "disposal", "other"]
ALERT_TYPES = ["critical_shortage", "expiring_soon", "new_request", "donation_needed"]
ALERT_LEVELS = ["info", "warning", "critical"]
USER_ROLES = ["admin", "staff", "hospital", "donor"]

# recipient -> donor types it can safely receive
COMPATIBILITY = {
    "O-": ["O-"],
    "O+": ["O-", "O+"],
    "A-": ["O-", "A-"],
    "A+": ["O-", "O+", "A-", "A+"],
    "B-": ["O-", "B-"],
    "B+": ["O-", "O+", "B-", "B+"],
    "AB-": ["O-", "A-", "B-", "AB-"],
    "AB+": ["O-", "O+", "A-", "A+", "B-", "B+", "AB-", "AB+"],
}

DONATION_EXPIRY_DAYS = 42
EXPIRING_WINDOW_DAYS = 7
CRITICAL_THRESHOLD = 10
