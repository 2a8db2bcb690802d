"""Payload validation for records entering the system.

Each ``clean_*`` function takes the decoded JSON body and returns a dict
holding only known fields, converted to their Python types. Unknown keys are
dropped. With ``partial=True`` (PATCH) required fields and defaults are
skipped and only the keys present are converted.
"""

from datetime import date, datetime, timedelta

from .constants import (
    ALERT_LEVELS,
    ALERT_TYPES,
    BLOOD_TYPES,
    DONATION_EXPIRY_DAYS,
    REQUEST_PRIORITIES,
    REQUEST_STATUSES,
    TRANSACTION_TYPES,
    UNIT_STATUSES,
    USER_ROLES,
)


class ValidationError(ValueError):
    pass


def normalize_blood_type(bt) -> str:
    bt = (bt or "").strip().upper() if isinstance(bt, str) else ""
    if bt in BLOOD_TYPES:
        return bt
    raise ValidationError("Invalid blood type. Allowed: " + ", ".join(BLOOD_TYPES))


def parse_datetime(value, field="date"):
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 date (YYYY-MM-DD)")
    else:
        raise ValidationError(f"{field} must be an ISO-8601 date (YYYY-MM-DD)")
    # stored as naive local time
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _text(value, field):
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    return str(value).strip()


def _opt_text(value, field):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _int(value, field):
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")


def _opt_int(value, field):
    if value is None or value == "":
        return None
    return _int(value, field)


def _positive_int(value, field):
    value = _int(value, field)
    if value <= 0:
        raise ValidationError(f"{field} must be positive")
    return value


def _bool(value, field):
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(f"{field} must be true or false")


def _date(value, field):
    parsed = parse_datetime(value, field)
    if parsed is None:
        raise ValidationError(f"{field} is required")
    return parsed


def _opt_date(value, field):
    return parse_datetime(value, field)


def _blood_type(value, field):
    return normalize_blood_type(value)


def _opt_blood_type(value, field):
    if value is None or value == "":
        return None
    return normalize_blood_type(value)


def _choice(choices):
    def convert(value, field):
        if value not in choices:
            raise ValidationError(f"{field} must be one of: " + ", ".join(choices))
        return value
    return convert


_PERSON_FIELDS = {
    "first_name": _text,
    "last_name": _text,
    "blood_type": _blood_type,
    "date_of_birth": _date,
    "gender": _text,
    "phone": _text,
    "email": _opt_text,
    "address": _opt_text,
    "city": _opt_text,
    "state": _opt_text,
    "zip": _opt_text,
}

SCHEMAS = {
    "user": {
        "username": _text,
        "password": _text,
        "name": _text,
        "email": _text,
        "phone": _opt_text,
        "role": _choice(USER_ROLES),
    },
    "hospital": {
        "name": _text,
        "address": _text,
        "city": _text,
        "state": _text,
        "zip": _text,
        "phone": _text,
        "email": _opt_text,
        "contact_person": _opt_text,
        "status": _text,
    },
    "donor": dict(
        _PERSON_FIELDS,
        last_donation_date=_opt_date,
        is_eligible=_bool,
        eligibility_reason=_opt_text,
        next_eligible_date=_opt_date,
    ),
    "recipient": dict(
        _PERSON_FIELDS,
        hospital_id=_opt_int,
        medical_notes=_opt_text,
    ),
    "inventory": {
        "blood_type": _blood_type,
        "units": _positive_int,
        "donation_date": _date,
        "expiry_date": _date,
        "status": _choice(UNIT_STATUSES),
        "donor_id": _opt_int,
    },
    "request": {
        "hospital_id": _int,
        "blood_type": _blood_type,
        "units": _positive_int,
        "priority": _choice(REQUEST_PRIORITIES),
        "status": _choice(REQUEST_STATUSES),
        "reason": _opt_text,
        "contact_person": _text,
        "contact_phone": _text,
    },
    "transaction": {
        "transaction_type": _choice(TRANSACTION_TYPES),
        "blood_type": _blood_type,
        "units": _positive_int,
        "source": _opt_text,
        "destination": _opt_text,
        "request_id": _opt_int,
        "notes": _opt_text,
        "performed_by": _int,
    },
    "alert": {
        "alert_type": _choice(ALERT_TYPES),
        "message": _text,
        "blood_type": _opt_blood_type,
        "level": _choice(ALERT_LEVELS),
        "is_active": _bool,
        "expires_at": _opt_date,
    },
}

DEFAULTS = {
    "hospital": {"status": "active"},
    "donor": {"is_eligible": True},
    "inventory": {"status": "available"},
    "request": {"status": "pending"},
    "alert": {"level": "info", "is_active": True},
}


def clean(kind: str, data, partial: bool = False) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    schema = SCHEMAS[kind]
    values = {} if partial else dict(DEFAULTS.get(kind, {}))
    for key, value in data.items():
        if key not in schema:
            continue
        values[key] = schema[key](value, key)
    if kind == "inventory" and not partial:
        _inventory_dates(values)
    if not partial:
        missing = [k for k in schema if k not in values]
        # optional fields are the ones whose converter accepts None
        for key in missing:
            values[key] = schema[key](None, key)
    _check_dates(values)
    return values


def _inventory_dates(values):
    if values.get("donation_date") is None:
        values["donation_date"] = datetime.now()
    if values.get("expiry_date") is None:
        values["expiry_date"] = values["donation_date"] + timedelta(days=DONATION_EXPIRY_DAYS)


def _check_dates(values):
    donated = values.get("donation_date")
    expires = values.get("expiry_date")
    if donated is not None and expires is not None and expires <= donated:
        raise ValidationError("expiry_date must be after donation_date")


def clean_user(data, partial=False):
    return clean("user", data, partial)


def clean_hospital(data, partial=False):
    return clean("hospital", data, partial)


def clean_donor(data, partial=False):
    return clean("donor", data, partial)


def clean_recipient(data, partial=False):
    return clean("recipient", data, partial)


def clean_inventory(data, partial=False):
    return clean("inventory", data, partial)


def clean_request(data, partial=False):
    return clean("request", data, partial)


def clean_transaction(data, partial=False):
    return clean("transaction", data, partial)


def clean_alert(data, partial=False):
    return clean("alert", data, partial)
