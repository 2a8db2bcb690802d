"""Flask application factory and the ``/api`` REST routes."""

import logging
from datetime import date, datetime, timedelta
from functools import wraps

from flask import Blueprint, Flask, current_app, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .config import Config
from .constants import COMPATIBILITY, REQUEST_STATUSES
from .database import SqlStorage, init_db
from .seed import seed_storage
from .storage import MemStorage
from .validation import (
    ValidationError,
    clean_alert,
    clean_donor,
    clean_hospital,
    clean_inventory,
    clean_recipient,
    clean_request,
    clean_transaction,
    clean_user,
    normalize_blood_type,
)

logger = logging.getLogger("bloodbank.app")

api = Blueprint("api", __name__, url_prefix="/api")


def get_storage():
    return current_app.extensions["bloodbank"]


def to_json(record):
    out = {}
    for key, value in record.items():
        if key == "password":
            continue
        if isinstance(value, (datetime, date)):
            value = value.isoformat()
        elif isinstance(value, dict):
            value = to_json(value)
        out[key] = value
    return out


def body():
    return request.get_json(silent=True)


def not_found(thing):
    return jsonify({"error": f"{thing} not found"}), 404


def on_failure(message):
    """Turn unexpected errors into a logged 500 with ``message``."""
    def decorate(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except (ValidationError, HTTPException):
                raise
            except Exception:
                logger.exception(message)
                return jsonify({"error": message}), 500
        return wrapper
    return decorate


@api.errorhandler(ValidationError)
def validation_error(exc):
    return jsonify({"error": "Validation Error", "message": str(exc)}), 400


@api.route("/health")
def health():
    return jsonify({"status": "ok", "storage": get_storage().backend})


# Dashboard

@api.route("/dashboard/stats")
@on_failure("Failed to fetch dashboard stats")
def dashboard_stats():
    return jsonify(get_storage().get_stats_summary())


@api.route("/dashboard/blood-summary")
@on_failure("Failed to fetch blood inventory summary")
def dashboard_blood_summary():
    return jsonify(get_storage().get_blood_type_summary())


@api.route("/dashboard/activities")
@on_failure("Failed to fetch recent activities")
def dashboard_activities():
    limit = request.args.get("limit", 10, type=int)
    return jsonify([to_json(a) for a in get_storage().get_recent_activities(limit)])


# Users

@api.route("/users", methods=["GET"])
@on_failure("Failed to fetch users")
def list_users():
    return jsonify([to_json(u) for u in get_storage().list_users()])


@api.route("/users/<int:user_id>", methods=["GET"])
@on_failure("Failed to fetch user")
def get_user(user_id):
    user = get_storage().get_user(user_id)
    if not user:
        return not_found("User")
    return jsonify(to_json(user))


@api.route("/users", methods=["POST"])
@on_failure("Failed to create user")
def create_user():
    values = clean_user(body())
    storage = get_storage()
    if storage.get_user_by_username(values["username"]):
        raise ValidationError("Username already exists")
    return jsonify(to_json(storage.create_user(values))), 201


@api.route("/login", methods=["POST"])
@on_failure("Failed to log in")
def login():
    data = body()
    if not isinstance(data, dict):
        data = {}
    storage = get_storage()
    user = storage.get_user_by_username(data.get("username"))
    if user and storage.check_password(user, data.get("password")):
        return jsonify({"ok": True, "id": user["id"], "role": user["role"]})
    logger.info("Rejected login for %r", data.get("username"))
    return jsonify({"ok": False}), 401


# Hospitals, donors and recipients share the same plain CRUD shape

def _register_crud(name, storage_name, thing, cleaner):
    path = f"/{name}"

    @on_failure(f"Failed to fetch {name}")
    def list_view():
        records = getattr(get_storage(), f"list_{name}")()
        return jsonify([to_json(r) for r in records])

    @on_failure(f"Failed to fetch {storage_name}")
    def get_view(record_id):
        record = getattr(get_storage(), f"get_{storage_name}")(record_id)
        if not record:
            return not_found(thing)
        return jsonify(to_json(record))

    @on_failure(f"Failed to create {storage_name}")
    def create_view():
        record = getattr(get_storage(), f"create_{storage_name}")(cleaner(body()))
        return jsonify(to_json(record)), 201

    @on_failure(f"Failed to update {storage_name}")
    def update_view(record_id):
        record = getattr(get_storage(), f"update_{storage_name}")(record_id, cleaner(body(), partial=True))
        if not record:
            return not_found(thing)
        return jsonify(to_json(record))

    api.add_url_rule(path, f"list_{name}", list_view, methods=["GET"])
    api.add_url_rule(path, f"create_{storage_name}", create_view, methods=["POST"])
    api.add_url_rule(f"{path}/<int:record_id>", f"get_{storage_name}", get_view, methods=["GET"])
    api.add_url_rule(f"{path}/<int:record_id>", f"update_{storage_name}", update_view, methods=["PATCH"])


_register_crud("hospitals", "hospital", "Hospital", clean_hospital)
_register_crud("donors", "donor", "Donor", clean_donor)
_register_crud("recipients", "recipient", "Recipient", clean_recipient)


# Inventory

@api.route("/inventory", methods=["GET"])
@on_failure("Failed to fetch inventory")
def list_inventory():
    items = get_storage().list_blood_inventory(request.args.get("status") or None)
    return jsonify([to_json(i) for i in items])


@api.route("/inventory/expiring", methods=["GET"])
@on_failure("Failed to fetch expiring inventory")
def list_expiring_inventory():
    return jsonify([to_json(i) for i in get_storage().get_expiring_inventory()])


@api.route("/inventory/<int:item_id>", methods=["GET"])
@on_failure("Failed to fetch inventory item")
def get_inventory_item(item_id):
    item = get_storage().get_blood_inventory_item(item_id)
    if not item:
        return not_found("Inventory item")
    return jsonify(to_json(item))


@api.route("/inventory", methods=["POST"])
@on_failure("Failed to create inventory item")
def create_inventory_item():
    item = get_storage().create_blood_inventory_item(clean_inventory(body()))
    return jsonify(to_json(item)), 201


@api.route("/inventory/<int:item_id>", methods=["PATCH"])
@on_failure("Failed to update inventory item")
def update_inventory_item(item_id):
    item = get_storage().update_blood_inventory_item(item_id, clean_inventory(body(), partial=True))
    if not item:
        return not_found("Inventory item")
    return jsonify(to_json(item))


# Blood requests

def with_hospital(storage, blood_request):
    hospital = storage.get_hospital(blood_request["hospital_id"])
    return dict(blood_request, hospital={
        "id": hospital["id"],
        "name": hospital["name"],
        "contact_person": hospital["contact_person"],
    } if hospital else None)


@api.route("/requests", methods=["GET"])
@on_failure("Failed to fetch requests")
def list_requests():
    status = request.args.get("status")
    storage = get_storage()
    requests = storage.list_blood_requests(status if status in REQUEST_STATUSES else None)
    return jsonify([to_json(with_hospital(storage, r)) for r in requests])


@api.route("/requests/<int:request_id>", methods=["GET"])
@on_failure("Failed to fetch request")
def get_request(request_id):
    storage = get_storage()
    blood_request = storage.get_blood_request(request_id)
    if not blood_request:
        return not_found("Request")
    return jsonify(to_json(with_hospital(storage, blood_request)))


@api.route("/requests", methods=["POST"])
@on_failure("Failed to create request")
def create_request():
    storage = get_storage()
    values = clean_request(body())
    blood_request = storage.create_blood_request(values)
    if values["priority"] == "emergency":
        storage.create_alert({
            "alert_type": "new_request",
            "message": f"Emergency request for {values['units']} units of {values['blood_type']} blood",
            "blood_type": values["blood_type"],
            "level": "critical",
            "is_active": True,
            "expires_at": datetime.now() + timedelta(hours=24),
        })
        logger.warning("Emergency request %s for %s", blood_request["id"], values["blood_type"])
    return jsonify(to_json(with_hospital(storage, blood_request))), 201


@api.route("/requests/<int:request_id>", methods=["PATCH"])
@on_failure("Failed to update request")
def update_request(request_id):
    storage = get_storage()
    data = body()
    changes = clean_request(data, partial=True)
    performed_by = clean_transaction({"performed_by": data.get("performed_by") or 1}, partial=True)["performed_by"]
    blood_request = storage.update_blood_request(request_id, changes)
    if not blood_request:
        return not_found("Request")
    if changes.get("status") == "fulfilled" and blood_request["status"] == "fulfilled":
        storage.create_transaction({
            "transaction_type": "distribution",
            "blood_type": blood_request["blood_type"],
            "units": blood_request["units"],
            "source": "inventory",
            "destination": str(blood_request["hospital_id"]),
            "request_id": blood_request["id"],
            "notes": f"Fulfilling request #{blood_request['id']}",
            "performed_by": performed_by,
        })
    return jsonify(to_json(with_hospital(storage, blood_request)))


# Transactions

@api.route("/transactions", methods=["GET"])
@on_failure("Failed to fetch transactions")
def list_transactions():
    return jsonify([to_json(t) for t in get_storage().list_transactions()])


@api.route("/transactions/<int:transaction_id>", methods=["GET"])
@on_failure("Failed to fetch transaction")
def get_transaction(transaction_id):
    transaction = get_storage().get_transaction(transaction_id)
    if not transaction:
        return not_found("Transaction")
    return jsonify(to_json(transaction))


@api.route("/transactions", methods=["POST"])
@on_failure("Failed to create transaction")
def create_transaction():
    transaction = get_storage().create_transaction(clean_transaction(body()))
    return jsonify(to_json(transaction)), 201


# Alerts

@api.route("/alerts", methods=["GET"])
@on_failure("Failed to fetch alerts")
def list_alerts():
    active_only = request.args.get("active") == "true"
    return jsonify([to_json(a) for a in get_storage().list_alerts(active_only)])


@api.route("/alerts/refresh", methods=["POST"])
@on_failure("Failed to refresh stock alerts")
def refresh_alerts():
    return jsonify([to_json(a) for a in get_storage().refresh_stock_alerts()])


@api.route("/alerts/<int:alert_id>", methods=["GET"])
@on_failure("Failed to fetch alert")
def get_alert(alert_id):
    alert = get_storage().get_alert(alert_id)
    if not alert:
        return not_found("Alert")
    return jsonify(to_json(alert))


@api.route("/alerts", methods=["POST"])
@on_failure("Failed to create alert")
def create_alert():
    return jsonify(to_json(get_storage().create_alert(clean_alert(body())))), 201


@api.route("/alerts/<int:alert_id>", methods=["PATCH"])
@on_failure("Failed to update alert")
def update_alert(alert_id):
    alert = get_storage().update_alert(alert_id, clean_alert(body(), partial=True))
    if not alert:
        return not_found("Alert")
    return jsonify(to_json(alert))


@api.route("/compatibility/<blood_type>", methods=["GET"])
def compatibility(blood_type):
    bt = normalize_blood_type(blood_type)
    return jsonify({"recipient": bt, "compatible_donors": COMPATIBILITY[bt]})


def build_storage(app):
    backend = app.config["STORAGE_BACKEND"]
    threshold = app.config["CRITICAL_THRESHOLD"]
    if backend == "memory":
        return MemStorage(critical_threshold=threshold)
    if backend == "sql":
        return SqlStorage(critical_threshold=threshold)
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")


def create_app(config=None, storage=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config:
        app.config.update(config)
    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})

    storage = storage or build_storage(app)
    if storage.backend == "sql":
        init_db(app)
    app.extensions["bloodbank"] = storage
    app.register_blueprint(api)

    if app.config["SEED_ON_STARTUP"]:
        with app.app_context():
            seed_storage(storage)
    return app
