# Relational storage (Flask-SQLAlchemy). SQLite by default, PostgreSQL via DATABASE_URL.
import logging
from datetime import datetime

from flask_sqlalchemy import SQLAlchemy

from .storage import Storage

logger = logging.getLogger("bloodbank.database")

db = SQLAlchemy()


class RecordMixin:
    def to_dict(self) -> dict:
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}


class User(RecordMixin, db.Model):  # type: ignore[name-defined]
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False)
    password = db.Column(db.String(256), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(32))
    role = db.Column(db.String(16), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.now)


class Hospital(RecordMixin, db.Model):  # type: ignore[name-defined]
    __tablename__ = "hospitals"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    address = db.Column(db.String(200), nullable=False)
    city = db.Column(db.String(120), nullable=False)
    state = db.Column(db.String(64), nullable=False)
    zip = db.Column(db.String(16), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    email = db.Column(db.String(120))
    contact_person = db.Column(db.String(120))
    status = db.Column(db.String(32), nullable=False, default="active")
    created_at = db.Column(db.DateTime, default=datetime.now)


class Donor(RecordMixin, db.Model):  # type: ignore[name-defined]
    __tablename__ = "donors"
    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(120), nullable=False)
    last_name = db.Column(db.String(120), nullable=False)
    blood_type = db.Column(db.String(4), nullable=False)
    date_of_birth = db.Column(db.DateTime, nullable=False)
    gender = db.Column(db.String(16), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    email = db.Column(db.String(120))
    address = db.Column(db.String(200))
    city = db.Column(db.String(120))
    state = db.Column(db.String(64))
    zip = db.Column(db.String(16))
    last_donation_date = db.Column(db.DateTime)
    is_eligible = db.Column(db.Boolean, nullable=False, default=True)
    eligibility_reason = db.Column(db.String(200))
    next_eligible_date = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.now)


class Recipient(RecordMixin, db.Model):  # type: ignore[name-defined]
    __tablename__ = "recipients"
    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(120), nullable=False)
    last_name = db.Column(db.String(120), nullable=False)
    blood_type = db.Column(db.String(4), nullable=False)
    date_of_birth = db.Column(db.DateTime, nullable=False)
    gender = db.Column(db.String(16), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    email = db.Column(db.String(120))
    address = db.Column(db.String(200))
    city = db.Column(db.String(120))
    state = db.Column(db.String(64))
    zip = db.Column(db.String(16))
    hospital_id = db.Column(db.Integer)
    medical_notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.now)


class BloodInventoryItem(RecordMixin, db.Model):  # type: ignore[name-defined]
    __tablename__ = "blood_inventory"
    id = db.Column(db.Integer, primary_key=True)
    blood_type = db.Column(db.String(4), nullable=False, index=True)
    units = db.Column(db.Integer, nullable=False, default=0)
    donation_date = db.Column(db.DateTime, nullable=False)
    expiry_date = db.Column(db.DateTime, nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default="available")
    donor_id = db.Column(db.Integer)
    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now)


class BloodRequest(RecordMixin, db.Model):  # type: ignore[name-defined]
    __tablename__ = "blood_requests"
    id = db.Column(db.Integer, primary_key=True)
    hospital_id = db.Column(db.Integer, nullable=False)
    blood_type = db.Column(db.String(4), nullable=False)
    units = db.Column(db.Integer, nullable=False)
    priority = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending")
    reason = db.Column(db.Text)
    contact_person = db.Column(db.String(120), nullable=False)
    contact_phone = db.Column(db.String(32), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now)
    fulfilled_at = db.Column(db.DateTime)


class Transaction(RecordMixin, db.Model):  # type: ignore[name-defined]
    __tablename__ = "transactions"
    id = db.Column(db.Integer, primary_key=True)
    transaction_type = db.Column(db.String(16), nullable=False)
    blood_type = db.Column(db.String(4), nullable=False)
    units = db.Column(db.Integer, nullable=False)
    source = db.Column(db.String(64))
    destination = db.Column(db.String(64))
    request_id = db.Column(db.Integer)
    notes = db.Column(db.Text)
    performed_by = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.now)


class Alert(RecordMixin, db.Model):  # type: ignore[name-defined]
    __tablename__ = "alerts"
    id = db.Column(db.Integer, primary_key=True)
    alert_type = db.Column(db.String(32), nullable=False)
    message = db.Column(db.Text, nullable=False)
    blood_type = db.Column(db.String(4))
    level = db.Column(db.String(16), nullable=False, default="info")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.now)
    expires_at = db.Column(db.DateTime)


def init_db(app):
    """Bind the models to ``app`` and create any missing tables."""
    db.init_app(app)
    with app.app_context():
        db.create_all()
    logger.info("Database ready at %s", app.config["SQLALCHEMY_DATABASE_URI"])


class SqlStorage(Storage):
    """Storage backed by the Flask-SQLAlchemy session; needs an app context."""

    backend = "sql"

    def _get(self, model, record_id):
        obj = db.session.get(model, record_id)
        return obj.to_dict() if obj else None

    def _insert(self, model, values, **stamps):
        obj = model(**values, **stamps)
        db.session.add(obj)
        db.session.commit()
        return obj.to_dict()

    def _update(self, model, record_id, values):
        obj = db.session.get(model, record_id)
        if obj is None:
            return None
        for key, value in values.items():
            setattr(obj, key, value)
        db.session.commit()
        return obj.to_dict()

    def _list(self, model, *criteria):
        return [o.to_dict() for o in model.query.filter(*criteria).order_by(model.id).all()]

    def get_user(self, user_id):
        return self._get(User, user_id)

    def get_user_by_username(self, username):
        user = User.query.filter_by(username=username).first()
        return user.to_dict() if user else None

    def create_user(self, values):
        return self._insert(User, self._hash_user_password(values), created_at=datetime.now())

    def list_users(self):
        return self._list(User)

    def get_hospital(self, hospital_id):
        return self._get(Hospital, hospital_id)

    def create_hospital(self, values):
        return self._insert(Hospital, values, created_at=datetime.now())

    def update_hospital(self, hospital_id, values):
        return self._update(Hospital, hospital_id, values)

    def list_hospitals(self):
        return self._list(Hospital)

    def get_donor(self, donor_id):
        return self._get(Donor, donor_id)

    def create_donor(self, values):
        return self._insert(Donor, values, created_at=datetime.now())

    def update_donor(self, donor_id, values):
        return self._update(Donor, donor_id, values)

    def list_donors(self):
        return self._list(Donor)

    def get_recipient(self, recipient_id):
        return self._get(Recipient, recipient_id)

    def create_recipient(self, values):
        return self._insert(Recipient, values, created_at=datetime.now())

    def update_recipient(self, recipient_id, values):
        return self._update(Recipient, recipient_id, values)

    def list_recipients(self):
        return self._list(Recipient)

    def get_blood_inventory_item(self, item_id):
        return self._get(BloodInventoryItem, item_id)

    def create_blood_inventory_item(self, values):
        now = datetime.now()
        return self._insert(BloodInventoryItem, values, created_at=now, updated_at=now)

    def update_blood_inventory_item(self, item_id, values):
        current = self._get(BloodInventoryItem, item_id)
        if current is None:
            return None
        changes = self._inventory_changes(current, values, datetime.now())
        return self._update(BloodInventoryItem, item_id, changes)

    def list_blood_inventory(self, status=None):
        if status:
            return self._list(BloodInventoryItem, BloodInventoryItem.status == status)
        return self._list(BloodInventoryItem)

    def get_blood_request(self, request_id):
        return self._get(BloodRequest, request_id)

    def create_blood_request(self, values):
        now = datetime.now()
        return self._insert(BloodRequest, values, created_at=now, updated_at=now)

    def update_blood_request(self, request_id, values):
        current = self._get(BloodRequest, request_id)
        if current is None:
            return None
        changes = self._request_changes(current, values, datetime.now())
        return self._update(BloodRequest, request_id, changes)

    def list_blood_requests(self, status=None):
        if status:
            return self._list(BloodRequest, BloodRequest.status == status)
        return self._list(BloodRequest)

    def get_transaction(self, transaction_id):
        return self._get(Transaction, transaction_id)

    def create_transaction(self, values):
        return self._insert(Transaction, values, created_at=datetime.now())

    def list_transactions(self):
        return self._list(Transaction)

    def get_alert(self, alert_id):
        return self._get(Alert, alert_id)

    def create_alert(self, values):
        return self._insert(Alert, values, created_at=datetime.now())

    def update_alert(self, alert_id, values):
        return self._update(Alert, alert_id, values)

    def list_alerts(self, active_only=False):
        if active_only:
            return self._list(Alert, Alert.is_active.is_(True))
        return self._list(Alert)
