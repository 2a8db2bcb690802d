# Demo fixtures. Nothing here runs on import; call seed_storage() explicitly.
import logging
import random
from datetime import datetime, timedelta

logger = logging.getLogger("bloodbank.seed")

HOSPITALS = [
    {
        "name": "General Hospital",
        "address": "123 Main St",
        "city": "Springfield",
        "state": "IL",
        "zip": "62701",
        "phone": "555-1000",
        "email": "info@generalhospital.com",
        "contact_person": "Dr. John Smith",
        "status": "active",
    },
    {
        "name": "Memorial Hospital",
        "address": "456 Oak Ave",
        "city": "Springfield",
        "state": "IL",
        "zip": "62702",
        "phone": "555-2000",
        "email": "info@memorialhospital.com",
        "contact_person": "Dr. Sarah Johnson",
        "status": "active",
    },
    {
        "name": "City Medical Center",
        "address": "789 Elm St",
        "city": "Springfield",
        "state": "IL",
        "zip": "62703",
        "phone": "555-3000",
        "email": "info@citymedical.com",
        "contact_person": "Dr. David Lee",
        "status": "active",
    },
]

# blood type -> number of single-unit batches; O- is deliberately below the critical line
INVENTORY_BATCHES = {"A+": 45, "B+": 32, "AB+": 28, "O-": 8}


def _donors(now):
    return [
        {
            "first_name": "John", "last_name": "Doe", "blood_type": "A+",
            "date_of_birth": datetime(1985, 5, 15), "gender": "male", "phone": "555-4001",
            "email": "john.doe@example.com", "address": "101 Pine St",
            "city": "Springfield", "state": "IL", "zip": "62704",
            "last_donation_date": now - timedelta(days=30), "is_eligible": True,
            "eligibility_reason": None, "next_eligible_date": now + timedelta(days=60),
        },
        {
            "first_name": "Jane", "last_name": "Smith", "blood_type": "O-",
            "date_of_birth": datetime(1990, 8, 22), "gender": "female", "phone": "555-4002",
            "email": "jane.smith@example.com", "address": "202 Maple Ave",
            "city": "Springfield", "state": "IL", "zip": "62704",
            "last_donation_date": now - timedelta(days=90), "is_eligible": True,
            "eligibility_reason": None, "next_eligible_date": None,
        },
        {
            "first_name": "Robert", "last_name": "Johnson", "blood_type": "B+",
            "date_of_birth": datetime(1978, 11, 10), "gender": "male", "phone": "555-4003",
            "email": "robert.johnson@example.com", "address": "303 Cedar Ln",
            "city": "Springfield", "state": "IL", "zip": "62705",
            "last_donation_date": now - timedelta(days=15), "is_eligible": False,
            "eligibility_reason": "Recent medication", "next_eligible_date": now + timedelta(days=30),
        },
    ]


def seed_storage(storage, now=None, rng=None) -> bool:
    """Load demo records into an empty ``storage``.

    Returns False without touching anything when users already exist.
    ``now`` and ``rng`` fix the clock and the random dates for tests.
    """
    if storage.list_users():
        logger.info("Storage already has data, skipping seed")
        return False

    now = now or datetime.now()
    rng = rng or random.Random()
    logger.info("Seeding storage (%s)...", storage.backend)

    admin = storage.create_user({
        "username": "admin",
        "password": "admin123",
        "name": "Admin User",
        "email": "admin@bloodbank.com",
        "phone": "555-1234",
        "role": "admin",
    })
    logger.info("Created admin user: %s", admin["id"])

    hospitals = [storage.create_hospital(dict(h)) for h in HOSPITALS]
    logger.info("Created %d hospitals", len(hospitals))

    donors = [storage.create_donor(d) for d in _donors(now)]
    logger.info("Created %d donors", len(donors))

    items = 0
    for blood_type, count in INVENTORY_BATCHES.items():
        for i in range(count):
            storage.create_blood_inventory_item({
                "blood_type": blood_type,
                "units": 1,
                "donation_date": now - timedelta(days=rng.randrange(20)),
                "expiry_date": now + timedelta(days=35 + rng.randrange(10)),
                "status": "available",
                "donor_id": donors[i % 3]["id"],
            })
            items += 1
    logger.info("Created %d inventory items", items)

    requests = [
        {"hospital_id": hospitals[0]["id"], "blood_type": "O-", "units": 5, "priority": "emergency",
         "status": "pending", "reason": "Trauma patient with severe bleeding",
         "contact_person": "Dr. John Smith", "contact_phone": "555-1001"},
        {"hospital_id": hospitals[1]["id"], "blood_type": "A+", "units": 3, "priority": "standard",
         "status": "pending", "reason": "Scheduled surgery",
         "contact_person": "Dr. Sarah Johnson", "contact_phone": "555-2001"},
        {"hospital_id": hospitals[2]["id"], "blood_type": "B+", "units": 2, "priority": "standard",
         "status": "pending", "reason": "Anemic patient",
         "contact_person": "Dr. David Lee", "contact_phone": "555-3001"},
    ]
    for r in requests:
        storage.create_blood_request(r)
    logger.info("Created %d blood requests", len(requests))

    transactions = [
        {"transaction_type": "donation", "blood_type": "A+", "units": 1,
         "source": str(donors[0]["id"]), "destination": "inventory", "request_id": None,
         "notes": "Regular donation", "performed_by": admin["id"]},
        {"transaction_type": "donation", "blood_type": "O-", "units": 1,
         "source": str(donors[1]["id"]), "destination": "inventory", "request_id": None,
         "notes": "Regular donation", "performed_by": admin["id"]},
        {"transaction_type": "distribution", "blood_type": "B+", "units": 2,
         "source": "inventory", "destination": str(hospitals[1]["id"]), "request_id": None,
         "notes": "For scheduled surgery", "performed_by": admin["id"]},
    ]
    for t in transactions:
        storage.create_transaction(t)
    logger.info("Created %d transactions", len(transactions))

    alerts = [
        {"alert_type": "critical_shortage", "message": "Critical shortage of O- blood type",
         "blood_type": "O-", "level": "critical", "is_active": True,
         "expires_at": now + timedelta(days=7)},
        {"alert_type": "expiring_soon", "message": "10 units of AB+ blood expiring in 5 days",
         "blood_type": "AB+", "level": "warning", "is_active": True,
         "expires_at": now + timedelta(days=5)},
        {"alert_type": "new_request", "message": "New emergency request from General Hospital",
         "blood_type": None, "level": "info", "is_active": True,
         "expires_at": now + timedelta(days=1)},
    ]
    for a in alerts:
        storage.create_alert(a)
    logger.info("Created %d alerts", len(alerts))

    logger.info("Seeding completed")
    return True
