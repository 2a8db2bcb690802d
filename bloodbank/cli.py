# Admin console and service commands.
import argparse
import logging
from datetime import datetime, timedelta

from .app import create_app
from .config import configure_logging
from .constants import DONATION_EXPIRY_DAYS, UNIT_STATUSES
from .seed import seed_storage
from .validation import ValidationError, clean_inventory, normalize_blood_type

logger = logging.getLogger("bloodbank.cli")


def view_summary(storage):
    for s in storage.get_blood_type_summary():
        flag = " CRITICAL" if s["isCritical"] else ""
        expiring = f", {s['expiringUnits']} expiring in {s['expiringDays']}d" if s["expiringUnits"] else ""
        print(f"{s['bloodType']:>3}: {s['units']} units ({s['percentage']:.1f}%){expiring}{flag}")


def add_unit(storage):
    blood_type = normalize_blood_type(input("Blood Type: ").strip())
    units = input("Units: ").strip()
    days = input(f"Days until expiry (blank = {DONATION_EXPIRY_DAYS}): ").strip()
    now = datetime.now()
    try:
        expiry = now + timedelta(days=int(days or DONATION_EXPIRY_DAYS))
    except ValueError:
        raise ValidationError("Days until expiry must be a whole number")
    item = storage.create_blood_inventory_item(clean_inventory({
        "blood_type": blood_type,
        "units": units,
        "donation_date": now,
        "expiry_date": expiry,
    }))
    print(f"Inventory item {item['id']} added.")


def change_status(storage):
    try:
        item_id = int(input("Inventory item id: ").strip())
    except ValueError:
        raise ValidationError("Inventory item id must be a number")
    status = input("New status (" + "/".join(UNIT_STATUSES) + "): ").strip().lower()
    item = storage.update_blood_inventory_item(item_id, clean_inventory({"status": status}, partial=True))
    if not item:
        print("Inventory item not found.")
        return
    print(f"Item {item['id']} is now {item['status']}.")


def view_alerts(storage):
    alerts = storage.list_alerts(active_only=True)
    if not alerts:
        print("No active alerts.")
        return
    for a in alerts:
        print(f"{a['id']}: [{a['level']}] {a['message']}")


def refresh_alerts(storage):
    created = storage.refresh_stock_alerts()
    print(f"{len(created)} stock alert(s) active.")


def view_expiring(storage):
    items = storage.get_expiring_inventory()
    if not items:
        print("No units expiring within 7 days.")
        return
    for i in items:
        print(f"{i['id']}: {i['blood_type']} - {i['units']} unit(s), expires in {i['days_until_expiry']} day(s)")


MENU = [
    ("1", "View Inventory Summary", view_summary),
    ("2", "Add Inventory Unit", add_unit),
    ("3", "Change Unit Status", change_status),
    ("4", "View Active Alerts", view_alerts),
    ("5", "Refresh Stock Alerts", refresh_alerts),
    ("6", "View Expiring Units", view_expiring),
]


def console(storage):
    actions = {key: action for key, _, action in MENU}
    while True:
        print("\n=== Blood Bank Console ===")
        for key, label, _ in MENU:
            print(f"{key}. {label}")
        print("0. Exit")
        ch = input("Choose: ").strip()
        if ch == "0":
            print("Bye.")
            break
        action = actions.get(ch)
        if action is None:
            print("Invalid choice.")
            continue
        try:
            action(storage)
        except ValidationError as e:
            print("Error:", e)


def main(argv=None):
    parser = argparse.ArgumentParser(prog="bloodbank", description="Blood bank records service")
    parser.add_argument(
        "command",
        nargs="?",
        default="console",
        choices=["console", "serve", "init-db", "seed"],
        help="what to run (default: interactive console)",
    )
    args = parser.parse_args(argv)

    configure_logging()
    app = create_app()
    storage = app.extensions["bloodbank"]

    if args.command == "serve":
        app.run(host=app.config["HOST"], port=app.config["PORT"])
        return
    with app.app_context():
        if args.command == "init-db":
            # create_app has already created the tables for the sql backend
            logger.info("Storage initialised (%s)", storage.backend)
        elif args.command == "seed":
            seed_storage(storage)
        else:
            console(storage)

