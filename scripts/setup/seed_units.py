# scripts/setup/seed_units.py
"""
Insert a few demo vehicle units so the API has something to book.
Existing codes are left alone.
Usage: python scripts/setup/seed_units.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from decimal import Decimal

from app.database import SessionLocal, create_tables
from app.models.vehicle_unit import VehicleUnit
from app.services import booking_store

DEMO_UNITS = [
    ("CAR-001", "Toyota Avanza", Decimal("350000"), "7 seats, manual"),
    ("CAR-002", "Honda Brio", Decimal("275000"), "5 seats, automatic"),
    ("CAR-003", "Toyota Innova Reborn", Decimal("550000"), "7 seats, diesel"),
    ("BIKE-001", "Honda Vario 125", Decimal("90000"), "Scooter, 2 helmets included"),
]


def main():
    create_tables()
    db = SessionLocal()
    try:
        for code, name, price, description in DEMO_UNITS:
            if booking_store.get_unit_by_code(db, code):
                print(f"   = {code} already present")
                continue
            db.add(VehicleUnit(code=code, vehicle_name=name, price_per_day=price, description=description))
            print(f"   + {code} {name} @ {price}/day")
        db.commit()
    finally:
        db.close()
    print("✅ Vehicle units seeded")


if __name__ == "__main__":
    main()
