# scripts/setup/init_db.py
"""
Initialize database — creates all tables and, on PostgreSQL, the
per-unit no-overlap exclusion constraint.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import create_tables, engine
from app.config import settings
from app.models.booking import NO_OVERLAP_CONSTRAINT
from sqlalchemy import inspect, text


def main():
    print("🗄️  Rental Scheduler DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {engine.url.render_as_string(hide_password=True)}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  sudo systemctl start postgresql")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    print("✅ All tables created")

    tables = sorted(inspect(engine).get_table_names())
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    if engine.dialect.name == "postgresql":
        with engine.connect() as conn:
            found = conn.execute(
                text("SELECT 1 FROM pg_constraint WHERE conname = :name"), {"name": NO_OVERLAP_CONSTRAINT}
            ).first()
        print(f"\n🔒 Overlap constraint {NO_OVERLAP_CONSTRAINT}: {'present' if found else 'MISSING'}")
    else:
        print(f"\n⚠️  {engine.dialect.name}: no overlap constraint, only in-process locking protects bookings")

    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn app.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()
