# app/database.py
"""
Database connection, session management, and table creation.
Uses SQLAlchemy with PostgreSQL in production; SQLite URLs are accepted for
local runs. All models are auto-imported here so create_tables() creates every
table (and the PostgreSQL overlap constraint) in one call.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.config import settings


def engine_options(url: str) -> dict:
    """Connection pool options per backend. SQLite has no server-side pool."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False, "timeout": 30}}
    return {
        "pool_pre_ping": True,   # Auto-reconnect if DB connection drops
        "pool_size": 10,
        "max_overflow": 20,
    }


engine = create_engine(settings.DATABASE_URL, echo=False, **engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency, yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from app.models.vehicle_unit import VehicleUnit   # noqa
    from app.models.payment import Payment            # noqa
    from app.models.booking import Booking            # noqa

    Base.metadata.create_all(bind=bind or engine)
