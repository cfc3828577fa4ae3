"""
Shared fixtures: a throwaway SQLite database per test and seeded vehicle units.
Environment is set before any app module is imported so settings pick it up.
"""

import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("API_KEY", "")

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.database import create_tables, engine_options
from app.models.vehicle_unit import VehicleUnit


@pytest.fixture
def session_factory(tmp_path):
    url = f"sqlite:///{tmp_path / 'scheduler.db'}"
    engine = create_engine(url, **engine_options(url))
    create_tables(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_unit(db):
    counter = {"n": 0}

    def _make(code=None, price="100000", name="Toyota Avanza"):
        counter["n"] += 1
        unit = VehicleUnit(
            code=code or f"CAR-{counter['n']:03d}",
            vehicle_name=name,
            price_per_day=Decimal(price),
        )
        db.add(unit)
        db.commit()
        db.refresh(unit)
        return unit

    return _make
