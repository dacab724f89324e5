import os

# Before any project import: config modules read these at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("TIMEZONE", "Europe/Berlin")

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from server.database import Base
from server import models  # noqa: F401
from server.store import ReminderStore

from tests.helpers import BERLIN, FakeChannel, berlin


@pytest.fixture
def tz():
    return BERLIN


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def store(session_factory):
    return ReminderStore(session_factory)


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def user_id(store):
    return store.upsert_user("+4915112345678")


@pytest.fixture
def make_template(store, user_id):
    def _make(recurrence="daily", time_of_day="08:00", weekdays=None, anchor_date=None,
              created_at=None, message="Take your medicine"):
        return store.insert_template(
            user_id=user_id,
            message=message,
            recurrence=recurrence,
            time_of_day=time_of_day,
            weekdays=weekdays,
            anchor_date=anchor_date or date(2024, 1, 1),
            created_at=created_at or berlin(2024, 1, 1),
        )
    return _make
