"""
Pytest configuration and shared fixtures.
"""
import os

# Point the app at throwaway settings before anything under app/ is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "s3cret-pass"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["MAILGUN_API_KEY"] = ""
os.environ["MAILGUN_DOMAIN"] = ""
os.environ["SMTP_HOST"] = ""

from dataclasses import replace
from datetime import date
from types import MappingProxyType

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import EventConfig, get_event_config
from app.database import Base, get_db
from app.dependencies import Notifier, get_notifier
from app.enums import Institution
from app.main import app
from app.models import AuditLog, Registration  # noqa: F401
from app.services.auth import create_access_token

ALLOWED_DATES = frozenset({date(2026, 1, 29), date(2026, 1, 30), date(2026, 1, 31)})


def make_config(**overrides) -> EventConfig:
    config = EventConfig(
        base_fees=MappingProxyType(
            {
                (Institution.polytechnic, True): 250,
                (Institution.polytechnic, False): 300,
                (Institution.engineering, True): 450,
                (Institution.engineering, False): 500,
            }
        ),
        price_per_night=217,
        stay_capacity=350,
        max_stay_nights=3,
        allowed_stay_dates=ALLOWED_DATES,
        open_institutions=frozenset(Institution),
    )
    return replace(config, **overrides)


class RecordingNotifier:
    """Collects every email the app tries to send; `result` decides the transport outcome."""

    def __init__(self, result: bool = True):
        self.result = result
        self.received_for: list[str] = []
        self.status_for: list[tuple[str, str]] = []

    def received(self, registration) -> bool:
        self.received_for.append(registration.email)
        return self.result

    def status(self, registration) -> bool:
        self.status_for.append((registration.email, registration.status.value))
        return self.result

    def as_notifier(self) -> Notifier:
        return Notifier(received=self.received, status=self.status)


@pytest.fixture
def event_config():
    return make_config()


@pytest.fixture(scope="function")
def db_engine():
    """In-memory database engine"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture(scope="function")
def client(db_session, event_config, notifier):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_config] = lambda: event_config
    app.dependency_overrides[get_notifier] = notifier.as_notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {create_access_token('admin')}"}


_counter = {"n": 0}


@pytest.fixture
def payload():
    """Factory for a valid Polytechnic member submission without stay (total 250)."""

    def _make(**overrides):
        _counter["n"] += 1
        n = _counter["n"]
        data = {
            "full_name": "Asha Verma",
            "email": f"asha{n}@college.edu",
            "phone": "98765 43210",
            "institution": "Polytechnic",
            "college": "Government Polytechnic",
            "department": "Mechanical",
            "year": "Second",
            "is_member": "Yes",
            "membership_number": "M-1001",
            "stay_preference": "Without Stay",
            "stay_dates": [],
            "total_amount": 250,
            "transaction_id": f"TXN{n:06d}",
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def stay_payload(payload):
    """Factory for a Polytechnic member with two nights (250 + 2 x 217 = 684)."""

    def _make(**overrides):
        data = payload(
            stay_preference="With Stay",
            stay_dates=["2026-01-29", "2026-01-30"],
            total_amount=684,
        )
        data.update(overrides)
        return data

    return _make
