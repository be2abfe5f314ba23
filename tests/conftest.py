"""Shared test fixtures and helpers."""

import os

# Point the app at an in-memory database before any clinic_booking import
os.environ["DATABASE_URL"] = "sqlite://"
for _var in ("CRON_SECRET", "RESEND_API_KEY", "SETTINGS_ENCRYPTION_KEY"):
    os.environ.pop(_var, None)

from datetime import date
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from clinic_booking.database import Base, SessionLocal, engine
from clinic_booking.errors import NotifierError
from clinic_booking.models import Booking, BookingStatus, Client, Service


@pytest.fixture
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(setup_database):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


class FakeNotifier:
    """Records sends; ``result`` is returned, ``fail_for`` addresses raise NotifierError."""

    def __init__(self, result: bool = True, fail_for: tuple = ()):
        self.result = result
        self.fail_for = set(fail_for)
        self.sent = []

    async def send(self, kind, message):
        if message.to in self.fail_for:
            raise NotifierError("Mail provider rejected the message")
        self.sent.append((kind, message))
        return self.result


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def client(db, notifier):
    from clinic_booking.domain.reminders.router import get_notifier
    from clinic_booking.main import app

    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_service(db, title: str = "Speech Therapy", duration_minutes: int = 60, is_active: bool = True) -> Service:
    service = Service(title=title, duration_minutes=duration_minutes, is_active=is_active)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


def make_client(db, email: Optional[str] = "parent@example.com", name: str = "Ayse Demir") -> Client:
    client = Client(name=name, email=email, phone="05321234567")
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


def make_booking(
    db,
    day: date,
    start: str,
    end: str,
    status: str = BookingStatus.PENDING.value,
    service: Optional[Service] = None,
    client: Optional[Client] = None,
) -> Booking:
    service = service or db.query(Service).first() or make_service(db)
    client = client or db.query(Client).first() or make_client(db)
    booking = Booking(
        client_id=client.id,
        service_id=service.id,
        date=day,
        start_time=start,
        end_time=end,
        status=status,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking
