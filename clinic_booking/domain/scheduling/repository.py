"""Booking repository - Database operations for bookings, services and clients"""

from datetime import date
from typing import Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from ...models import ACTIVE_BOOKING_STATUSES, Booking, Child, Client, Service


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return (
            db.query(Service)
            .filter(Service.id == service_id, Service.is_active.is_(True))
            .first()
        )

    @staticmethod
    def get_active_bookings_for_date(
        db: Session, day: date, for_update: bool = False
    ) -> list[Booking]:
        """Bookings on a day that hold their slot, ordered by start time"""
        query = db.query(Booking).filter(
            Booking.date == day,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        )
        if for_update:
            query = query.with_for_update()
        return query.order_by(Booking.start_time.asc()).all()

    @staticmethod
    def lock_date(db: Session, day: date) -> None:
        """
        Serialize booking writes for one calendar day until the transaction ends.

        PostgreSQL gets a transaction-scoped advisory lock keyed on the date, which
        also covers days with no rows to lock yet. Other backends rely on the
        partial unique index and their own write serialization.
        """
        if db.get_bind().dialect.name == "postgresql":
            db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": day.toordinal()})

    @staticmethod
    def get_or_create_client(db: Session, email: str, name: str, phone: Optional[str]) -> Client:
        """Find a client by email or create one. Caller commits."""
        client = db.query(Client).filter(Client.email == email).first()
        if client:
            return client
        client = Client(email=email, name=name, phone=phone)
        db.add(client)
        db.flush()
        return client

    @staticmethod
    def create_child(db: Session, parent: Client, name: str, age: Optional[str]) -> Child:
        child = Child(parent_id=parent.id, name=name, age=age)
        db.add(child)
        db.flush()
        return child

    @staticmethod
    def add_booking(db: Session, **booking_data) -> Booking:
        """Stage a booking in the current transaction. Caller commits."""
        booking = Booking(**booking_data)
        db.add(booking)
        db.flush()
        return booking
