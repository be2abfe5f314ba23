import enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


# Statuses that hold a slot on the calendar
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


class ReminderKind(str, enum.Enum):
    REMINDER = "REMINDER"
    THANK_YOU = "THANK_YOU"


class ReminderStatus(str, enum.Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


class BackupStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Service(Base):
    """Bookable service. Owned by the content admin; read-only here."""

    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=True)
    duration_minutes = Column(Integer, nullable=False, default=60)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    bookings = relationship("Booking", back_populates="service")


class Client(Base):
    """Person who books appointments and receives reminders"""

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=True)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    children = relationship("Child", back_populates="parent", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="client")


class Child(Base):
    __tablename__ = "children"

    id = Column(Integer, primary_key=True, index=True)
    parent_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    name = Column(String(255), nullable=False)
    age = Column(String(20), nullable=True)  # Free text as entered on the booking form
    created_at = Column(DateTime, server_default=func.now())

    parent = relationship("Client", back_populates="children")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    child_id = Column(Integer, ForeignKey("children.id"), nullable=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)

    date = Column(Date, nullable=False, index=True)  # Calendar day, timezone-naive
    start_time = Column(String(5), nullable=False)  # "HH:MM" local wall-clock
    end_time = Column(String(5), nullable=False)  # "HH:MM" local wall-clock
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service = relationship("Service", back_populates="bookings")
    client = relationship("Client", back_populates="bookings")
    child = relationship("Child")
    reminder_tasks = relationship(
        "ReminderTask", back_populates="booking", cascade="all, delete-orphan"
    )

    __table_args__ = (
        # Storage-level backstop: one active booking per (date, start_time).
        # Full interval overlap is enforced by the conflict guard under a per-date lock.
        Index(
            "uq_bookings_active_slot",
            "date",
            "start_time",
            unique=True,
            postgresql_where=text("status IN ('PENDING', 'CONFIRMED')"),
            sqlite_where=text("status IN ('PENDING', 'CONFIRMED')"),
        ),
    )


class ReminderTask(Base):
    """Time-offset notification for a booking. Retained after dispatch for audit."""

    __tablename__ = "reminder_tasks"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(
        Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    kind = Column(String(20), nullable=False)  # REMINDER, THANK_YOU
    # REMINDER: minutes before start. THANK_YOU: minutes after end.
    offset_minutes = Column(Integer, nullable=False)
    send_at = Column(DateTime, nullable=False, index=True)  # UTC, computed once at creation
    status = Column(String(20), nullable=False, default=ReminderStatus.PENDING.value, index=True)
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking", back_populates="reminder_tasks")


class SiteSetting(Base):
    """Key/value settings record; values are JSON documents validated on read"""

    __tablename__ = "site_settings"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class BackupExport(Base):
    __tablename__ = "backup_exports"

    id = Column(Integer, primary_key=True, index=True)
    status = Column(String(20), nullable=False, default=BackupStatus.PENDING.value)
    file_key = Column(String(500), nullable=True)
    file_url = Column(String(1000), nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    completed_at = Column(DateTime, nullable=True)
