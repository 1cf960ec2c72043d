from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql.sqltypes import DateTime, Integer, Numeric, String

MIN_ROCKET_CAPACITY = 1
MAX_ROCKET_CAPACITY = 10


class Base(DeclarativeBase):
    pass


class RocketRange(StrEnum):
    SUBORBITAL = "suborbital"
    ORBITAL = "orbital"
    MOON = "moon"
    MARS = "mars"


class LaunchStatus(StrEnum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BookingStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class PaymentStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


def _str_enum(enum_cls: type[StrEnum]) -> Enum:
    return Enum(
        enum_cls,
        values_callable=lambda cls: [e.value for e in cls],
        native_enum=False,
    )


class Rocket(Base):
    __tablename__ = "rockets"
    __table_args__ = (
        CheckConstraint(
            f"capacity >= {MIN_ROCKET_CAPACITY} AND capacity <= {MAX_ROCKET_CAPACITY}",
            name="chk_rockets_capacity",
        ),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    range: Mapped[RocketRange] = mapped_column(_str_enum(RocketRange), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    launches: Mapped[list["Launch"]] = relationship(back_populates="rocket")


class Launch(Base):
    __tablename__ = "launches"
    __table_args__ = (
        CheckConstraint("price > 0", name="chk_launches_price"),
        CheckConstraint("minimum_passengers >= 1", name="chk_launches_min_passengers"),
        Index("idx_launches_rocket", "rocket_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    rocket_id: Mapped[str] = mapped_column(ForeignKey("rockets.id"), nullable=False)
    scheduled_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    minimum_passengers: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[LaunchStatus] = mapped_column(
        _str_enum(LaunchStatus),
        nullable=False,
        default=LaunchStatus.SCHEDULED,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    rocket: Mapped["Rocket"] = relationship(back_populates="launches")
    bookings: Mapped[list["Booking"]] = relationship(back_populates="launch", cascade="save-update, merge, delete")


class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = (UniqueConstraint("email", name="uq_customers_email"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Stored normalized (trimmed, lowercased).
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    bookings: Mapped[list["Booking"]] = relationship(back_populates="customer", cascade="save-update, merge, delete")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("seat_count >= 1", name="chk_bookings_seat_count"),
        Index("idx_bookings_launch", "launch_id"),
        Index("idx_bookings_customer", "customer_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    launch_id: Mapped[str] = mapped_column(ForeignKey("launches.id"), nullable=False)
    customer_id: Mapped[str] = mapped_column(ForeignKey("customers.id"), nullable=False)
    seat_count: Mapped[int] = mapped_column(Integer, nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        _str_enum(BookingStatus),
        nullable=False,
        default=BookingStatus.PENDING,
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        _str_enum(PaymentStatus),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    launch: Mapped["Launch"] = relationship(back_populates="bookings")
    customer: Mapped["Customer"] = relationship(back_populates="bookings")
