from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from ..models import MAX_ROCKET_CAPACITY, MIN_ROCKET_CAPACITY, BookingStatus, LaunchStatus, PaymentStatus, RocketRange
from .errors import BusinessRuleError, FieldError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[0-9\s\-()]{7,20}$")

INSUFFICIENT_SEATS = "Insufficient seats available"
LAUNCH_NOT_BOOKABLE = "Launch is not available for booking"

_BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
}

_PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED}),
    PaymentStatus.COMPLETED: frozenset(),
    PaymentStatus.FAILED: frozenset(),
}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_email(email: Any) -> bool:
    return isinstance(email, str) and EMAIL_PATTERN.match(email.strip()) is not None


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


@dataclass(frozen=True)
class Availability:
    launch_id: str
    total_seats: int
    booked_seats: int

    @property
    def available_seats(self) -> int:
        return self.total_seats - self.booked_seats


@dataclass(frozen=True)
class LaunchSnapshot:
    status: LaunchStatus
    capacity: int
    booked: int


def validate_booking_request(launch_id: Any, customer_email: Any, seat_count: Any) -> list[FieldError]:
    """Structural checks for a booking request; every problem is reported, not just the first."""
    errors: list[FieldError] = []
    if not isinstance(launch_id, str) or not launch_id.strip():
        errors.append(FieldError("launchId", "Launch ID is required"))
    if not is_valid_email(customer_email):
        errors.append(FieldError("customerEmail", "A valid customer email is required"))
    if not _is_positive_int(seat_count):
        errors.append(FieldError("seatCount", "Seat count must be a positive integer"))
    return errors


def evaluate_admission(snapshot: LaunchSnapshot, *, seat_count: int) -> Optional[BusinessRuleError]:
    """
    Pure decision: the launch must be active and have room for every requested seat.
    Returns None when the booking may be admitted, otherwise the business error to report.
    """
    if snapshot.status != LaunchStatus.ACTIVE:
        return BusinessRuleError(LAUNCH_NOT_BOOKABLE)
    if seat_count > snapshot.capacity - snapshot.booked:
        return BusinessRuleError(INSUFFICIENT_SEATS)
    return None


def booking_total(seat_count: int, price: Decimal) -> Decimal:
    return Decimal(seat_count) * Decimal(price)


def validate_rocket(name: Any, range_: Any, capacity: Any) -> list[FieldError]:
    errors: list[FieldError] = []
    if not isinstance(name, str) or not name.strip():
        errors.append(FieldError("name", "Name is required and cannot be empty"))
    if range_ not in {r.value for r in RocketRange}:
        allowed = ", ".join(r.value for r in RocketRange)
        errors.append(FieldError("range", f"Range must be one of: {allowed}"))
    if not _is_positive_int(capacity) or not MIN_ROCKET_CAPACITY <= capacity <= MAX_ROCKET_CAPACITY:
        errors.append(
            FieldError(
                "capacity",
                f"Capacity must be an integer between {MIN_ROCKET_CAPACITY} and {MAX_ROCKET_CAPACITY}",
            )
        )
    return errors


def validate_launch(
    *,
    rocket_capacity: int,
    scheduled_date: datetime,
    price: Decimal,
    minimum_passengers: int,
    now: datetime,
    require_future_date: bool = True,
) -> list[FieldError]:
    """Launch field rules once the rocket is known. `now` and `scheduled_date` are naive UTC."""
    errors: list[FieldError] = []
    if not _is_positive_int(minimum_passengers):
        errors.append(FieldError("minimumPassengers", "Minimum passengers must be at least 1"))
    elif minimum_passengers > rocket_capacity:
        errors.append(
            FieldError(
                "minimumPassengers",
                f"Minimum passengers cannot exceed rocket capacity of {rocket_capacity}",
            )
        )
    if require_future_date and scheduled_date <= now:
        errors.append(FieldError("scheduledDate", "Scheduled date must be in the future"))
    if not price.is_finite() or price <= 0:
        errors.append(FieldError("price", "Price must be greater than 0"))
    return errors


def validate_customer_name(name: Any) -> list[FieldError]:
    if not isinstance(name, str) or not name.strip():
        return [FieldError("name", "Name is required and cannot be empty")]
    return []


def validate_customer_phone(phone: Any) -> list[FieldError]:
    if not isinstance(phone, str) or PHONE_PATTERN.match(phone.strip()) is None:
        return [FieldError("phone", "Phone must be 7-20 digits, optionally starting with +")]
    return []


def validate_customer(name: Any, email: Any, phone: Any) -> list[FieldError]:
    errors = validate_customer_name(name)
    if not is_valid_email(email):
        errors.append(FieldError("email", "A valid email is required"))
    errors.extend(validate_customer_phone(phone))
    return errors


def check_booking_transition(
    current: BookingStatus,
    target: Optional[BookingStatus],
    current_payment: PaymentStatus,
    target_payment: Optional[PaymentStatus],
) -> Optional[BusinessRuleError]:
    """Cancelled bookings never come back, so released seats cannot be re-consumed behind the capacity check."""
    if target is not None and target != current and target not in _BOOKING_TRANSITIONS[current]:
        return BusinessRuleError(f"Booking status cannot change from {current.value} to {target.value}")
    if (
        target_payment is not None
        and target_payment != current_payment
        and target_payment not in _PAYMENT_TRANSITIONS[current_payment]
    ):
        return BusinessRuleError(
            f"Payment status cannot change from {current_payment.value} to {target_payment.value}"
        )
    return None
