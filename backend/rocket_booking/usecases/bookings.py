from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union, cast

from ..domain.errors import (
    BusinessRuleError,
    FieldError,
    InternalInconsistencyError,
    NotFoundError,
    ValidationError,
)
from ..domain.repositories import BookingRepository, CustomerRepository, LaunchRepository, RocketRepository
from ..domain.services import (
    LAUNCH_NOT_BOOKABLE,
    Availability,
    LaunchSnapshot,
    booking_total,
    check_booking_transition,
    evaluate_admission,
    normalize_email,
    validate_booking_request,
)
from ..models import Booking, BookingStatus, Customer, Launch, LaunchStatus, PaymentStatus, Rocket

logger = logging.getLogger(__name__)

AdmissionError = Union[ValidationError, BusinessRuleError, InternalInconsistencyError]


@dataclass(frozen=True)
class BookingDetails:
    """A booking together with the records its response is enriched from."""

    booking: Booking
    customer: Customer
    launch: Launch
    rocket: Rocket


@dataclass(frozen=True)
class Admitted:
    details: BookingDetails


@dataclass(frozen=True)
class Rejected:
    error: AdmissionError


AdmissionResult = Union[Admitted, Rejected]


def _reject(error: AdmissionError, *, launch_id: object) -> Rejected:
    if isinstance(error, InternalInconsistencyError):
        logger.error("booking admission failed for launch %s: %s", launch_id, error.message)
    else:
        logger.info("booking rejected for launch %s: %r", launch_id, error)
    return Rejected(error)


async def create_booking(
    customer_repo: CustomerRepository,
    launch_repo: LaunchRepository,
    rocket_repo: RocketRepository,
    booking_repo: BookingRepository,
    *,
    launch_id: object,
    customer_email: object,
    seat_count: object,
) -> AdmissionResult:
    """
    Admit a seat reservation or explain why not.

    Only the final write mutates state. The caller must serialize calls per
    launch and commit before releasing, otherwise two admissions can both see
    the same booked total.
    """
    field_errors = validate_booking_request(launch_id, customer_email, seat_count)
    if field_errors:
        return _reject(ValidationError(field_errors), launch_id=launch_id)
    launch_id, customer_email, seat_count = cast(str, launch_id), cast(str, customer_email), cast(int, seat_count)

    customer = await customer_repo.get_by_email(normalize_email(customer_email))
    if customer is None:
        return _reject(
            ValidationError([FieldError("customerEmail", "Customer not found")]),
            launch_id=launch_id,
        )

    launch = await launch_repo.get_for_update(launch_id)
    if launch is None:
        return _reject(ValidationError([FieldError("launchId", "Launch not found")]), launch_id=launch_id)

    if launch.status != LaunchStatus.ACTIVE:
        return _reject(BusinessRuleError(LAUNCH_NOT_BOOKABLE), launch_id=launch_id)

    rocket = await rocket_repo.get(launch.rocket_id)
    if rocket is None:
        return _reject(InternalInconsistencyError("Rocket not found for launch"), launch_id=launch_id)

    booked = await booking_repo.sum_booked(launch.id)
    capacity_error = evaluate_admission(
        LaunchSnapshot(status=launch.status, capacity=rocket.capacity, booked=booked),
        seat_count=seat_count,
    )
    if capacity_error is not None:
        return _reject(capacity_error, launch_id=launch_id)

    booking = await booking_repo.create(
        launch_id=launch.id,
        customer_id=customer.id,
        seat_count=seat_count,
        total_price=booking_total(seat_count, launch.price),
        status=BookingStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
    )
    logger.debug(
        "booking %s admitted: launch=%s customer=%s seats=%d remaining=%d",
        booking.id,
        launch.id,
        customer.id,
        seat_count,
        rocket.capacity - booked - seat_count,
    )
    return Admitted(BookingDetails(booking=booking, customer=customer, launch=launch, rocket=rocket))


async def get_availability(
    launch_repo: LaunchRepository,
    rocket_repo: RocketRepository,
    booking_repo: BookingRepository,
    *,
    launch_id: str,
) -> Availability:
    launch = await launch_repo.get(launch_id)
    if launch is None:
        raise NotFoundError("Launch not found")
    return await availability_for(launch, rocket_repo, booking_repo)


async def availability_for(
    launch: Launch,
    rocket_repo: RocketRepository,
    booking_repo: BookingRepository,
) -> Availability:
    rocket = await rocket_repo.get(launch.rocket_id)
    if rocket is None:
        logger.error("launch %s references missing rocket %s", launch.id, launch.rocket_id)
        raise InternalInconsistencyError("Rocket not found for launch")
    booked = await booking_repo.sum_booked(launch.id)
    return Availability(launch_id=launch.id, total_seats=rocket.capacity, booked_seats=booked)


async def _details(
    booking: Booking,
    customer_repo: CustomerRepository,
    launch_repo: LaunchRepository,
    rocket_repo: RocketRepository,
    *,
    customer: Optional[Customer] = None,
) -> BookingDetails:
    customer = customer or await customer_repo.get(booking.customer_id)
    launch = await launch_repo.get(booking.launch_id)
    rocket = await rocket_repo.get(launch.rocket_id) if launch is not None else None
    if customer is None or launch is None or rocket is None:
        logger.error("booking %s references missing customer, launch or rocket", booking.id)
        raise InternalInconsistencyError("Missing dependent data for booking enrichment")
    return BookingDetails(booking=booking, customer=customer, launch=launch, rocket=rocket)


async def get_booking(
    customer_repo: CustomerRepository,
    launch_repo: LaunchRepository,
    rocket_repo: RocketRepository,
    booking_repo: BookingRepository,
    *,
    booking_id: str,
) -> BookingDetails | None:
    booking = await booking_repo.get(booking_id)
    if booking is None:
        return None
    return await _details(booking, customer_repo, launch_repo, rocket_repo)


async def list_launch_bookings(
    customer_repo: CustomerRepository,
    launch_repo: LaunchRepository,
    rocket_repo: RocketRepository,
    booking_repo: BookingRepository,
    *,
    launch_id: str,
) -> list[BookingDetails]:
    bookings = await booking_repo.list_by_launch(launch_id)
    return [await _details(b, customer_repo, launch_repo, rocket_repo) for b in bookings]


async def list_customer_bookings(
    customer_repo: CustomerRepository,
    launch_repo: LaunchRepository,
    rocket_repo: RocketRepository,
    booking_repo: BookingRepository,
    *,
    customer_email: str,
) -> list[BookingDetails]:
    customer = await customer_repo.get_by_email(normalize_email(customer_email))
    if customer is None:
        return []
    bookings = await booking_repo.list_by_customer(customer.id)
    return [await _details(b, customer_repo, launch_repo, rocket_repo, customer=customer) for b in bookings]


async def update_booking(
    customer_repo: CustomerRepository,
    launch_repo: LaunchRepository,
    rocket_repo: RocketRepository,
    booking_repo: BookingRepository,
    *,
    booking_id: str,
    status: Optional[BookingStatus] = None,
    payment_status: Optional[PaymentStatus] = None,
) -> tuple[BookingDetails, BookingStatus] | None:
    """Change status and/or payment status. Returns the updated booking and its previous status."""
    booking = await booking_repo.get(booking_id)
    if booking is None:
        return None
    previous = booking.status
    error = check_booking_transition(booking.status, status, booking.payment_status, payment_status)
    if error is not None:
        raise error
    if status is not None:
        booking.status = status
    if payment_status is not None:
        booking.payment_status = payment_status
    updated = await booking_repo.update(booking)
    return await _details(updated, customer_repo, launch_repo, rocket_repo), previous


async def delete_booking(booking_repo: BookingRepository, *, booking_id: str) -> Booking | None:
    booking = await booking_repo.get(booking_id)
    if booking is None:
        return None
    await booking_repo.delete(booking)
    return booking
