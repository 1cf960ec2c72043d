import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..deps import get_launch_locks, get_session
from ..domain.locks import LaunchLocks
from ..infrastructure.repositories import (
    SqlAlchemyBookingRepository,
    SqlAlchemyCustomerRepository,
    SqlAlchemyLaunchRepository,
    SqlAlchemyRocketRepository,
)
from ..schemas import BookingCreate, BookingRead, BookingUpdate
from ..usecases import bookings as booking_usecase
from ..utils.audit_log import emit_audit_log

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


def _repos(
    session: AsyncSession,
) -> tuple[SqlAlchemyCustomerRepository, SqlAlchemyLaunchRepository, SqlAlchemyRocketRepository, SqlAlchemyBookingRepository]:
    return (
        SqlAlchemyCustomerRepository(session),
        SqlAlchemyLaunchRepository(session),
        SqlAlchemyRocketRepository(session),
        SqlAlchemyBookingRepository(session),
    )


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    session: AsyncSession = Depends(get_session),
    locks: LaunchLocks = Depends(get_launch_locks),
    settings: Settings = Depends(get_settings),
) -> BookingRead:
    customer_repo, launch_repo, rocket_repo, booking_repo = _repos(session)
    try:
        async with asyncio.timeout(settings.admission_timeout_seconds):
            # The launch lock spans check, write and commit.
            async with locks.hold(payload.launch_id):
                async with session.begin():
                    result = await booking_usecase.create_booking(
                        customer_repo,
                        launch_repo,
                        rocket_repo,
                        booking_repo,
                        launch_id=payload.launch_id,
                        customer_email=payload.customer_email,
                        seat_count=payload.seat_count,
                    )
                    if isinstance(result, booking_usecase.Admitted):
                        booking = result.details.booking
                        emit_audit_log(
                            action="booking.created",
                            booking_id=booking.id,
                            launch_id=booking.launch_id,
                            customer_id=booking.customer_id,
                            seat_count=booking.seat_count,
                            status_from=None,
                            status_to=booking.status,
                            payment_status=booking.payment_status,
                        )
    except TimeoutError:
        logger.warning("booking admission for launch %s timed out", payload.launch_id)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Booking request timed out")
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="failed to record booking") from exc

    if isinstance(result, booking_usecase.Rejected):
        raise result.error
    return BookingRead.from_details(result.details)


@router.get("/launch/{launch_id}", response_model=List[BookingRead])
async def list_launch_bookings(
    launch_id: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
) -> list[BookingRead]:
    rows = await booking_usecase.list_launch_bookings(*_repos(session), launch_id=launch_id)
    return [BookingRead.from_details(details) for details in rows]


@router.get("/customer/{email}", response_model=List[BookingRead])
async def list_customer_bookings(
    email: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
) -> list[BookingRead]:
    rows = await booking_usecase.list_customer_bookings(*_repos(session), customer_email=email)
    return [BookingRead.from_details(details) for details in rows]


@router.get("/{booking_id}", response_model=BookingRead)
async def get_booking(
    booking_id: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
) -> BookingRead:
    details = await booking_usecase.get_booking(*_repos(session), booking_id=booking_id)
    if details is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return BookingRead.from_details(details)


@router.patch("/{booking_id}", response_model=BookingRead)
async def update_booking(
    payload: BookingUpdate,
    booking_id: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
) -> BookingRead:
    try:
        async with session.begin():
            row = await booking_usecase.update_booking(
                *_repos(session),
                booking_id=booking_id,
                status=payload.status,
                payment_status=payload.payment_status,
            )
            if row is None:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
            details, previous_status = row
            emit_audit_log(
                action="booking.updated",
                booking_id=details.booking.id,
                launch_id=details.booking.launch_id,
                customer_id=details.booking.customer_id,
                seat_count=details.booking.seat_count,
                status_from=previous_status,
                status_to=details.booking.status,
                payment_status=details.booking.payment_status,
            )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="failed to record booking") from exc
    return BookingRead.from_details(details)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
) -> Response:
    try:
        async with session.begin():
            booking = await booking_usecase.delete_booking(SqlAlchemyBookingRepository(session), booking_id=booking_id)
            if booking is None:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
            emit_audit_log(
                action="booking.deleted",
                booking_id=booking.id,
                launch_id=booking.launch_id,
                customer_id=booking.customer_id,
                seat_count=booking.seat_count,
                status_from=booking.status,
                status_to=None,
                payment_status=booking.payment_status,
            )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="failed to record booking") from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
