from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_launch_locks, get_session
from ..domain.locks import LaunchLocks
from ..infrastructure.repositories import (
    SqlAlchemyBookingRepository,
    SqlAlchemyLaunchRepository,
    SqlAlchemyRocketRepository,
)
from ..schemas import AvailabilityRead, LaunchCreate, LaunchRead, LaunchUpdate
from ..usecases import bookings as booking_usecase
from ..usecases import launches as launch_usecase

router = APIRouter(prefix="/api/launches", tags=["launches"])


@router.post("", response_model=LaunchRead, status_code=status.HTTP_201_CREATED)
async def create_launch(
    payload: LaunchCreate,
    session: AsyncSession = Depends(get_session),
) -> LaunchRead:
    launch_repo = SqlAlchemyLaunchRepository(session)
    rocket_repo = SqlAlchemyRocketRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    async with session.begin():
        launch = await launch_usecase.create_launch(
            launch_repo,
            rocket_repo,
            rocket_id=payload.rocket_id,
            scheduled_date=payload.scheduled_date,
            price=payload.price,
            minimum_passengers=payload.minimum_passengers,
            status=payload.status,
        )
        launch, rocket, availability = await launch_usecase.describe_launch(launch, rocket_repo, booking_repo)
    return LaunchRead.from_db(launch=launch, rocket=rocket, availability=availability)


@router.get("", response_model=List[LaunchRead])
async def list_launches(session: AsyncSession = Depends(get_session)) -> list[LaunchRead]:
    rows = await launch_usecase.list_launches(
        SqlAlchemyLaunchRepository(session),
        SqlAlchemyRocketRepository(session),
        SqlAlchemyBookingRepository(session),
    )
    return [LaunchRead.from_db(launch=launch, rocket=rocket, availability=availability) for launch, rocket, availability in rows]


@router.get("/{launch_id}", response_model=LaunchRead)
async def get_launch(
    launch_id: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
) -> LaunchRead:
    row = await launch_usecase.get_launch(
        SqlAlchemyLaunchRepository(session),
        SqlAlchemyRocketRepository(session),
        SqlAlchemyBookingRepository(session),
        launch_id=launch_id,
    )
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Launch not found")
    launch, rocket, availability = row
    return LaunchRead.from_db(launch=launch, rocket=rocket, availability=availability)


@router.get("/{launch_id}/availability", response_model=AvailabilityRead)
async def get_availability(
    launch_id: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
) -> AvailabilityRead:
    availability = await booking_usecase.get_availability(
        SqlAlchemyLaunchRepository(session),
        SqlAlchemyRocketRepository(session),
        SqlAlchemyBookingRepository(session),
        launch_id=launch_id,
    )
    return AvailabilityRead.from_domain(availability)


@router.put("/{launch_id}", response_model=LaunchRead)
async def update_launch(
    payload: LaunchUpdate,
    launch_id: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
    locks: LaunchLocks = Depends(get_launch_locks),
) -> LaunchRead:
    async with locks.hold(launch_id):
        async with session.begin():
            row = await launch_usecase.update_launch(
                SqlAlchemyLaunchRepository(session),
                SqlAlchemyRocketRepository(session),
                SqlAlchemyBookingRepository(session),
                launch_id=launch_id,
                scheduled_date=payload.scheduled_date,
                price=payload.price,
                minimum_passengers=payload.minimum_passengers,
                status=payload.status,
            )
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Launch not found")
    launch, rocket, availability = row
    return LaunchRead.from_db(launch=launch, rocket=rocket, availability=availability)


@router.delete("/{launch_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_launch(
    launch_id: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
    locks: LaunchLocks = Depends(get_launch_locks),
) -> Response:
    async with locks.hold(launch_id):
        async with session.begin():
            deleted = await launch_usecase.delete_launch(
                SqlAlchemyLaunchRepository(session),
                SqlAlchemyBookingRepository(session),
                launch_id=launch_id,
            )
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Launch not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
