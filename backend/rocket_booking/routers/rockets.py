from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_launch_locks, get_session
from ..domain.locks import LaunchLocks
from ..infrastructure.repositories import (
    SqlAlchemyBookingRepository,
    SqlAlchemyLaunchRepository,
    SqlAlchemyRocketRepository,
)
from ..models import RocketRange
from ..schemas import Page, RocketCreate, RocketRead, RocketUpdate
from ..usecases import rockets as rocket_usecase

router = APIRouter(prefix="/api/rockets", tags=["rockets"])


async def _launch_ids(launch_repo: SqlAlchemyLaunchRepository, rocket_id: str) -> set[str]:
    return {launch.id for launch in await launch_repo.list_by_rocket(rocket_id)}


@router.post("", response_model=RocketRead, status_code=status.HTTP_201_CREATED)
async def create_rocket(
    payload: RocketCreate,
    session: AsyncSession = Depends(get_session),
) -> RocketRead:
    rocket_repo = SqlAlchemyRocketRepository(session)
    async with session.begin():
        rocket = await rocket_usecase.create_rocket(
            rocket_repo,
            name=payload.name,
            range_=payload.range,
            capacity=payload.capacity,  # type: ignore[arg-type]
        )
    return RocketRead.from_db(rocket=rocket)


@router.get("", response_model=Page[RocketRead])
async def list_rockets(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100, alias="pageSize"),
    range_: Optional[RocketRange] = Query(default=None, alias="range"),
    min_capacity: Optional[int] = Query(default=None, ge=1, alias="minCapacity"),
    session: AsyncSession = Depends(get_session),
) -> Page[RocketRead]:
    rockets, total = await rocket_usecase.list_rockets(
        SqlAlchemyRocketRepository(session),
        page=page,
        page_size=page_size,
        range_=range_,
        min_capacity=min_capacity,
    )
    return Page[RocketRead].build(
        [RocketRead.from_db(rocket=rocket) for rocket in rockets],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{rocket_id}", response_model=RocketRead)
async def get_rocket(
    rocket_id: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
) -> RocketRead:
    rocket = await SqlAlchemyRocketRepository(session).get(rocket_id)
    if rocket is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rocket not found")
    return RocketRead.from_db(rocket=rocket)


@router.put("/{rocket_id}", response_model=RocketRead)
async def update_rocket(
    payload: RocketUpdate,
    rocket_id: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
    locks: LaunchLocks = Depends(get_launch_locks),
) -> RocketRead:
    rocket_repo = SqlAlchemyRocketRepository(session)
    launch_repo = SqlAlchemyLaunchRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    async with session.begin():
        launch_ids = await _launch_ids(launch_repo, rocket_id)

    # Capacity is checked against booked totals, so admissions on these launches wait.
    while True:
        async with locks.hold(*launch_ids):
            async with session.begin():
                current_ids = await _launch_ids(launch_repo, rocket_id)
                if current_ids <= launch_ids:
                    rocket = await rocket_usecase.update_rocket(
                        rocket_repo,
                        launch_repo,
                        booking_repo,
                        rocket_id=rocket_id,
                        name=payload.name,
                        range_=payload.range,
                        capacity=payload.capacity,
                    )
                    break
        # A launch was added after the first read; lock it too and check again.
        launch_ids = launch_ids | current_ids
    if rocket is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rocket not found")
    return RocketRead.from_db(rocket=rocket)


@router.delete("/{rocket_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rocket(
    rocket_id: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
) -> Response:
    async with session.begin():
        deleted = await rocket_usecase.delete_rocket(
            SqlAlchemyRocketRepository(session),
            SqlAlchemyLaunchRepository(session),
            rocket_id=rocket_id,
        )
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rocket not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
