from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..domain.errors import BusinessRuleError, FieldError, InternalInconsistencyError, ValidationError
from ..domain.repositories import BookingRepository, LaunchRepository, RocketRepository
from ..domain.services import Availability, validate_launch
from ..models import Launch, LaunchStatus, Rocket
from ..utils.time import to_utc_naive, utc_now_naive
from .bookings import availability_for

logger = logging.getLogger(__name__)


async def create_launch(
    launch_repo: LaunchRepository,
    rocket_repo: RocketRepository,
    *,
    rocket_id: str,
    scheduled_date: datetime,
    price: Decimal,
    minimum_passengers: int,
    status: Optional[LaunchStatus] = None,
) -> Launch:
    rocket = await rocket_repo.get(rocket_id)
    if rocket is None:
        # Remaining rules depend on the rocket's capacity.
        raise ValidationError([FieldError("rocketId", "Rocket not found")])

    scheduled_utc = to_utc_naive(scheduled_date)
    errors = validate_launch(
        rocket_capacity=rocket.capacity,
        scheduled_date=scheduled_utc,
        price=price,
        minimum_passengers=minimum_passengers,
        now=utc_now_naive(),
    )
    if errors:
        raise ValidationError(errors)

    launch = await launch_repo.create(
        rocket_id=rocket.id,
        scheduled_date=scheduled_utc,
        price=price,
        minimum_passengers=minimum_passengers,
        status=status or LaunchStatus.SCHEDULED,
    )
    logger.debug("launch %s created: rocket=%s date=%s price=%s", launch.id, rocket.id, scheduled_utc, price)
    return launch


async def _with_rocket(launch: Launch, rocket_repo: RocketRepository) -> Rocket:
    rocket = await rocket_repo.get(launch.rocket_id)
    if rocket is None:
        logger.error("launch %s references missing rocket %s", launch.id, launch.rocket_id)
        raise InternalInconsistencyError("Associated rocket not found")
    return rocket


async def describe_launch(
    launch: Launch,
    rocket_repo: RocketRepository,
    booking_repo: BookingRepository,
) -> tuple[Launch, Rocket, Availability]:
    rocket = await _with_rocket(launch, rocket_repo)
    availability = await availability_for(launch, rocket_repo, booking_repo)
    return launch, rocket, availability


async def get_launch(
    launch_repo: LaunchRepository,
    rocket_repo: RocketRepository,
    booking_repo: BookingRepository,
    *,
    launch_id: str,
) -> tuple[Launch, Rocket, Availability] | None:
    launch = await launch_repo.get(launch_id)
    if launch is None:
        return None
    return await describe_launch(launch, rocket_repo, booking_repo)


async def list_launches(
    launch_repo: LaunchRepository,
    rocket_repo: RocketRepository,
    booking_repo: BookingRepository,
) -> list[tuple[Launch, Rocket, Availability]]:
    return [await describe_launch(launch, rocket_repo, booking_repo) for launch in await launch_repo.list_all()]


async def update_launch(
    launch_repo: LaunchRepository,
    rocket_repo: RocketRepository,
    booking_repo: BookingRepository,
    *,
    launch_id: str,
    scheduled_date: Optional[datetime] = None,
    price: Optional[Decimal] = None,
    minimum_passengers: Optional[int] = None,
    status: Optional[LaunchStatus] = None,
) -> tuple[Launch, Rocket, Availability] | None:
    """Existing bookings keep the price they were admitted at."""
    launch = await launch_repo.get(launch_id)
    if launch is None:
        return None
    rocket = await _with_rocket(launch, rocket_repo)

    new_date = launch.scheduled_date if scheduled_date is None else to_utc_naive(scheduled_date)
    new_price = launch.price if price is None else price
    new_minimum = launch.minimum_passengers if minimum_passengers is None else minimum_passengers
    errors = validate_launch(
        rocket_capacity=rocket.capacity,
        scheduled_date=new_date,
        price=Decimal(new_price),
        minimum_passengers=new_minimum,
        now=utc_now_naive(),
        require_future_date=scheduled_date is not None,
    )
    if errors:
        raise ValidationError(errors)

    launch.scheduled_date = new_date
    launch.price = new_price
    launch.minimum_passengers = new_minimum
    if status is not None:
        launch.status = status
    updated = await launch_repo.update(launch)
    logger.debug("launch %s updated: status=%s", updated.id, updated.status)
    return await describe_launch(updated, rocket_repo, booking_repo)


async def delete_launch(
    launch_repo: LaunchRepository,
    booking_repo: BookingRepository,
    *,
    launch_id: str,
) -> bool:
    launch = await launch_repo.get(launch_id)
    if launch is None:
        return False
    if await booking_repo.list_by_launch(launch.id):
        raise BusinessRuleError("Launch has active bookings and cannot be deleted")
    await launch_repo.delete(launch)
    logger.info("launch %s deleted", launch_id)
    return True
