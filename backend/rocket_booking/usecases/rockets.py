from __future__ import annotations

import logging
from typing import Optional

from ..domain.errors import BusinessRuleError, FieldError, ValidationError
from ..domain.repositories import BookingRepository, LaunchRepository, RocketRepository
from ..domain.services import validate_rocket
from ..models import Rocket, RocketRange
from .bookings import availability_for

logger = logging.getLogger(__name__)


async def create_rocket(
    rocket_repo: RocketRepository,
    *,
    name: str,
    range_: str,
    capacity: int,
) -> Rocket:
    errors = validate_rocket(name, range_, capacity)
    if errors:
        raise ValidationError(errors)
    rocket = await rocket_repo.create(name=name.strip(), range_=RocketRange(range_), capacity=capacity)
    logger.debug("rocket %s created: range=%s capacity=%d", rocket.id, rocket.range, rocket.capacity)
    return rocket


async def list_rockets(
    rocket_repo: RocketRepository,
    *,
    page: int,
    page_size: int,
    range_: Optional[RocketRange] = None,
    min_capacity: Optional[int] = None,
) -> tuple[list[Rocket], int]:
    return await rocket_repo.list_page(page=page, page_size=page_size, range_=range_, min_capacity=min_capacity)


async def update_rocket(
    rocket_repo: RocketRepository,
    launch_repo: LaunchRepository,
    booking_repo: BookingRepository,
    *,
    rocket_id: str,
    name: Optional[str] = None,
    range_: Optional[str] = None,
    capacity: Optional[int] = None,
) -> Rocket | None:
    """
    Partial update, re-validated as a whole.

    Capacity may shrink only down to the largest seat total already booked on
    any of the rocket's launches; the caller holds those launches' admission
    locks while this runs.
    """
    rocket = await rocket_repo.get(rocket_id)
    if rocket is None:
        return None

    new_name = rocket.name if name is None else name
    new_range = rocket.range.value if range_ is None else range_
    new_capacity = rocket.capacity if capacity is None else capacity
    errors = validate_rocket(new_name, new_range, new_capacity)
    if errors:
        raise ValidationError(errors)

    if new_capacity < rocket.capacity:
        launches = await launch_repo.list_by_rocket(rocket.id)
        most_booked = max(
            [(await availability_for(launch, rocket_repo, booking_repo)).booked_seats for launch in launches],
            default=0,
        )
        highest_minimum = max([launch.minimum_passengers for launch in launches], default=0)
        if new_capacity < most_booked:
            raise ValidationError(
                [
                    FieldError(
                        "capacity",
                        f"Capacity cannot be reduced below {most_booked} seats already booked on a launch",
                    )
                ]
            )
        if new_capacity < highest_minimum:
            raise ValidationError(
                [
                    FieldError(
                        "capacity",
                        f"Capacity cannot be reduced below a launch's minimum of {highest_minimum} passengers",
                    )
                ]
            )

    rocket.name = new_name.strip()
    rocket.range = RocketRange(new_range)
    rocket.capacity = new_capacity
    return await rocket_repo.update(rocket)


async def delete_rocket(
    rocket_repo: RocketRepository,
    launch_repo: LaunchRepository,
    *,
    rocket_id: str,
) -> bool:
    rocket = await rocket_repo.get(rocket_id)
    if rocket is None:
        return False
    if await launch_repo.list_by_rocket(rocket.id):
        raise BusinessRuleError("Rocket has launches and cannot be deleted")
    await rocket_repo.delete(rocket)
    logger.info("rocket %s deleted", rocket_id)
    return True
