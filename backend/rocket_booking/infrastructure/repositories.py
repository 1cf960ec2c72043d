from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.repositories import BookingRepository, CustomerRepository, LaunchRepository, RocketRepository
from ..models import Booking, BookingStatus, Customer, Launch, LaunchStatus, PaymentStatus, Rocket, RocketRange
from ..utils.time import utc_now_naive


def _new_id() -> str:
    return uuid.uuid4().hex


async def _page(session: AsyncSession, stmt: Select, *, page: int, page_size: int) -> Tuple[list, int]:
    total = await session.scalar(select(func.count()).select_from(stmt.order_by(None).subquery()))
    rows = await session.scalars(stmt.offset((page - 1) * page_size).limit(page_size))
    return list(rows.all()), int(total or 0)


class SqlAlchemyRocketRepository(RocketRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, rocket_id: str) -> Rocket | None:
        return await self.session.get(Rocket, rocket_id)

    async def create(self, *, name: str, range_: RocketRange, capacity: int) -> Rocket:
        now = utc_now_naive()
        rocket = Rocket(
            id=_new_id(),
            name=name,
            range=range_,
            capacity=capacity,
            created_at=now,
            updated_at=now,
        )
        self.session.add(rocket)
        await self.session.flush()
        return rocket

    async def list_page(
        self,
        *,
        page: int,
        page_size: int,
        range_: RocketRange | None = None,
        min_capacity: int | None = None,
    ) -> Tuple[List[Rocket], int]:
        stmt = select(Rocket).order_by(Rocket.created_at, Rocket.id)
        if range_ is not None:
            stmt = stmt.where(Rocket.range == range_)
        if min_capacity is not None:
            stmt = stmt.where(Rocket.capacity >= min_capacity)
        return await _page(self.session, stmt, page=page, page_size=page_size)

    async def update(self, rocket: Rocket) -> Rocket:
        rocket.updated_at = utc_now_naive()
        self.session.add(rocket)
        await self.session.flush()
        return rocket

    async def delete(self, rocket: Rocket) -> None:
        await self.session.delete(rocket)
        await self.session.flush()


class SqlAlchemyLaunchRepository(LaunchRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, launch_id: str) -> Launch | None:
        return await self.session.get(Launch, launch_id)

    async def get_for_update(self, launch_id: str) -> Launch | None:
        result = await self.session.scalar(select(Launch).where(Launch.id == launch_id).with_for_update())
        return result if isinstance(result, Launch) else None

    async def create(
        self,
        *,
        rocket_id: str,
        scheduled_date: datetime,
        price: Decimal,
        minimum_passengers: int,
        status: LaunchStatus,
    ) -> Launch:
        now = utc_now_naive()
        launch = Launch(
            id=_new_id(),
            rocket_id=rocket_id,
            scheduled_date=scheduled_date,
            price=price,
            minimum_passengers=minimum_passengers,
            status=status,
            created_at=now,
            updated_at=now,
        )
        self.session.add(launch)
        await self.session.flush()
        return launch

    async def list_all(self) -> List[Launch]:
        rows = await self.session.scalars(select(Launch).order_by(Launch.scheduled_date, Launch.id))
        return list(rows.all())

    async def list_by_rocket(self, rocket_id: str) -> List[Launch]:
        rows = await self.session.scalars(
            select(Launch).where(Launch.rocket_id == rocket_id).order_by(Launch.scheduled_date, Launch.id)
        )
        return list(rows.all())

    async def update(self, launch: Launch) -> Launch:
        launch.updated_at = utc_now_naive()
        self.session.add(launch)
        await self.session.flush()
        return launch

    async def delete(self, launch: Launch) -> None:
        await self.session.delete(launch)
        await self.session.flush()


class SqlAlchemyCustomerRepository(CustomerRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, customer_id: str) -> Customer | None:
        return await self.session.get(Customer, customer_id)

    async def get_by_email(self, email: str) -> Customer | None:
        result = await self.session.scalar(select(Customer).where(Customer.email == email))
        return result if isinstance(result, Customer) else None

    async def create(self, *, name: str, email: str, phone: str) -> Customer:
        now = utc_now_naive()
        customer = Customer(
            id=_new_id(),
            name=name,
            email=email,
            phone=phone,
            created_at=now,
            updated_at=now,
        )
        self.session.add(customer)
        await self.session.flush()
        return customer

    async def list_page(
        self,
        *,
        page: int,
        page_size: int,
        name: str | None = None,
        email: str | None = None,
    ) -> Tuple[List[Customer], int]:
        stmt = select(Customer).order_by(Customer.created_at, Customer.id)
        if email:
            stmt = stmt.where(Customer.email == email)
        if name:
            stmt = stmt.where(func.lower(Customer.name).contains(name.lower(), autoescape=True))
        return await _page(self.session, stmt, page=page, page_size=page_size)

    async def update(self, customer: Customer) -> Customer:
        customer.updated_at = utc_now_naive()
        self.session.add(customer)
        await self.session.flush()
        return customer

    async def delete(self, customer: Customer) -> None:
        await self.session.delete(customer)
        await self.session.flush()


class SqlAlchemyBookingRepository(BookingRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(
        self,
        *,
        launch_id: str,
        customer_id: str,
        seat_count: int,
        total_price: Decimal,
        status: BookingStatus,
        payment_status: PaymentStatus,
    ) -> Booking:
        now = utc_now_naive()
        booking = Booking(
            id=_new_id(),
            launch_id=launch_id,
            customer_id=customer_id,
            seat_count=seat_count,
            total_price=total_price,
            status=status,
            payment_status=payment_status,
            created_at=now,
            updated_at=now,
        )
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def get(self, booking_id: str) -> Optional[Booking]:
        return await self.session.get(Booking, booking_id)

    async def list_by_launch(self, launch_id: str) -> List[Booking]:
        rows = await self.session.scalars(
            select(Booking)
            .where(Booking.launch_id == launch_id, Booking.status != BookingStatus.CANCELLED)
            .order_by(Booking.created_at, Booking.id)
        )
        return list(rows.all())

    async def list_by_customer(self, customer_id: str) -> List[Booking]:
        rows = await self.session.scalars(
            select(Booking).where(Booking.customer_id == customer_id).order_by(Booking.created_at, Booking.id)
        )
        return list(rows.all())

    async def update(self, booking: Booking) -> Booking:
        booking.updated_at = utc_now_naive()
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def delete(self, booking: Booking) -> None:
        await self.session.delete(booking)
        await self.session.flush()

    async def sum_booked(self, launch_id: str) -> int:
        stmt = select(func.coalesce(func.sum(Booking.seat_count), 0)).where(
            Booking.launch_id == launch_id,
            Booking.status != BookingStatus.CANCELLED,
        )
        return int(await self.session.scalar(stmt) or 0)

    async def count_active_for_customer(self, customer_id: str) -> int:
        stmt = select(func.count(Booking.id)).where(
            Booking.customer_id == customer_id,
            Booking.status != BookingStatus.CANCELLED,
        )
        return int(await self.session.scalar(stmt) or 0)
