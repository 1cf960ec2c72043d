from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Protocol

from ..models import Booking, BookingStatus, Customer, Launch, LaunchStatus, PaymentStatus, Rocket, RocketRange


class RocketRepository(Protocol):
    async def get(self, rocket_id: str) -> Rocket | None: ...

    async def create(self, *, name: str, range_: RocketRange, capacity: int) -> Rocket: ...

    async def list_page(
        self,
        *,
        page: int,
        page_size: int,
        range_: RocketRange | None = None,
        min_capacity: int | None = None,
    ) -> tuple[list[Rocket], int]: ...

    async def update(self, rocket: Rocket) -> Rocket: ...

    async def delete(self, rocket: Rocket) -> None: ...


class LaunchRepository(Protocol):
    async def get(self, launch_id: str) -> Launch | None: ...

    async def get_for_update(self, launch_id: str) -> Launch | None: ...

    async def create(
        self,
        *,
        rocket_id: str,
        scheduled_date: datetime,
        price: Decimal,
        minimum_passengers: int,
        status: LaunchStatus,
    ) -> Launch: ...

    async def list_all(self) -> list[Launch]: ...

    async def list_by_rocket(self, rocket_id: str) -> list[Launch]: ...

    async def update(self, launch: Launch) -> Launch: ...

    async def delete(self, launch: Launch) -> None: ...


class CustomerRepository(Protocol):
    async def get(self, customer_id: str) -> Customer | None: ...

    async def get_by_email(self, email: str) -> Customer | None: ...

    async def create(self, *, name: str, email: str, phone: str) -> Customer: ...

    async def list_page(
        self,
        *,
        page: int,
        page_size: int,
        name: str | None = None,
        email: str | None = None,
    ) -> tuple[list[Customer], int]: ...

    async def update(self, customer: Customer) -> Customer: ...

    async def delete(self, customer: Customer) -> None: ...


class BookingRepository(Protocol):
    async def create(
        self,
        *,
        launch_id: str,
        customer_id: str,
        seat_count: int,
        total_price: Decimal,
        status: BookingStatus,
        payment_status: PaymentStatus,
    ) -> Booking: ...

    async def get(self, booking_id: str) -> Booking | None: ...

    async def list_by_launch(self, launch_id: str) -> list[Booking]: ...

    async def list_by_customer(self, customer_id: str) -> list[Booking]: ...

    async def update(self, booking: Booking) -> Booking: ...

    async def delete(self, booking: Booking) -> None: ...

    async def sum_booked(self, launch_id: str) -> int: ...

    async def count_active_for_customer(self, customer_id: str) -> int: ...
