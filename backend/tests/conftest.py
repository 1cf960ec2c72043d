from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from pathlib import Path
from typing import AsyncIterator, Optional

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from rocket_booking.config import Settings, get_settings
from rocket_booking.database import create_tables
from rocket_booking.deps import get_launch_locks, get_session
from rocket_booking.domain.locks import LaunchLocks
from rocket_booking.main import app
from rocket_booking.models import (
    Booking,
    BookingStatus,
    Customer,
    Launch,
    LaunchStatus,
    PaymentStatus,
    Rocket,
    RocketRange,
)
from rocket_booking.utils.time import utc_now_naive


class FakeRocketRepo:
    def __init__(self, store: "FakeStore") -> None:
        self.store = store

    async def get(self, rocket_id: str) -> Optional[Rocket]:
        return self.store.rockets.get(rocket_id)

    async def create(self, *, name: str, range_: RocketRange, capacity: int) -> Rocket:
        now = utc_now_naive()
        rocket = Rocket(
            id=self.store.next_id("r"), name=name, range=range_, capacity=capacity, created_at=now, updated_at=now
        )
        self.store.rockets[rocket.id] = rocket
        return rocket

    async def list_page(self, *, page, page_size, range_=None, min_capacity=None):  # type: ignore[no-untyped-def]
        rows = [
            r
            for r in self.store.rockets.values()
            if (range_ is None or r.range == range_) and (min_capacity is None or r.capacity >= min_capacity)
        ]
        start = (page - 1) * page_size
        return rows[start : start + page_size], len(rows)

    async def update(self, rocket: Rocket) -> Rocket:
        return rocket

    async def delete(self, rocket: Rocket) -> None:
        del self.store.rockets[rocket.id]


class FakeLaunchRepo:
    def __init__(self, store: "FakeStore") -> None:
        self.store = store

    async def get(self, launch_id: str) -> Optional[Launch]:
        return self.store.launches.get(launch_id)

    async def get_for_update(self, launch_id: str) -> Optional[Launch]:
        return self.store.launches.get(launch_id)

    async def create(self, *, rocket_id, scheduled_date, price, minimum_passengers, status) -> Launch:  # type: ignore[no-untyped-def]
        now = utc_now_naive()
        launch = Launch(
            id=self.store.next_id("l"),
            rocket_id=rocket_id,
            scheduled_date=scheduled_date,
            price=price,
            minimum_passengers=minimum_passengers,
            status=status,
            created_at=now,
            updated_at=now,
        )
        self.store.launches[launch.id] = launch
        return launch

    async def list_all(self) -> list[Launch]:
        return list(self.store.launches.values())

    async def list_by_rocket(self, rocket_id: str) -> list[Launch]:
        return [launch for launch in self.store.launches.values() if launch.rocket_id == rocket_id]

    async def update(self, launch: Launch) -> Launch:
        return launch

    async def delete(self, launch: Launch) -> None:
        del self.store.launches[launch.id]


class FakeCustomerRepo:
    def __init__(self, store: "FakeStore") -> None:
        self.store = store

    async def get(self, customer_id: str) -> Optional[Customer]:
        return self.store.customers.get(customer_id)

    async def get_by_email(self, email: str) -> Optional[Customer]:
        return next((c for c in self.store.customers.values() if c.email == email), None)

    async def create(self, *, name: str, email: str, phone: str) -> Customer:
        now = utc_now_naive()
        customer = Customer(
            id=self.store.next_id("c"), name=name, email=email, phone=phone, created_at=now, updated_at=now
        )
        self.store.customers[customer.id] = customer
        return customer

    async def list_page(self, *, page, page_size, name=None, email=None):  # type: ignore[no-untyped-def]
        rows = [
            c
            for c in self.store.customers.values()
            if (email is None or c.email == email) and (name is None or name.lower() in c.name.lower())
        ]
        start = (page - 1) * page_size
        return rows[start : start + page_size], len(rows)

    async def update(self, customer: Customer) -> Customer:
        return customer

    async def delete(self, customer: Customer) -> None:
        del self.store.customers[customer.id]


class FakeBookingRepo:
    def __init__(self, store: "FakeStore") -> None:
        self.store = store

    async def create(self, *, launch_id, customer_id, seat_count, total_price, status, payment_status) -> Booking:  # type: ignore[no-untyped-def]
        now = utc_now_naive()
        booking = Booking(
            id=self.store.next_id("b"),
            launch_id=launch_id,
            customer_id=customer_id,
            seat_count=seat_count,
            total_price=total_price,
            status=status,
            payment_status=payment_status,
            created_at=now,
            updated_at=now,
        )
        self.store.bookings[booking.id] = booking
        return booking

    async def get(self, booking_id: str) -> Optional[Booking]:
        return self.store.bookings.get(booking_id)

    async def list_by_launch(self, launch_id: str) -> list[Booking]:
        return [
            b
            for b in self.store.bookings.values()
            if b.launch_id == launch_id and b.status != BookingStatus.CANCELLED
        ]

    async def list_by_customer(self, customer_id: str) -> list[Booking]:
        return [b for b in self.store.bookings.values() if b.customer_id == customer_id]

    async def update(self, booking: Booking) -> Booking:
        return booking

    async def delete(self, booking: Booking) -> None:
        del self.store.bookings[booking.id]

    async def sum_booked(self, launch_id: str) -> int:
        return sum(b.seat_count for b in await self.list_by_launch(launch_id))

    async def count_active_for_customer(self, customer_id: str) -> int:
        return len(
            [b for b in await self.list_by_customer(customer_id) if b.status != BookingStatus.CANCELLED]
        )


@dataclass
class FakeStore:
    rockets: dict[str, Rocket] = field(default_factory=dict)
    launches: dict[str, Launch] = field(default_factory=dict)
    customers: dict[str, Customer] = field(default_factory=dict)
    bookings: dict[str, Booking] = field(default_factory=dict)
    _seq: int = 0

    def next_id(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}{self._seq}"

    @property
    def rocket_repo(self) -> FakeRocketRepo:
        return FakeRocketRepo(self)

    @property
    def launch_repo(self) -> FakeLaunchRepo:
        return FakeLaunchRepo(self)

    @property
    def customer_repo(self) -> FakeCustomerRepo:
        return FakeCustomerRepo(self)

    @property
    def booking_repo(self) -> FakeBookingRepo:
        return FakeBookingRepo(self)

    def repos(self) -> tuple[FakeCustomerRepo, FakeLaunchRepo, FakeRocketRepo, FakeBookingRepo]:
        return self.customer_repo, self.launch_repo, self.rocket_repo, self.booking_repo

    def add_rocket(self, *, capacity: int = 4, name: str = "Falcon") -> Rocket:
        now = utc_now_naive()
        rocket = Rocket(
            id=self.next_id("r"), name=name, range=RocketRange.ORBITAL, capacity=capacity, created_at=now, updated_at=now
        )
        self.rockets[rocket.id] = rocket
        return rocket

    def add_launch(
        self,
        rocket: Rocket,
        *,
        status: LaunchStatus = LaunchStatus.ACTIVE,
        price: Decimal = Decimal("100.00"),
    ) -> Launch:
        now = utc_now_naive()
        launch = Launch(
            id=self.next_id("l"),
            rocket_id=rocket.id,
            scheduled_date=now + timedelta(days=30),
            price=price,
            minimum_passengers=1,
            status=status,
            created_at=now,
            updated_at=now,
        )
        self.launches[launch.id] = launch
        return launch

    def add_customer(self, email: str = "alice@example.com", name: str = "Alice") -> Customer:
        now = utc_now_naive()
        customer = Customer(
            id=self.next_id("c"), name=name, email=email, phone="+1 555 0100", created_at=now, updated_at=now
        )
        self.customers[customer.id] = customer
        return customer

    def add_booking(
        self,
        launch: Launch,
        customer: Customer,
        *,
        seat_count: int = 1,
        status: BookingStatus = BookingStatus.PENDING,
    ) -> Booking:
        now = utc_now_naive()
        booking = Booking(
            id=self.next_id("b"),
            launch_id=launch.id,
            customer_id=customer.id,
            seat_count=seat_count,
            total_price=Decimal(seat_count) * launch.price,
            status=status,
            payment_status=PaymentStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self.bookings[booking.id] = booking
        return booking


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def launch_locks() -> LaunchLocks:
    return LaunchLocks()


@pytest.fixture
def settings() -> Settings:
    return Settings(admission_timeout_seconds=5.0)


@pytest_asyncio.fixture
async def session_factory(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_tables(engine)
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    launch_locks: LaunchLocks,
    settings: Settings,
) -> AsyncIterator[httpx.AsyncClient]:
    async def override_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_launch_locks] = lambda: launch_locks
    app.dependency_overrides[get_settings] = lambda: settings
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


@pytest.fixture
def future_date() -> str:
    return (utc_now_naive() + timedelta(days=30)).replace(microsecond=0).isoformat() + "Z"
