from datetime import datetime
from decimal import Decimal
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_serializer
from pydantic.alias_generators import to_camel

from .domain.errors import FieldError
from .domain.services import Availability
from .models import Booking, BookingStatus, Customer, Launch, LaunchStatus, PaymentStatus, Rocket, RocketRange
from .usecases.bookings import BookingDetails
from .utils.time import utc_naive_to_aware

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimestampedRead(CamelModel):
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def _ser_timestamps(self, dt: datetime) -> str:
        return utc_naive_to_aware(dt).isoformat()


class ErrorDetail(CamelModel):
    field: str
    message: str

    @classmethod
    def from_domain(cls, error: FieldError) -> "ErrorDetail":
        return cls(field=error.field, message=error.message)


class ErrorResponse(CamelModel):
    error: str
    details: Optional[List[ErrorDetail]] = None


class Page(CamelModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    page_size: int
    has_more: bool

    @classmethod
    def build(cls, items: List[T], *, total: int, page: int, page_size: int) -> "Page[T]":
        return cls(
            data=items,
            total=total,
            page=page,
            page_size=page_size,
            has_more=page * page_size < total,
        )


class RocketCreate(CamelModel):
    name: str = ""
    range: str = ""
    capacity: Any = None


class RocketUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    range: Optional[str] = None
    capacity: Any = None


class RocketRead(TimestampedRead):
    id: str
    name: str
    range: RocketRange
    capacity: int

    @classmethod
    def from_db(cls, *, rocket: Rocket) -> "RocketRead":
        return cls(
            id=rocket.id,
            name=rocket.name,
            range=rocket.range,
            capacity=rocket.capacity,
            created_at=rocket.created_at,
            updated_at=rocket.updated_at,
        )


class LaunchCreate(CamelModel):
    rocket_id: str
    scheduled_date: datetime
    price: Decimal
    minimum_passengers: StrictInt
    status: Optional[LaunchStatus] = None


class LaunchUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    scheduled_date: Optional[datetime] = None
    price: Optional[Decimal] = None
    minimum_passengers: Optional[StrictInt] = None
    status: Optional[LaunchStatus] = None


class LaunchRead(TimestampedRead):
    id: str
    rocket_id: str
    scheduled_date: datetime
    price: Decimal
    minimum_passengers: int
    status: LaunchStatus
    rocket_name: str
    total_seats: int
    booked_passengers: int
    available_seats: int

    @field_serializer("scheduled_date")
    def _ser_scheduled(self, dt: datetime) -> str:
        return utc_naive_to_aware(dt).isoformat()

    @field_serializer("price", when_used="json")
    def _ser_price(self, value: Decimal) -> float:
        return float(value)

    @classmethod
    def from_db(cls, *, launch: Launch, rocket: Rocket, availability: Availability) -> "LaunchRead":
        return cls(
            id=launch.id,
            rocket_id=launch.rocket_id,
            scheduled_date=launch.scheduled_date,
            price=launch.price,
            minimum_passengers=launch.minimum_passengers,
            status=launch.status,
            created_at=launch.created_at,
            updated_at=launch.updated_at,
            rocket_name=rocket.name,
            total_seats=availability.total_seats,
            booked_passengers=availability.booked_seats,
            available_seats=availability.available_seats,
        )


class CustomerCreate(CamelModel):
    name: str = ""
    email: str = ""
    phone: str = ""


class CustomerUpdate(CamelModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class CustomerRead(TimestampedRead):
    id: str
    name: str
    email: str
    phone: str

    @classmethod
    def from_db(cls, *, customer: Customer) -> "CustomerRead":
        return cls(
            id=customer.id,
            name=customer.name,
            email=customer.email,
            phone=customer.phone,
            created_at=customer.created_at,
            updated_at=customer.updated_at,
        )


class BookingCreate(CamelModel):
    launch_id: str = ""
    customer_email: str = ""
    seat_count: Any = None


class BookingUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    status: Optional[BookingStatus] = None
    payment_status: Optional[PaymentStatus] = None


class BookingRead(TimestampedRead):
    id: str
    launch_id: str
    customer_id: str
    seat_count: int
    total_price: Decimal
    status: BookingStatus
    payment_status: PaymentStatus
    customer_email: str
    rocket_name: str
    launch_price: Decimal

    @field_serializer("total_price", "launch_price", when_used="json")
    def _ser_money(self, value: Decimal) -> float:
        return float(value)

    @classmethod
    def from_db(cls, *, booking: Booking, customer: Customer, launch: Launch, rocket: Rocket) -> "BookingRead":
        return cls(
            id=booking.id,
            launch_id=booking.launch_id,
            customer_id=booking.customer_id,
            seat_count=booking.seat_count,
            total_price=booking.total_price,
            status=booking.status,
            payment_status=booking.payment_status,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
            customer_email=customer.email,
            rocket_name=rocket.name,
            launch_price=launch.price,
        )

    @classmethod
    def from_details(cls, details: BookingDetails) -> "BookingRead":
        return cls.from_db(
            booking=details.booking,
            customer=details.customer,
            launch=details.launch,
            rocket=details.rocket,
        )


class AvailabilityRead(CamelModel):
    launch_id: str
    total_seats: int
    booked_seats: int
    available_seats: int = Field(description="May be zero; never persisted negative")

    @classmethod
    def from_domain(cls, availability: Availability) -> "AvailabilityRead":
        return cls(
            launch_id=availability.launch_id,
            total_seats=availability.total_seats,
            booked_seats=availability.booked_seats,
            available_seats=availability.available_seats,
        )
