from __future__ import annotations

import logging
from typing import Optional

from ..domain.errors import BusinessRuleError, FieldError, ValidationError
from ..domain.repositories import BookingRepository, CustomerRepository
from ..domain.services import normalize_email, validate_customer, validate_customer_name, validate_customer_phone
from ..models import Customer

logger = logging.getLogger(__name__)


async def register_customer(
    customer_repo: CustomerRepository,
    *,
    name: str,
    email: str,
    phone: str,
) -> Customer:
    errors = validate_customer(name, email, phone)
    normalized = normalize_email(email) if isinstance(email, str) else ""
    if normalized and await customer_repo.get_by_email(normalized) is not None:
        errors.append(FieldError("email", "Email is already registered"))
    if errors:
        raise ValidationError(errors)

    customer = await customer_repo.create(name=name.strip(), email=normalized, phone=phone.strip())
    logger.info("customer %s registered", customer.id)
    return customer


async def get_customer_by_email(customer_repo: CustomerRepository, *, email: str) -> Customer | None:
    return await customer_repo.get_by_email(normalize_email(email))


async def list_customers(
    customer_repo: CustomerRepository,
    *,
    page: int,
    page_size: int,
    name: Optional[str] = None,
    email: Optional[str] = None,
) -> tuple[list[Customer], int]:
    return await customer_repo.list_page(
        page=page,
        page_size=page_size,
        name=name.strip() if name else None,
        email=normalize_email(email) if email else None,
    )


async def update_customer(
    customer_repo: CustomerRepository,
    *,
    customer_id: str,
    name: Optional[str] = None,
    phone: Optional[str] = None,
    email: Optional[str] = None,
) -> Customer | None:
    """Email is the customer's lookup key for bookings and cannot be changed."""
    errors: list[FieldError] = []
    if email is not None:
        errors.append(FieldError("email", "Email cannot be changed"))
    if name is not None:
        errors.extend(validate_customer_name(name))
    if phone is not None:
        errors.extend(validate_customer_phone(phone))
    if errors:
        raise ValidationError(errors)

    customer = await customer_repo.get(customer_id)
    if customer is None:
        return None
    if name is not None:
        customer.name = name.strip()
    if phone is not None:
        customer.phone = phone.strip()
    updated = await customer_repo.update(customer)
    logger.info("customer %s updated", updated.id)
    return updated


async def delete_customer(
    customer_repo: CustomerRepository,
    booking_repo: BookingRepository,
    *,
    customer_id: str,
) -> bool:
    customer = await customer_repo.get(customer_id)
    if customer is None:
        return False
    if await booking_repo.count_active_for_customer(customer.id) > 0:
        raise BusinessRuleError("Customer has active bookings and cannot be deleted")
    await customer_repo.delete(customer)
    logger.info("customer %s deleted", customer_id)
    return True
