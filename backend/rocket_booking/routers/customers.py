from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_session
from ..domain.errors import FieldError, ValidationError
from ..infrastructure.repositories import SqlAlchemyBookingRepository, SqlAlchemyCustomerRepository
from ..schemas import CustomerCreate, CustomerRead, CustomerUpdate, Page
from ..usecases import customers as customer_usecase

router = APIRouter(prefix="/api/customers", tags=["customers"])


@router.post("", response_model=CustomerRead, status_code=status.HTTP_201_CREATED)
async def register_customer(
    payload: CustomerCreate,
    session: AsyncSession = Depends(get_session),
) -> CustomerRead:
    customer_repo = SqlAlchemyCustomerRepository(session)
    try:
        async with session.begin():
            customer = await customer_usecase.register_customer(
                customer_repo,
                name=payload.name,
                email=payload.email,
                phone=payload.phone,
            )
    except IntegrityError as exc:
        # A concurrent registration won the unique email index.
        raise ValidationError([FieldError("email", "Email is already registered")]) from exc
    return CustomerRead.from_db(customer=customer)


@router.get("", response_model=Page[CustomerRead])
async def list_customers(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100, alias="pageSize"),
    name: Optional[str] = Query(default=None),
    email: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session),
) -> Page[CustomerRead]:
    customers, total = await customer_usecase.list_customers(
        SqlAlchemyCustomerRepository(session),
        page=page,
        page_size=page_size,
        name=name,
        email=email,
    )
    return Page[CustomerRead].build(
        [CustomerRead.from_db(customer=customer) for customer in customers],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/email/{email}", response_model=CustomerRead)
async def get_customer_by_email(
    email: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
) -> CustomerRead:
    customer = await customer_usecase.get_customer_by_email(SqlAlchemyCustomerRepository(session), email=email)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return CustomerRead.from_db(customer=customer)


@router.get("/{customer_id}", response_model=CustomerRead)
async def get_customer(
    customer_id: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
) -> CustomerRead:
    customer = await SqlAlchemyCustomerRepository(session).get(customer_id)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return CustomerRead.from_db(customer=customer)


@router.put("/{customer_id}", response_model=CustomerRead)
async def update_customer(
    payload: CustomerUpdate,
    customer_id: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
) -> CustomerRead:
    async with session.begin():
        customer = await customer_usecase.update_customer(
            SqlAlchemyCustomerRepository(session),
            customer_id=customer_id,
            name=payload.name,
            phone=payload.phone,
            email=payload.email,
        )
    if customer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return CustomerRead.from_db(customer=customer)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer_id: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
) -> Response:
    async with session.begin():
        deleted = await customer_usecase.delete_customer(
            SqlAlchemyCustomerRepository(session),
            SqlAlchemyBookingRepository(session),
            customer_id=customer_id,
        )
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
