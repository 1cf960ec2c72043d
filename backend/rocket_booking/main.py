import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from fastapi import FastAPI, Request, Response

from .config import get_settings
from .database import create_tables
from .exception_handlers import register_exception_handlers
from .routers import bookings, customers, launches, rockets
from .utils.request_id import REQUEST_ID_HEADER, resolve_request_id, set_request_id
from .utils.time import utc_naive_to_aware, utc_now_naive

settings = get_settings()

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if settings.create_tables:
        await create_tables()
        logger.info("database tables ensured")
    yield


app = FastAPI(title="Rocket Booking API", lifespan=lifespan)


async def request_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
    set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        set_request_id(None)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


app.middleware("http")(request_id_middleware)
register_exception_handlers(app)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "timestamp": utc_naive_to_aware(utc_now_naive()).isoformat()}


app.include_router(rockets.router)
app.include_router(launches.router)
app.include_router(customers.router)
app.include_router(bookings.router)
