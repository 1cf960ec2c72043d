import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .domain.errors import BusinessRuleError, InternalInconsistencyError, NotFoundError, ValidationError
from .schemas import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def _error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        ErrorResponse(error=exc.message, details=[ErrorDetail.from_domain(d) for d in exc.details]),
    )


async def business_rule_error_handler(request: Request, exc: BusinessRuleError) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, ErrorResponse(error=exc.message))


async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, ErrorResponse(error=exc.message))


async def internal_inconsistency_handler(request: Request, exc: InternalInconsistencyError) -> JSONResponse:
    logger.error("internal inconsistency on %s %s: %s", request.method, request.url.path, exc.message)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorResponse(error="Internal server error"))


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = []
    for err in exc.errors():
        # Drop the leading "body"/"query"/"path" segment.
        loc = [str(part) for part in err.get("loc", ())[1:]]
        details.append(ErrorDetail(field=".".join(loc) or "body", message=err.get("msg", "Invalid value")))
    return _error_response(status.HTTP_400_BAD_REQUEST, ErrorResponse(error="Validation error", details=details))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = _error_response(exc.status_code, ErrorResponse(error=str(exc.detail)))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


EXCEPTION_HANDLERS = {
    ValidationError: validation_error_handler,
    BusinessRuleError: business_rule_error_handler,
    NotFoundError: not_found_error_handler,
    InternalInconsistencyError: internal_inconsistency_handler,
    RequestValidationError: request_validation_error_handler,
    StarletteHTTPException: http_exception_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)  # type: ignore[arg-type]
