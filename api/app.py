"""
HTTP API for the booking service

Routes:
    POST   /v1/bookings           create a booking
    GET    /v1/bookings           list bookings (cursor, limit)
    DELETE /v1/bookings?id=...    delete a booking
    GET    /v1/health             process health

Responses follow the Accept header (JSON or XML); POST bodies must be JSON.
"""
import logging
from typing import Optional

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError

from api.health import health_report
from api.negotiation import render, render_error, require_json_body
from api.schemas import (
    BookingData, BookingListResponse, BookingRequestBody, ErrorResponse, HealthResponse
)
from backend.booking_service import BookingRequest, BookingService
from backend.errors import BookingError, ValidationFailure
from backend.validators import validate_booking_request

logger = logging.getLogger(__name__)

API_PREFIX = "/v1"


def _error(request: Request, status_code: int, message: str, code: str) -> Response:
    return render_error(request, status_code, ErrorResponse(error=message, code=code).model_dump())


def register_error_handlers(app: FastAPI) -> None:
    """Map booking errors, decoding errors and anything else to error bodies"""

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        level = logging.ERROR if exc.http_status >= 500 else logging.INFO
        logger.log(level, "%s %s rejected: %s", request.method, request.url.path, exc.message,
                   extra={'error_code': exc.code, 'path': request.url.path})
        return _error(request, exc.http_status, exc.message, exc.code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        fields = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'][1:])}: {err['msg']}"
            for err in exc.errors()
        )
        return _error(request, status.HTTP_400_BAD_REQUEST, f"error decoding request: {fields}",
                      ValidationFailure.code)

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error("unhandled exception on %s: %s", request.url.path, exc, exc_info=True,
                     extra={'path': request.url.path})
        return _error(request, status.HTTP_500_INTERNAL_SERVER_ERROR,
                      "An unexpected error occurred", "INTERNAL_ERROR")


def _parse_limit(raw: Optional[str]) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        limit = int(raw)
    except ValueError:
        limit = 0
    if limit <= 0:
        raise ValidationFailure("invalid limit parameter")
    return limit


def create_app(service: BookingService, db_manager=None) -> FastAPI:
    """Build the FastAPI application around a wired BookingService

    ``db_manager`` is optional; when given, the health report pings it.
    """
    app = FastAPI(title="Space launch bookings", version="1.0.0")
    app.state.booking_service = service
    register_error_handlers(app)

    @app.get(f"{API_PREFIX}/health", response_model=HealthResponse)
    def health(request: Request):
        return render(request, health_report(db_manager=db_manager).model_dump())

    @app.post(f"{API_PREFIX}/bookings", status_code=status.HTTP_201_CREATED,
              response_model=BookingData, dependencies=[Depends(require_json_body)])
    def create_booking(request: Request, body: BookingRequestBody):
        payload = body.model_dump()
        problems = validate_booking_request(payload)
        if problems:
            raise ValidationFailure("; ".join(problems))

        booking = service.create_booking(BookingRequest(**payload))
        return render(request, booking.to_dict(), status.HTTP_201_CREATED)

    @app.get(f"{API_PREFIX}/bookings", response_model=BookingListResponse)
    def list_bookings(request: Request, cursor: str = "", limit: Optional[str] = None):
        page = service.list_bookings(after_cursor=cursor, limit=_parse_limit(limit))
        return render(request, page.to_dict())

    @app.delete(f"{API_PREFIX}/bookings", status_code=status.HTTP_204_NO_CONTENT)
    def delete_booking(id: Optional[str] = None):
        if not id:
            raise ValidationFailure("booking ID is required")
        service.delete_booking(id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app
