"""FastAPI entrypoint for the coffee-orders API."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from coffee_orders.api.v1.api import api_router
from coffee_orders.core.config import settings
from coffee_orders.db.base import Base
from coffee_orders.db.seed import ensure_admin_user
from coffee_orders.db.session import SessionLocal, engine
from coffee_orders.services.errors import OrderFlowError

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES: dict[int, str] = {
    status.HTTP_401_UNAUTHORIZED: "Unauthorized",
    status.HTTP_403_FORBIDDEN: "Forbidden",
    status.HTTP_404_NOT_FOUND: "NotFound",
    status.HTTP_405_METHOD_NOT_ALLOWED: "MethodNotAllowed",
}

app = FastAPI(title=settings.app_name, debug=settings.debug)
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
def startup() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        try:
            created = ensure_admin_user(session)
            logger.info("[BOOTSTRAP] default admin created: %s", "yes" if created else "no")
        except Exception:
            logger.exception("[BOOTSTRAP] Seed/bootstrap failed; continuing startup.")


def _error_response(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, "code": code})


@app.exception_handler(OrderFlowError)
def handle_order_flow_error(request: Request, exc: OrderFlowError) -> JSONResponse:
    return _error_response(exc.status_code, exc.message, exc.code)


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    logger.warning("Request validation failed path=%s error=%s", request.url.path, message)
    return _error_response(status.HTTP_400_BAD_REQUEST, message, "ValidationError")


@app.exception_handler(StarletteHTTPException)
def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTPError")
    response = _error_response(exc.status_code, str(exc.detail), code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error path=%s", request.url.path)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", "InternalError")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
