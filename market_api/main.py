"""FastAPI application main entry point."""

from contextlib import asynccontextmanager
from typing import Any, Dict, List
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from market_api.deps import close_shared_clients
from market_api.errors import http_status_for
from market_api.v1.endpoints import checkout, commissions, orders, payments, payouts
from market_core.domain.enums import ActorRole
from market_core.domain.errors import ErrorCode, MarketplaceError
from market_core.infrastructure.adapters.notifications import LoggingNotificationService
from market_core.infrastructure.database import close_database
from market_core.infrastructure.event_bus import get_event_bus
from market_core.infrastructure.logging import get_logger


logger = get_logger(__name__)

notification_service = LoggingNotificationService()


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_event_bus().subscribe(notification_service.handle_event)
    yield
    get_event_bus().unsubscribe(notification_service.handle_event)
    await close_shared_clients()
    await close_database()


app = FastAPI(
    title="Marketplace Settlement API",
    description="Multi-vendor order lifecycle, payments and seller settlement",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(checkout.router, prefix="/api/v1")
app.include_router(orders.router, prefix="/api/v1")
app.include_router(payments.router, prefix="/api/v1")
app.include_router(commissions.router, prefix="/api/v1")
app.include_router(payouts.router, prefix="/api/v1")


def _is_admin_request(request: Request) -> bool:
    role = (request.headers.get("x-actor-role") or "").strip().lower()
    return role in (ActorRole.ADMIN.value, ActorRole.SUPER_ADMIN.value)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    """Map a typed marketplace error to its HTTP status.

    Administrators get the internal message and structured details;
    everyone else gets the code and the user-facing message.
    """
    status_code = http_status_for(exc.code)
    if exc.code == ErrorCode.CALCULATION:
        logger.error(f"Calculation error on {request.method} {request.url.path}: {exc.message}", exc_info=exc)
    elif status_code >= 500:
        logger.error(f"{exc.code.value} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code.value} on {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content={"error": exc.to_dict(include_details=_is_admin_request(request))},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and parameters are validation errors (400)."""
    problems: List[Dict[str, Any]] = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=http_status_for(ErrorCode.VALIDATION),
        content={
            "error": {
                "code": ErrorCode.VALIDATION.value,
                "message": "Some of the submitted information is invalid.",
                "details": {"errors": problems},
            }
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle general exceptions.

    Args:
        request: FastAPI request
        exc: Exception

    Returns:
        JSONResponse with error details
    """
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "internal", "message": "Internal server error"}},
    )


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """Health check endpoint.

    Returns:
        Health status
    """
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)
