"""
FastAPI Application Entry Point

Menu & Order API
Supports both in-memory/mock backends (development) and SQL/Firebase
backends (production).

Endpoints:
    - GET /api/menu: Full menu catalog
    - POST /api/orders: Place an order (bearer token)
    - GET /api/orders: Caller's orders, newest first (bearer token)
    - PATCH /api/orders/{order_id}/confirm: Mark an order received (bearer token)
    - GET /health: System health check
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, List, Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from order_api.auth import CallerContext, get_current_user
from order_api.core.config import Settings, get_settings, setup_logging
from order_api.core.errors import OrderApiError
from order_api.core.messages import get_message
from order_api.dependencies import (
    get_app_settings,
    get_menu_service,
    get_order_service,
    get_store,
    get_verifier,
)
from order_api.middleware import CONTENT_SECURITY_POLICY, SecurityHeadersMiddleware
from order_api.schemas import (
    ErrorResponse,
    HealthResponse,
    OrderConfirmResponse,
    OrderCreate,
    OrderCreateResponse,
    OrderResponse,
)
from order_api.services.identity import BaseTokenVerifier, get_token_verifier
from order_api.services.menu import MenuService
from order_api.services.orders import OrderService
from order_api.services.store import BaseDocumentStore, get_document_store

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Delivery offset: {settings.delivery_offset}")
    logger.info("=" * 60)

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    store = get_document_store()
    await store.initialize()
    logger.info(f"✅ Document Store: {store.provider_name}")

    verifier = get_token_verifier()
    logger.info(f"✅ Token Verifier: {verifier.provider_name}")

    logger.info("✅ Application ready!")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await store.close()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Menu catalog and order-placement API.",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware: only the configured origins may call with credentials
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# Outermost, so CORS preflight responses carry the policy too
app.add_middleware(SecurityHeadersMiddleware)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    store: BaseDocumentStore = Depends(get_store),
    verifier: BaseTokenVerifier = Depends(get_verifier),
) -> HealthResponse:
    """Verify the store and identity backends are operational."""
    store_status = "healthy" if await store.health_check() else "unhealthy"
    identity_status = "healthy" if await verifier.health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [store_status, identity_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        store=store_status,
        identity=identity_status,
        timestamp=datetime.now(timezone.utc),
    )


# =============================================================================
# MENU ENDPOINTS
# =============================================================================

@app.get(
    "/api/menu",
    response_model=List[dict[str, Any]],
    responses={500: {"model": ErrorResponse}},
    tags=["Menu"],
    summary="List Menu",
)
async def list_menu(
    menu_service: MenuService = Depends(get_menu_service),
) -> List[dict[str, Any]]:
    """Return every menu item as stored."""
    return await menu_service.list_menu()


# =============================================================================
# ORDER API ENDPOINTS
# =============================================================================

@app.post(
    "/api/orders",
    status_code=status.HTTP_201_CREATED,
    response_model=OrderCreateResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    tags=["Orders"],
    summary="Create Order",
)
async def create_order(
    order_data: Optional[OrderCreate] = None,
    caller: CallerContext = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service),
) -> OrderCreateResponse:
    """
    Place a new order for the authenticated caller.

    The dishes list must hold 1 to 10 entries; missing dish fields default
    to empty values.
    """
    dishes = order_data.dishes if order_data is not None else None
    order_id = await order_service.create_order(caller.user_id, dishes)

    return OrderCreateResponse(
        message=get_message("order_created", order_service.locale),
        orderId=order_id,
    )


@app.get(
    "/api/orders",
    response_model=List[OrderResponse],
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="List My Orders",
)
async def list_orders(
    caller: CallerContext = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service),
) -> List[dict[str, Any]]:
    """Retrieve the caller's orders, newest first."""
    orders = await order_service.list_orders(caller.user_id)
    return [order.to_response() for order in orders]


@app.patch(
    "/api/orders/{order_id}/confirm",
    response_model=OrderConfirmResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Confirm Order Received",
)
async def confirm_order(
    order_id: str,
    caller: CallerContext = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service),
) -> OrderConfirmResponse:
    """
    Mark an order as received.

    Any authenticated caller may confirm any order id.
    """
    logger.info(f"User {caller.user_id} confirming order {order_id}")
    new_status = await order_service.confirm_order(order_id)
    return OrderConfirmResponse(status=new_status.value)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

def _request_settings(request: Request) -> Settings:
    """Settings as the routes see them, honouring dependency overrides."""
    provider = request.app.dependency_overrides.get(get_app_settings, get_app_settings)
    return provider()


@app.exception_handler(OrderApiError)
async def order_api_error_handler(request: Request, exc: OrderApiError) -> JSONResponse:
    """Render domain errors as ``{"message": ...}``."""
    logger.info(f"{request.method} {request.url.path} -> {exc.http_status}: {exc.message}")
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_response(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    """Malformed request bodies are client errors."""
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
    locale = _request_settings(request).message_locale
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": get_message("invalid_request", locale)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all exception handler.

    Runs outside the user middleware stack, so the security headers are
    set here directly.
    """
    logger.exception(f"Unhandled exception: {exc}")

    app_settings = _request_settings(request)
    content = {"message": get_message("internal_error", app_settings.message_locale)}
    if app_settings.debug:
        content["detail"] = str(exc)

    return JSONResponse(
        status_code=500,
        content=content,
        headers={"Content-Security-Policy": CONTENT_SECURITY_POLICY},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
