"""
FastAPI Application Entry Point

Bakery Ordering Platform - customer menu/checkout, OTP signup and the
admin kitchen board. All routes live under ``API_PREFIX`` (``/api/v1``).

Endpoints:
    - POST /user/signup, /user/verify-otp, /user/signin: account flow
    - GET /user/menu: public menu
    - POST /user/place-order, GET /user/orders: customer orders (token)
    - /admin/*: orders, status changes, menu management, analytics (admin token)
    - GET /health: System health check
"""

import asyncio
import sys
import logging
from datetime import datetime
from typing import List
from contextlib import asynccontextmanager

from fastapi import APIRouter, Body, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from bakery_api.core.config import get_settings, setup_logging
from bakery_api.core.exceptions import ServiceError, ValidationFailed
from bakery_api.core.security import TokenPayload
from bakery_api.database import get_db, init_db, engine
from bakery_api.dependencies import (
    get_catalog_service,
    get_current_user,
    get_order_service,
    get_otp_gate,
    get_sales_analytics,
    get_session_issuer,
    require_admin,
)
from bakery_api.schemas import (
    AdminOrderListResponse,
    AdminOrderResponse,
    AnalyticsResponse,
    BulkProductsResponse,
    DailyRevenuePoint,
    ErrorResponse,
    HealthResponse,
    MessageResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatusResponse,
    OrderStatusUpdate,
    PlaceOrderRequest,
    PlaceOrderResponse,
    ProductCreate,
    ProductListResponse,
    ProductMutationResponse,
    ProductResponse,
    RevenueToday,
    RevenueTotals,
    SigninRequest,
    SigninResponse,
    SignupRequest,
    SignupResponse,
    UserPublic,
    VerifyOtpRequest,
)
from bakery_api.services import (
    CatalogService,
    OrderService,
    OtpGate,
    SalesAnalytics,
    SessionIssuer,
)
from bakery_api.services.notifications import BaseNotificationService, get_notification_service
from bakery_api.services.orders import LineItem

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
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("✅ Database initialized")

    notification_service = get_notification_service()
    logger.info(f"✅ Notification Service: {notification_service.provider_name}")

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    logger.info("✅ Application ready!")

    yield  # Application runs

    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Menu, checkout, OTP signup and kitchen management API.",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "x-auth-token"],
)

user_router = APIRouter(prefix="/user", tags=["User"])
admin_router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"{settings.app_name} is running...",
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
    db: AsyncSession = Depends(get_db),
    notifier: BaseNotificationService = Depends(get_notification_service),
) -> HealthResponse:
    """Verify the database and the notification provider."""
    db_status = "healthy"
    try:
        await db.execute(select(func.now()))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    notification_status = "healthy" if await notifier.health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [db_status, notification_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        notification_service=notification_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# ACCOUNT ENDPOINTS
# =============================================================================

@user_router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=201,
    responses={409: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Start signup and e-mail an OTP",
)
async def signup(
    payload: SignupRequest,
    gate: OtpGate = Depends(get_otp_gate),
) -> SignupResponse:
    pending = await gate.request_registration(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        phone=payload.phone,
    )
    return SignupResponse(
        message="OTP sent to your email! Please verify to complete signup.",
        email=pending.email,
        expires_at=pending.expires_at,
    )


@user_router.post(
    "/verify-otp",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
    summary="Consume the OTP and activate the account",
)
async def verify_otp(
    payload: VerifyOtpRequest,
    gate: OtpGate = Depends(get_otp_gate),
) -> MessageResponse:
    await gate.verify(payload.email, payload.otp)
    return MessageResponse(message="Account verified and created! You can now login.")


@user_router.post(
    "/signin",
    response_model=SigninResponse,
    responses=ERROR_RESPONSES,
    summary="Sign in and receive an access token",
)
async def signin(
    payload: SigninRequest,
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> SigninResponse:
    session = await issuer.authenticate(payload.email, payload.password)
    return SigninResponse(
        token=session.token,
        user=UserPublic.model_validate(session.user),
    )


# =============================================================================
# CUSTOMER ENDPOINTS
# =============================================================================

@user_router.get("/menu", response_model=ProductListResponse, summary="List the menu")
async def menu(catalog: CatalogService = Depends(get_catalog_service)) -> ProductListResponse:
    products = await catalog.list_items()
    return ProductListResponse(products=[ProductResponse.model_validate(p) for p in products])


@user_router.post(
    "/place-order",
    response_model=PlaceOrderResponse,
    responses=ERROR_RESPONSES,
    summary="Place an order",
)
async def place_order(
    payload: PlaceOrderRequest,
    current: TokenPayload = Depends(get_current_user),
    orders: OrderService = Depends(get_order_service),
) -> PlaceOrderResponse:
    order = await orders.place(
        user_id=current.user_id,
        items=[
            LineItem(
                name=item.name,
                price=item.price,
                quantity=item.quantity,
                product_id=item.product_id,
                image=item.image,
            )
            for item in payload.items
        ],
        total_amount=payload.total_amount,
        address=payload.address,
        table_no=payload.table_no,
    )
    return PlaceOrderResponse(
        message="Order placed successfully!",
        order_id=order.id,
        status=order.status,
    )


@user_router.get(
    "/orders",
    response_model=OrderListResponse,
    responses={401: {"model": ErrorResponse}},
    summary="List my orders",
)
async def my_orders(
    current: TokenPayload = Depends(get_current_user),
    orders: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    mine = await orders.list_for_user(current.user_id)
    return OrderListResponse(orders=[OrderResponse.model_validate(o) for o in mine])


# =============================================================================
# ADMIN: ORDERS
# =============================================================================

@admin_router.get("/orders", response_model=AdminOrderListResponse, summary="List all orders")
async def all_orders(
    active: bool = Query(False, description="Only orders still on the kitchen board"),
    orders: OrderService = Depends(get_order_service),
) -> AdminOrderListResponse:
    found = await orders.active_orders() if active else await orders.list_all()
    return AdminOrderListResponse(orders=[AdminOrderResponse.model_validate(o) for o in found])


@admin_router.put(
    "/order-status/{order_id}",
    response_model=OrderStatusResponse,
    responses=ERROR_RESPONSES,
    summary="Set an order's status",
)
async def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    orders: OrderService = Depends(get_order_service),
) -> OrderStatusResponse:
    order = await orders.transition(order_id, payload.status)
    return OrderStatusResponse(
        message=f"Status updated to {order.status.value}",
        order=OrderResponse.model_validate(order),
    )


# =============================================================================
# ADMIN: MENU
# =============================================================================

@admin_router.get("/products", response_model=ProductListResponse, summary="List the menu")
async def admin_products(
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductListResponse:
    products = await catalog.list_items()
    return ProductListResponse(products=[ProductResponse.model_validate(p) for p in products])


@admin_router.post("/add_product", response_model=ProductMutationResponse, summary="Add a menu item")
async def add_product(
    payload: ProductCreate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductMutationResponse:
    product = await catalog.add_item(payload.model_dump())
    return ProductMutationResponse(
        message="Product added successfully!",
        product=ProductResponse.model_validate(product),
    )


@admin_router.post(
    "/add-bulk-products",
    response_model=BulkProductsResponse,
    summary="Upload many menu items at once",
)
async def add_bulk_products(
    payload: List[ProductCreate] = Body(...),
    catalog: CatalogService = Depends(get_catalog_service),
) -> BulkProductsResponse:
    if not payload:
        raise ValidationFailed("Menu is empty")
    products = await catalog.add_items([p.model_dump() for p in payload])
    return BulkProductsResponse(
        message="Menu updated successfully!",
        count=len(products),
        items=[ProductResponse.model_validate(p) for p in products],
    )


@admin_router.delete(
    "/remove-product/{product_id}",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
    summary="Delete a menu item",
)
async def remove_product(
    product_id: int,
    catalog: CatalogService = Depends(get_catalog_service),
) -> MessageResponse:
    await catalog.remove_item(product_id)
    return MessageResponse(message="Product deleted successfully")


@admin_router.put(
    "/toggle-stock/{product_id}",
    response_model=ProductMutationResponse,
    responses=ERROR_RESPONSES,
    summary="Flip a menu item between available and out of stock",
)
async def toggle_stock(
    product_id: int,
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductMutationResponse:
    product = await catalog.toggle_availability(product_id)
    state = "Available" if product.is_available else "Out of Stock"
    return ProductMutationResponse(
        message=f"Product is now {state}",
        product=ProductResponse.model_validate(product),
    )


# =============================================================================
# ADMIN: ANALYTICS
# =============================================================================

@admin_router.get("/analytics", response_model=AnalyticsResponse, summary="Sales figures")
async def analytics(
    sales: SalesAnalytics = Depends(get_sales_analytics),
) -> AnalyticsResponse:
    summary = await sales.summary()
    return AnalyticsResponse(
        total=RevenueTotals(
            total_revenue=summary.total.revenue,
            total_orders=summary.total.orders,
        ),
        today=RevenueToday(
            today_revenue=summary.today.revenue,
            today_orders=summary.today.orders,
        ),
        trend=[DailyRevenuePoint(date=p.day, daily_revenue=p.revenue) for p in summary.trend],
        history=[AdminOrderResponse.model_validate(o) for o in summary.history],
    )


app.include_router(user_router, prefix=settings.api_prefix)
app.include_router(admin_router, prefix=settings.api_prefix)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Typed business failures -> status code + ErrorResponse."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.error, detail=exc.message, msg=exc.message).model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed input is a 400 carrying the first validation message."""
    errors = exc.errors()
    detail = "Invalid input"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error="Validation Error", detail=detail, msg=detail).model_dump(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    detail = str(exc) if settings.debug else "An unexpected error occurred"
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="Internal Server Error", detail=detail, msg=detail).model_dump(),
    )


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "bakery_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )


if __name__ == "__main__":
    run()
