"""
FastAPI Application Entry Point

Storefront API - Hybrid Architecture
Runs on in-memory services (development) or the hosted store (production).

Endpoints:
    - GET  /api/product: Featured product for the landing page
    - GET  /api/orders/summary: Order form price breakdown
    - POST /api/orders: Landing-page order form submission
    - POST /api/orders/whatsapp: WhatsApp order link
    - GET  /api/orders: Admin table (search + status filter)
    - PATCH /api/orders/{id}/status: Admin status change
    - GET  /api/orders/export.csv|.xlsx: Filtered export
    - POST /api/orders/export/archive: Save the filtered export on the server
    - GET  /health: System health check
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional
from contextlib import asynccontextmanager
from urllib.parse import quote
from zoneinfo import ZoneInfo

from fastapi import FastAPI, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware

from storefront.core.config import get_settings, setup_logging
from storefront.core.constants import ALL_STATUSES, GOVERNORATES, OrderStatus
from storefront.core.exceptions import (
    OrderNotFoundError,
    OrderValidationError,
    ProductUnavailableError,
    RepositoryError,
)
from storefront.database import init_db, dispose_engine
from storefront.schemas import (
    INVALID_STATUS_ERROR,
    ArchiveResponse,
    ErrorResponse,
    HealthResponse,
    LandingProductResponse,
    Order,
    OrderCreateResponse,
    OrderFormRequest,
    OrderListResponse,
    OrderSummaryResponse,
    Product,
    StatusUpdateRequest,
    StatusUpdateResponse,
    WhatsAppOrderRequest,
    WhatsAppLinkResponse,
    error_message,
)
from storefront.services.admin_orders import ExportFile, OrdersTable
from storefront.services.export_manager import ARCHIVE_FORMATS
from storefront.services.order_form import OrderForm
from storefront.services.pricing import format_price
from storefront.services.realtime import get_change_feed
from storefront.services.repository import get_order_repository, get_product_repository
from storefront.services.store import OrderStore, ProductStore

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
    Wire services, load the caches and subscribe them to the change feed.
    """
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info("=" * 60)

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")
        await init_db()

    change_feed = get_change_feed()
    order_repository = get_order_repository()
    product_repository = get_product_repository()
    logger.info(f"✅ Change Feed: {change_feed.provider_name}")
    logger.info(f"✅ Order Repository: {order_repository.provider_name}")
    logger.info(f"✅ Product Repository: {product_repository.provider_name}")

    app.state.order_store = OrderStore(order_repository, change_feed)
    app.state.product_store = ProductStore(product_repository, change_feed)
    await app.state.product_store.start()
    await app.state.order_store.start()

    logger.info("✅ Application ready!")

    yield  # Application runs

    logger.info("Shutting down...")
    await app.state.order_store.stop()
    await app.state.product_store.stop()
    await change_feed.close()
    await dispose_engine()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Single-product storefront: order form, WhatsApp ordering and admin orders table.",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# DEPENDENCIES & HELPERS
# =============================================================================

def get_order_store(request: Request) -> OrderStore:
    return request.app.state.order_store


def get_product_store(request: Request) -> ProductStore:
    return request.app.state.product_store


def require_product(product_store: ProductStore) -> Product:
    product = product_store.featured_product
    if product is None:
        raise ProductUnavailableError()
    return product


def build_order_form(store: OrderStore, product: Product) -> OrderForm:
    return OrderForm(
        store,
        product_price=product.price,
        product_name=f"{product.name} - {settings.site_name}",
        whatsapp_number=settings.whatsapp_number,
        whatsapp_base_url=settings.whatsapp_base_url,
        currency_label=settings.currency_label,
        today=lambda: datetime.now(ZoneInfo(settings.timezone)).date(),
    )


def parse_status_filter(status: str) -> str:
    if status != ALL_STATUSES and status not in {s.value for s in OrderStatus}:
        raise OrderValidationError("status", INVALID_STATUS_ERROR)
    return status


def download(export: ExportFile) -> Response:
    ascii_name = "orders-" + export.filename.split("-", 1)[1]
    disposition = f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(export.filename)}"
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": disposition},
    )


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, Any]:
    """API root with navigation links and site settings."""
    return {
        "message": f"مرحباً بكم في {settings.site_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "support_phone": settings.support_phone,
        "whatsapp_number": settings.whatsapp_number,
        "facebook_url": settings.facebook_url,
        "instagram_url": settings.instagram_url,
        "governorates": list(GOVERNORATES),
        "statuses": [s.value for s in OrderStatus],
        "documentation": "/docs",
        "health": "/health",
    }


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request) -> HealthResponse:
    """Verify the repositories and the change feed are reachable."""
    order_store: OrderStore = request.app.state.order_store
    product_store: ProductStore = request.app.state.product_store

    def label(ok: bool) -> str:
        return "healthy" if ok else "unhealthy"

    orders_ok = await order_store.repository.health_check()
    products_ok = await product_store.repository.health_check()
    feed_ok = await order_store.change_feed.health_check() if order_store.change_feed else False

    return HealthResponse(
        status="operational" if orders_ok and products_ok and feed_ok else "degraded",
        order_repository=label(orders_ok),
        product_repository=label(products_ok),
        change_feed=label(feed_ok),
        timestamp=datetime.now(),
    )


# =============================================================================
# LANDING PAGE ENDPOINTS
# =============================================================================

@app.get("/api/product", response_model=LandingProductResponse, tags=["Landing"])
async def landing_product(
    product_store: ProductStore = Depends(get_product_store),
) -> LandingProductResponse:
    """Featured product; ``product`` is null when none is available."""
    product = product_store.featured_product
    return LandingProductResponse(
        loading=product_store.loading,
        product=product,
        price_label=format_price(product.price, settings.currency_label) if product else None,
    )


@app.get("/api/products", response_model=list[Product], tags=["Landing"])
async def list_products(
    product_store: ProductStore = Depends(get_product_store),
) -> list[Product]:
    return product_store.products


@app.get("/api/orders/summary", response_model=OrderSummaryResponse, tags=["Landing"])
async def order_summary(
    governorate: str = Query(""),
    order_store: OrderStore = Depends(get_order_store),
    product_store: ProductStore = Depends(get_product_store),
) -> OrderSummaryResponse:
    """Price breakdown shown under the order form."""
    form = build_order_form(order_store, require_product(product_store))
    form.set_field("governorate", governorate)
    totals = form.summary()

    return OrderSummaryResponse(
        subtotal=totals.subtotal,
        shipping=totals.shipping,
        total=totals.total,
        subtotal_label=format_price(totals.subtotal, settings.currency_label),
        shipping_label=format_price(totals.shipping, settings.currency_label),
        total_label=format_price(totals.total, settings.currency_label),
    )


@app.post(
    "/api/orders",
    status_code=201,
    response_model=OrderCreateResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    tags=["Landing"],
)
async def submit_order(
    payload: OrderFormRequest,
    order_store: OrderStore = Depends(get_order_store),
    product_store: ProductStore = Depends(get_product_store),
) -> Any:
    """Validate, price and persist an order from the landing-page form."""
    form = build_order_form(order_store, require_product(product_store))
    form.fill(**payload.model_dump())

    result = await form.submit()

    if not result.success:
        status_code = 422 if result.field else 503
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=result.notice.title,
                detail=result.notice.description,
                field=result.field,
            ).model_dump(),
        )

    return OrderCreateResponse(
        success=True,
        message=result.notice.title,
        description=result.notice.description,
        order=result.order,
    )


@app.post("/api/orders/whatsapp", response_model=WhatsAppLinkResponse, tags=["Landing"])
async def whatsapp_order(
    payload: WhatsAppOrderRequest,
    order_store: OrderStore = Depends(get_order_store),
    product_store: ProductStore = Depends(get_product_store),
) -> WhatsAppLinkResponse:
    """Build the WhatsApp order link. Nothing is persisted."""
    form = build_order_form(order_store, require_product(product_store))
    form.fill(**payload.model_dump())

    result = form.whatsapp_order()
    if not result.success:
        raise OrderValidationError("customer_name", result.notice.title)

    return WhatsAppLinkResponse(success=True, url=result.url, message=result.message)


# =============================================================================
# ADMIN ENDPOINTS
# =============================================================================

@app.get("/api/orders", response_model=OrderListResponse, tags=["Admin"])
async def list_orders(
    search: str = Query(""),
    status: str = Query(ALL_STATUSES),
    order_store: OrderStore = Depends(get_order_store),
) -> OrderListResponse:
    """Orders matching the search text and status filter, newest first."""
    table = OrdersTable(order_store, search, parse_status_filter(status), settings.timezone)
    orders = table.filtered_orders
    return OrderListResponse(total=len(orders), loading=table.loading, orders=orders)


@app.post("/api/orders/refresh", response_model=OrderListResponse, tags=["Admin"])
async def refresh_orders(
    order_store: OrderStore = Depends(get_order_store),
) -> Any:
    """Reload the full orders table from the store."""
    if not await order_store.refetch() and order_store.last_notice is not None:
        notice = order_store.last_notice
        return JSONResponse(
            status_code=503,
            content=ErrorResponse(error=notice.title, detail=notice.description).model_dump(),
        )
    return OrderListResponse(total=len(order_store.orders), loading=False, orders=order_store.orders)


@app.get("/api/orders/export.csv", tags=["Admin"])
async def export_orders_csv(
    search: str = Query(""),
    status: str = Query(ALL_STATUSES),
    order_store: OrderStore = Depends(get_order_store),
) -> Response:
    table = OrdersTable(order_store, search, parse_status_filter(status), settings.timezone)
    return download(table.export_csv())


@app.get("/api/orders/export.xlsx", tags=["Admin"])
async def export_orders_xlsx(
    search: str = Query(""),
    status: str = Query(ALL_STATUSES),
    order_store: OrderStore = Depends(get_order_store),
) -> Response:
    table = OrdersTable(order_store, search, parse_status_filter(status), settings.timezone)
    return download(table.export_xlsx())


@app.post(
    "/api/orders/export/archive",
    response_model=ArchiveResponse,
    responses={422: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    tags=["Admin"],
)
async def archive_orders(
    format: str = Query("csv"),
    search: str = Query(""),
    status: str = Query(ALL_STATUSES),
    order_store: OrderStore = Depends(get_order_store),
) -> Any:
    """Save the filtered export into the server's data directory."""
    if format not in ARCHIVE_FORMATS:
        raise OrderValidationError("format", "صيغة التصدير غير مدعومة")

    table = OrdersTable(order_store, search, parse_status_filter(status), settings.timezone)
    result = table.archive(format, Path(settings.data_directory))

    if not result["success"]:
        return _error(503, "تعذر حفظ ملف التصدير", result["message"])
    return ArchiveResponse(**result)


@app.get(
    "/api/orders/{order_id}",
    response_model=Order,
    responses={404: {"model": ErrorResponse}},
    tags=["Admin"],
)
async def get_order(
    order_id: str,
    order_store: OrderStore = Depends(get_order_store),
) -> Order:
    order = order_store.get(order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    return order


@app.patch(
    "/api/orders/{order_id}/status",
    response_model=StatusUpdateResponse,
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    tags=["Admin"],
)
async def change_order_status(
    order_id: str,
    payload: StatusUpdateRequest,
    order_store: OrderStore = Depends(get_order_store),
) -> Any:
    """Change one order's status; only the status field is modified."""
    table = OrdersTable(order_store)
    result = await table.change_status(order_id, payload.status)

    if not result.success:
        return JSONResponse(
            status_code=404 if result.not_found else 503,
            content=ErrorResponse(error=result.notice.title, detail=result.notice.description).model_dump(),
        )

    return StatusUpdateResponse(success=True, message=result.notice.title, order=result.order)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

def _error(status_code: int, error: str, detail: Optional[str] = None, field: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail, field=field).model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters, reported like form errors."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    path = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")]
    field = ".".join(path) or None
    message = INVALID_STATUS_ERROR if field == "status" else error_message(first)
    return _error(422, message, field=field)


@app.exception_handler(OrderValidationError)
async def validation_error_handler(request: Request, exc: OrderValidationError) -> JSONResponse:
    return _error(422, exc.message, exc.description, exc.field)


@app.exception_handler(OrderNotFoundError)
async def not_found_handler(request: Request, exc: OrderNotFoundError) -> JSONResponse:
    return _error(404, exc.message)


@app.exception_handler(ProductUnavailableError)
async def product_unavailable_handler(request: Request, exc: ProductUnavailableError) -> JSONResponse:
    return _error(404, exc.message)


@app.exception_handler(RepositoryError)
async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    logger.error(f"Store error on {request.url.path}: {exc.message}")
    return _error(503, "حدث خطأ في الاتصال بقاعدة البيانات", exc.message if settings.debug else None)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")
    return _error(
        500,
        "Internal Server Error",
        str(exc) if settings.debug else "An unexpected error occurred",
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("storefront.main:app", host=settings.api_host, port=settings.api_port, reload=settings.debug)
