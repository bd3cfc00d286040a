"""
Storefront - Application Entry Point
=====================================
FastAPI app initialization, middleware, error handlers and router registration.
"""

import logging
import time as _time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config import settings
from config.database import Base, engine
from common.exceptions import StoreError, ErrorKind, http_status_for

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("storefront")
request_logger = logging.getLogger("storefront.request")

# ==========================================
# Import ALL models so Base can see them
# ==========================================
from modules.catalog.models import Product, ProductVariant  # noqa: F401,E402
from modules.discount.models import Discount  # noqa: F401,E402
from modules.cart.models import Cart, CartItem  # noqa: F401,E402
from modules.order.models import Order, OrderItem, OrderSequence  # noqa: F401,E402
from modules.payment.models import Payment  # noqa: F401,E402

# ==========================================
# Import routers
# ==========================================
from modules.cart.routes import router as cart_router  # noqa: E402
from modules.order.routes import router as order_router  # noqa: E402
from modules.payment.routes import router as payment_router  # noqa: E402


@asynccontextmanager
async def lifespan(app):
    # Auto-create any missing tables (safe for existing tables)
    Base.metadata.create_all(bind=engine)
    logger.info(f"Storefront started (gateway: {settings.PAYMENT_GATEWAY})")
    yield


# ==========================================
# Create App
# ==========================================
app = FastAPI(
    title="Storefront",
    description="Cart, checkout and payment API",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
    lifespan=lifespan,
)


# ==========================================
# Exception handlers
# ==========================================
async def store_error_handler(request: Request, exc: StoreError):
    """Map business errors to HTTP by kind: 400 / 404 / 422 / 500 (502 for the gateway)."""
    status_code = http_status_for(exc)
    if exc.kind == ErrorKind.UPSTREAM:
        logger.error(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")
    return JSONResponse({"error": exc.code, "detail": exc.message}, status_code=status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are validation errors (400), same as service-level ones."""
    return JSONResponse(
        {"error": "validation_error", "detail": jsonable_errors(exc)},
        status_code=400,
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


app.add_exception_handler(StoreError, store_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)


# ==========================================
# Middleware: Request Log
# ==========================================
_SKIP_PATHS = ("/health", "/favicon.ico")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    path = request.url.path
    if path.startswith(_SKIP_PATHS):
        return await call_next(request)

    start = _time.time()
    response = await call_next(request)
    elapsed_ms = int((_time.time() - start) * 1000)

    request_logger.info(f"{request.method} {path} {response.status_code} {elapsed_ms}ms")
    return response


# ==========================================
# Register Routers
# ==========================================
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(payment_router)


# ==========================================
# Health check
# ==========================================
@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}
