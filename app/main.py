import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from app.config import settings
from app.database import create_db_and_tables
from app.routes import (
    addresses,
    admin_categories,
    admin_dashboard,
    admin_orders,
    admin_products,
    admin_reviews,
    categories,
    health,
    orders,
    payments_mpesa,
    payments_paypal,
    products,
    recently_viewed,
    wishlist,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local; elsewhere alembic owns the schema
    if settings.ENV == "local":
        create_db_and_tables()
    logger.info(f"{settings.STORE_NAME} API started ({settings.ENV})")
    yield

app = FastAPI(title=f"{settings.STORE_NAME} Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(products.router, prefix="/api/products", tags=["Products"])
app.include_router(categories.router, prefix="/api/categories", tags=["Categories"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(payments_mpesa.router, prefix="/api/payments/mpesa", tags=["M-Pesa"])
app.include_router(payments_paypal.router, prefix="/api/payments/paypal", tags=["PayPal"])
app.include_router(addresses.router, prefix="/api/addresses", tags=["Addresses"])
app.include_router(wishlist.router, prefix="/api/wishlist", tags=["Wishlist"])
app.include_router(recently_viewed.router, prefix="/api/recently-viewed", tags=["Recently Viewed"])
app.include_router(admin_orders.router, prefix="/api/admin/orders", tags=["Admin Orders"])
app.include_router(admin_products.router, prefix="/api/admin/products", tags=["Admin Products"])
app.include_router(admin_categories.router, prefix="/api/admin/categories", tags=["Admin Categories"])
app.include_router(admin_reviews.router, prefix="/api/admin/reviews", tags=["Admin Reviews"])
app.include_router(admin_dashboard.router, prefix="/api/admin/dashboard", tags=["Admin Dashboard"])


@app.get("/")
def root():
    return {
        "orders": [
            "/api/orders", "/api/orders/{order_id}",
            "/api/orders/{order_id}/cancel", "/api/orders/{order_id}/invoice",
        ],
        "payments": [
            "/api/payments/mpesa/initiate", "/api/payments/mpesa/callback",
            "/api/payments/paypal/create", "/api/payments/paypal/capture",
            "/api/payments/paypal/webhook",
        ],
        "catalog": [
            "/api/products", "/api/products/{product_id}", "/api/categories",
        ],
        "admin": [
            "/api/admin/orders", "/api/admin/orders/{order_id}",
            "/api/admin/products", "/api/admin/categories",
            "/api/admin/reviews", "/api/admin/dashboard",
        ],
    }
