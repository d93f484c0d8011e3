import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from storefront.config import settings
from storefront.database import build_engine, create_db_and_tables
from storefront.errors import StorefrontError
from storefront.routes import (
    admin_orders,
    admin_settings,
    cart,
    checkout,
    coupons_admin,
    coupons_public,
    health,
    pos_orders,
    tax_rates_admin,
    tax_rates_public,
)
from storefront.services.order_service import OrderAssembler
from storefront.utils.cache_helpers import ResponseCache

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables(app.state.engine)
    yield


async def storefront_error_handler(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(engine: Optional[Engine] = None, cache: Optional[ResponseCache] = None) -> FastAPI:
    app = FastAPI(title="Storefront Orders API", lifespan=lifespan)

    app.state.engine = engine or build_engine(settings.database_url)
    app.state.cache = cache or ResponseCache(ttl=settings.cache_ttl_seconds)
    app.state.order_assembler = OrderAssembler(
        app.state.engine,
        cache=app.state.cache,
        default_shipping_cost=settings.default_shipping_cost,
        walk_in_email=settings.walk_in_email,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://localhost:3000",
            "http://127.0.0.1:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StorefrontError, storefront_error_handler)

    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(cart.router, prefix="/cart", tags=["Cart"])
    app.include_router(checkout.router, prefix="/orders", tags=["Orders"])
    app.include_router(coupons_public.router, prefix="/coupons", tags=["Coupons"])
    app.include_router(tax_rates_public.router, prefix="/tax-rates", tags=["Tax Rates"])
    app.include_router(pos_orders.router, prefix="/admin/pos/orders", tags=["Admin POS"])
    app.include_router(admin_orders.router, prefix="/admin/orders", tags=["Admin Orders"])
    app.include_router(coupons_admin.router, prefix="/admin/coupons", tags=["Admin Coupons"])
    app.include_router(tax_rates_admin.router, prefix="/admin/tax-rates", tags=["Admin Tax Rates"])
    app.include_router(admin_settings.router, prefix="/admin/settings", tags=["Admin Settings"])

    @app.get("/")
    def root():
        return {
            "cart": ["/cart", "/cart/add", "/cart/update/{id}", "/cart/remove/{id}", "/cart/clear"],
            "orders": ["/orders", "/orders/{order_id}"],
            "coupons": ["/coupons/validate"],
            "tax_rates": ["/tax-rates/lookup"],
            "admin": [
                "/admin/pos/orders", "/admin/orders/{order_id}/status",
                "/admin/coupons", "/admin/tax-rates", "/admin/settings/store",
            ],
        }

    return app


app = create_app()
