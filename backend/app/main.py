import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import sessionmaker

from core.config import Settings, get_settings, validate_production_config
from core.database import Base, build_engine, build_session_factory
from core.exceptions import register_exception_handlers
from core.notification_service import NotificationService
from core.tenant_context import TenantLogFilter

# Models register their tables on Base.metadata
import modules.customers.models  # noqa: F401
import modules.loyalty.models  # noqa: F401
import modules.menu.models  # noqa: F401
import modules.orders.models  # noqa: F401
import modules.promotions.models  # noqa: F401
import modules.tables.models  # noqa: F401
import modules.tenants.models  # noqa: F401

# ========== Tenants, Auth & Platform Admin ==========
from modules.tenants.middleware.tenant_resolution import TenantResolutionMiddleware
from modules.tenants.routers.admin_router import router as admin_router
from modules.tenants.routers.auth_router import router as auth_router
from modules.tenants.routers.public_router import router as resolve_router
from modules.tenants.routers.settings_router import router as settings_router
from modules.tenants.services.tenant_resolver import TenantResolver

# ========== Menu & Stock ==========
from modules.menu.routers.menu_router import router as menu_router
from modules.menu.routers.public_menu_router import router as public_menu_router
from modules.menu.routers.stock_router import router as stock_router

# ========== Tables ==========
from modules.tables.routers.table_router import router as table_router

# ========== Orders & Dashboard ==========
from modules.orders.routers.order_router import router as order_router
from modules.orders.routers.public_order_router import router as public_order_router

# ========== Customers & Loyalty ==========
from modules.customers.routers.customer_router import router as customer_router
from modules.loyalty.routers.loyalty_router import router as loyalty_router
from modules.loyalty.routers.public_loyalty_router import router as public_loyalty_router

# ========== Promotions ==========
from modules.promotions.routers.campaign_router import router as campaign_router
from modules.promotions.routers.coupon_router import router as coupon_router
from modules.promotions.routers.public_promotions_router import router as public_promotions_router

logger = logging.getLogger(__name__)

ROUTERS = [
    # Public
    auth_router,
    resolve_router,
    public_menu_router,
    public_order_router,
    public_promotions_router,
    public_loyalty_router,
    # Tenant panel
    settings_router,
    menu_router,
    stock_router,
    table_router,
    order_router,
    customer_router,
    loyalty_router,
    campaign_router,
    coupon_router,
    # Super admin
    admin_router,
]


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - [%(tenant)s] %(message)s",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, TenantLogFilter) for f in handler.filters):
            handler.addFilter(TenantLogFilter())


def create_app(
    settings: Optional[Settings] = None,
    session_factory: Optional[sessionmaker] = None,
) -> FastAPI:
    """
    Build the application.

    The engine, session factory, notification service and tenant resolver
    are created here once and shared through ``app.state``. Tests pass
    their own settings and session factory.
    """
    settings = settings or get_settings()
    validate_production_config(settings)
    configure_logging(settings)

    if session_factory is None:
        session_factory = build_session_factory(build_engine(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        Base.metadata.create_all(bind=session_factory.kw["bind"])
        logger.info(
            f"Restaurant platform started ({settings.environment}) on {settings.root_domain}"
        )
        yield
        session_factory.kw["bind"].dispose()

    app = FastAPI(
        title="Restaurant SaaS API",
        description="Multi-tenant QR menu, ordering, loyalty and promotions backend",
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    resolver = TenantResolver(settings.root_domain, settings.protocol)
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.notification_service = NotificationService.from_settings(settings)
    app.state.tenant_resolver = resolver

    app.add_middleware(TenantResolutionMiddleware, resolver=resolver)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    for router in ROUTERS:
        app.include_router(router)

    @app.get("/", tags=["health"])
    def read_root():
        return {"message": "Restaurant platform backend is running"}

    return app


app = create_app()
