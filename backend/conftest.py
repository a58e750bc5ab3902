"""
Pytest configuration shared by every module's tests.

Each test gets a fresh in-memory SQLite database, an application built
around it and helpers for creating restaurants, staff and menu data.
"""
import os
from datetime import datetime, timedelta
from decimal import Decimal

# Importing app.main builds the default app; keep it off the real database
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from app.main import create_app
from core.auth import create_access_token, get_password_hash
from core.config import Settings
from core.database import Base, build_session_factory
from modules.customers.models.customer_models import Customer
from modules.loyalty.models.loyalty_models import LoyaltyConfig
from modules.menu.models.menu_models import Category, MenuItem
from modules.orders.models.order_models import Order, OrderItem, OrderStatus
from modules.tables.models.table_models import Table
from modules.tenants.models.tenant_models import (
    Subscription,
    SubscriptionPlan,
    SubscriptionStatus,
    Tenant,
    User,
    UserRole,
)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        jwt_secret_key="test-secret",
        root_domain="example.com",
        protocol="https",
        environment="test",
        debug=False,
        demo_fallback_enabled=False,
        notification_webhook_url=None,
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    """Session for arranging data and checking results"""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app(settings, session_factory):
    return create_app(settings=settings, session_factory=session_factory)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_tenant(db):
    """Create an active restaurant with a trial subscription"""

    def _make(slug="demo-kafe", name="Demo Kafe", is_active=True, with_subscription=True):
        tenant = Tenant(
            name=name,
            slug=slug,
            email=f"info@{slug}.example.com",
            is_active=is_active,
            settings={"currency": "TRY", "language": "tr"},
        )
        db.add(tenant)
        db.flush()
        if with_subscription:
            plan = db.query(SubscriptionPlan).filter(SubscriptionPlan.slug == "starter").first()
            if plan is None:
                plan = SubscriptionPlan(name="Starter", slug="starter", price=Decimal("0"))
                db.add(plan)
                db.flush()
            now = datetime.utcnow()
            db.add(
                Subscription(
                    tenant_id=tenant.id,
                    plan_id=plan.id,
                    status=SubscriptionStatus.TRIAL,
                    current_period_start=now,
                    current_period_end=now + timedelta(days=14),
                    trial_ends_at=now + timedelta(days=14),
                )
            )
        db.commit()
        db.refresh(tenant)
        return tenant

    return _make


@pytest.fixture
def tenant(make_tenant):
    return make_tenant()


@pytest.fixture
def make_user(db):
    def _make(tenant=None, role=UserRole.TENANT_ADMIN, email=None, password="secret123"):
        user = User(
            email=email or f"{role.value.lower()}-{tenant.slug if tenant else 'platform'}@example.com",
            password_hash=get_password_hash(password),
            name="Test Kullanıcı",
            role=role,
            tenant_id=tenant.id if tenant else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers(settings):
    """Bearer header for a user, as the login endpoint would issue it"""

    def _headers(user):
        token = create_access_token(
            {
                "sub": str(user.id),
                "email": user.email,
                "name": user.name,
                "role": user.role.value,
                "tenant_id": user.tenant_id,
                "tenant_slug": user.tenant.slug if user.tenant else None,
            },
            settings,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin_headers(tenant, make_user, auth_headers):
    return auth_headers(make_user(tenant, UserRole.TENANT_ADMIN))


@pytest.fixture
def staff_headers(tenant, make_user, auth_headers):
    return auth_headers(make_user(tenant, UserRole.STAFF))


@pytest.fixture
def super_admin_headers(make_user, auth_headers):
    return auth_headers(make_user(None, UserRole.SUPER_ADMIN))


@pytest.fixture
def make_menu_item(db):
    def _make(tenant, name="Latte", price="65.00", category=None, **fields):
        if category is None:
            category = Category(tenant_id=tenant.id, name="İçecekler")
            db.add(category)
            db.flush()
        item = MenuItem(
            tenant_id=tenant.id,
            category_id=category.id,
            name=name,
            price=Decimal(price),
            **fields,
        )
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    return _make


@pytest.fixture
def make_customer(db):
    def _make(tenant, name="Ayşe Demir", phone="+905321234567", **fields):
        customer = Customer(tenant_id=tenant.id, name=name, phone=phone, **fields)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    return _make


@pytest.fixture
def make_table(db):
    def _make(tenant, number="1", **fields):
        table = Table(tenant_id=tenant.id, number=number, **fields)
        db.add(table)
        db.commit()
        db.refresh(table)
        return table

    return _make


@pytest.fixture
def loyalty_config(db, tenant):
    config = LoyaltyConfig(
        tenant_id=tenant.id,
        points_per_spent=Decimal("1"),
        min_spend_for_points=Decimal("0"),
        silver_threshold=500,
        gold_threshold=1500,
        platinum_threshold=5000,
        bronze_multiplier=Decimal("1"),
        silver_multiplier=Decimal("1.25"),
        gold_multiplier=Decimal("1.5"),
        platinum_multiplier=Decimal("2"),
        birthday_bonus_points=100,
        is_active=True,
    )
    db.add(config)
    db.commit()
    db.refresh(config)
    return config


@pytest.fixture
def make_order(db):
    """Order inserted directly, bypassing placement rules"""
    counter = {"n": 0}

    def _make(tenant, total="100.00", table=None, customer=None,
              status=OrderStatus.PENDING, items=(("Latte", 1),), **fields):
        counter["n"] += 1
        total = Decimal(total)
        order = Order(
            tenant_id=tenant.id,
            order_number=f"T{counter['n']:05d}",
            table_id=table.id if table else None,
            customer_id=customer.id if customer else None,
            status=status,
            subtotal=total,
            total=total,
            **fields,
        )
        for name, quantity in items:
            order.items.append(
                OrderItem(
                    name=name,
                    quantity=quantity,
                    unit_price=total / quantity,
                    total_price=total,
                )
            )
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    return _make
