# backend/modules/tenants/services/registration_service.py

import logging
import re
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from core.auth import create_access_token, get_password_hash, verify_password
from core.config import Settings
from core.exceptions import AuthenticationError, ConflictError

from ..models.tenant_models import (
    Subscription,
    SubscriptionPlan,
    SubscriptionStatus,
    Tenant,
    User,
    UserRole,
)
from ..schemas.tenant_schemas import RegisterRequest
from .tenant_resolver import is_reserved_subdomain

logger = logging.getLogger(__name__)

_TURKISH_MAP = str.maketrans({"ğ": "g", "ü": "u", "ş": "s", "ı": "i", "ö": "o", "ç": "c"})

STARTER_PLAN = {
    "name": "Starter",
    "slug": "starter",
    "description": "Küçük işletmeler için ideal başlangıç paketi",
    "price": 0,
    "yearly_price": 0,
    "max_orders": 100,
    "max_tables": 10,
    "max_staff": 2,
    "features": ["basic_menu", "qr_codes", "basic_analytics"],
}


def generate_slug(name: str) -> str:
    """
    Build a subdomain-safe slug from a restaurant name.

    "Çınar Köşe Cafe" -> "cinar-kose-cafe"
    """
    slug = name.replace("İ", "i").replace("I", "i").lower().translate(_TURKISH_MAP)
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug.strip())
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug or "restoran"


def get_starter_plan(db: Session) -> SubscriptionPlan:
    """The plan new restaurants start on, created on first use"""
    plan = db.query(SubscriptionPlan).filter(SubscriptionPlan.slug == STARTER_PLAN["slug"]).first()
    if plan is None:
        plan = SubscriptionPlan(**STARTER_PLAN)
        db.add(plan)
        db.flush()
        logger.info("Created missing starter subscription plan")
    return plan


def start_trial(db: Session, tenant: Tenant, trial_days: int) -> Subscription:
    now = datetime.utcnow()
    trial_ends_at = now + timedelta(days=trial_days)
    subscription = Subscription(
        tenant_id=tenant.id,
        plan_id=get_starter_plan(db).id,
        status=SubscriptionStatus.TRIAL,
        current_period_start=now,
        current_period_end=trial_ends_at,
        trial_ends_at=trial_ends_at,
    )
    db.add(subscription)
    return subscription


class RegistrationService:
    """Restaurant sign-up and panel login"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    def _slug_taken(self, slug: str) -> bool:
        if is_reserved_subdomain(slug):
            return True
        return self.db.query(Tenant.id).filter(Tenant.slug == slug).first() is not None

    def unique_slug(self, restaurant_name: str) -> str:
        base = generate_slug(restaurant_name)
        slug = base
        counter = 1
        while self._slug_taken(slug):
            slug = f"{base}-{counter}"
            counter += 1
        return slug

    def register(self, data: RegisterRequest) -> Tuple[Tenant, User, Subscription]:
        """
        Create tenant, owner user and trial subscription in one transaction.

        Raises:
            ConflictError: if the email is already registered
        """
        email = data.email.lower()
        if self.db.query(User.id).filter(User.email == email).first():
            raise ConflictError("Bu email adresi zaten kayıtlı", error_code="EMAIL_EXISTS")

        try:
            slug = self.unique_slug(data.restaurant_name)

            tenant = Tenant(
                name=data.restaurant_name,
                slug=slug,
                email=email,
                settings={
                    "currency": self.settings.default_currency,
                    "language": self.settings.default_language,
                },
            )
            self.db.add(tenant)
            self.db.flush()

            user = User(
                email=email,
                password_hash=get_password_hash(data.password),
                name=data.name,
                role=UserRole.TENANT_ADMIN,
                tenant_id=tenant.id,
            )
            self.db.add(user)

            subscription = start_trial(self.db, tenant, self.settings.trial_days)

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error registering restaurant {data.restaurant_name}: {str(e)}")
            raise

        self.db.refresh(tenant)
        self.db.refresh(user)
        self.db.refresh(subscription)
        logger.info(f"Registered restaurant {tenant.slug} (tenant {tenant.id})")
        return tenant, user, subscription

    def authenticate(self, email: str, password: str) -> User:
        user = self.db.query(User).filter(User.email == email.lower()).first()
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("E-posta veya şifre hatalı", error_code="INVALID_CREDENTIALS")
        if not user.is_active:
            raise AuthenticationError("Hesabınız devre dışı", error_code="USER_INACTIVE")
        if user.tenant is not None and not user.tenant.is_active:
            raise AuthenticationError("Restoran hesabı devre dışı", error_code="TENANT_INACTIVE")

        user.last_login_at = datetime.utcnow()
        self.db.commit()
        return user

    def issue_token(self, user: User) -> str:
        tenant: Optional[Tenant] = user.tenant
        return create_access_token(
            {
                "sub": str(user.id),
                "email": user.email,
                "name": user.name,
                "role": user.role.value,
                "tenant_id": user.tenant_id,
                "tenant_slug": tenant.slug if tenant else None,
            },
            self.settings,
        )
