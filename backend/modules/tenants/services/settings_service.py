# backend/modules/tenants/services/settings_service.py

"""
Restaurant profile, panel staff and plan usage for the tenant panel.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from core.auth import get_password_hash
from core.exceptions import ConflictError, NotFoundError, ValidationError

from ..models.tenant_models import Subscription, Tenant, User, UserRole
from ..schemas.tenant_schemas import StaffCreate, TenantSettingsUpdate

logger = logging.getLogger(__name__)

MSG_USER_NOT_FOUND = "Kullanıcı bulunamadı"


class SettingsService:
    def __init__(self, db: Session, tenant_id: int):
        self.db = db
        self.tenant_id = tenant_id

    def get_tenant(self) -> Tenant:
        tenant = self.db.query(Tenant).filter(Tenant.id == self.tenant_id).first()
        if tenant is None:
            raise NotFoundError("Restoran bulunamadı")
        return tenant

    def list_staff(self) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.tenant_id == self.tenant_id)
            .order_by(User.created_at, User.id)
            .all()
        )

    def _subscription(self) -> Optional[Subscription]:
        return (
            self.db.query(Subscription)
            .options(joinedload(Subscription.plan))
            .filter(Subscription.tenant_id == self.tenant_id)
            .first()
        )

    def plan_usage(self) -> Optional[Dict[str, Any]]:
        subscription = self._subscription()
        if subscription is None:
            return None
        plan = subscription.plan
        return {
            "plan": plan.name,
            "status": subscription.status,
            "current_period_end": subscription.current_period_end,
            "trial_ends_at": subscription.trial_ends_at,
            "limits": {
                "max_orders": plan.max_orders,
                "max_tables": plan.max_tables,
                "max_staff": plan.max_staff,
            },
            "usage": {
                "orders_used": subscription.orders_used,
                "staff": self._staff_count(),
            },
            "features": plan.features or [],
        }

    def _staff_count(self) -> int:
        return self.db.query(func.count(User.id)).filter(User.tenant_id == self.tenant_id).scalar()

    def update_profile(self, data: TenantSettingsUpdate) -> Tenant:
        tenant = self.get_tenant()
        values = data.model_dump(exclude_unset=True)
        if "name" in values and values["name"] is None:
            del values["name"]
        if values.get("settings") is not None:
            # new dict so the JSON column sees the change
            values["settings"] = {**(tenant.settings or {}), **values["settings"]}
        elif "settings" in values:
            del values["settings"]

        for key, value in values.items():
            setattr(tenant, key, value)
        self.db.commit()
        self.db.refresh(tenant)
        logger.info(f"Restaurant {tenant.slug} updated {sorted(values)}")
        return tenant

    def add_staff(self, data: StaffCreate) -> User:
        """
        Create a MANAGER or STAFF account for this restaurant.

        Raises:
            ConflictError: if the email is already used by any account
            ValidationError: if the plan's staff limit is reached
        """
        email = data.email.lower()
        if self.db.query(User.id).filter(User.email == email).first():
            raise ConflictError("Bu e-posta adresi zaten kullanılıyor", error_code="EMAIL_EXISTS")

        subscription = self._subscription()
        if subscription is not None and subscription.plan.max_staff != -1:
            if self._staff_count() >= subscription.plan.max_staff:
                raise ValidationError(
                    f"Personel limitine ulaştınız ({subscription.plan.max_staff}). "
                    "Planınızı yükseltin.",
                    error_code="STAFF_LIMIT_REACHED",
                )

        user = User(
            tenant_id=self.tenant_id,
            name=data.name,
            email=email,
            password_hash=get_password_hash(data.password),
            role=data.role,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Added {user.role.value} user {user.id} to tenant {self.tenant_id}")
        return user

    def remove_staff(self, user_id: int, acting_user_id: int) -> None:
        if user_id == acting_user_id:
            raise ValidationError("Kendinizi silemezsiniz", error_code="CANNOT_DELETE_SELF")
        user = (
            self.db.query(User)
            .filter(User.id == user_id, User.tenant_id == self.tenant_id)
            .first()
        )
        if user is None:
            raise NotFoundError(MSG_USER_NOT_FOUND)
        if user.role == UserRole.TENANT_ADMIN:
            raise ValidationError("Yönetici hesabı silinemez", error_code="CANNOT_DELETE_OWNER")

        self.db.delete(user)
        self.db.commit()
        logger.info(f"Removed user {user_id} from tenant {self.tenant_id}")
