# backend/modules/tenants/services/admin_service.py

"""
Platform-wide views for the super-admin console.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from core.exceptions import ConflictError, NotFoundError
from modules.orders.models.order_models import Order, OrderStatus
from modules.tables.models.table_models import Table

from ..models.tenant_models import (
    Subscription,
    SubscriptionPlan,
    SubscriptionStatus,
    Tenant,
)
from ..schemas.tenant_schemas import RestaurantCreate, SubscriptionUpdate
from .registration_service import start_trial
from .tenant_resolver import is_reserved_subdomain

logger = logging.getLogger(__name__)


def _counts_by_tenant(db: Session, model) -> Dict[int, int]:
    return dict(db.query(model.tenant_id, func.count(model.id)).group_by(model.tenant_id).all())


class AdminService:
    def __init__(self, db: Session):
        self.db = db

    def list_restaurants(
        self, search: Optional[str] = None, status: Optional[SubscriptionStatus] = None
    ) -> List[Dict[str, Any]]:
        """Restaurants with order, table and revenue counts"""
        query = self.db.query(Tenant).options(
            joinedload(Tenant.subscription).joinedload(Subscription.plan)
        )
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(or_(Tenant.name.ilike(term), Tenant.slug.ilike(term)))
        tenants = query.order_by(Tenant.created_at.desc(), Tenant.id.desc()).all()

        order_counts = _counts_by_tenant(self.db, Order)
        table_counts = _counts_by_tenant(self.db, Table)
        revenue = dict(
            self.db.query(Order.tenant_id, func.coalesce(func.sum(Order.total), 0))
            .filter(Order.status != OrderStatus.CANCELLED)
            .group_by(Order.tenant_id)
            .all()
        )

        restaurants = []
        for tenant in tenants:
            subscription = tenant.subscription
            if status is not None and (subscription is None or subscription.status != status):
                continue
            restaurants.append(
                {
                    "id": tenant.id,
                    "name": tenant.name,
                    "slug": tenant.slug,
                    "email": tenant.email,
                    "phone": tenant.phone,
                    "is_active": tenant.is_active,
                    "plan": subscription.plan.name if subscription else None,
                    "subscription_status": subscription.status if subscription else None,
                    "orders": order_counts.get(tenant.id, 0),
                    "tables": table_counts.get(tenant.id, 0),
                    "revenue": Decimal(str(revenue.get(tenant.id, 0))),
                    "created_at": tenant.created_at,
                }
            )
        return restaurants

    def get_restaurant(self, tenant_id: int) -> Tenant:
        tenant = self.db.query(Tenant).filter(Tenant.id == tenant_id).first()
        if tenant is None:
            raise NotFoundError("Restoran bulunamadı")
        return tenant

    def create_restaurant(self, data: RestaurantCreate, trial_days: int) -> Tenant:
        """
        Restaurant opened from the console, on a starter trial and without users.

        Raises:
            ConflictError: if the slug is taken or reserved
        """
        taken = self.db.query(Tenant.id).filter(Tenant.slug == data.slug).first()
        if taken or is_reserved_subdomain(data.slug):
            raise ConflictError("Bu slug zaten kullanımda", error_code="SLUG_TAKEN")

        tenant = Tenant(
            name=data.name,
            slug=data.slug,
            email=data.email.lower() if data.email else None,
            phone=data.phone,
            address=data.address,
            settings={},
        )
        self.db.add(tenant)
        self.db.flush()
        start_trial(self.db, tenant, trial_days)
        self.db.commit()
        self.db.refresh(tenant)
        logger.info(f"Super admin created restaurant {tenant.slug} (tenant {tenant.id})")
        return tenant

    def delete_restaurant(self, tenant_id: int) -> None:
        tenant = self.get_restaurant(tenant_id)
        slug = tenant.slug
        self.db.delete(tenant)
        self.db.commit()
        logger.warning(f"Restaurant {slug} (tenant {tenant_id}) deleted")

    def set_restaurant_active(self, tenant_id: int, is_active: bool) -> Tenant:
        tenant = self.get_restaurant(tenant_id)
        tenant.is_active = is_active
        self.db.commit()
        self.db.refresh(tenant)
        logger.info(f"Restaurant {tenant.slug} {'activated' if is_active else 'deactivated'}")
        return tenant

    def list_subscriptions(self) -> List[Subscription]:
        return (
            self.db.query(Subscription)
            .options(joinedload(Subscription.tenant), joinedload(Subscription.plan))
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
            .all()
        )

    def list_plans(self) -> List[SubscriptionPlan]:
        return (
            self.db.query(SubscriptionPlan)
            .filter(SubscriptionPlan.is_active.is_(True))
            .order_by(SubscriptionPlan.sort_order, SubscriptionPlan.id)
            .all()
        )

    def update_subscription(self, subscription_id: int, data: SubscriptionUpdate) -> Subscription:
        subscription = (
            self.db.query(Subscription).filter(Subscription.id == subscription_id).first()
        )
        if subscription is None:
            raise NotFoundError("Abonelik bulunamadı")

        if data.plan_id is not None:
            plan = self.db.query(SubscriptionPlan).filter(SubscriptionPlan.id == data.plan_id).first()
            if plan is None:
                raise NotFoundError("Plan bulunamadı")
            subscription.plan_id = plan.id
        if data.status is not None:
            subscription.status = data.status
        if data.current_period_end is not None:
            subscription.current_period_end = data.current_period_end
        if data.extend_days:
            subscription.current_period_end = subscription.current_period_end + timedelta(
                days=data.extend_days
            )

        self.db.commit()
        self.db.refresh(subscription)
        logger.info(
            f"Subscription {subscription.id} of tenant {subscription.tenant_id} updated: "
            f"{data.model_dump(exclude_none=True)}"
        )
        return subscription

    def dashboard(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        start_of_month = today.replace(day=1)

        total_tenants = self.db.query(func.count(Tenant.id)).scalar()
        active_tenants = (
            self.db.query(func.count(Tenant.id)).filter(Tenant.is_active.is_(True)).scalar()
        )
        new_this_month = (
            self.db.query(func.count(Tenant.id)).filter(Tenant.created_at >= start_of_month).scalar()
        )

        billable = Order.status != OrderStatus.CANCELLED
        total_orders = self.db.query(func.count(Order.id)).scalar()
        total_revenue = (
            self.db.query(func.coalesce(func.sum(Order.total), 0)).filter(billable).scalar()
        )
        today_orders = (
            self.db.query(func.count(Order.id)).filter(Order.created_at >= today).scalar()
        )
        today_revenue = (
            self.db.query(func.coalesce(func.sum(Order.total), 0))
            .filter(billable, Order.created_at >= today)
            .scalar()
        )

        breakdown = {s.value: 0 for s in SubscriptionStatus}
        for status, count in (
            self.db.query(Subscription.status, func.count(Subscription.id))
            .group_by(Subscription.status)
            .all()
        ):
            breakdown[SubscriptionStatus(status).value] = count

        mrr = (
            self.db.query(func.coalesce(func.sum(SubscriptionPlan.price), 0))
            .join(Subscription, Subscription.plan_id == SubscriptionPlan.id)
            .filter(Subscription.status == SubscriptionStatus.ACTIVE)
            .scalar()
        )

        return {
            "total_tenants": total_tenants,
            "active_tenants": active_tenants,
            "new_this_month": new_this_month,
            "total_orders": total_orders,
            "total_revenue": Decimal(str(total_revenue or 0)),
            "today_orders": today_orders,
            "today_revenue": Decimal(str(today_revenue or 0)),
            "mrr": Decimal(str(mrr or 0)),
            "subscriptions": breakdown,
        }
