# backend/modules/orders/services/dashboard_service.py

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from modules.customers.models.customer_models import Customer, LoyaltyTier
from modules.menu.services.stock_service import StockService
from modules.tables.models.table_models import Table

from ..models.order_models import ACTIVE_STATUSES, Order, OrderItem, OrderStatus, PaymentStatus

logger = logging.getLogger(__name__)


def _money(value) -> Decimal:
    return Decimal(str(value or 0))


class DashboardService:
    """Today's numbers for a restaurant's panel home page"""

    def __init__(self, db: Session, tenant_id: int):
        self.db = db
        self.tenant_id = tenant_id

    def _orders(self):
        return self.db.query(Order).filter(Order.tenant_id == self.tenant_id)

    def overview(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        yesterday = today - timedelta(days=1)
        start_of_month = today.replace(day=1)
        tenant_orders = Order.tenant_id == self.tenant_id
        billable = Order.status != OrderStatus.CANCELLED

        today_orders = self._orders().filter(Order.created_at >= today).count()
        # cancelled orders count as orders but not as revenue
        today_revenue = (
            self.db.query(func.coalesce(func.sum(Order.total), 0))
            .filter(tenant_orders, billable, Order.created_at >= today)
            .scalar()
        )
        yesterday_revenue = (
            self.db.query(func.coalesce(func.sum(Order.total), 0))
            .filter(
                tenant_orders, billable,
                Order.created_at >= yesterday, Order.created_at < today,
            )
            .scalar()
        )
        active_orders = self._orders().filter(Order.status.in_(ACTIVE_STATUSES)).count()
        pending_orders = self._orders().filter(Order.status == OrderStatus.PENDING).count()
        month_orders = self._orders().filter(Order.created_at >= start_of_month).count()
        month_revenue = (
            self.db.query(func.coalesce(func.sum(Order.total), 0))
            .filter(
                tenant_orders,
                Order.created_at >= start_of_month,
                Order.payment_status == PaymentStatus.PAID,
            )
            .scalar()
        )

        customer_count, loyalty_points = (
            self.db.query(
                func.count(Customer.id), func.coalesce(func.sum(Customer.loyalty_points), 0)
            )
            .filter(Customer.tenant_id == self.tenant_id)
            .one()
        )
        tier_distribution = {tier.value: 0 for tier in LoyaltyTier}
        for tier, count in (
            self.db.query(Customer.loyalty_tier, func.count(Customer.id))
            .filter(Customer.tenant_id == self.tenant_id)
            .group_by(Customer.loyalty_tier)
            .all()
        ):
            tier_distribution[LoyaltyTier(tier).value] = count

        popular_items = [
            {"name": name, "quantity": int(quantity)}
            for name, quantity in (
                self.db.query(OrderItem.name, func.sum(OrderItem.quantity))
                .join(Order, OrderItem.order_id == Order.id)
                .filter(tenant_orders, Order.created_at >= start_of_month, billable)
                .group_by(OrderItem.name)
                .order_by(func.sum(OrderItem.quantity).desc())
                .limit(5)
                .all()
            )
        ]

        recent_orders = (
            self._orders()
            .options(joinedload(Order.table), selectinload(Order.items))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(10)
            .all()
        )

        return {
            "today_orders": today_orders,
            "today_revenue": _money(today_revenue),
            "yesterday_revenue": _money(yesterday_revenue),
            "active_orders": active_orders,
            "pending_orders": pending_orders,
            "month_orders": month_orders,
            "month_revenue": _money(month_revenue),
            "customer_count": customer_count,
            "total_loyalty_points": int(loyalty_points or 0),
            "tier_distribution": tier_distribution,
            "low_stock_count": StockService(self.db, self.tenant_id).low_stock_count(),
            "total_tables": (
                self.db.query(func.count(Table.id))
                .filter(Table.tenant_id == self.tenant_id, Table.is_active.is_(True))
                .scalar()
            ),
            "popular_items": popular_items,
            "recent_orders": [
                {
                    "id": order.id,
                    "order_number": order.order_number,
                    "table_number": order.table.number if order.table else None,
                    "total": order.total,
                    "status": order.status,
                    "payment_status": order.payment_status,
                    "created_at": order.created_at,
                    "items": [{"name": i.name, "quantity": i.quantity} for i in order.items],
                }
                for order in recent_orders
            ],
        }
