# backend/modules/orders/routers/order_router.py

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session

from core.auth import TokenData, require_tenant_user
from core.database import get_db
from core.demo_data import demo_dashboard, demo_orders
from core.deps import get_notification_service
from core.error_handling import handle_api_errors, with_demo_fallback
from core.notification_service import NotificationService
from core.response_utils import PaginationParams, success_response

from ..models.order_models import OrderStatus
from ..schemas.order_schemas import OrderOut, OrderUpdate
from ..services.dashboard_service import DashboardService
from ..services.order_service import OrderService

router = APIRouter(prefix="/api/tenant", tags=["orders"])


def _demo_order_list(**_):
    orders = demo_orders()
    return {"orders": orders, "total": len(orders), "limit": 50, "offset": 0}


@router.get("/orders")
@with_demo_fallback(_demo_order_list)
def list_orders(
    request: Request,
    status: Optional[OrderStatus] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    pagination: PaginationParams = Depends(),
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_user),
):
    orders, total = OrderService(db, user.tenant_id).list_orders(
        pagination, status=status, date_from=date_from, date_to=date_to
    )
    return success_response(
        {
            "orders": [OrderOut.model_validate(order) for order in orders],
            "total": total,
            "limit": pagination.limit,
            "offset": pagination.offset,
        }
    )


@router.patch("/orders/{order_id}")
@handle_api_errors
def update_order(
    order_id: int,
    data: OrderUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Move an order along, record payment or edit notes"""
    order, previous_status = OrderService(db, user.tenant_id).update_order(order_id, data)
    if order.status != previous_status:
        background_tasks.add_task(
            notifications.notify_order_status,
            user.tenant_id,
            order.id,
            order.order_number,
            previous_status.value,
            order.status.value,
        )
    return success_response(OrderOut.model_validate(order), "Sipariş güncellendi")


@router.get("/dashboard")
@with_demo_fallback(demo_dashboard)
def dashboard(
    request: Request,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_user),
):
    return success_response(DashboardService(db, user.tenant_id).overview())
