# backend/modules/orders/routers/public_order_router.py

"""
Ordering from the QR menu and following the order afterwards.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from core.database import get_db
from core.deps import get_notification_service
from core.error_handling import handle_api_errors
from core.notification_service import NotificationService
from core.response_utils import success_response
from modules.tenants.services.tenant_lookup import get_tenant_by_slug

from ..schemas.order_schemas import OrderCreatedOut, OrderTrackingOut, PublicOrderCreate
from ..services.order_service import MSG_ORDER_CREATED, OrderService, track_order

router = APIRouter(prefix="/api/public/orders", tags=["public"])


@router.post("", status_code=status.HTTP_201_CREATED)
@handle_api_errors
def place_order(
    data: PublicOrderCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
):
    tenant = get_tenant_by_slug(db, data.tenant_slug)
    order = OrderService(db, tenant.id).place_order(data)

    background_tasks.add_task(
        notifications.notify_new_order,
        tenant.id,
        order.id,
        order.order_number,
        order.table.number if order.table else None,
        f"{order.total:.2f}",
    )
    return success_response(
        OrderCreatedOut(
            order_id=order.id,
            order_number=order.order_number,
            subtotal=order.subtotal,
            discount=order.discount,
            total=order.total,
            customer_id=order.customer_id,
        ),
        MSG_ORDER_CREATED,
    )


@router.get("")
@handle_api_errors
def order_status(
    id: Optional[int] = Query(None, description="Order id"),
    number: Optional[str] = Query(None, description="Order number"),
    tenant_slug: str = Query(..., min_length=1, description="Restaurant the order belongs to"),
    db: Session = Depends(get_db),
):
    tenant = get_tenant_by_slug(db, tenant_slug)
    order = track_order(db, tenant.id, order_id=id, order_number=number)
    return success_response(OrderTrackingOut.model_validate(order))
