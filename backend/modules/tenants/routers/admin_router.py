# backend/modules/tenants/routers/admin_router.py

"""
Super-admin console: restaurants, subscriptions and the platform dashboard.
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from core.auth import TokenData, require_super_admin
from core.config import Settings
from core.database import get_db
from core.deps import get_app_settings
from core.demo_data import demo_admin_dashboard
from core.error_handling import handle_api_errors, with_demo_fallback
from core.response_utils import success_response

from ..models.tenant_models import SubscriptionStatus
from ..schemas.tenant_schemas import (
    RestaurantCreate,
    RestaurantOut,
    RestaurantToggle,
    SubscriptionOut,
    SubscriptionPlanOut,
    SubscriptionUpdate,
    TenantOut,
)
from ..services.admin_service import AdminService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/restaurants")
@handle_api_errors
def list_restaurants(
    search: Optional[str] = Query(None, max_length=100),
    status: Optional[SubscriptionStatus] = Query(None),
    db: Session = Depends(get_db),
    admin: TokenData = Depends(require_super_admin),
):
    restaurants = AdminService(db).list_restaurants(search=search, status=status)
    return success_response([RestaurantOut(**r) for r in restaurants], total=len(restaurants))


@router.post("/restaurants", status_code=status.HTTP_201_CREATED)
@handle_api_errors
def create_restaurant(
    data: RestaurantCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    admin: TokenData = Depends(require_super_admin),
):
    tenant = AdminService(db).create_restaurant(data, trial_days=settings.trial_days)
    return success_response(TenantOut.model_validate(tenant), "Restoran oluşturuldu")


@router.patch("/restaurants/{tenant_id}")
@handle_api_errors
def toggle_restaurant(
    tenant_id: int,
    data: RestaurantToggle,
    db: Session = Depends(get_db),
    admin: TokenData = Depends(require_super_admin),
):
    tenant = AdminService(db).set_restaurant_active(tenant_id, data.is_active)
    logger.info(f"Super admin {admin.user_id} set restaurant {tenant_id} active={data.is_active}")
    message = "Restoran aktifleştirildi" if tenant.is_active else "Restoran devre dışı bırakıldı"
    return success_response(TenantOut.model_validate(tenant), message)


@router.delete("/restaurants/{tenant_id}")
@handle_api_errors
def delete_restaurant(
    tenant_id: int,
    db: Session = Depends(get_db),
    admin: TokenData = Depends(require_super_admin),
):
    AdminService(db).delete_restaurant(tenant_id)
    logger.info(f"Super admin {admin.user_id} deleted restaurant {tenant_id}")
    return success_response({"deleted": True}, "Restoran silindi")


@router.get("/subscriptions")
@handle_api_errors
def list_subscriptions(
    db: Session = Depends(get_db),
    admin: TokenData = Depends(require_super_admin),
):
    service = AdminService(db)
    return success_response(
        [SubscriptionOut.model_validate(s) for s in service.list_subscriptions()],
        plans=[SubscriptionPlanOut.model_validate(p) for p in service.list_plans()],
    )


@router.patch("/subscriptions/{subscription_id}")
@handle_api_errors
def update_subscription(
    subscription_id: int,
    data: SubscriptionUpdate,
    db: Session = Depends(get_db),
    admin: TokenData = Depends(require_super_admin),
):
    subscription = AdminService(db).update_subscription(subscription_id, data)
    return success_response(SubscriptionOut.model_validate(subscription), "Abonelik güncellendi")


@router.get("/dashboard")
@with_demo_fallback(demo_admin_dashboard)
def admin_dashboard(
    request: Request,
    db: Session = Depends(get_db),
    admin: TokenData = Depends(require_super_admin),
):
    return success_response(AdminService(db).dashboard())
