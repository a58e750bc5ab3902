# backend/modules/tenants/routers/settings_router.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.auth import TokenData, require_tenant_admin, require_tenant_manager
from core.database import get_db
from core.error_handling import handle_api_errors
from core.response_utils import success_response

from ..schemas.tenant_schemas import (
    PlanUsage,
    StaffCreate,
    StaffOut,
    TenantProfile,
    TenantSettingsUpdate,
)
from ..services.settings_service import SettingsService

router = APIRouter(prefix="/api/tenant/settings", tags=["settings"])


@router.get("")
@handle_api_errors
def get_settings(
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
):
    """Restaurant profile, staff accounts and plan limits"""
    service = SettingsService(db, user.tenant_id)
    usage = service.plan_usage()
    return success_response(
        {
            "restaurant": TenantProfile.model_validate(service.get_tenant()),
            "staff": [StaffOut.model_validate(u) for u in service.list_staff()],
            "subscription": PlanUsage(**usage) if usage else None,
        }
    )


@router.patch("")
@handle_api_errors
def update_settings(
    data: TenantSettingsUpdate,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_admin),
):
    tenant = SettingsService(db, user.tenant_id).update_profile(data)
    return success_response(TenantProfile.model_validate(tenant), "Ayarlar güncellendi")


@router.post("/staff", status_code=status.HTTP_201_CREATED)
@handle_api_errors
def add_staff(
    data: StaffCreate,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_admin),
):
    staff = SettingsService(db, user.tenant_id).add_staff(data)
    return success_response(StaffOut.model_validate(staff), "Personel eklendi")


@router.delete("/staff/{user_id}")
@handle_api_errors
def remove_staff(
    user_id: int,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_admin),
):
    SettingsService(db, user.tenant_id).remove_staff(user_id, acting_user_id=user.user_id)
    return success_response({"deleted": True}, "Personel silindi")
