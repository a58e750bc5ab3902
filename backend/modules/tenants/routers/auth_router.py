# backend/modules/tenants/routers/auth_router.py

"""
Restaurant sign-up and panel login.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from core.config import Settings
from core.database import get_db
from core.deps import get_app_settings, get_notification_service
from core.error_handling import handle_api_errors
from core.notification_service import NotificationService
from core.response_utils import success_response

from ..middleware.tenant_resolution import get_tenant_resolver
from ..models.tenant_models import UserRole
from ..schemas.tenant_schemas import (
    LoginRequest,
    RegisterRequest,
    SubscriptionOut,
    TenantSummary,
    TokenResponse,
    UserOut,
)
from ..services.registration_service import RegistrationService
from ..services.tenant_resolver import TenantResolver

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_response(service: RegistrationService, user, settings: Settings) -> TokenResponse:
    return TokenResponse(
        access_token=service.issue_token(user),
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=UserOut.model_validate(user),
        tenant=TenantSummary.model_validate(user.tenant) if user.tenant else None,
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
@handle_api_errors
def register(
    data: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    notifications: NotificationService = Depends(get_notification_service),
    resolver: TenantResolver = Depends(get_tenant_resolver),
):
    """Create a restaurant with its owner account and a trial subscription"""
    service = RegistrationService(db, settings)
    tenant, user, subscription = service.register(data)

    panel_url = resolver.panel_url()
    background_tasks.add_task(
        notifications.send_welcome,
        tenant.id,
        user.email,
        tenant.name,
        panel_url,
        {"menu_url": resolver.tenant_url(tenant.slug)},
    )

    return success_response(
        {
            **_token_response(service, user, settings).model_dump(),
            "subscription": SubscriptionOut.model_validate(subscription),
            "panel_url": panel_url,
            "menu_url": resolver.tenant_url(tenant.slug),
        },
        "Kayıt başarılı! Panele yönlendiriliyorsunuz...",
    )


@router.post("/login")
@handle_api_errors
def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    resolver: TenantResolver = Depends(get_tenant_resolver),
):
    """Token plus the console the user belongs on: admin for the platform, panel otherwise"""
    service = RegistrationService(db, settings)
    user = service.authenticate(data.email, data.password)
    logger.info(f"User {user.id} logged in")
    home = resolver.admin_url() if user.role == UserRole.SUPER_ADMIN else resolver.panel_url()
    return success_response(
        {**_token_response(service, user, settings).model_dump(), "redirect_url": home}
    )
