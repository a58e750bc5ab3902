# backend/modules/menu/routers/public_menu_router.py

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from core.database import get_db
from core.demo_data import demo_menu
from core.error_handling import with_demo_fallback
from core.response_utils import success_response
from modules.tenants.schemas.tenant_schemas import PublicTenant
from modules.tenants.services.tenant_lookup import get_tenant_by_slug

from ..schemas.menu_schemas import PublicCategory, PublicMenuItem
from ..services.menu_service import MenuService

router = APIRouter(prefix="/api/public/menu", tags=["public"])


@router.get("/{slug}")
@with_demo_fallback(demo_menu)
def public_menu(
    request: Request,
    slug: str,
    db: Session = Depends(get_db),
):
    """Restaurant info, active categories and the items guests can order"""
    tenant = get_tenant_by_slug(db, slug)
    service = MenuService(db, tenant.id)
    return success_response(
        {
            "tenant": PublicTenant.model_validate(tenant),
            "categories": [
                PublicCategory.model_validate(c) for c in service.get_categories(active_only=True)
            ],
            "items": [
                PublicMenuItem.model_validate(i) for i in service.get_items(available_only=True)
            ],
        }
    )
