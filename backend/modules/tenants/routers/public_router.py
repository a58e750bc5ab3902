# backend/modules/tenants/routers/public_router.py

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from core.database import get_db
from core.error_handling import handle_api_errors
from core.response_utils import success_response

from ..middleware.tenant_resolution import get_tenant_resolver
from ..models.tenant_models import Tenant
from ..schemas.tenant_schemas import PublicTenant
from ..services.tenant_resolver import TenantResolver

router = APIRouter(prefix="/api/public", tags=["public"])


@router.get("/resolve")
@handle_api_errors
def resolve_tenant(
    request: Request,
    host: Optional[str] = Query(None, description="Resolve for this host instead of the request's"),
    path: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    resolver: TenantResolver = Depends(get_tenant_resolver),
):
    """Which restaurant this host, path or ``tenant`` parameter points at"""
    if host is not None or path is not None:
        host = host if host is not None else request.headers.get("host")
        slug = resolver.resolve(host, path or "/", request.query_params)
        subdomain_type = resolver.subdomain_type(host).value
    else:
        slug = request.state.tenant_slug
        subdomain_type = request.state.subdomain_type

    tenant = None
    if slug:
        tenant = (
            db.query(Tenant)
            .filter(Tenant.slug == slug.lower(), Tenant.is_active.is_(True))
            .first()
        )

    return success_response(
        {
            "slug": slug,
            "subdomain_type": subdomain_type,
            "tenant": PublicTenant.model_validate(tenant) if tenant else None,
            "menu_url": resolver.tenant_url(slug) if tenant else None,
        }
    )
