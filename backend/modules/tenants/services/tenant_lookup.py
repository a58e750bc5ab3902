# backend/modules/tenants/services/tenant_lookup.py

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError

from ..models.tenant_models import Tenant

MSG_TENANT_NOT_FOUND = "Restoran bulunamadı"


def get_tenant_by_slug(db: Session, slug: str, active_only: bool = True) -> Tenant:
    """Public endpoints address a restaurant by slug; inactive ones are hidden"""
    query = db.query(Tenant).filter(Tenant.slug == slug.strip().lower())
    if active_only:
        query = query.filter(Tenant.is_active.is_(True))
    tenant = query.first()
    if tenant is None:
        raise NotFoundError(MSG_TENANT_NOT_FOUND, error_code="TENANT_NOT_FOUND")
    return tenant
