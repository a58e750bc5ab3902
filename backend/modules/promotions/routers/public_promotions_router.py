# backend/modules/promotions/routers/public_promotions_router.py

"""
Coupon checks and campaign listings for the customer menu.
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from core.database import get_db
from core.demo_data import demo_campaigns
from core.error_handling import with_demo_fallback
from core.exceptions import NotFoundError
from core.response_utils import success_response
from modules.customers.models.customer_models import Customer
from modules.tenants.services.tenant_lookup import MSG_TENANT_NOT_FOUND, get_tenant_by_slug

from ..schemas.promotion_schemas import CouponValidateRequest, PublicCampaign
from ..services.campaign_service import CampaignService
from ..services.coupon_service import CouponService, validate_demo_coupon

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/public", tags=["public"])


def _demo_validation(data: CouponValidateRequest, **_):
    return validate_demo_coupon(data.code, data.order_total).to_dict()


def _demo_public_campaigns(**_):
    return [c for c in demo_campaigns() if c["status"] == "ACTIVE"]


@router.post("/coupon/validate")
@with_demo_fallback(_demo_validation)
def validate_coupon(
    request: Request,
    data: CouponValidateRequest,
    db: Session = Depends(get_db),
):
    """Rejections are answered as ``valid: false`` with the reason"""
    try:
        tenant = get_tenant_by_slug(db, data.tenant_slug)
    except NotFoundError:
        return success_response({"valid": False, "message": MSG_TENANT_NOT_FOUND})

    _, result = CouponService(db, tenant.id).validate(
        data.code, order_total=data.order_total, customer_id=data.customer_id
    )
    if not result.valid:
        logger.debug(f"Coupon {data.code} rejected for {tenant.slug}: {result.message}")
    return success_response(result.to_dict())


@router.get("/campaigns/{slug}")
@with_demo_fallback(_demo_public_campaigns)
def public_campaigns(
    request: Request,
    slug: str,
    customer_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
):
    """Campaigns that apply right now, narrowed to the customer when known"""
    tenant = get_tenant_by_slug(db, slug)
    customer = None
    if customer_id is not None:
        customer = (
            db.query(Customer)
            .filter(Customer.id == customer_id, Customer.tenant_id == tenant.id)
            .first()
        )
    campaigns = CampaignService(db, tenant.id).public_campaigns(customer=customer)
    return success_response([PublicCampaign.model_validate(c) for c in campaigns])
