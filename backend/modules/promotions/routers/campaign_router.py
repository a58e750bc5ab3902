# backend/modules/promotions/routers/campaign_router.py

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from core.auth import TokenData, require_tenant_manager
from core.database import get_db
from core.demo_data import demo_campaigns
from core.error_handling import handle_api_errors, with_demo_fallback
from core.response_utils import success_response

from ..models.promotion_models import CampaignStatus
from ..schemas.promotion_schemas import CampaignCreate, CampaignOut, CampaignUpdate
from ..services.campaign_service import CampaignService

router = APIRouter(prefix="/api/tenant/campaigns", tags=["campaigns"])


def _demo_campaign_list(**_):
    campaigns = demo_campaigns()
    return {
        "campaigns": campaigns,
        "stats": {
            "total": len(campaigns),
            "active": sum(1 for c in campaigns if c["status"] == "ACTIVE"),
            "scheduled": sum(1 for c in campaigns if c["status"] == "SCHEDULED"),
            "total_usage": sum(c["used_count"] for c in campaigns),
        },
    }


@router.get("")
@with_demo_fallback(_demo_campaign_list)
def list_campaigns(
    request: Request,
    status: Optional[CampaignStatus] = Query(None),
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
):
    service = CampaignService(db, user.tenant_id)
    campaigns = service.list_campaigns(status=status)
    return success_response(
        {
            "campaigns": [CampaignOut.model_validate(c) for c in campaigns],
            "stats": service.stats(campaigns),
        }
    )


@router.post("", status_code=status.HTTP_201_CREATED)
@handle_api_errors
def create_campaign(
    data: CampaignCreate,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
):
    campaign = CampaignService(db, user.tenant_id).create_campaign(data)
    return success_response(CampaignOut.model_validate(campaign), "Kampanya oluşturuldu")


@router.patch("/{campaign_id}")
@handle_api_errors
def update_campaign(
    campaign_id: int,
    data: CampaignUpdate,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
):
    campaign = CampaignService(db, user.tenant_id).update_campaign(campaign_id, data)
    return success_response(CampaignOut.model_validate(campaign), "Kampanya güncellendi")


@router.delete("/{campaign_id}")
@handle_api_errors
def delete_campaign(
    campaign_id: int,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
):
    CampaignService(db, user.tenant_id).delete_campaign(campaign_id)
    return success_response({"deleted": True}, "Kampanya silindi")
