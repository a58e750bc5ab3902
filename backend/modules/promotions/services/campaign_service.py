# backend/modules/promotions/services/campaign_service.py

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError
from modules.customers.models.customer_models import Customer
from modules.orders.models.order_models import Order

from ..models.promotion_models import Campaign, CampaignStatus, CampaignType
from ..schemas.promotion_schemas import CampaignCreate, CampaignUpdate, terms_error
from .discount_evaluator import campaign_applicable

logger = logging.getLogger(__name__)

MSG_CAMPAIGN_NOT_FOUND = "Kampanya bulunamadı"


def _column_values(values: Dict[str, Any]) -> Dict[str, Any]:
    if values.get("target_tiers") is not None:
        values["target_tiers"] = [tier.value for tier in values["target_tiers"]]
    return values


class CampaignService:
    def __init__(self, db: Session, tenant_id: int):
        self.db = db
        self.tenant_id = tenant_id

    def _query(self):
        return self.db.query(Campaign).filter(Campaign.tenant_id == self.tenant_id)

    def list_campaigns(self, status: Optional[CampaignStatus] = None) -> List[Campaign]:
        query = self._query()
        if status is not None:
            query = query.filter(Campaign.status == status)
        return query.order_by(Campaign.created_at.desc(), Campaign.id.desc()).all()

    @staticmethod
    def stats(campaigns: List[Campaign]) -> Dict[str, int]:
        return {
            "total": len(campaigns),
            "active": sum(1 for c in campaigns if c.status == CampaignStatus.ACTIVE),
            "scheduled": sum(1 for c in campaigns if c.status == CampaignStatus.SCHEDULED),
            "total_usage": sum(c.used_count or 0 for c in campaigns),
        }

    def get_campaign(self, campaign_id: int) -> Campaign:
        campaign = self._query().filter(Campaign.id == campaign_id).first()
        if campaign is None:
            raise NotFoundError(MSG_CAMPAIGN_NOT_FOUND)
        return campaign

    def create_campaign(self, data: CampaignCreate) -> Campaign:
        campaign = Campaign(tenant_id=self.tenant_id, **_column_values(data.model_dump()))
        self.db.add(campaign)
        self.db.commit()
        self.db.refresh(campaign)
        logger.info(f"Created campaign {campaign.id} ({campaign.name}) for tenant {self.tenant_id}")
        return campaign

    def update_campaign(self, campaign_id: int, data: CampaignUpdate) -> Campaign:
        campaign = self.get_campaign(campaign_id)
        for key, value in _column_values(data.model_dump(exclude_unset=True)).items():
            setattr(campaign, key, value)

        error = terms_error(
            campaign.type == CampaignType.DISCOUNT_PERCENT,
            campaign.discount_value,
            campaign.start_date,
            campaign.end_date,
        )
        if error:
            self.db.rollback()
            raise ValidationError(error)

        self.db.commit()
        self.db.refresh(campaign)
        return campaign

    def delete_campaign(self, campaign_id: int) -> None:
        campaign = self.get_campaign(campaign_id)
        self.db.delete(campaign)
        self.db.commit()
        logger.info(f"Deleted campaign {campaign_id} of tenant {self.tenant_id}")

    def public_campaigns(
        self, customer: Optional[Customer] = None, now: Optional[datetime] = None
    ) -> List[Campaign]:
        """Public campaigns that can be offered right now"""
        now = now or datetime.utcnow()
        is_first_order = None
        if customer is not None:
            is_first_order = (
                self.db.query(Order.id)
                .filter(Order.tenant_id == self.tenant_id, Order.customer_id == customer.id)
                .first()
                is None
            )
        candidates = (
            self._query()
            .filter(Campaign.is_public.is_(True), Campaign.status == CampaignStatus.ACTIVE)
            .order_by(Campaign.start_date.desc(), Campaign.id.desc())
            .all()
        )
        return [
            campaign
            for campaign in candidates
            if campaign_applicable(
                campaign,
                now=now,
                customer_tier=customer.loyalty_tier if customer is not None else None,
                is_first_order=is_first_order,
            )
        ]
