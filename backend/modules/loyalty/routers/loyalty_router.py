# backend/modules/loyalty/routers/loyalty_router.py

"""
Loyalty program management for the restaurant panel.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.auth import TokenData, require_tenant_manager, require_tenant_user
from core.database import get_db
from core.error_handling import handle_api_errors
from core.response_utils import success_response

from ..schemas.loyalty_schemas import (
    LoyaltyConfigOut,
    LoyaltyConfigUpdate,
    LoyaltyStats,
    RewardCreate,
    RewardOut,
    RewardUpdate,
)
from ..services.loyalty_service import LoyaltyService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/tenant/loyalty", tags=["loyalty"])


@router.get("")
@handle_api_errors
def get_loyalty_overview(
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_user),
):
    """Program configuration, rewards and customer point statistics"""
    service = LoyaltyService(db, user.tenant_id)
    config = service.get_config()
    return success_response(
        {
            "config": LoyaltyConfigOut.model_validate(config) if config else None,
            "rewards": [RewardOut.model_validate(r) for r in service.list_rewards()],
            "stats": LoyaltyStats(**service.stats()),
        }
    )


@router.put("/config")
@handle_api_errors
def upsert_config(
    data: LoyaltyConfigUpdate,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
):
    config = LoyaltyService(db, user.tenant_id).upsert_config(data)
    return success_response(LoyaltyConfigOut.model_validate(config), "Loyalty ayarları kaydedildi")


@router.post("/rewards", status_code=status.HTTP_201_CREATED)
@handle_api_errors
def create_reward(
    data: RewardCreate,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
):
    reward = LoyaltyService(db, user.tenant_id).create_reward(data)
    return success_response(RewardOut.model_validate(reward), "Ödül oluşturuldu")


@router.patch("/rewards/{reward_id}")
@handle_api_errors
def update_reward(
    reward_id: int,
    data: RewardUpdate,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
):
    reward = LoyaltyService(db, user.tenant_id).update_reward(reward_id, data)
    return success_response(RewardOut.model_validate(reward), "Ödül güncellendi")


@router.delete("/rewards/{reward_id}")
@handle_api_errors
def delete_reward(
    reward_id: int,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
):
    LoyaltyService(db, user.tenant_id).delete_reward(reward_id)
    return success_response(None, "Ödül silindi")
