# backend/modules/loyalty/routers/public_loyalty_router.py

"""
Customer-facing loyalty endpoints used by the QR menu.
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.database import get_db
from core.error_handling import handle_api_errors
from core.exceptions import NotFoundError
from core.response_utils import error_response, success_response
from modules.customers.services.customer_service import CustomerService
from modules.tenants.services.tenant_lookup import get_tenant_by_slug

from ..schemas.loyalty_schemas import RedeemRequest
from ..services.loyalty_service import MSG_PROGRAM_INACTIVE, LoyaltyService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/public/loyalty", tags=["public"])


@router.get("")
@handle_api_errors
def loyalty_summary(
    tenant_slug: str = Query(..., min_length=1),
    phone: str = Query(..., min_length=1),
    customer_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
):
    """Points, tier progress, recent activity and rewards for the customer with this phone"""
    tenant = get_tenant_by_slug(db, tenant_slug)
    customer = CustomerService(db, tenant.id).find_customer(customer_id=customer_id, phone=phone)
    summary = LoyaltyService(db, tenant.id).summary(customer)
    if summary is None:
        raise NotFoundError(MSG_PROGRAM_INACTIVE, error_code="LOYALTY_INACTIVE")
    return success_response(summary)


@router.post("")
@handle_api_errors
def redeem_reward(
    data: RedeemRequest,
    db: Session = Depends(get_db),
):
    """Spend points on a reward; eligibility failures answer 400 with a reason"""
    tenant = get_tenant_by_slug(db, data.tenant_slug)
    customer = CustomerService(db, tenant.id).find_customer(
        customer_id=data.customer_id, phone=data.phone
    )
    result = LoyaltyService(db, tenant.id).redeem(
        customer, data.reward_id, order_id=data.order_id, order_total=data.order_total
    )
    if not result.success:
        return JSONResponse(
            status_code=400,
            content=error_response(
                result.message, result.error_code, new_balance=result.new_balance
            ),
        )
    return success_response(
        {
            "points_used": result.points_used,
            "new_balance": result.new_balance,
            "reward_value": result.reward_value,
        },
        result.message,
    )
