# backend/modules/customers/routers/customer_router.py

from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from core.auth import TokenData, require_tenant_manager, require_tenant_user
from core.database import get_db
from core.demo_data import demo_customers
from core.error_handling import handle_api_errors, with_demo_fallback
from core.response_utils import PaginationParams, success_response
from modules.loyalty.schemas.loyalty_schemas import (
    BirthdayBonusRequest,
    PointsAdjustment,
    TransactionOut,
)
from modules.loyalty.services.loyalty_service import LoyaltyService

from ..schemas.customer_schemas import (
    CustomerCreate,
    CustomerListItem,
    CustomerOut,
    CustomerSort,
    CustomerUpdate,
)
from ..services.customer_service import CustomerService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/tenant/customers", tags=["customers"])


def _demo_customer_list(**_):
    customers = demo_customers()
    return {"customers": customers, "total": len(customers), "stats": None}


@router.get("")
@with_demo_fallback(_demo_customer_list)
def list_customers(
    request: Request,
    search: Optional[str] = Query(None, max_length=100),
    sort: CustomerSort = Query(CustomerSort.LAST_VISIT),
    pagination: PaginationParams = Depends(),
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_user),
):
    """List or search customers with stats for the panel"""
    service = CustomerService(db, user.tenant_id)
    items, total = service.list_customers(pagination, search=search, sort=sort)
    return success_response(
        {
            "customers": [CustomerListItem.model_validate(item) for item in items],
            "total": total,
            "limit": pagination.limit,
            "offset": pagination.offset,
            "stats": service.stats(),
        }
    )


@router.post("", status_code=status.HTTP_201_CREATED)
@handle_api_errors
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_user),
):
    customer = CustomerService(db, user.tenant_id).create_customer(data)
    return success_response(CustomerOut.model_validate(customer), "Müşteri oluşturuldu")


@router.patch("/{customer_id}")
@handle_api_errors
def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_user),
):
    customer = CustomerService(db, user.tenant_id).update_customer(customer_id, data)
    return success_response(CustomerOut.model_validate(customer), "Müşteri güncellendi")


@router.post("/{customer_id}/points")
@handle_api_errors
def adjust_points(
    customer_id: int,
    adjustment: PointsAdjustment,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
):
    """Manually add or subtract loyalty points"""
    customer = CustomerService(db, user.tenant_id).get_customer(customer_id)
    transaction = LoyaltyService(db, user.tenant_id).adjust_points(customer, adjustment)
    logger.info(f"User {user.user_id} adjusted points of customer {customer_id}")
    return success_response(
        {
            "transaction": TransactionOut.model_validate(transaction),
            "new_balance": customer.loyalty_points,
        },
        "Puan güncellendi",
    )


@router.post("/{customer_id}/birthday-bonus")
@handle_api_errors
def birthday_bonus(
    customer_id: int,
    data: BirthdayBonusRequest = BirthdayBonusRequest(),
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_user),
):
    customer = CustomerService(db, user.tenant_id).get_customer(customer_id)
    transaction = LoyaltyService(db, user.tenant_id).award_birthday_bonus(
        customer, allow_same_month=data.allow_same_month
    )
    return success_response(
        {
            "transaction": TransactionOut.model_validate(transaction),
            "new_balance": customer.loyalty_points,
        },
        "Doğum günü bonusu eklendi",
    )
