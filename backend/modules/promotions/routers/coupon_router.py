# backend/modules/promotions/routers/coupon_router.py

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from core.auth import TokenData, require_tenant_manager
from core.database import get_db
from core.demo_data import DEMO_COUPONS
from core.error_handling import handle_api_errors, with_demo_fallback
from core.response_utils import success_response

from ..schemas.promotion_schemas import CouponCreate, CouponOut, CouponUpdate
from ..services.coupon_service import CouponService

router = APIRouter(prefix="/api/tenant/coupons", tags=["coupons"])


def _demo_coupon_list(**_):
    coupons = [
        {
            "id": index,
            "code": code,
            "discount_type": discount_type,
            "discount_value": value,
            "min_order_amount": min_order,
            "max_discount": max_discount,
            "used_count": 0,
            "is_active": True,
        }
        for index, (code, (discount_type, value, min_order, max_discount)) in enumerate(
            DEMO_COUPONS.items(), start=1
        )
    ]
    return {
        "coupons": coupons,
        "stats": {"total": len(coupons), "active": len(coupons), "total_usage": 0},
    }


@router.get("")
@with_demo_fallback(_demo_coupon_list)
def list_coupons(
    request: Request,
    active: bool = Query(False, description="Only active coupons"),
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
):
    coupons = CouponService(db, user.tenant_id).list_coupons(active_only=active)
    return success_response(
        {
            "coupons": [CouponOut.model_validate(c) for c in coupons],
            "stats": CouponService.stats(coupons),
        }
    )


@router.post("", status_code=status.HTTP_201_CREATED)
@handle_api_errors
def create_coupon(
    data: CouponCreate,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
):
    coupon = CouponService(db, user.tenant_id).create_coupon(data)
    return success_response(CouponOut.model_validate(CouponService.as_dict(coupon)), "Kupon oluşturuldu")


@router.patch("/{coupon_id}")
@handle_api_errors
def update_coupon(
    coupon_id: int,
    data: CouponUpdate,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
):
    coupon = CouponService(db, user.tenant_id).update_coupon(coupon_id, data)
    return success_response(CouponOut.model_validate(CouponService.as_dict(coupon)), "Kupon güncellendi")


@router.delete("/{coupon_id}")
@handle_api_errors
def delete_coupon(
    coupon_id: int,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
):
    CouponService(db, user.tenant_id).delete_coupon(coupon_id)
    return success_response({"deleted": True}, "Kupon silindi")
