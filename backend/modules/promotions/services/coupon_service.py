# backend/modules/promotions/services/coupon_service.py

"""
Coupon management and redemption for a single restaurant.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from core.demo_data import DEMO_COUPONS
from core.exceptions import ConflictError, NotFoundError, ValidationError

from ..models.promotion_models import Campaign, Coupon, CouponUsage, DiscountType
from ..schemas.promotion_schemas import CouponCreate, CouponUpdate, terms_error
from .discount_evaluator import (
    MSG_APPLIED,
    MSG_NOT_FOUND,
    MSG_USAGE_LIMIT,
    CouponValidationResult,
    DiscountTerms,
    compute_discount,
    format_amount,
    normalize_code,
    validate_coupon,
)

logger = logging.getLogger(__name__)

MSG_COUPON_NOT_FOUND = "Kupon bulunamadı"
MSG_CODE_TAKEN = "Bu kupon kodu zaten kullanılıyor"


def validate_demo_coupon(code: str, order_total=None) -> CouponValidationResult:
    """Validation against the built-in demo codes when the database is down"""
    terms = DEMO_COUPONS.get(normalize_code(code))
    if terms is None:
        return CouponValidationResult.reject(MSG_NOT_FOUND)
    discount_type, value, min_order, max_discount = terms
    terms = DiscountTerms(
        discount_type=DiscountType(discount_type),
        discount_value=Decimal(value),
        min_order_amount=Decimal(min_order),
        max_discount=Decimal(max_discount) if max_discount is not None else None,
    )
    total = Decimal(str(order_total)) if order_total is not None else None
    if total is not None and terms.min_order_amount > 0 and total < terms.min_order_amount:
        return CouponValidationResult.reject(
            f"Minimum sipariş tutarı ₺{format_amount(terms.min_order_amount)}"
        )
    return CouponValidationResult(
        valid=True,
        message=MSG_APPLIED,
        discount_type=terms.discount_type,
        discount_value=terms.discount_value,
        min_order_amount=terms.min_order_amount,
        max_discount=terms.max_discount,
        discount_amount=compute_discount(terms, total) if total is not None else None,
    )


class CouponService:
    def __init__(self, db: Session, tenant_id: int):
        self.db = db
        self.tenant_id = tenant_id

    def _query(self):
        return self.db.query(Coupon).filter(Coupon.tenant_id == self.tenant_id)

    def get_by_code(self, code: str) -> Optional[Coupon]:
        return (
            self._query()
            .options(joinedload(Coupon.campaign))
            .filter(Coupon.code == normalize_code(code))
            .first()
        )

    def customer_usage_count(self, coupon: Coupon, customer_id: int) -> int:
        return (
            self.db.query(func.count(CouponUsage.id))
            .filter(CouponUsage.coupon_id == coupon.id, CouponUsage.customer_id == customer_id)
            .scalar()
        )

    def validate(
        self,
        code: str,
        order_total=None,
        customer_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[Optional[Coupon], CouponValidationResult]:
        coupon = self.get_by_code(code)
        usage_count = None
        if coupon is not None and customer_id is not None:
            usage_count = self.customer_usage_count(coupon, customer_id)
        return coupon, validate_coupon(coupon, order_total, usage_count, now=now)

    def redeem(
        self,
        coupon: Coupon,
        order_id: int,
        discount_amount: Decimal,
        customer_id: Optional[int] = None,
    ) -> CouponUsage:
        """
        Claim one use of the coupon for an order.

        Part of the order transaction; the caller commits, or rolls back
        when the cap was reached by a concurrent order.

        Raises:
            ValidationError: if the usage limit is already reached
        """
        claimed = (
            self.db.query(Coupon)
            .filter(
                Coupon.id == coupon.id,
                or_(Coupon.usage_limit == 0, Coupon.used_count < Coupon.usage_limit),
            )
            .update({Coupon.used_count: Coupon.used_count + 1}, synchronize_session=False)
        )
        if not claimed:
            logger.info(f"Coupon {coupon.code} of tenant {self.tenant_id} lost the usage race")
            raise ValidationError(MSG_USAGE_LIMIT, error_code="COUPON_LIMIT_REACHED")

        if coupon.campaign_id is not None:
            self.db.query(Campaign).filter(Campaign.id == coupon.campaign_id).update(
                {Campaign.used_count: Campaign.used_count + 1}, synchronize_session=False
            )

        usage = CouponUsage(
            coupon_id=coupon.id,
            customer_id=customer_id,
            order_id=order_id,
            discount_amount=discount_amount,
        )
        self.db.add(usage)
        self.db.flush()
        return usage

    # Panel operations
    def list_coupons(self, active_only: bool = False) -> List[Dict[str, Any]]:
        query = self._query().options(joinedload(Coupon.campaign))
        if active_only:
            query = query.filter(Coupon.is_active.is_(True))
        coupons = query.order_by(Coupon.created_at.desc(), Coupon.id.desc()).all()

        usage_counts = dict(
            self.db.query(CouponUsage.coupon_id, func.count(CouponUsage.id))
            .join(Coupon, CouponUsage.coupon_id == Coupon.id)
            .filter(Coupon.tenant_id == self.tenant_id)
            .group_by(CouponUsage.coupon_id)
            .all()
        )
        return [self.as_dict(c, usage_counts.get(c.id, 0)) for c in coupons]

    @staticmethod
    def as_dict(coupon: Coupon, usage_count: int = 0) -> Dict[str, Any]:
        return {
            "id": coupon.id,
            "code": coupon.code,
            "campaign_id": coupon.campaign_id,
            "campaign_name": coupon.campaign.name if coupon.campaign else None,
            "discount_type": coupon.discount_type,
            "discount_value": coupon.discount_value,
            "min_order_amount": coupon.min_order_amount,
            "max_discount": coupon.max_discount,
            "start_date": coupon.start_date,
            "end_date": coupon.end_date,
            "usage_limit": coupon.usage_limit,
            "per_customer_limit": coupon.per_customer_limit,
            "used_count": coupon.used_count,
            "is_active": coupon.is_active,
            "usage_count": usage_count,
            "created_at": coupon.created_at,
        }

    @staticmethod
    def stats(coupons: List[Dict[str, Any]]) -> Dict[str, int]:
        return {
            "total": len(coupons),
            "active": sum(1 for c in coupons if c["is_active"]),
            "total_usage": sum(c["used_count"] or 0 for c in coupons),
        }

    def get_coupon(self, coupon_id: int) -> Coupon:
        coupon = self._query().filter(Coupon.id == coupon_id).first()
        if coupon is None:
            raise NotFoundError(MSG_COUPON_NOT_FOUND)
        return coupon

    def _ensure_unique(self, code: str, exclude_id: Optional[int] = None):
        query = self._query().filter(Coupon.code == code)
        if exclude_id is not None:
            query = query.filter(Coupon.id != exclude_id)
        if query.first() is not None:
            raise ConflictError(MSG_CODE_TAKEN, error_code="COUPON_CODE_TAKEN")

    def _check_campaign(self, campaign_id: Optional[int]):
        if campaign_id is None:
            return
        exists = (
            self.db.query(Campaign.id)
            .filter(Campaign.id == campaign_id, Campaign.tenant_id == self.tenant_id)
            .first()
        )
        if exists is None:
            raise NotFoundError("Kampanya bulunamadı")

    def create_coupon(self, data: CouponCreate) -> Coupon:
        self._ensure_unique(data.code)
        self._check_campaign(data.campaign_id)
        values = data.model_dump()
        values["start_date"] = values["start_date"] or datetime.utcnow()
        coupon = Coupon(tenant_id=self.tenant_id, **values)
        self.db.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        logger.info(f"Created coupon {coupon.code} for tenant {self.tenant_id}")
        return coupon

    def update_coupon(self, coupon_id: int, data: CouponUpdate) -> Coupon:
        coupon = self.get_coupon(coupon_id)
        values = data.model_dump(exclude_unset=True)
        if values.get("code") and values["code"] != coupon.code:
            self._ensure_unique(values["code"], exclude_id=coupon.id)
        if "campaign_id" in values:
            self._check_campaign(values["campaign_id"])
        for key in ("code", "start_date"):
            if key in values and values[key] is None:
                del values[key]
        for key, value in values.items():
            setattr(coupon, key, value)

        error = terms_error(
            coupon.discount_type == DiscountType.PERCENT,
            coupon.discount_value,
            coupon.start_date,
            coupon.end_date,
        )
        if error:
            self.db.rollback()
            raise ValidationError(error)

        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def delete_coupon(self, coupon_id: int) -> None:
        coupon = self.get_coupon(coupon_id)
        self.db.delete(coupon)
        self.db.commit()
        logger.info(f"Deleted coupon {coupon.code} of tenant {self.tenant_id}")
