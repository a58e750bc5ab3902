# backend/modules/promotions/tests/test_coupon_redemption.py

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from core.exceptions import ValidationError
from modules.promotions.models.promotion_models import (
    Campaign,
    CampaignStatus,
    CampaignType,
    Coupon,
    CouponUsage,
    DiscountType,
)
from modules.promotions.services.coupon_service import CouponService, validate_demo_coupon


@pytest.fixture
def make_coupon(db, tenant):
    def _make(code="YAZ2024", **fields):
        fields.setdefault("discount_type", DiscountType.AMOUNT)
        fields.setdefault("discount_value", Decimal("25"))
        fields.setdefault("start_date", datetime.utcnow() - timedelta(days=1))
        coupon = Coupon(tenant_id=tenant.id, code=code, **fields)
        db.add(coupon)
        db.commit()
        db.refresh(coupon)
        return coupon

    return _make


class TestUsageCap:
    def test_cap_is_never_exceeded(self, db, tenant, make_coupon, make_order):
        """With usage_limit 3 the first three redemptions succeed and the fourth fails"""
        coupon = make_coupon(usage_limit=3, per_customer_limit=0)
        service = CouponService(db, tenant.id)

        for _ in range(3):
            order = make_order(tenant)
            service.redeem(coupon, order_id=order.id, discount_amount=Decimal("25"))
            db.commit()

        order = make_order(tenant)
        with pytest.raises(ValidationError) as exc_info:
            service.redeem(coupon, order_id=order.id, discount_amount=Decimal("25"))
        assert exc_info.value.error_code == "COUPON_LIMIT_REACHED"
        db.rollback()

        db.refresh(coupon)
        assert coupon.used_count == 3
        assert db.query(CouponUsage).count() == 3

    def test_stale_instance_cannot_overrun_cap(self, db, tenant, make_coupon, make_order):
        """The claim is checked in the database, not against the loaded row"""
        coupon = make_coupon(usage_limit=1)
        stale = CouponService(db, tenant.id).get_by_code("YAZ2024")
        db.query(Coupon).filter(Coupon.id == coupon.id).update(
            {Coupon.used_count: 1}, synchronize_session=False
        )
        db.commit()

        with pytest.raises(ValidationError):
            CouponService(db, tenant.id).redeem(
                stale, order_id=make_order(tenant).id, discount_amount=Decimal("25")
            )

    def test_unlimited_coupon(self, db, tenant, make_coupon, make_order):
        coupon = make_coupon(usage_limit=0)
        service = CouponService(db, tenant.id)
        for _ in range(5):
            service.redeem(coupon, order_id=make_order(tenant).id, discount_amount=Decimal("25"))
        db.commit()
        db.refresh(coupon)
        assert coupon.used_count == 5

    def test_linked_campaign_usage_is_counted(self, db, tenant, make_coupon, make_order):
        campaign = Campaign(
            tenant_id=tenant.id,
            name="Yaz",
            type=CampaignType.DISCOUNT_PERCENT,
            discount_value=Decimal("10"),
            start_date=datetime.utcnow() - timedelta(days=1),
            status=CampaignStatus.ACTIVE,
        )
        db.add(campaign)
        db.commit()
        coupon = make_coupon(campaign_id=campaign.id)

        CouponService(db, tenant.id).redeem(
            coupon, order_id=make_order(tenant).id, discount_amount=Decimal("10")
        )
        db.commit()
        db.refresh(campaign)
        assert campaign.used_count == 1


class TestValidation:
    def test_per_customer_limit_uses_history(
        self, db, tenant, make_coupon, make_customer, make_order
    ):
        coupon = make_coupon(per_customer_limit=1, min_order_amount=Decimal("100"))
        customer = make_customer(tenant)
        service = CouponService(db, tenant.id)

        _, result = service.validate("yaz2024", order_total=Decimal("150"), customer_id=customer.id)
        assert result.valid

        service.redeem(coupon, make_order(tenant).id, Decimal("25"), customer_id=customer.id)
        db.commit()

        _, result = service.validate("YAZ2024", order_total=Decimal("150"), customer_id=customer.id)
        assert result.message == "Bu kuponu daha önce kullandınız"

    def test_codes_are_tenant_scoped(self, db, make_tenant, make_coupon):
        make_coupon()
        other = make_tenant(slug="baska-kafe")
        coupon, result = CouponService(db, other.id).validate("YAZ2024")
        assert coupon is None
        assert result.message == "Geçersiz kupon kodu"


class TestDemoCoupons:
    def test_unknown_demo_code(self):
        assert not validate_demo_coupon("YOKBOYLE").valid

    def test_known_demo_code(self):
        result = validate_demo_coupon("hosgeldin")
        assert result.valid
