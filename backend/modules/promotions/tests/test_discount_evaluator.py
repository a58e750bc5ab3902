# backend/modules/promotions/tests/test_discount_evaluator.py

from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from modules.customers.models.customer_models import LoyaltyTier
from modules.promotions.models.promotion_models import CampaignStatus, CampaignType, DiscountType
from modules.promotions.services.discount_evaluator import (
    MSG_APPLIED,
    MSG_CAMPAIGN_INACTIVE,
    MSG_CUSTOMER_LIMIT,
    MSG_EXPIRED,
    MSG_INACTIVE,
    MSG_NOT_FOUND,
    MSG_NOT_STARTED,
    MSG_USAGE_LIMIT,
    DiscountTerms,
    campaign_applicable,
    compute_discount,
    format_amount,
    normalize_code,
    validate_coupon,
    within_hours,
)

# A Saturday
NOW = datetime(2024, 6, 1, 14, 30)


def make_coupon(**overrides):
    values = dict(
        code="YAZ2024",
        discount_type=DiscountType.AMOUNT,
        discount_value=Decimal("25"),
        min_order_amount=Decimal("100"),
        max_discount=None,
        start_date=NOW - timedelta(days=1),
        end_date=NOW + timedelta(days=30),
        usage_limit=0,
        per_customer_limit=1,
        used_count=0,
        is_active=True,
        campaign=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def make_campaign(**overrides):
    values = dict(
        type=CampaignType.DISCOUNT_PERCENT,
        discount_value=Decimal("10"),
        min_order_amount=None,
        max_discount=None,
        status=CampaignStatus.ACTIVE,
        start_date=NOW - timedelta(days=1),
        end_date=None,
        valid_days=[],
        valid_hours_from=None,
        valid_hours_to=None,
        target_tiers=[],
        is_first_order_only=False,
        usage_limit=0,
        used_count=0,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class TestCouponValidation:
    def test_below_minimum_order_amount(self):
        """An 80 order cannot use a coupon with a 100 minimum"""
        result = validate_coupon(make_coupon(), order_total=Decimal("80"), now=NOW)
        assert not result.valid
        assert result.message == "Minimum sipariş tutarı ₺100"

    def test_fixed_amount_discount(self):
        result = validate_coupon(make_coupon(), order_total=Decimal("150"), now=NOW)
        assert result.valid
        assert result.message == MSG_APPLIED
        assert result.discount_amount == Decimal("25")

    def test_unknown_coupon(self):
        assert validate_coupon(None, now=NOW).message == MSG_NOT_FOUND

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"is_active": False}, MSG_INACTIVE),
            ({"start_date": NOW + timedelta(hours=1)}, MSG_NOT_STARTED),
            ({"end_date": NOW - timedelta(minutes=1)}, MSG_EXPIRED),
            ({"usage_limit": 5, "used_count": 5}, MSG_USAGE_LIMIT),
        ],
    )
    def test_rejections(self, overrides, message):
        result = validate_coupon(make_coupon(**overrides), order_total=Decimal("150"), now=NOW)
        assert not result.valid
        assert result.message == message

    def test_checks_run_in_order(self):
        """An inactive and expired coupon reports the inactive state"""
        coupon = make_coupon(is_active=False, end_date=NOW - timedelta(days=1))
        assert validate_coupon(coupon, now=NOW).message == MSG_INACTIVE

    def test_per_customer_limit(self):
        result = validate_coupon(make_coupon(), Decimal("150"), customer_usage_count=1, now=NOW)
        assert result.message == MSG_CUSTOMER_LIMIT

    def test_anonymous_customer_skips_per_customer_limit(self):
        result = validate_coupon(make_coupon(), Decimal("150"), customer_usage_count=None, now=NOW)
        assert result.valid

    def test_without_order_total_only_terms_are_returned(self):
        result = validate_coupon(make_coupon(), now=NOW)
        assert result.valid
        assert result.discount_amount is None
        assert result.to_dict()["discount_type"] == "amount"

    def test_linked_campaign_terms_override_coupon(self):
        campaign = make_campaign(discount_value=Decimal("20"), max_discount=Decimal("30"))
        result = validate_coupon(make_coupon(campaign=campaign), Decimal("400"), now=NOW)
        assert result.valid
        assert result.discount_type == DiscountType.PERCENT
        assert result.discount_amount == Decimal("30")

    def test_linked_campaign_must_be_active(self):
        campaign = make_campaign(status=CampaignStatus.PAUSED)
        result = validate_coupon(make_coupon(campaign=campaign), Decimal("150"), now=NOW)
        assert result.message == MSG_CAMPAIGN_INACTIVE


class TestDiscountAmount:
    def test_percent_is_capped_by_max_discount(self):
        terms = DiscountTerms(DiscountType.PERCENT, Decimal("50"), Decimal("0"), Decimal("40"))
        assert compute_discount(terms, Decimal("200")) == Decimal("40")

    def test_percent_without_cap(self):
        terms = DiscountTerms(DiscountType.PERCENT, Decimal("15"), Decimal("0"))
        assert compute_discount(terms, Decimal("120.00")) == Decimal("18.00")

    def test_amount_never_exceeds_order_total(self):
        terms = DiscountTerms(DiscountType.AMOUNT, Decimal("50"), Decimal("0"))
        assert compute_discount(terms, Decimal("35")) == Decimal("35")

    def test_full_percent_discount_equals_total(self):
        terms = DiscountTerms(DiscountType.PERCENT, Decimal("100"), Decimal("0"))
        assert compute_discount(terms, Decimal("72.50")) == Decimal("72.50")


class TestHoursWindow:
    def test_plain_window(self):
        assert within_hours(NOW, "09:00", "17:00")
        assert not within_hours(NOW, "15:00", "17:00")

    def test_bounds_are_inclusive(self):
        assert within_hours(datetime(2024, 6, 1, 17, 0, 59), "09:00", "17:00")

    def test_window_wrapping_midnight(self):
        assert within_hours(datetime(2024, 6, 1, 23, 30), "22:00", "02:00")
        assert within_hours(datetime(2024, 6, 1, 1, 15), "22:00", "02:00")
        assert not within_hours(datetime(2024, 6, 1, 12, 0), "22:00", "02:00")

    def test_missing_bound_means_all_day(self):
        assert within_hours(NOW, None, "10:00")


class TestCampaignApplicability:
    def test_active_campaign_applies(self):
        assert campaign_applicable(make_campaign(), NOW)

    def test_draft_campaign_does_not_apply(self):
        assert not campaign_applicable(make_campaign(status=CampaignStatus.DRAFT), NOW)

    def test_valid_days_are_sunday_based(self):
        assert campaign_applicable(make_campaign(valid_days=[6]), NOW)
        assert not campaign_applicable(make_campaign(valid_days=[0, 1]), NOW)

    def test_target_tiers(self):
        campaign = make_campaign(target_tiers=["GOLD", "PLATINUM"])
        assert campaign_applicable(campaign, NOW, customer_tier=LoyaltyTier.GOLD)
        assert not campaign_applicable(campaign, NOW, customer_tier=LoyaltyTier.SILVER)
        assert not campaign_applicable(campaign, NOW)

    def test_first_order_only(self):
        campaign = make_campaign(is_first_order_only=True)
        assert campaign_applicable(campaign, NOW, is_first_order=True)
        assert not campaign_applicable(campaign, NOW, is_first_order=False)
        assert campaign_applicable(campaign, NOW)

    def test_exhausted_campaign(self):
        assert not campaign_applicable(make_campaign(usage_limit=2, used_count=2), NOW)

    def test_outside_date_range(self):
        assert not campaign_applicable(make_campaign(end_date=NOW - timedelta(days=1)), NOW)


class TestHelpers:
    def test_normalize_code(self):
        assert normalize_code(" yaz 2024 ") == "YAZ2024"

    @pytest.mark.parametrize(
        "value,text",
        [(Decimal("100.00"), "100"), (Decimal("99.50"), "99.5"), (Decimal("12.25"), "12.25")],
    )
    def test_format_amount(self, value, text):
        assert format_amount(value) == text
