# backend/modules/loyalty/services/loyalty_service.py

"""
Core service for loyalty program management.

Persistence around the pure rules in ``loyalty_evaluator``: program
configuration, rewards, accrual on delivered orders, redemption, manual
adjustments and birthday bonuses.
"""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from core.exceptions import ConflictError, NotFoundError, ValidationError
from modules.customers.models.customer_models import Customer, LoyaltyTier
from modules.orders.models.order_models import Order

from ..models.loyalty_models import (
    LoyaltyConfig,
    LoyaltyReward,
    LoyaltyTransaction,
    TransactionType,
)
from ..schemas.loyalty_schemas import (
    LoyaltyConfigUpdate,
    LoyaltySummary,
    PointsAdjustment,
    RedemptionResult,
    RewardCreate,
    RewardUpdate,
    SummaryReward,
    TransactionOut,
)
from .loyalty_evaluator import (
    AccrualResult,
    RedemptionError,
    calculate_accrual,
    calculate_tier,
    check_redemption,
    next_tier,
    reward_value,
    tier_multiplier,
)

logger = logging.getLogger(__name__)

_THRESHOLD_FIELDS = ("silver_threshold", "gold_threshold", "platinum_threshold")

MSG_PROGRAM_INACTIVE = "Loyalty programı aktif değil"
MSG_REWARD_NOT_FOUND = "Ödül bulunamadı"
MSG_ORDER_NOT_FOUND = "Sipariş bulunamadı"


class LoyaltyService:
    """Loyalty program operations for a single restaurant"""

    def __init__(self, db: Session, tenant_id: int):
        self.db = db
        self.tenant_id = tenant_id

    # ========== Configuration ==========

    def get_config(self) -> Optional[LoyaltyConfig]:
        return (
            self.db.query(LoyaltyConfig)
            .filter(LoyaltyConfig.tenant_id == self.tenant_id)
            .first()
        )

    def upsert_config(self, data: LoyaltyConfigUpdate) -> LoyaltyConfig:
        """
        Create or update the restaurant's loyalty configuration.

        Thresholds must stay strictly ascending. When they change every
        customer's tier is recomputed so tiers keep matching total spend.

        Raises:
            ValidationError: if silver < gold < platinum would not hold
        """
        values = data.model_dump(exclude_unset=True, exclude_none=True)
        config = self.get_config()
        created = config is None
        if created:
            config = LoyaltyConfig(tenant_id=self.tenant_id)
            self.db.add(config)

        previous = {field: getattr(config, field) for field in _THRESHOLD_FIELDS}
        for field, value in values.items():
            setattr(config, field, value)

        silver = config.silver_threshold if config.silver_threshold is not None else 500
        gold = config.gold_threshold if config.gold_threshold is not None else 1500
        platinum = config.platinum_threshold if config.platinum_threshold is not None else 5000
        if not silver < gold < platinum:
            self.db.rollback()
            raise ValidationError(
                "Seviye eşikleri artan sırada olmalı (gümüş < altın < platin)",
                error_code="INVALID_THRESHOLDS",
            )

        self.db.flush()
        thresholds_changed = created or any(
            previous[field] != getattr(config, field) for field in _THRESHOLD_FIELDS
        )
        if thresholds_changed:
            changed = self.recompute_tiers(config)
            logger.info(f"Tenant {self.tenant_id}: thresholds changed, {changed} customer tiers updated")

        self.db.commit()
        self.db.refresh(config)
        return config

    def recompute_tiers(self, config: LoyaltyConfig) -> int:
        """Align every customer's tier with their total spend; returns how many moved"""
        changed = 0
        customers = self.db.query(Customer).filter(Customer.tenant_id == self.tenant_id).all()
        for customer in customers:
            tier = calculate_tier(customer.total_spent, config)
            if customer.loyalty_tier != tier:
                customer.loyalty_tier = tier
                changed += 1
        self.db.flush()
        return changed

    # ========== Rewards ==========

    def list_rewards(self) -> List[LoyaltyReward]:
        return (
            self.db.query(LoyaltyReward)
            .filter(LoyaltyReward.tenant_id == self.tenant_id)
            .order_by(LoyaltyReward.points_cost.asc())
            .all()
        )

    def get_reward(self, reward_id: int) -> LoyaltyReward:
        reward = (
            self.db.query(LoyaltyReward)
            .filter(LoyaltyReward.id == reward_id, LoyaltyReward.tenant_id == self.tenant_id)
            .first()
        )
        if reward is None:
            raise NotFoundError(MSG_REWARD_NOT_FOUND)
        return reward

    def _check_order(self, customer: Customer, order_id: int) -> None:
        order = (
            self.db.query(Order.id)
            .filter(
                Order.id == order_id,
                Order.tenant_id == self.tenant_id,
                Order.customer_id == customer.id,
            )
            .first()
        )
        if order is None:
            raise NotFoundError(MSG_ORDER_NOT_FOUND, error_code="ORDER_NOT_FOUND")

    def create_reward(self, data: RewardCreate) -> LoyaltyReward:
        reward = LoyaltyReward(tenant_id=self.tenant_id, **data.model_dump())
        self.db.add(reward)
        self.db.commit()
        self.db.refresh(reward)
        logger.info(f"Created loyalty reward {reward.id} for tenant {self.tenant_id}")
        return reward

    def update_reward(self, reward_id: int, data: RewardUpdate) -> LoyaltyReward:
        reward = self.get_reward(reward_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(reward, field, value)

        if reward.reward_type == "discount_percent" and Decimal(str(reward.value)) > 100:
            self.db.rollback()
            raise ValidationError("Yüzde indirim en fazla 100 olabilir")

        self.db.commit()
        self.db.refresh(reward)
        return reward

    def delete_reward(self, reward_id: int) -> None:
        reward = self.get_reward(reward_id)
        self.db.delete(reward)
        self.db.commit()

    def stats(self) -> Dict[str, Any]:
        count, total_points, avg_points = (
            self.db.query(
                func.count(Customer.id),
                func.coalesce(func.sum(Customer.loyalty_points), 0),
                func.avg(Customer.loyalty_points),
            )
            .filter(Customer.tenant_id == self.tenant_id)
            .one()
        )
        distribution = (
            self.db.query(Customer.loyalty_tier, func.count(Customer.id))
            .filter(Customer.tenant_id == self.tenant_id)
            .group_by(Customer.loyalty_tier)
            .all()
        )
        return {
            "total_customers": count,
            "total_points_outstanding": int(total_points or 0),
            "avg_points": int(round(float(avg_points or 0))),
            "tier_distribution": {
                LoyaltyTier(tier).value: tier_count for tier, tier_count in distribution
            },
        }

    # ========== Ledger ==========

    def _record(
        self,
        customer: Customer,
        type: TransactionType,
        points: int,
        balance_after: int,
        description: str,
        order_id: Optional[int] = None,
        reward_id: Optional[int] = None,
        expires_at: Optional[datetime] = None,
    ) -> LoyaltyTransaction:
        transaction = LoyaltyTransaction(
            tenant_id=self.tenant_id,
            customer_id=customer.id,
            type=type,
            points=points,
            balance_before=balance_after - points,
            balance_after=balance_after,
            order_id=order_id,
            reward_id=reward_id,
            description=description,
            expires_at=expires_at,
        )
        self.db.add(transaction)
        return transaction

    def accrue_for_order(self, customer: Customer, order) -> AccrualResult:
        """
        Credit a delivered order to the customer.

        Spend and visits always accumulate; points follow the program
        configuration. The caller owns the transaction and commits.
        """
        config = self.get_config()
        result = calculate_accrual(
            config, customer.loyalty_tier, customer.total_spent, order.total
        )

        customer.total_spent = result.new_total_spent
        customer.visit_count = (customer.visit_count or 0) + 1
        customer.last_visit_at = datetime.utcnow()
        if config is not None:
            customer.loyalty_tier = result.new_tier

        if result.points > 0:
            customer.loyalty_points = (customer.loyalty_points or 0) + result.points
            expires_at = None
            if config.points_validity_days:
                expires_at = datetime.utcnow() + timedelta(days=config.points_validity_days)
            self._record(
                customer,
                TransactionType.EARN,
                result.points,
                customer.loyalty_points,
                f"Sipariş #{order.order_number} - {Decimal(str(order.total)):.2f} TL",
                order_id=order.id,
                expires_at=expires_at,
            )

        if result.tier_changed:
            logger.info(
                f"Customer {customer.id} moved from {result.previous_tier.value} "
                f"to {result.new_tier.value}"
            )
        self.db.flush()
        return result

    def redeem(
        self,
        customer: Customer,
        reward_id: int,
        order_id: Optional[int] = None,
        order_total=None,
        now: Optional[datetime] = None,
    ) -> RedemptionResult:
        """
        Spend points on a reward.

        Eligibility failures are returned, not raised, and leave no trace.
        The balance decrement and usage increment are conditional UPDATEs
        so a concurrent redemption cannot overdraw points or the reward cap.

        Raises:
            NotFoundError: if the reward does not belong to this restaurant,
                or the order is not this customer's order here
        """
        reward = self.get_reward(reward_id)
        if order_id is not None:
            self._check_order(customer, order_id)
        now = now or datetime.utcnow()

        def failed(error: RedemptionError) -> RedemptionResult:
            self.db.rollback()
            self.db.refresh(customer)
            return RedemptionResult(
                success=False,
                error_code=error.value,
                message=error.message,
                new_balance=customer.loyalty_points,
            )

        error = check_redemption(customer.loyalty_points, customer.loyalty_tier, reward, now)
        if error is not None:
            return failed(error)

        cost = reward.points_cost
        debited = (
            self.db.query(Customer)
            .filter(Customer.id == customer.id, Customer.loyalty_points >= cost)
            .update(
                {Customer.loyalty_points: Customer.loyalty_points - cost},
                synchronize_session=False,
            )
        )
        if not debited:
            return failed(RedemptionError.INSUFFICIENT_POINTS)

        claimed = (
            self.db.query(LoyaltyReward)
            .filter(
                LoyaltyReward.id == reward.id,
                or_(LoyaltyReward.usage_limit == 0, LoyaltyReward.used_count < LoyaltyReward.usage_limit),
            )
            .update(
                {LoyaltyReward.used_count: LoyaltyReward.used_count + 1},
                synchronize_session=False,
            )
        )
        if not claimed:
            return failed(RedemptionError.REWARD_EXHAUSTED)

        self.db.refresh(customer)
        self._record(
            customer,
            TransactionType.REDEEM,
            -cost,
            customer.loyalty_points,
            f"Ödül kullanımı: {reward.name}",
            order_id=order_id,
            reward_id=reward.id,
        )
        self.db.commit()
        self.db.refresh(customer)

        logger.info(f"Customer {customer.id} redeemed reward {reward.id} for {cost} points")
        return RedemptionResult(
            success=True,
            message="Ödül başarıyla kullanıldı",
            points_used=cost,
            new_balance=customer.loyalty_points,
            reward_value=reward_value(reward.reward_type, reward.value, order_total),
        )

    def summary(self, customer: Customer, now: Optional[datetime] = None) -> Optional[LoyaltySummary]:
        """Customer-facing overview, None when the program is not running"""
        config = self.get_config()
        if config is None or not config.is_active:
            return None
        now = now or datetime.utcnow()

        transactions = (
            self.db.query(LoyaltyTransaction)
            .filter(LoyaltyTransaction.customer_id == customer.id)
            .order_by(LoyaltyTransaction.id.desc())
            .limit(10)
            .all()
        )
        rewards = (
            self.db.query(LoyaltyReward)
            .filter(
                LoyaltyReward.tenant_id == self.tenant_id,
                LoyaltyReward.is_active.is_(True),
                or_(LoyaltyReward.valid_until.is_(None), LoyaltyReward.valid_until >= now),
            )
            .order_by(LoyaltyReward.points_cost.asc())
            .all()
        )

        tier = LoyaltyTier(customer.loyalty_tier)
        upcoming, remaining = next_tier(tier, customer.total_spent, config)
        available = [
            SummaryReward(
                id=reward.id,
                name=reward.name,
                description=reward.description,
                points_cost=reward.points_cost,
                reward_type=reward.reward_type,
                value=reward.value,
                min_tier=reward.min_tier,
                can_redeem=check_redemption(customer.loyalty_points, tier, reward, now) is None,
            )
            for reward in rewards
        ]

        return LoyaltySummary(
            points=customer.loyalty_points,
            tier=tier,
            total_spent=customer.total_spent,
            visit_count=customer.visit_count,
            next_tier=upcoming,
            spend_to_next_tier=remaining,
            multiplier=tier_multiplier(tier, config),
            recent_transactions=[TransactionOut.model_validate(t) for t in transactions],
            available_rewards=available,
            redeemable_rewards_count=sum(1 for reward in available if reward.can_redeem),
        )

    def adjust_points(
        self, customer: Customer, adjustment: PointsAdjustment
    ) -> LoyaltyTransaction:
        """
        Manually add or subtract points.

        Raises:
            ValidationError: if the balance would become negative
        """
        points = adjustment.points
        updated = (
            self.db.query(Customer)
            .filter(Customer.id == customer.id, Customer.loyalty_points + points >= 0)
            .update(
                {Customer.loyalty_points: Customer.loyalty_points + points},
                synchronize_session=False,
            )
        )
        if not updated:
            self.db.rollback()
            raise ValidationError("Puan bakiyesi sıfırın altına düşemez", error_code="INSUFFICIENT_POINTS")

        self.db.refresh(customer)
        transaction = self._record(
            customer,
            TransactionType.BONUS if adjustment.as_bonus else TransactionType.ADJUSTMENT,
            points,
            customer.loyalty_points,
            adjustment.reason,
        )
        self.db.commit()
        self.db.refresh(transaction)
        logger.info(f"Adjusted customer {customer.id} points by {points}: {adjustment.reason}")
        return transaction

    def award_birthday_bonus(
        self,
        customer: Customer,
        allow_same_month: bool = False,
        today: Optional[date] = None,
    ) -> LoyaltyTransaction:
        """
        Award the configured birthday bonus at most once per calendar year.

        Raises:
            ValidationError: program inactive, no bonus configured, no birth
                date, or today is not the birthday (or its month)
            ConflictError: the bonus was already awarded this year
        """
        today = today or date.today()
        config = self.get_config()
        if config is None or not config.is_active:
            raise ValidationError(MSG_PROGRAM_INACTIVE, error_code="LOYALTY_INACTIVE")
        if not config.birthday_bonus_points:
            raise ValidationError("Doğum günü bonusu tanımlı değil", error_code="NO_BIRTHDAY_BONUS")
        if customer.birth_date is None:
            raise ValidationError("Müşterinin doğum tarihi kayıtlı değil", error_code="NO_BIRTH_DATE")

        birth = customer.birth_date
        is_birthday = (birth.month, birth.day) == (today.month, today.day)
        if not is_birthday and not (allow_same_month and birth.month == today.month):
            raise ValidationError("Bugün müşterinin doğum günü değil", error_code="NOT_BIRTHDAY")

        bonus = config.birthday_bonus_points
        claimed = (
            self.db.query(Customer)
            .filter(
                Customer.id == customer.id,
                or_(
                    Customer.last_birthday_bonus_year.is_(None),
                    Customer.last_birthday_bonus_year != today.year,
                ),
            )
            .update(
                {
                    Customer.loyalty_points: Customer.loyalty_points + bonus,
                    Customer.last_birthday_bonus_year: today.year,
                },
                synchronize_session=False,
            )
        )
        if not claimed:
            self.db.rollback()
            raise ConflictError(
                "Bu yıl doğum günü bonusu zaten verildi", error_code="BIRTHDAY_BONUS_ALREADY_AWARDED"
            )

        self.db.refresh(customer)
        transaction = self._record(
            customer,
            TransactionType.BONUS,
            bonus,
            customer.loyalty_points,
            f"Doğum günü bonusu {today.year}",
        )
        self.db.commit()
        self.db.refresh(transaction)
        logger.info(f"Birthday bonus of {bonus} points awarded to customer {customer.id}")
        return transaction
