# backend/modules/loyalty/tests/test_loyalty_api.py

from decimal import Decimal

import pytest

from modules.customers.models.customer_models import Customer, LoyaltyTier
from modules.loyalty.models.loyalty_models import (
    LoyaltyReward,
    LoyaltyTransaction,
    RewardType,
    TransactionType,
)
from modules.loyalty.services.loyalty_service import LoyaltyService


@pytest.fixture
def make_reward(db, tenant):
    def _make(name="Bedava Kahve", points_cost=100, **fields):
        fields.setdefault("reward_type", RewardType.FREE_ITEM)
        fields.setdefault("value", Decimal("65"))
        reward = LoyaltyReward(tenant_id=tenant.id, name=name, points_cost=points_cost, **fields)
        db.add(reward)
        db.commit()
        db.refresh(reward)
        return reward

    return _make


class TestLoyaltyConfig:
    def test_overview_without_config(self, client, staff_headers):
        data = client.get("/api/tenant/loyalty", headers=staff_headers).json()["data"]
        assert data["config"] is None
        assert data["rewards"] == []
        assert data["stats"]["total_customers"] == 0

    def test_upsert_creates_config(self, client, admin_headers):
        response = client.put(
            "/api/tenant/loyalty/config",
            json={"points_per_spent": "2", "birthday_bonus_points": 50},
            headers=admin_headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["points_per_spent"] == 2.0
        assert data["silver_threshold"] == 500
        assert data["birthday_bonus_points"] == 50

    def test_thresholds_must_ascend(self, client, admin_headers, loyalty_config):
        response = client.put(
            "/api/tenant/loyalty/config", json={"gold_threshold": 400}, headers=admin_headers
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_THRESHOLDS"

    def test_threshold_change_recomputes_tiers(
        self, client, db, tenant, admin_headers, loyalty_config, make_customer
    ):
        customer = make_customer(tenant, total_spent=Decimal("800"), loyalty_tier=LoyaltyTier.SILVER)
        response = client.put(
            "/api/tenant/loyalty/config",
            json={"silver_threshold": 200, "gold_threshold": 700},
            headers=admin_headers,
        )
        assert response.status_code == 200
        db.refresh(customer)
        assert customer.loyalty_tier == LoyaltyTier.GOLD

    def test_staff_cannot_change_config(self, client, staff_headers):
        response = client.put(
            "/api/tenant/loyalty/config", json={"is_active": False}, headers=staff_headers
        )
        assert response.status_code == 403


class TestRewards:
    def test_create_list_update_delete(self, client, admin_headers):
        response = client.post(
            "/api/tenant/loyalty/rewards",
            json={
                "name": "%10 İndirim",
                "reward_type": "discount_percent",
                "points_cost": 200,
                "value": "10",
                "min_tier": "SILVER",
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        reward_id = response.json()["data"]["id"]

        rewards = client.get("/api/tenant/loyalty", headers=admin_headers).json()["data"]["rewards"]
        assert [r["name"] for r in rewards] == ["%10 İndirim"]

        response = client.patch(
            f"/api/tenant/loyalty/rewards/{reward_id}",
            json={"points_cost": 250},
            headers=admin_headers,
        )
        assert response.json()["data"]["points_cost"] == 250

        response = client.delete(f"/api/tenant/loyalty/rewards/{reward_id}", headers=admin_headers)
        assert response.status_code == 200

    def test_percent_reward_above_100(self, client, admin_headers):
        response = client.post(
            "/api/tenant/loyalty/rewards",
            json={"name": "Hepsi", "reward_type": "discount_percent", "points_cost": 10, "value": "150"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_update_percent_above_100(self, client, admin_headers, make_reward):
        reward = make_reward(reward_type=RewardType.DISCOUNT_PERCENT, value=Decimal("10"))
        response = client.patch(
            f"/api/tenant/loyalty/rewards/{reward.id}", json={"value": "120"}, headers=admin_headers
        )
        assert response.status_code == 400


class TestPublicSummary:
    def test_summary_by_phone(self, client, tenant, loyalty_config, make_customer, make_reward):
        make_customer(tenant, loyalty_points=150, total_spent=Decimal("700"), loyalty_tier=LoyaltyTier.SILVER)
        make_reward(points_cost=100)
        make_reward(name="Tatlı", points_cost=300)

        response = client.get(
            "/api/public/loyalty",
            params={"tenant_slug": "demo-kafe", "phone": "+905321234567"},
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["points"] == 150
        assert data["tier"] == "SILVER"
        assert data["next_tier"] == "GOLD"
        assert data["spend_to_next_tier"] == 800.0
        assert data["multiplier"] == 1.25
        assert data["redeemable_rewards_count"] == 1
        assert [r["can_redeem"] for r in data["available_rewards"]] == [True, False]

    def test_inactive_program(self, client, db, tenant, loyalty_config, make_customer):
        customer = make_customer(tenant)
        loyalty_config.is_active = False
        db.commit()

        response = client.get(
            "/api/public/loyalty", params={"tenant_slug": "demo-kafe", "phone": customer.phone}
        )
        assert response.status_code == 404
        assert response.json()["error_code"] == "LOYALTY_INACTIVE"

    def test_phone_required(self, client, tenant, make_customer):
        customer = make_customer(tenant)
        response = client.get(
            "/api/public/loyalty", params={"tenant_slug": "demo-kafe", "customer_id": customer.id}
        )
        assert response.status_code == 422

    def test_id_must_match_phone(self, client, tenant, loyalty_config, make_customer):
        make_customer(tenant, name="Ayşe")
        other = make_customer(tenant, name="Can", phone="+905551112233", loyalty_points=900)
        response = client.get(
            "/api/public/loyalty",
            params={"tenant_slug": "demo-kafe", "phone": "+905321234567", "customer_id": other.id},
        )
        assert response.status_code == 404

    def test_unknown_customer(self, client, tenant, loyalty_config):
        response = client.get(
            "/api/public/loyalty", params={"tenant_slug": "demo-kafe", "phone": "+905009998877"}
        )
        assert response.status_code == 404


class TestRedemption:
    def test_redeem_debits_points(self, client, db, tenant, loyalty_config, make_customer, make_reward):
        customer = make_customer(tenant, loyalty_points=150)
        reward = make_reward(points_cost=100)

        response = client.post(
            "/api/public/loyalty",
            json={"tenant_slug": "demo-kafe", "phone": customer.phone, "reward_id": reward.id},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Ödül başarıyla kullanıldı"
        assert body["data"] == {"points_used": 100, "new_balance": 50, "reward_value": 65.0}

        db.refresh(reward)
        assert reward.used_count == 1
        transaction = db.query(LoyaltyTransaction).one()
        assert transaction.type == TransactionType.REDEEM
        assert transaction.points == -100
        assert transaction.balance_after == 50

    def test_insufficient_points(self, client, db, tenant, loyalty_config, make_customer, make_reward):
        customer = make_customer(tenant, loyalty_points=40)
        reward = make_reward(points_cost=100)

        response = client.post(
            "/api/public/loyalty",
            json={"tenant_slug": "demo-kafe", "phone": customer.phone, "reward_id": reward.id},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "InsufficientPoints"
        assert body["new_balance"] == 40
        assert db.query(LoyaltyTransaction).count() == 0

    def test_tier_not_eligible(self, client, tenant, loyalty_config, make_customer, make_reward):
        customer = make_customer(tenant, loyalty_points=1000)
        reward = make_reward(min_tier=LoyaltyTier.GOLD)
        response = client.post(
            "/api/public/loyalty",
            json={"tenant_slug": "demo-kafe", "phone": customer.phone, "reward_id": reward.id},
        )
        assert response.json()["error_code"] == "TierNotEligible"

    def test_exhausted_reward_leaves_balance(
        self, client, db, tenant, loyalty_config, make_customer, make_reward
    ):
        customer = make_customer(tenant, loyalty_points=1000)
        reward = make_reward(usage_limit=1, used_count=1)
        response = client.post(
            "/api/public/loyalty",
            json={"tenant_slug": "demo-kafe", "phone": customer.phone, "reward_id": reward.id},
        )
        assert response.json()["error_code"] == "RewardExhausted"
        db.refresh(customer)
        assert customer.loyalty_points == 1000

    def test_percent_reward_value_uses_order_total(
        self, client, tenant, loyalty_config, make_customer, make_reward
    ):
        customer = make_customer(tenant, loyalty_points=500)
        reward = make_reward(reward_type=RewardType.DISCOUNT_PERCENT, value=Decimal("10"))
        response = client.post(
            "/api/public/loyalty",
            json={
                "tenant_slug": "demo-kafe",
                "phone": customer.phone,
                "reward_id": reward.id,
                "order_total": "240",
            },
        )
        assert response.json()["data"]["reward_value"] == 24.0

    def test_unknown_reward(self, client, tenant, loyalty_config, make_customer):
        customer = make_customer(tenant, loyalty_points=1000)
        response = client.post(
            "/api/public/loyalty",
            json={"tenant_slug": "demo-kafe", "phone": customer.phone, "reward_id": 999},
        )
        assert response.status_code == 404

    def test_customer_id_alone_is_rejected(self, client, tenant, loyalty_config, make_customer, make_reward):
        customer = make_customer(tenant, loyalty_points=500)
        reward = make_reward(points_cost=100)
        response = client.post(
            "/api/public/loyalty",
            json={"tenant_slug": "demo-kafe", "customer_id": customer.id, "reward_id": reward.id},
        )
        assert response.status_code == 422

    def test_someone_elses_id_is_not_found(
        self, client, db, tenant, loyalty_config, make_customer, make_reward
    ):
        make_customer(tenant, name="Ayşe", loyalty_points=10)
        victim = make_customer(tenant, name="Can", phone="+905551112233", loyalty_points=500)
        reward = make_reward(points_cost=100)
        response = client.post(
            "/api/public/loyalty",
            json={
                "tenant_slug": "demo-kafe",
                "phone": "+905321234567",
                "customer_id": victim.id,
                "reward_id": reward.id,
            },
        )
        assert response.status_code == 404
        db.refresh(victim)
        assert victim.loyalty_points == 500

    def test_redeem_against_own_order(
        self, client, db, tenant, loyalty_config, make_customer, make_reward, make_order
    ):
        customer = make_customer(tenant, loyalty_points=500)
        order = make_order(tenant, customer=customer)
        reward = make_reward(points_cost=100)
        response = client.post(
            "/api/public/loyalty",
            json={
                "tenant_slug": "demo-kafe",
                "phone": customer.phone,
                "reward_id": reward.id,
                "order_id": order.id,
            },
        )
        assert response.status_code == 200
        assert db.query(LoyaltyTransaction).one().order_id == order.id

    def test_order_of_another_customer(
        self, client, db, tenant, loyalty_config, make_customer, make_reward, make_order
    ):
        customer = make_customer(tenant, loyalty_points=500)
        stranger = make_customer(tenant, name="Can", phone="+905551112233")
        order = make_order(tenant, customer=stranger)
        reward = make_reward(points_cost=100)
        response = client.post(
            "/api/public/loyalty",
            json={
                "tenant_slug": "demo-kafe",
                "phone": customer.phone,
                "reward_id": reward.id,
                "order_id": order.id,
            },
        )
        assert response.status_code == 404
        assert response.json()["error_code"] == "ORDER_NOT_FOUND"
        db.refresh(customer)
        assert customer.loyalty_points == 500
        assert db.query(LoyaltyTransaction).count() == 0

    def test_order_of_another_restaurant(
        self, client, db, tenant, make_tenant, loyalty_config, make_customer, make_reward, make_order
    ):
        customer = make_customer(tenant, loyalty_points=500)
        other = make_tenant(slug="baska-kafe")
        foreign_order = make_order(other)
        reward = make_reward(points_cost=100)
        response = client.post(
            "/api/public/loyalty",
            json={
                "tenant_slug": "demo-kafe",
                "phone": customer.phone,
                "reward_id": reward.id,
                "order_id": foreign_order.id,
            },
        )
        assert response.status_code == 404
        assert response.json()["error_code"] == "ORDER_NOT_FOUND"


class TestConcurrentRedemption:
    """Another request changes the rows after this one has loaded them"""

    @pytest.fixture
    def stale_session(self, session_factory):
        session = session_factory()
        yield session
        session.close()

    def test_balance_spent_elsewhere(
        self, db, stale_session, tenant, loyalty_config, make_customer, make_reward
    ):
        customer = make_customer(tenant, loyalty_points=500)
        reward = make_reward(points_cost=200)
        stale_customer = stale_session.get(Customer, customer.id)
        stale_session.get(LoyaltyReward, reward.id)

        db.query(Customer).filter(Customer.id == customer.id).update({Customer.loyalty_points: 150})
        db.commit()

        result = LoyaltyService(stale_session, tenant.id).redeem(stale_customer, reward.id)
        assert result.success is False
        assert result.error_code == "InsufficientPoints"
        assert result.new_balance == 150

        db.expire_all()
        assert db.get(Customer, customer.id).loyalty_points == 150
        assert db.get(LoyaltyReward, reward.id).used_count == 0
        assert db.query(LoyaltyTransaction).count() == 0

    def test_last_use_claimed_elsewhere(
        self, db, stale_session, tenant, loyalty_config, make_customer, make_reward
    ):
        customer = make_customer(tenant, loyalty_points=500)
        reward = make_reward(points_cost=100, usage_limit=3, used_count=2)
        stale_customer = stale_session.get(Customer, customer.id)
        stale_session.get(LoyaltyReward, reward.id)

        db.query(LoyaltyReward).filter(LoyaltyReward.id == reward.id).update(
            {LoyaltyReward.used_count: 3}
        )
        db.commit()

        result = LoyaltyService(stale_session, tenant.id).redeem(stale_customer, reward.id)
        assert result.error_code == "RewardExhausted"
        assert result.new_balance == 500

        db.expire_all()
        assert db.get(Customer, customer.id).loyalty_points == 500
        assert db.query(LoyaltyTransaction).count() == 0
