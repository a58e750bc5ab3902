# backend/modules/orders/tests/test_public_orders_api.py

import re
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from modules.customers.models.customer_models import Customer
from modules.menu.models.menu_models import StockMovement, StockMovementType
from modules.orders.models.order_models import Order, OrderStatus
from modules.orders.services.order_service import generate_order_number
from modules.promotions.models.promotion_models import Coupon, CouponUsage, DiscountType
from modules.tenants.models.tenant_models import Subscription


def order_payload(*items, **fields):
    body = {
        "tenant_slug": "demo-kafe",
        "items": [{"menu_item_id": item_id, "quantity": quantity} for item_id, quantity in items],
    }
    body.update(fields)
    return body


@pytest.fixture
def latte(tenant, make_menu_item):
    return make_menu_item(tenant, name="Latte", price="65.00")


@pytest.fixture
def cookie(tenant, make_menu_item):
    return make_menu_item(
        tenant, name="Kurabiye", price="30.00", track_stock=True, stock_quantity=5, low_stock_alert=2
    )


class TestOrderNumber:
    def test_format(self):
        number = generate_order_number(datetime(2024, 6, 1, 12, 0))
        assert re.fullmatch(r"S[0-9A-Z]{6}", number)

    def test_time_part_changes_with_time(self):
        first = generate_order_number(datetime(2024, 6, 1, 12, 0, 0))
        later = generate_order_number(datetime(2024, 6, 1, 12, 0, 5))
        assert first[1:5] != later[1:5]


class TestPlaceOrder:
    def test_prices_come_from_the_menu(self, client, db, tenant, latte, cookie):
        response = client.post(
            "/api/public/orders",
            json=order_payload((latte.id, 2), (cookie.id, 1), notes="Acele yok"),
        )
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Siparişiniz başarıyla oluşturuldu"
        data = body["data"]
        assert data["subtotal"] == 160.0
        assert data["discount"] == 0.0
        assert data["total"] == 160.0
        assert data["customer_id"] is None
        assert data["order_number"].startswith("S")

        order = db.query(Order).one()
        assert order.status == OrderStatus.PENDING
        assert sorted((i.name, i.quantity, i.total_price) for i in order.items) == [
            ("Kurabiye", 1, Decimal("30.00")),
            ("Latte", 2, Decimal("130.00")),
        ]

    def test_stock_is_deducted_with_movement(self, client, db, tenant, cookie):
        response = client.post("/api/public/orders", json=order_payload((cookie.id, 3)))
        number = response.json()["data"]["order_number"]

        db.refresh(cookie)
        assert cookie.stock_quantity == 2
        movement = db.query(StockMovement).one()
        assert movement.type == StockMovementType.OUT
        assert movement.quantity == -3
        assert movement.reason == f"Sipariş #{number}"

    def test_selling_out_marks_item_unavailable(self, client, db, tenant, cookie):
        client.post("/api/public/orders", json=order_payload((cookie.id, 5)))
        db.refresh(cookie)
        assert cookie.stock_quantity == 0
        assert cookie.is_available is False

    def test_insufficient_stock_across_lines(self, client, db, tenant, cookie):
        response = client.post("/api/public/orders", json=order_payload((cookie.id, 3), (cookie.id, 3)))
        assert response.status_code == 400
        assert response.json()["error_code"] == "INSUFFICIENT_STOCK"
        assert db.query(Order).count() == 0
        db.refresh(cookie)
        assert cookie.stock_quantity == 5

    def test_unavailable_item(self, client, tenant, make_menu_item):
        item = make_menu_item(tenant, is_available=False)
        response = client.post("/api/public/orders", json=order_payload((item.id, 1)))
        assert response.status_code == 400
        assert response.json()["error_code"] == "ITEM_UNAVAILABLE"

    def test_item_of_another_restaurant(self, client, tenant, make_tenant, make_menu_item):
        foreign = make_menu_item(make_tenant(slug="baska-kafe"))
        response = client.post("/api/public/orders", json=order_payload((foreign.id, 1)))
        assert response.status_code == 400
        assert response.json()["error_code"] == "ITEM_NOT_FOUND"

    @pytest.mark.parametrize(
        "payload",
        [
            {"tenant_slug": "demo-kafe", "items": []},
            {"tenant_slug": "demo-kafe", "items": [{"menu_item_id": 1, "quantity": 0}]},
            {"items": [{"menu_item_id": 1, "quantity": 1}]},
        ],
    )
    def test_invalid_payloads(self, client, tenant, payload):
        assert client.post("/api/public/orders", json=payload).status_code == 422

    def test_unknown_restaurant(self, client, latte):
        response = client.post(
            "/api/public/orders", json={**order_payload((latte.id, 1)), "tenant_slug": "yok"}
        )
        assert response.status_code == 404
        assert response.json()["error"] == "Restoran bulunamadı"

    def test_table_is_attached(self, client, db, tenant, latte, make_table):
        table = make_table(tenant, number="7")
        client.post("/api/public/orders", json=order_payload((latte.id, 1), table_number=" 7 "))
        assert db.query(Order).one().table_id == table.id

    def test_unknown_table_is_ignored(self, client, db, tenant, latte):
        response = client.post("/api/public/orders", json=order_payload((latte.id, 1), table_number="99"))
        assert response.status_code == 201
        assert db.query(Order).one().table_id is None

    def test_customer_created_from_phone(self, client, db, tenant, latte):
        response = client.post(
            "/api/public/orders",
            json=order_payload((latte.id, 1), customer_name="Zeynep", customer_phone="+90 555 000 11 22"),
        )
        customer = db.query(Customer).one()
        assert customer.phone == "+905550001122"
        assert customer.name == "Zeynep"
        assert response.json()["data"]["customer_id"] == customer.id

    def test_existing_customer_reused(self, client, db, tenant, latte, make_customer):
        customer = make_customer(tenant)
        response = client.post(
            "/api/public/orders", json=order_payload((latte.id, 1), customer_phone=customer.phone)
        )
        assert response.json()["data"]["customer_id"] == customer.id
        assert db.query(Customer).count() == 1

    def test_subscription_usage_counted(self, client, db, tenant, latte):
        client.post("/api/public/orders", json=order_payload((latte.id, 1)))
        client.post("/api/public/orders", json=order_payload((latte.id, 1)))
        subscription = db.query(Subscription).filter(Subscription.tenant_id == tenant.id).one()
        db.refresh(subscription)
        assert subscription.orders_used == 2


class TestOrderWithCoupon:
    @pytest.fixture
    def coupon(self, db, tenant):
        coupon = Coupon(
            tenant_id=tenant.id,
            code="YAZ2024",
            discount_type=DiscountType.AMOUNT,
            discount_value=Decimal("25"),
            min_order_amount=Decimal("100"),
            usage_limit=1,
            per_customer_limit=0,
            start_date=datetime.utcnow() - timedelta(days=1),
        )
        db.add(coupon)
        db.commit()
        return coupon

    def test_discount_applied(self, client, db, tenant, latte, coupon):
        response = client.post(
            "/api/public/orders", json=order_payload((latte.id, 2), coupon_code="yaz2024")
        )
        data = response.json()["data"]
        assert data["subtotal"] == 130.0
        assert data["discount"] == 25.0
        assert data["total"] == 105.0

        order = db.query(Order).one()
        assert order.coupon_code == "YAZ2024"
        usage = db.query(CouponUsage).one()
        assert usage.order_id == order.id
        db.refresh(coupon)
        assert coupon.used_count == 1

    def test_rejected_coupon_rolls_back_order(self, client, db, tenant, latte, coupon):
        response = client.post(
            "/api/public/orders", json=order_payload((latte.id, 1), coupon_code="YAZ2024")
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "COUPON_INVALID"
        assert response.json()["error"] == "Minimum sipariş tutarı ₺100"
        assert db.query(Order).count() == 0

    def test_usage_limit_holds_across_orders(self, client, db, tenant, latte, coupon):
        first = client.post(
            "/api/public/orders", json=order_payload((latte.id, 2), coupon_code="YAZ2024")
        )
        second = client.post(
            "/api/public/orders", json=order_payload((latte.id, 2), coupon_code="YAZ2024")
        )
        assert first.status_code == 201
        assert second.status_code == 400
        assert second.json()["error"] == "Bu kuponun kullanım limiti dolmuş"
        assert db.query(Order).count() == 1
        db.refresh(coupon)
        assert coupon.used_count == 1


class TestTrackOrder:
    def test_by_id(self, client, tenant, make_order):
        order = make_order(tenant, total="65.00", items=(("Latte", 1),))
        response = client.get(
            "/api/public/orders", params={"id": order.id, "tenant_slug": "demo-kafe"}
        )
        data = response.json()["data"]
        assert data["order_number"] == order.order_number
        assert data["status"] == "PENDING"
        assert data["total"] == 65.0
        assert data["items"][0]["name"] == "Latte"

    def test_by_number_is_case_insensitive(self, client, tenant, make_order):
        order = make_order(tenant)
        response = client.get(
            "/api/public/orders",
            params={"number": order.order_number.lower(), "tenant_slug": "demo-kafe"},
        )
        assert response.json()["data"]["id"] == order.id

    def test_number_scoped_to_restaurant(self, client, tenant, make_tenant, make_order):
        order = make_order(tenant)
        make_tenant(slug="baska-kafe")
        response = client.get(
            "/api/public/orders",
            params={"number": order.order_number, "tenant_slug": "baska-kafe"},
        )
        assert response.status_code == 404
        assert response.json()["error"] == "Sipariş bulunamadı"

    def test_id_or_number_required(self, client, tenant):
        response = client.get("/api/public/orders", params={"tenant_slug": "demo-kafe"})
        assert response.status_code == 400
        assert response.json()["error"] == "Sipariş ID veya numarası gerekli"

    def test_restaurant_is_required(self, client, tenant, make_order):
        order = make_order(tenant)
        response = client.get("/api/public/orders", params={"id": order.id})
        assert response.status_code == 422

    def test_id_scoped_to_restaurant(self, client, tenant, make_tenant, make_order):
        order = make_order(tenant)
        make_tenant(slug="baska-kafe")
        response = client.get(
            "/api/public/orders", params={"id": order.id, "tenant_slug": "baska-kafe"}
        )
        assert response.status_code == 404
        assert response.json()["error"] == "Sipariş bulunamadı"

    def test_unknown_restaurant(self, client, tenant, make_order):
        order = make_order(tenant)
        response = client.get("/api/public/orders", params={"id": order.id, "tenant_slug": "yok"})
        assert response.status_code == 404
