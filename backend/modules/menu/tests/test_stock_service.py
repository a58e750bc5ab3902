# backend/modules/menu/tests/test_stock_service.py

import pytest

from modules.menu.models.menu_models import StockMovement, StockMovementType
from modules.menu.schemas.menu_schemas import StockMovementCreate
from modules.menu.services.stock_service import StockService, signed_change


@pytest.fixture
def tracked_item(tenant, make_menu_item):
    return make_menu_item(tenant, track_stock=True, stock_quantity=10, low_stock_alert=3)


class TestSignedChange:
    @pytest.mark.parametrize(
        "movement_type,quantity,change",
        [
            (StockMovementType.IN, 5, 5),
            (StockMovementType.OUT, 5, -5),
            (StockMovementType.OUT, -5, -5),
            (StockMovementType.WASTE, 2, -2),
            (StockMovementType.ADJUSTMENT, -4, -4),
        ],
    )
    def test_sign_by_type(self, movement_type, quantity, change):
        assert signed_change(movement_type, quantity) == change


class TestStockService:
    def test_movement_records_before_and_after(self, db, tenant, tracked_item):
        service = StockService(db, tenant.id)
        result = service.record_movement(
            StockMovementCreate(menu_item_id=tracked_item.id, type=StockMovementType.WASTE, quantity=4)
        )

        assert result == {
            "menu_item_id": tracked_item.id,
            "previous_stock": 10,
            "new_stock": 6,
            "change": -4,
            "is_available": True,
        }
        movement = db.query(StockMovement).one()
        assert movement.type == StockMovementType.WASTE

    def test_stock_never_goes_negative(self, db, tenant, tracked_item):
        service = StockService(db, tenant.id)
        result = service.record_movement(
            StockMovementCreate(menu_item_id=tracked_item.id, type=StockMovementType.OUT, quantity=25)
        )
        assert result["new_stock"] == 0
        assert result["is_available"] is False

    def test_restock_makes_item_available_again(self, db, tenant, make_menu_item):
        item = make_menu_item(tenant, track_stock=True, stock_quantity=0, is_available=False)
        result = StockService(db, tenant.id).record_movement(
            StockMovementCreate(menu_item_id=item.id, type=StockMovementType.IN, quantity=12)
        )
        assert result["new_stock"] == 12
        assert result["is_available"] is True

    def test_untracked_item_is_not_deducted(self, db, tenant, make_menu_item):
        item = make_menu_item(tenant)
        assert StockService(db, tenant.id).deduct_for_order(item, 2, order_id=1, order_number="S0001") is None

    def test_low_stock_counts_items_at_the_alert_level(self, db, tenant, make_menu_item):
        make_menu_item(tenant, name="A", track_stock=True, stock_quantity=3, low_stock_alert=3)
        make_menu_item(tenant, name="B", track_stock=True, stock_quantity=4, low_stock_alert=3)
        make_menu_item(tenant, name="C", stock_quantity=0)
        assert StockService(db, tenant.id).low_stock_count() == 1


class TestStockApi:
    def test_overview(self, client, tenant, admin_headers, tracked_item, make_menu_item):
        make_menu_item(tenant, name="Su", track_stock=True, stock_quantity=0)
        client.post(
            "/api/tenant/stock",
            json={"menu_item_id": tracked_item.id, "type": "OUT", "quantity": 8},
            headers=admin_headers,
        )

        data = client.get("/api/tenant/stock", headers=admin_headers).json()["data"]
        assert data["stats"] == {"total_tracked": 2, "low_stock_count": 2, "out_of_stock_count": 1}
        assert data["items"][0]["name"] == "Su"
        assert data["items"][0]["category_name"] == "İçecekler"
        assert data["movements"][0]["menu_item_name"] == "Latte"
        assert data["movements"][0]["quantity"] == -8

    def test_low_stock_filter(self, client, tenant, admin_headers, tracked_item, make_menu_item):
        make_menu_item(tenant, name="Su", track_stock=True, stock_quantity=1)
        response = client.get(
            "/api/tenant/stock", params={"low_stock": True, "movements": False}, headers=admin_headers
        )
        data = response.json()["data"]
        assert [i["name"] for i in data["items"]] == ["Su"]
        assert data["movements"] == []

    def test_record_movement(self, client, admin_headers, tracked_item):
        response = client.post(
            "/api/tenant/stock",
            json={"menu_item_id": tracked_item.id, "type": "IN", "quantity": 5, "reason": "Tedarik"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Stok güncellendi"
        assert response.json()["data"]["new_stock"] == 15

    def test_unknown_item(self, client, admin_headers):
        response = client.post(
            "/api/tenant/stock",
            json={"menu_item_id": 999, "type": "IN", "quantity": 5},
            headers=admin_headers,
        )
        assert response.status_code == 404

    def test_staff_cannot_manage_stock(self, client, staff_headers):
        assert client.get("/api/tenant/stock", headers=staff_headers).status_code == 403
