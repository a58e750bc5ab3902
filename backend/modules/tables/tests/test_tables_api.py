# backend/modules/tables/tests/test_tables_api.py

from modules.orders.models.order_models import OrderStatus
from modules.tables.models.table_models import Table


class TestCreateTables:
    def test_create_table_with_qr_link(self, client, admin_headers):
        response = client.post(
            "/api/tenant/tables",
            json={"number": " 12 ", "area": "Bahçe", "capacity": 6},
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["number"] == "12"
        assert data["qr_code"] == "https://demo-kafe.example.com?table=12"
        assert data["active_orders"] == 0

    def test_duplicate_number(self, client, tenant, admin_headers, make_table):
        make_table(tenant, number="5")
        response = client.post("/api/tenant/tables", json={"number": "5"}, headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["error_code"] == "TABLE_NUMBER_EXISTS"

    def test_same_number_in_another_restaurant(self, client, make_tenant, admin_headers, make_table):
        make_table(make_tenant(slug="baska-kafe"), number="5")
        response = client.post("/api/tenant/tables", json={"number": "5"}, headers=admin_headers)
        assert response.status_code == 201

    def test_bulk_create_skips_existing_numbers(self, client, db, tenant, admin_headers, make_table):
        make_table(tenant, number="2")
        response = client.post(
            "/api/tenant/tables/bulk",
            json={"start_number": 1, "count": 4, "area": "Salon"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert [t["number"] for t in body["data"]["created"]] == ["1", "3", "4"]
        assert body["data"]["skipped"] == ["2"]
        assert body["message"] == "3 masa oluşturuldu"
        assert db.query(Table).filter(Table.tenant_id == tenant.id).count() == 4

    def test_staff_cannot_create(self, client, staff_headers):
        response = client.post("/api/tenant/tables", json={"number": "1"}, headers=staff_headers)
        assert response.status_code == 403


class TestListTables:
    def test_active_order_counts(self, client, tenant, staff_headers, make_table, make_order):
        table = make_table(tenant, number="1")
        make_table(tenant, number="2")
        make_order(tenant, table=table)
        make_order(tenant, table=table, status=OrderStatus.PREPARING)
        make_order(tenant, table=table, status=OrderStatus.DELIVERED)

        data = client.get("/api/tenant/tables", headers=staff_headers).json()["data"]
        counts = {t["number"]: t["active_orders"] for t in data}
        assert counts == {"1": 2, "2": 0}

    def test_only_own_tables(self, client, make_tenant, staff_headers, make_table):
        make_table(make_tenant(slug="baska-kafe"), number="9")
        assert client.get("/api/tenant/tables", headers=staff_headers).json()["data"] == []


class TestUpdateTables:
    def test_renumber_updates_qr_link(self, client, tenant, admin_headers, make_table):
        table = make_table(tenant, number="1")
        response = client.patch(
            f"/api/tenant/tables/{table.id}", json={"number": "A1"}, headers=admin_headers
        )
        data = response.json()["data"]
        assert data["number"] == "A1"
        assert data["qr_code"].endswith("?table=A1")

    def test_renumber_to_taken_number(self, client, tenant, admin_headers, make_table):
        table = make_table(tenant, number="1")
        make_table(tenant, number="2")
        response = client.patch(
            f"/api/tenant/tables/{table.id}", json={"number": "2"}, headers=admin_headers
        )
        assert response.status_code == 409

    def test_delete_foreign_table(self, client, make_tenant, admin_headers, make_table):
        foreign = make_table(make_tenant(slug="baska-kafe"))
        response = client.delete(f"/api/tenant/tables/{foreign.id}", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "Masa bulunamadı"

    def test_delete(self, client, db, tenant, admin_headers, make_table):
        table = make_table(tenant)
        assert client.delete(f"/api/tenant/tables/{table.id}", headers=admin_headers).status_code == 200
        db.expire_all()
        assert db.query(Table).count() == 0
