"""
Behaviour of the API when the database cannot be reached.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from app.main import create_app
from core.auth import create_access_token
from core.database import build_session_factory


@pytest.fixture
def unreachable_factory(tmp_path):
    # sqlite cannot create a file inside a missing directory
    engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'db.sqlite'}")
    yield build_session_factory(engine)
    engine.dispose()


def make_client(settings, factory, demo):
    settings = settings.model_copy(update={"demo_fallback_enabled": demo})
    return TestClient(create_app(settings=settings, session_factory=factory))


def manager_headers(settings):
    token = create_access_token(
        {"sub": "1", "role": "TENANT_ADMIN", "tenant_id": 1, "tenant_slug": "demo-kafe"},
        settings,
    )
    return {"Authorization": f"Bearer {token}"}


class TestDemoFallback:
    def test_public_menu_serves_demo_data(self, settings, unreachable_factory):
        client = make_client(settings, unreachable_factory, demo=True)
        body = client.get("/api/public/menu/kahve-dunyasi").json()
        assert body["success"] is True
        assert body["demo"] is True
        assert body["data"]["tenant"]["slug"] == "kahve-dunyasi"
        assert body["data"]["items"]

    def test_panel_list_serves_demo_data(self, settings, unreachable_factory):
        client = make_client(settings, unreachable_factory, demo=True)
        response = client.get("/api/tenant/campaigns", headers=manager_headers(settings))
        body = response.json()
        assert body["demo"] is True
        assert body["data"]["stats"]["total"] == len(body["data"]["campaigns"])

    def test_demo_coupon_validation(self, settings, unreachable_factory):
        client = make_client(settings, unreachable_factory, demo=True)
        response = client.post(
            "/api/public/coupon/validate",
            json={"code": "yaz2024", "tenant_slug": "demo-kafe", "order_total": "80"},
        )
        assert response.json()["data"] == {
            "valid": False,
            "message": "Minimum sipariş tutarı ₺100",
        }

    def test_fallback_still_requires_login(self, settings, unreachable_factory):
        client = make_client(settings, unreachable_factory, demo=True)
        assert client.get("/api/tenant/campaigns").status_code == 401

    def test_disabled_fallback_reports_unavailable(self, settings, unreachable_factory):
        client = make_client(settings, unreachable_factory, demo=False)
        response = client.get("/api/public/menu/demo-kafe")
        assert response.status_code == 503
        assert response.json()["error_code"] == "DATABASE_UNAVAILABLE"

    def test_writes_never_fall_back(self, settings, unreachable_factory):
        client = make_client(settings, unreachable_factory, demo=True)
        response = client.post(
            "/api/public/orders",
            json={"tenant_slug": "demo-kafe", "items": [{"menu_item_id": 1, "quantity": 1}]},
        )
        assert response.status_code == 503
