# backend/core/demo_data.py

"""
Static demonstration data served when the database is unreachable.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List


def _minutes_ago(minutes: int) -> str:
    return (datetime.utcnow() - timedelta(minutes=minutes)).isoformat()


def _days_from_now(days: int) -> str:
    return (datetime.utcnow() + timedelta(days=days)).isoformat()


DEMO_DASHBOARD_STATS = {
    "today_orders": 18,
    "today_revenue": 1250,
    "active_orders": 3,
    "pending_orders": 1,
    "customer_count": 45,
    "low_stock_count": 2,
    "total_tables": 10,
}

DEMO_ADMIN_DASHBOARD = {
    "total_tenants": 12,
    "active_tenants": 10,
    "total_orders": 4821,
    "total_revenue": 386540,
    "subscriptions": {"TRIAL": 4, "ACTIVE": 6, "PAST_DUE": 1, "CANCELLED": 1, "EXPIRED": 0},
}

DEMO_CATEGORIES = [
    {"id": 1, "name": "Sıcak İçecekler", "sort_order": 0},
    {"id": 2, "name": "Soğuk İçecekler", "sort_order": 1},
    {"id": 3, "name": "Tatlılar", "sort_order": 2},
    {"id": 4, "name": "Atıştırmalıklar", "sort_order": 3},
]

DEMO_MENU_ITEMS = [
    {"id": 1, "category_id": 1, "name": "Latte", "description": "Espresso ve sütlü kremalı kahve",
     "price": 65, "is_available": True, "tags": ["popüler"], "allergens": ["süt"],
     "preparation_time": 5, "calories": 150},
    {"id": 2, "category_id": 1, "name": "Türk Kahvesi", "description": "Geleneksel Türk kahvesi",
     "price": 45, "is_available": True, "tags": ["geleneksel"], "allergens": [],
     "preparation_time": 8, "calories": 5},
    {"id": 3, "category_id": 1, "name": "Cappuccino", "description": "İtalyan usulü köpüklü kahve",
     "price": 60, "is_available": True, "tags": [], "allergens": ["süt"],
     "preparation_time": 5, "calories": 120},
    {"id": 4, "category_id": 2, "name": "Ice Latte", "description": "Buzlu süt ve espresso",
     "price": 70, "is_available": True, "tags": [], "allergens": ["süt"],
     "preparation_time": 5, "calories": 180},
    {"id": 5, "category_id": 3, "name": "Cheesecake", "description": "Ev yapımı cheesecake",
     "price": 85, "is_available": True, "tags": ["popüler"],
     "allergens": ["süt", "yumurta", "gluten"], "preparation_time": 2, "calories": 350},
    {"id": 6, "category_id": 3, "name": "Brownie", "description": "Çikolatalı brownie",
     "price": 75, "is_available": True, "tags": [],
     "allergens": ["süt", "yumurta", "gluten"], "preparation_time": 2, "calories": 400},
    {"id": 7, "category_id": 4, "name": "Sandviç", "description": "Taze sebzeli sandviç",
     "price": 95, "is_available": True, "tags": [], "allergens": ["gluten"],
     "preparation_time": 10, "calories": 380},
]

DEMO_TABLES = [
    {"id": 1, "number": "1", "capacity": 4, "area": "İç Mekan", "is_active": True},
    {"id": 2, "number": "2", "capacity": 2, "area": "İç Mekan", "is_active": True},
    {"id": 3, "number": "3", "capacity": 6, "area": "İç Mekan", "is_active": True},
    {"id": 4, "number": "4", "capacity": 4, "area": "Teras", "is_active": True},
    {"id": 5, "number": "5", "capacity": 8, "area": "VIP", "is_active": True},
]

DEMO_CUSTOMERS = [
    {"id": 1, "name": "Ahmet Yılmaz", "phone": "+90 532 123 4567", "visit_count": 15,
     "total_spent": 1250, "loyalty_tier": "SILVER", "loyalty_points": 1875},
    {"id": 2, "name": "Ayşe Demir", "phone": "+90 533 234 5678", "visit_count": 8,
     "total_spent": 680, "loyalty_tier": "SILVER", "loyalty_points": 680},
    {"id": 3, "name": "Mehmet Kaya", "phone": "+90 534 345 6789", "visit_count": 3,
     "total_spent": 245, "loyalty_tier": "BRONZE", "loyalty_points": 245},
    {"id": 4, "name": "Fatma Şahin", "phone": "+90 535 456 7890", "visit_count": 42,
     "total_spent": 5200, "loyalty_tier": "PLATINUM", "loyalty_points": 7800},
]

# code -> (discount_type, discount_value, min_order_amount, max_discount)
DEMO_COUPONS = {
    "HOSGELDIN": ("percent", 15, 50, 30),
    "YAZ2024": ("amount", 25, 100, None),
    "KAHVE10": ("percent", 10, 0, None),
    "INDIRIM20": ("percent", 20, 0, None),
}


def demo_orders(**_: Any) -> List[Dict[str, Any]]:
    return [
        {"id": 1, "order_number": "S4A2B1", "table_number": "3", "total": 150,
         "status": "PREPARING", "payment_status": "PENDING", "created_at": _minutes_ago(5),
         "items": [{"name": "Latte", "quantity": 1}, {"name": "Cheesecake", "quantity": 1}]},
        {"id": 2, "order_number": "S4A2B2", "table_number": "7", "total": 165,
         "status": "PENDING", "payment_status": "PENDING", "created_at": _minutes_ago(2),
         "items": [{"name": "Türk Kahvesi", "quantity": 2}, {"name": "Brownie", "quantity": 1}]},
        {"id": 3, "order_number": "S4A2B3", "table_number": "1", "total": 155,
         "status": "READY", "payment_status": "PENDING", "created_at": _minutes_ago(12),
         "items": [{"name": "Cappuccino", "quantity": 1}, {"name": "Sandviç", "quantity": 1}]},
    ]


def demo_campaigns(**_: Any) -> List[Dict[str, Any]]:
    return [
        {"id": 1, "name": "Hoşgeldin İndirimi", "type": "DISCOUNT_PERCENT", "discount_value": 15,
         "status": "ACTIVE", "start_date": _days_from_now(-30), "end_date": _days_from_now(30),
         "used_count": 45},
        {"id": 2, "name": "Yaz Kampanyası", "type": "DISCOUNT_AMOUNT", "discount_value": 25,
         "status": "SCHEDULED", "start_date": _days_from_now(7), "end_date": _days_from_now(37),
         "used_count": 0},
    ]


def demo_menu(slug: str = "demo-kafe", **_: Any) -> Dict[str, Any]:
    return {
        "tenant": {
            "name": "Demo Kafe",
            "slug": slug,
            "logo": None,
            "settings": {"currency": "TRY", "language": "tr", "theme": {"primaryColor": "#f97316"}},
        },
        "categories": [
            {"id": category["id"], "name": category["name"]} for category in DEMO_CATEGORIES
        ],
        "items": list(DEMO_MENU_ITEMS),
    }


def demo_dashboard(**_: Any) -> Dict[str, Any]:
    return {**DEMO_DASHBOARD_STATS, "recent_orders": demo_orders()}


def demo_admin_dashboard(**_: Any) -> Dict[str, Any]:
    return dict(DEMO_ADMIN_DASHBOARD)


def demo_tables(**_: Any) -> List[Dict[str, Any]]:
    return list(DEMO_TABLES)


def demo_customers(**_: Any) -> List[Dict[str, Any]]:
    return list(DEMO_CUSTOMERS)
