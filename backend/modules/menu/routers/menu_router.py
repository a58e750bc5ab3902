# backend/modules/menu/routers/menu_router.py

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from core.auth import TokenData, require_tenant_manager, require_tenant_user
from core.database import get_db
from core.demo_data import DEMO_CATEGORIES, DEMO_MENU_ITEMS
from core.error_handling import handle_api_errors, with_demo_fallback
from core.response_utils import success_response

from ..schemas.menu_schemas import (
    CategoryCreate,
    CategoryOut,
    CategoryUpdate,
    MenuItemCreate,
    MenuItemOut,
    MenuItemUpdate,
)
from ..services.menu_service import MenuService

router = APIRouter(prefix="/api/tenant", tags=["Menu Management"])


def get_menu_service(
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_user),
) -> MenuService:
    """Dependency to get menu service instance"""
    return MenuService(db, user.tenant_id)


def get_managed_menu_service(
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
) -> MenuService:
    return MenuService(db, user.tenant_id)


def _demo_categories(**_):
    return [{**category, "item_count": 0, "is_active": True} for category in DEMO_CATEGORIES]


def _demo_items(**_):
    return list(DEMO_MENU_ITEMS)


# Categories
@router.get("/categories")
@with_demo_fallback(_demo_categories)
def list_categories(
    request: Request,
    menu_service: MenuService = Depends(get_menu_service),
):
    counts = menu_service.item_counts()
    categories = []
    for category in menu_service.get_categories():
        out = CategoryOut.model_validate(category)
        out.item_count = counts.get(category.id, 0)
        categories.append(out)
    return success_response(categories)


@router.post("/categories", status_code=status.HTTP_201_CREATED)
@handle_api_errors
def create_category(
    data: CategoryCreate,
    menu_service: MenuService = Depends(get_managed_menu_service),
):
    category = menu_service.create_category(data)
    return success_response(CategoryOut.model_validate(category), "Kategori oluşturuldu")


@router.patch("/categories/{category_id}")
@handle_api_errors
def update_category(
    category_id: int,
    data: CategoryUpdate,
    menu_service: MenuService = Depends(get_managed_menu_service),
):
    category = menu_service.update_category(category_id, data)
    return success_response(CategoryOut.model_validate(category), "Kategori güncellendi")


@router.delete("/categories/{category_id}")
@handle_api_errors
def delete_category(
    category_id: int,
    menu_service: MenuService = Depends(get_managed_menu_service),
):
    menu_service.delete_category(category_id)
    return success_response({"deleted": True}, "Kategori silindi")


# Menu items
@router.get("/menu")
@with_demo_fallback(_demo_items)
def list_menu_items(
    request: Request,
    category_id: Optional[int] = Query(None),
    menu_service: MenuService = Depends(get_menu_service),
):
    items = menu_service.get_items(category_id=category_id)
    return success_response([MenuItemOut.model_validate(item) for item in items])


@router.post("/menu", status_code=status.HTTP_201_CREATED)
@handle_api_errors
def create_menu_item(
    data: MenuItemCreate,
    menu_service: MenuService = Depends(get_managed_menu_service),
):
    item = menu_service.create_item(data)
    return success_response(MenuItemOut.model_validate(item), "Ürün oluşturuldu")


@router.patch("/menu/{item_id}")
@handle_api_errors
def update_menu_item(
    item_id: int,
    data: MenuItemUpdate,
    menu_service: MenuService = Depends(get_managed_menu_service),
):
    item = menu_service.update_item(item_id, data)
    return success_response(MenuItemOut.model_validate(item), "Ürün güncellendi")


@router.delete("/menu/{item_id}")
@handle_api_errors
def delete_menu_item(
    item_id: int,
    menu_service: MenuService = Depends(get_managed_menu_service),
):
    menu_service.delete_item(item_id)
    return success_response({"deleted": True}, "Ürün silindi")
