# backend/modules/menu/services/menu_service.py

import logging
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError

from ..models.menu_models import Category, MenuItem
from ..schemas.menu_schemas import CategoryCreate, CategoryUpdate, MenuItemCreate, MenuItemUpdate

logger = logging.getLogger(__name__)

MSG_CATEGORY_NOT_FOUND = "Kategori bulunamadı"
MSG_ITEM_NOT_FOUND = "Ürün bulunamadı"


class MenuService:
    """Service class for a restaurant's categories and menu items"""

    def __init__(self, db: Session, tenant_id: int):
        self.db = db
        self.tenant_id = tenant_id

    # Category operations
    def get_categories(self, active_only: bool = False) -> List[Category]:
        query = self.db.query(Category).filter(Category.tenant_id == self.tenant_id)
        if active_only:
            query = query.filter(Category.is_active.is_(True))
        return query.order_by(Category.sort_order, Category.id).all()

    def item_counts(self) -> Dict[int, int]:
        rows = (
            self.db.query(MenuItem.category_id, func.count(MenuItem.id))
            .filter(MenuItem.tenant_id == self.tenant_id)
            .group_by(MenuItem.category_id)
            .all()
        )
        return dict(rows)

    def get_category(self, category_id: int) -> Category:
        category = (
            self.db.query(Category)
            .filter(Category.id == category_id, Category.tenant_id == self.tenant_id)
            .first()
        )
        if category is None:
            raise NotFoundError(MSG_CATEGORY_NOT_FOUND)
        return category

    def create_category(self, data: CategoryCreate) -> Category:
        category = Category(tenant_id=self.tenant_id, **data.model_dump())
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return category

    def update_category(self, category_id: int, data: CategoryUpdate) -> Category:
        category = self.get_category(category_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(category, key, value)
        self.db.commit()
        self.db.refresh(category)
        return category

    def delete_category(self, category_id: int) -> None:
        category = self.get_category(category_id)
        items_count = (
            self.db.query(MenuItem).filter(MenuItem.category_id == category.id).count()
        )
        if items_count > 0:
            raise ValidationError(
                "Bu kategoride ürünler var. Önce ürünleri silin veya taşıyın.",
                error_code="CATEGORY_NOT_EMPTY",
            )
        self.db.delete(category)
        self.db.commit()
        logger.info(f"Deleted category {category_id} of tenant {self.tenant_id}")

    # Menu item operations
    def get_items(self, category_id: int = None, available_only: bool = False) -> List[MenuItem]:
        query = (
            self.db.query(MenuItem)
            .join(Category, MenuItem.category_id == Category.id)
            .filter(MenuItem.tenant_id == self.tenant_id)
        )
        if category_id is not None:
            query = query.filter(MenuItem.category_id == category_id)
        if available_only:
            query = query.filter(MenuItem.is_available.is_(True), Category.is_active.is_(True))
        return query.order_by(Category.sort_order, MenuItem.sort_order, MenuItem.id).all()

    def get_item(self, item_id: int) -> MenuItem:
        item = (
            self.db.query(MenuItem)
            .filter(MenuItem.id == item_id, MenuItem.tenant_id == self.tenant_id)
            .first()
        )
        if item is None:
            raise NotFoundError(MSG_ITEM_NOT_FOUND)
        return item

    def create_item(self, data: MenuItemCreate) -> MenuItem:
        # Verify category exists
        self.get_category(data.category_id)
        item = MenuItem(tenant_id=self.tenant_id, **data.model_dump())
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"Created menu item {item.id} ({item.name}) for tenant {self.tenant_id}")
        return item

    def update_item(self, item_id: int, data: MenuItemUpdate) -> MenuItem:
        item = self.get_item(item_id)
        values = data.model_dump(exclude_unset=True)
        if values.get("category_id") is not None:
            self.get_category(values["category_id"])
        for key, value in values.items():
            setattr(item, key, value)
        self.db.commit()
        self.db.refresh(item)
        return item

    def delete_item(self, item_id: int) -> None:
        item = self.get_item(item_id)
        self.db.delete(item)
        self.db.commit()
