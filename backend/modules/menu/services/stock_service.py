# backend/modules/menu/services/stock_service.py

"""
Stock tracking for menu items.

Every change writes a StockMovement with the signed quantity and the
stock before and after it. Stock never goes below zero and an item with
no stock left is taken off the menu.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from core.exceptions import NotFoundError

from ..models.menu_models import MenuItem, StockMovement, StockMovementType
from ..schemas.menu_schemas import StockMovementCreate
from .menu_service import MSG_ITEM_NOT_FOUND

logger = logging.getLogger(__name__)


def signed_change(movement_type: StockMovementType, quantity: int) -> int:
    """OUT and WASTE always subtract whatever sign the caller used"""
    if movement_type in (StockMovementType.OUT, StockMovementType.WASTE):
        return -abs(quantity)
    return quantity


class StockService:
    def __init__(self, db: Session, tenant_id: int):
        self.db = db
        self.tenant_id = tenant_id

    def _apply(
        self,
        item: MenuItem,
        movement_type: StockMovementType,
        quantity: int,
        reason: Optional[str] = None,
        order_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> StockMovement:
        previous = item.stock_quantity or 0
        change = signed_change(movement_type, quantity)
        new_stock = max(0, previous + change)

        item.stock_quantity = new_stock
        item.is_available = new_stock > 0

        movement = StockMovement(
            tenant_id=self.tenant_id,
            menu_item_id=item.id,
            type=movement_type,
            quantity=change,
            previous_stock=previous,
            new_stock=new_stock,
            reason=reason,
            order_id=order_id,
            created_by=user_id,
        )
        self.db.add(movement)

        if item.is_low_stock:
            logger.warning(
                f"Low stock for menu item {item.id} ({item.name}): {new_stock} {item.stock_unit}"
            )
        return movement

    def record_movement(self, data: StockMovementCreate, user_id: Optional[int] = None) -> Dict[str, Any]:
        item = (
            self.db.query(MenuItem)
            .filter(MenuItem.id == data.menu_item_id, MenuItem.tenant_id == self.tenant_id)
            .first()
        )
        if item is None:
            raise NotFoundError(MSG_ITEM_NOT_FOUND)

        movement = self._apply(item, data.type, data.quantity, data.reason, user_id=user_id)
        self.db.commit()
        self.db.refresh(movement)
        return {
            "menu_item_id": item.id,
            "previous_stock": movement.previous_stock,
            "new_stock": movement.new_stock,
            "change": movement.quantity,
            "is_available": item.is_available,
        }

    def deduct_for_order(self, item: MenuItem, quantity: int, order_id: int, order_number: str) -> Optional[StockMovement]:
        """Part of the order transaction; the caller commits"""
        if not item.track_stock:
            return None
        return self._apply(
            item, StockMovementType.OUT, quantity, f"Sipariş #{order_number}", order_id=order_id
        )

    def tracked_items(self) -> List[MenuItem]:
        return (
            self.db.query(MenuItem)
            .options(joinedload(MenuItem.category))
            .filter(MenuItem.tenant_id == self.tenant_id, MenuItem.track_stock.is_(True))
            .order_by(MenuItem.stock_quantity.asc(), MenuItem.id)
            .all()
        )

    def recent_movements(self, limit: int = 50) -> List[StockMovement]:
        return (
            self.db.query(StockMovement)
            .options(joinedload(StockMovement.menu_item))
            .filter(StockMovement.tenant_id == self.tenant_id)
            .order_by(StockMovement.id.desc())
            .limit(limit)
            .all()
        )

    def low_stock_count(self) -> int:
        return (
            self.db.query(MenuItem)
            .filter(
                MenuItem.tenant_id == self.tenant_id,
                MenuItem.track_stock.is_(True),
                MenuItem.stock_quantity <= MenuItem.low_stock_alert,
            )
            .count()
        )

    def overview(self, low_stock_only: bool = False, include_movements: bool = True) -> Dict[str, Any]:
        items = self.tracked_items()
        visible = [item for item in items if item.is_low_stock] if low_stock_only else items
        return {
            "items": [
                {
                    "id": item.id,
                    "name": item.name,
                    "category_name": item.category.name if item.category else None,
                    "stock_quantity": item.stock_quantity,
                    "low_stock_alert": item.low_stock_alert,
                    "stock_unit": item.stock_unit,
                    "is_available": item.is_available,
                    "is_low_stock": item.is_low_stock,
                    "is_out_of_stock": item.is_out_of_stock,
                }
                for item in visible
            ],
            "movements": [
                {
                    "id": m.id,
                    "menu_item_id": m.menu_item_id,
                    "menu_item_name": m.menu_item.name if m.menu_item else None,
                    "type": m.type,
                    "quantity": m.quantity,
                    "previous_stock": m.previous_stock,
                    "new_stock": m.new_stock,
                    "reason": m.reason,
                    "order_id": m.order_id,
                    "created_at": m.created_at,
                }
                for m in (self.recent_movements() if include_movements else [])
            ],
            "stats": {
                "total_tracked": len(items),
                "low_stock_count": sum(1 for item in items if item.is_low_stock),
                "out_of_stock_count": sum(1 for item in items if item.is_out_of_stock),
            },
        }
