# backend/modules/menu/models/__init__.py

from .menu_models import Category, MenuItem, StockMovement, StockMovementType

__all__ = ["Category", "MenuItem", "StockMovement", "StockMovementType"]
