# backend/modules/menu/services/__init__.py

from .menu_service import MenuService
from .stock_service import StockService

__all__ = ["MenuService", "StockService"]
