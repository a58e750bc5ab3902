# backend/modules/tables/models/__init__.py

from .table_models import Table

__all__ = ["Table"]
