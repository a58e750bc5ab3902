# backend/modules/promotions/__init__.py
