# backend/modules/customers/__init__.py
