# backend/modules/tenants/__init__.py
