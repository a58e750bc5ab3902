# backend/modules/loyalty/__init__.py
