# backend/modules/menu/__init__.py
