"""Tenant Context Management for Multi-Tenant Isolation.

Holds the tenant resolved for the current request so services and log
records can be scoped without threading the slug through every call.
"""

import logging
from typing import Any, Dict, Optional
from contextvars import ContextVar
from datetime import datetime

# Context variable to store current tenant information
_tenant_context: ContextVar[Optional[Dict[str, Any]]] = ContextVar(
    "tenant_context", default=None
)


class TenantContext:
    """Manages tenant context for the current request"""

    @staticmethod
    def set(
        tenant_slug: Optional[str] = None,
        subdomain_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        context = {
            "tenant_slug": tenant_slug,
            "subdomain_type": subdomain_type,
            "timestamp": datetime.utcnow(),
        }
        _tenant_context.set(context)
        return context

    @staticmethod
    def get() -> Optional[Dict[str, Any]]:
        return _tenant_context.get()

    @staticmethod
    def get_tenant_slug() -> Optional[str]:
        context = _tenant_context.get()
        return context.get("tenant_slug") if context else None

    @staticmethod
    def clear():
        _tenant_context.set(None)


class TenantLogFilter(logging.Filter):
    """Adds ``tenant`` to every log record ("-" outside a tenant request)"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.tenant = TenantContext.get_tenant_slug() or "-"
        return True
