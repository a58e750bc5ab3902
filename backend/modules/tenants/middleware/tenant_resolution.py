# backend/modules/tenants/middleware/tenant_resolution.py

import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from core.tenant_context import TenantContext
from ..services.tenant_resolver import TenantResolver

logger = logging.getLogger(__name__)


class TenantResolutionMiddleware(BaseHTTPMiddleware):
    """Store the tenant slug and subdomain type on every request"""

    def __init__(self, app, resolver: TenantResolver):
        super().__init__(app)
        self.resolver = resolver

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        TenantContext.clear()

        host = request.headers.get("host")
        slug = self.resolver.resolve(host, request.url.path, request.query_params)
        subdomain_type = self.resolver.subdomain_type(host).value

        request.state.tenant_slug = slug
        request.state.subdomain_type = subdomain_type
        TenantContext.set(tenant_slug=slug, subdomain_type=subdomain_type)

        if slug:
            logger.debug(
                "Resolved tenant %s (%s) for %s %s",
                slug,
                subdomain_type,
                request.method,
                request.url.path,
            )

        try:
            response = await call_next(request)
            if slug:
                response.headers["X-Tenant-Slug"] = slug
            return response
        finally:
            TenantContext.clear()


def get_tenant_resolver(request: Request) -> TenantResolver:
    """Resolver the running app was created with"""
    return request.app.state.tenant_resolver
