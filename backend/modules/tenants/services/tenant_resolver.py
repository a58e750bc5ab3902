# backend/modules/tenants/services/tenant_resolver.py

"""
Tenant resolution from host, path and query parameters.

Production uses real subdomains (``<slug>.<root-domain>``); development
falls back to ``<slug>.localhost``, path patterns (``/s/<slug>``,
``/tenant/<slug>``, ``/customer/menu/<slug>``) or ``?tenant=<slug>``.
"""

import re
from enum import Enum
from typing import Mapping, Optional

RESERVED_SUBDOMAINS = frozenset(
    {
        "www",
        "panel",
        "admin",
        "api",
        "app",
        "mail",
        "cdn",
        "static",
        "assets",
        "images",
        "docs",
        "help",
        "support",
        "blog",
    }
)

_SHORT_PATH = re.compile(r"^/(?:s|tenant)/([a-z0-9-]+)", re.IGNORECASE)
_MENU_PATH = re.compile(r"^/customer/menu/([a-z0-9-]+)", re.IGNORECASE)


class SubdomainType(str, Enum):
    TENANT = "tenant"
    PANEL = "panel"
    ADMIN = "admin"
    ROOT = "root"
    RESERVED = "reserved"


def is_reserved_subdomain(subdomain: str) -> bool:
    return subdomain.lower() in RESERVED_SUBDOMAINS


def get_subdomain_type(subdomain: Optional[str]) -> SubdomainType:
    if not subdomain:
        return SubdomainType.ROOT
    if subdomain == "panel":
        return SubdomainType.PANEL
    if subdomain == "admin":
        return SubdomainType.ADMIN
    if is_reserved_subdomain(subdomain):
        return SubdomainType.RESERVED
    return SubdomainType.TENANT


class TenantResolver:
    """Pure resolver bound to a root domain such as ``restoai.com``."""

    def __init__(self, root_domain: str, protocol: Optional[str] = None):
        self.root_domain = root_domain.lower()
        self._protocol = protocol

    @property
    def protocol(self) -> str:
        if self._protocol:
            return self._protocol
        return "http" if self.is_local else "https"

    @property
    def is_local(self) -> bool:
        return "localhost" in self.root_domain

    def get_subdomain(self, host: Optional[str]) -> Optional[str]:
        """
        Extract the subdomain from a Host header.

        "demo-kafe.restoai.com" -> "demo-kafe", "restoai.com" -> None,
        "demo-kafe.localhost:3000" -> "demo-kafe".
        """
        if not host:
            return None

        host = host.strip().lower()
        host_without_port = host.split(":")[0]
        root_without_port = self.root_domain.split(":")[0]

        if host_without_port in (root_without_port, f"www.{root_without_port}"):
            return None

        if not host.endswith(self.root_domain) and not host_without_port.endswith(
            root_without_port
        ):
            if host_without_port.endswith(".localhost"):
                return host_without_port[: -len(".localhost")] or None
            return None

        suffix = f".{root_without_port}"
        if not host_without_port.endswith(suffix):
            return None
        return host_without_port[: -len(suffix)] or None

    def resolve(
        self,
        host: Optional[str],
        path: str = "/",
        query: Optional[Mapping[str, str]] = None,
    ) -> Optional[str]:
        """Tenant slug by priority: subdomain > path pattern > ``tenant`` query param."""
        subdomain = self.get_subdomain(host)
        if subdomain and not is_reserved_subdomain(subdomain):
            return subdomain

        match = _SHORT_PATH.match(path or "") or _MENU_PATH.match(path or "")
        if match:
            return match.group(1)

        if query and query.get("tenant"):
            return query.get("tenant")

        return None

    def subdomain_type(self, host: Optional[str]) -> SubdomainType:
        return get_subdomain_type(self.get_subdomain(host))

    def tenant_url(self, slug: str, path: str = "") -> str:
        if self.is_local:
            port = "" if ":" in self.root_domain else ":3000"
            return f"{self.protocol}://{self.root_domain}{port}/customer/menu/{slug}{path}"
        return f"{self.protocol}://{slug}.{self.root_domain}{path}"

    def table_qr_url(self, slug: str, table_number) -> str:
        if self.is_local:
            return f"{self.protocol}://{self.root_domain}/customer/menu/{slug}?table={table_number}"
        return f"{self.protocol}://{slug}.{self.root_domain}?table={table_number}"

    def panel_url(self, path: str = "") -> str:
        if self.is_local:
            return f"{self.protocol}://{self.root_domain}/panel{path}"
        return f"{self.protocol}://panel.{self.root_domain}{path}"

    def admin_url(self, path: str = "") -> str:
        if self.is_local:
            return f"{self.protocol}://{self.root_domain}/admin{path}"
        return f"{self.protocol}://admin.{self.root_domain}{path}"
