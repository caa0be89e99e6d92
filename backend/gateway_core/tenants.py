"""
Tenant (company / license) resolution for incoming requests.

Precedence, first match wins:
    1. numeric leading path segment, e.g. ``/41038/iclock/cdata``
       (optionally behind a mount prefix, e.g. ``/biometricos/41038/...``)
    2. a recognized query parameter, e.g. ``?customId=77``
    3. the resolver's fallback tenant, changed only through ``set_fallback``
    4. none
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum

from shared_libraries.logging import get_logger

logger = get_logger(__name__)


class TenantSource(str, Enum):
    """Where a resolved tenant id came from."""

    PATH = "path"
    QUERY = "query"
    FALLBACK = "fallback"
    NONE = "none"


@dataclass(frozen=True)
class TenantResolution:
    """Tenant id for one request plus the path with any tenant segment removed."""

    tenant_id: str | None
    source: TenantSource
    path: str


class TenantResolver:
    """Resolves the tenant for a request and owns the fallback tenant."""

    def __init__(
        self,
        query_params: Iterable[str] = ("id", "customId", "pin", "license"),
        mount_prefixes: Iterable[str] = (),
        fallback: str | None = None,
    ) -> None:
        self.query_params = tuple(query_params)
        self.mount_prefixes = frozenset(mount_prefixes)
        self._fallback = fallback or None

    @property
    def fallback(self) -> str | None:
        return self._fallback

    def set_fallback(self, tenant_id: str) -> None:
        tenant_id = tenant_id.strip()
        if not tenant_id:
            raise ValueError("tenant id must not be blank")
        previous, self._fallback = self._fallback, tenant_id
        logger.info("tenant_fallback_set", tenant_id=tenant_id, previous=previous)

    def clear_fallback(self) -> None:
        logger.info("tenant_fallback_cleared", previous=self._fallback)
        self._fallback = None

    def split_path(self, path: str) -> tuple[str | None, str]:
        """Strip a tenant path segment, returning ``(tenant_id, remaining_path)``."""
        segments = path.split("/")
        # segments[0] is the empty string before the leading slash
        if len(segments) > 1 and segments[1].isdigit():
            return segments[1], "/" + "/".join(segments[2:])
        if (
            len(segments) > 2
            and segments[1] in self.mount_prefixes
            and segments[2].isdigit()
        ):
            return segments[2], "/" + "/".join(segments[3:])
        return None, path

    def from_query(self, query: Mapping[str, str]) -> str | None:
        for name in self.query_params:
            value = (query.get(name) or "").strip()
            if value:
                return value
        return None

    def resolve(self, path: str, query: Mapping[str, str]) -> TenantResolution:
        tenant_id, remaining = self.split_path(path)
        if tenant_id is not None:
            return TenantResolution(tenant_id, TenantSource.PATH, remaining)

        tenant_id = self.from_query(query)
        if tenant_id is not None:
            return TenantResolution(tenant_id, TenantSource.QUERY, path)

        if self._fallback is not None:
            return TenantResolution(self._fallback, TenantSource.FALLBACK, path)

        return TenantResolution(None, TenantSource.NONE, path)
