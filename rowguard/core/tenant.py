# Copyright (c) 2026 RowGuard Contributors. All Rights Reserved.

"""
Tenant Context — The active tenants of one logical request.

An ordered mapping of tenant column -> tenant id plus the enable switch.
The first registered tenant is the primary tenant. One instance per request;
never share it between concurrent requests.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional

from rowguard.core.errors import NullIdentifierError, UnknownTenantError
from rowguard.core.keys import DerivedFromEntity, TenantKey, resolve_tenant_key

logger = logging.getLogger("rowguard.context")


class TenantContext:
    """Request-scoped tenant registry."""

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled
        self._tenants: Dict[str, Any] = {}

    # ── Switch ──────────────────────────────────────────────────

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    # ── Registration ────────────────────────────────────────────

    def add_tenant(self, key: TenantKey, tenant_id: Any = None) -> str:
        """
        Register (or overwrite) a tenant. Returns the resolved column name.

        When key is a DerivedFromEntity and no id is given, the entity's
        own primary key is used. Overwriting keeps the key in place, so
        the primary tenant only changes when it is removed.
        """
        column = resolve_tenant_key(key)
        if tenant_id is None and isinstance(key, DerivedFromEntity):
            tenant_id = key.key_value()

        if tenant_id is None:
            raise NullIdentifierError(column)

        self._tenants[column] = tenant_id
        logger.debug(
            "Tenant registered: %s=%r", column, tenant_id,
            extra={"tenant_id": tenant_id},
        )
        return column

    def remove_tenant(self, key: TenantKey) -> None:
        self._tenants.pop(resolve_tenant_key(key), None)

    def clear(self) -> None:
        self._tenants.clear()

    # ── Lookup ──────────────────────────────────────────────────

    def has_tenant(self, key: TenantKey) -> bool:
        return resolve_tenant_key(key) in self._tenants

    def get_tenant_id(self, key: TenantKey) -> Any:
        column = resolve_tenant_key(key)
        if column not in self._tenants:
            raise UnknownTenantError(key)
        return self._tenants[column]

    def get_tenants(self) -> Mapping[str, Any]:
        """Read-only, insertion-ordered view of the registered tenants."""
        return MappingProxyType(self._tenants)

    @property
    def is_empty(self) -> bool:
        return not self._tenants

    @property
    def primary_tenant_id(self) -> Optional[Any]:
        """Id of the first registered tenant, or None when empty."""
        return next(iter(self._tenants.values()), None)

    def tenants_for(self, columns: Iterable[str]) -> Dict[str, Any]:
        """Context entries restricted to the given columns, in context order."""
        wanted = set(columns)
        return {col: tid for col, tid in self._tenants.items() if col in wanted}

    def effective_tenant_id(self, tenant_id: Any) -> Any:
        """
        Apply the primary-override rule.

        With more than one registered tenant, any id that differs from the
        primary tenant's id is replaced by the primary id. Both the read
        filter and the write-side backfill go through here.
        """
        if len(self._tenants) > 1:
            primary = self.primary_tenant_id
            if primary != tenant_id:
                return primary
        return tenant_id

    def __len__(self) -> int:
        return len(self._tenants)

    def __repr__(self) -> str:
        state = "enabled" if self._enabled else "disabled"
        return f"TenantContext({dict(self._tenants)!r}, {state})"
