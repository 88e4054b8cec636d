# Copyright (c) 2026 RowGuard Contributors. All Rights Reserved.

"""
Tenant Keys — How callers name a tenant dimension.

A key is either a literal column name or derived from a tenant entity's
foreign-key naming convention (Company -> "company_id"). Both are resolved
once, at the boundary, into a plain string.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from rowguard.core.errors import UnknownTenantError


@dataclass(frozen=True)
class StringKey:
    """A literal tenant column name."""
    name: str


@dataclass(frozen=True)
class DerivedFromEntity:
    """A tenant key taken from an entity instance, e.g. a Company row."""
    entity: Any

    def key_value(self) -> Any:
        """Primary key of the referenced entity, used as its tenant id."""
        get_key = getattr(self.entity, "get_key", None)
        if get_key is None:
            raise UnknownTenantError(self)
        return get_key()


TenantKey = Union[str, StringKey, DerivedFromEntity]


def resolve_tenant_key(key: TenantKey) -> str:
    """
    Resolve a TenantKey into the plain column name used by TenantContext.

    Raises UnknownTenantError for anything that is not a string key or an
    entity exposing get_foreign_key_name().
    """
    if isinstance(key, DerivedFromEntity):
        namer = getattr(key.entity, "get_foreign_key_name", None)
        if namer is None:
            raise UnknownTenantError(key)
        key = namer()
    elif isinstance(key, StringKey):
        key = key.name

    if not isinstance(key, str) or not key:
        raise UnknownTenantError(key)
    return key
