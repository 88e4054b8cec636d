# Copyright (c) 2026 RowGuard Contributors. All Rights Reserved.

"""
Entity Initializer — Stamps tenant columns on new records.
"""

from __future__ import annotations

import logging
from typing import Any

from rowguard.core.tenant import TenantContext
from rowguard.kernel.deferred import DeferredRegistry

logger = logging.getLogger("rowguard.initializer")


class EntityInitializer:
    """Write-side counterpart of the tenant filter."""

    def __init__(self, context: TenantContext, registry: DeferredRegistry) -> None:
        self._context = context
        self._registry = registry

    def on_new_record(self, entity: Any) -> None:
        """Fill unset tenant columns of a new entity, or defer it if no tenant is known yet."""
        if not self._context.is_enabled:
            return

        if self._context.is_empty:
            self._registry.defer(entity)
            return

        self.backfill(entity)

    def backfill(self, entity: Any) -> int:
        """
        Assign context values to tenant columns that are still None.

        Explicitly set columns are left alone. Values go through the same
        primary-override rule as the read filter. Returns the number of
        columns assigned.
        """
        assigned = 0
        tenants = self._context.tenants_for(entity.get_tenant_columns())
        for column, tenant_id in tenants.items():
            if getattr(entity, column, None) is None:
                setattr(entity, column, self._context.effective_tenant_id(tenant_id))
                assigned += 1
        if assigned:
            logger.debug(
                "Backfilled %d tenant column(s) on %s", assigned, type(entity).__name__,
                extra={"entity": type(entity).__name__},
            )
        return assigned
