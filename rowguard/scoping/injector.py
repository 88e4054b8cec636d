# Copyright (c) 2026 RowGuard Contributors. All Rights Reserved.

"""
Scope Injector — Binds the tenant predicate to an entity's queries.

  apply_scopes    bind now, or defer while no tenant is registered
  flush_deferred  backfill + bind every deferred entity
  without_scopes  the sanctioned escape hatch for cross-tenant queries
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.sql import Select

from rowguard.core.tenant import TenantContext
from rowguard.kernel.deferred import DeferredRegistry, DeferredTask
from rowguard.kernel.pipeline import QueryPipeline, ScopeBinding
from rowguard.scoping.initializer import EntityInitializer
from rowguard.scoping.predicates import PredicateBuilder, entity_type

logger = logging.getLogger("rowguard.injector")


class ScopeInjector:
    """Orchestrates predicate binding for one request."""

    def __init__(
        self,
        context: TenantContext,
        registry: DeferredRegistry,
        pipeline: QueryPipeline,
        builder: PredicateBuilder,
        initializer: EntityInitializer,
        scope_name: str = "tenant",
    ) -> None:
        self._context = context
        self._registry = registry
        self._pipeline = pipeline
        self._builder = builder
        self._initializer = initializer
        self.scope_name = scope_name

    def apply_scopes(self, entity: Any) -> None:
        if not self._context.is_enabled:
            return

        if self._context.is_empty:
            # No tenants yet; flush_deferred() binds it later
            self._registry.defer(entity, self._builder.build)
            return

        self._bind(entity, self._builder.build)

    def flush_deferred(self) -> int:
        """Scope every deferred entity. Returns how many were processed."""
        if not self._context.is_enabled:
            return 0
        if self._context.is_empty:
            logger.debug("flush_deferred called with no tenant registered; keeping %d entities", len(self._registry))
            return 0
        return self._registry.flush(self._apply_deferred)

    def without_scopes(self, entity: Any) -> Select:
        return self._pipeline.without(entity_type(entity), self.scope_name)

    # ── Internal ────────────────────────────────────────────────

    def _apply_deferred(self, task: DeferredTask) -> None:
        if not isinstance(task.entity, type):
            self._initializer.backfill(task.entity)
        self._bind(task.entity, task.build or self._builder.build)

    def _bind(self, entity: Any, build) -> None:
        cls = entity_type(entity)
        self._pipeline.bind(ScopeBinding(name=self.scope_name, entity=cls, build=build))
        logger.debug(
            "Applied '%s' scope to %s", self.scope_name, cls.__name__,
            extra={"scope": self.scope_name, "entity": cls.__name__},
        )
