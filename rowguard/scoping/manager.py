# Copyright (c) 2026 RowGuard Contributors. All Rights Reserved.

"""
Tenant Manager — Request-scoped facade over the scoping core.

Created once per request (see rowguard.api.deps), installed on that
request's Session, reset or discarded when the request ends.

    manager = TenantManager()
    manager.install(session)
    manager.add_tenant("company_id", 5, flush=True)
    session.scalars(select(Project))          # filtered by company_id
    session.scalars(manager.without_scopes(Project))   # unfiltered
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from sqlalchemy import event
from sqlalchemy.orm import ORMExecuteState, Session
from sqlalchemy.sql import Select

from rowguard.core.config import RowGuardSettings, settings as default_settings
from rowguard.core.errors import UnknownExtensionError
from rowguard.core.keys import TenantKey
from rowguard.core.tenant import TenantContext
from rowguard.kernel.deferred import DeferredRegistry
from rowguard.kernel.pipeline import EXCLUDED_SCOPES_OPTION, QueryPipeline
from rowguard.scoping.initializer import EntityInitializer
from rowguard.scoping.injector import ScopeInjector
from rowguard.scoping.sharing import RequestParams, SharingPredicateBuilder, StaticRequestParams
from rowguard.storage.models import BelongsToTenants

logger = logging.getLogger("rowguard.manager")


class TenantManager:
    """Owns the tenant context, deferred queue and scope bindings of one request."""

    def __init__(
        self,
        settings: Optional[RowGuardSettings] = None,
        request_params: Optional[RequestParams] = None,
    ) -> None:
        self.settings = settings or default_settings
        self.context = TenantContext(enabled=self.settings.TENANCY_ENABLED)
        self.request_params = request_params or StaticRequestParams()
        self.registry = DeferredRegistry()
        self.pipeline = QueryPipeline()
        self.builder = SharingPredicateBuilder(
            self.context,
            request_params=self.request_params,
            rejected_status=self.settings.REJECTED_APPROVAL_STATUS,
        )
        self.initializer = EntityInitializer(self.context, self.registry)
        self.injector = ScopeInjector(
            self.context,
            self.registry,
            self.pipeline,
            self.builder,
            self.initializer,
            scope_name=self.settings.TENANCY_SCOPE_NAME,
        )
        self._booted: set[type] = set()
        self._extensions: Dict[str, Callable[..., Any]] = {}

    # ── Context ─────────────────────────────────────────────────

    def enable(self) -> None:
        self.context.enable()

    def disable(self) -> None:
        self.context.disable()

    @property
    def is_enabled(self) -> bool:
        return self.context.is_enabled

    def add_tenant(self, key: TenantKey, tenant_id: Any = None, flush: bool = False) -> str:
        """Register a tenant; with flush=True also scope deferred entities."""
        column = self.context.add_tenant(key, tenant_id)
        if flush:
            self.flush_deferred()
        return column

    def remove_tenant(self, key: TenantKey) -> None:
        self.context.remove_tenant(key)

    def has_tenant(self, key: TenantKey) -> bool:
        return self.context.has_tenant(key)

    def get_tenant_id(self, key: TenantKey) -> Any:
        return self.context.get_tenant_id(key)

    def get_tenants(self) -> Mapping[str, Any]:
        return self.context.get_tenants()

    # ── Scoping ─────────────────────────────────────────────────

    def apply_scopes(self, entity: Any) -> None:
        self.injector.apply_scopes(entity)

    def on_new_record(self, entity: Any) -> None:
        self.initializer.on_new_record(entity)

    def flush_deferred(self) -> int:
        return self.injector.flush_deferred()

    def without_scopes(self, entity: Any) -> Select:
        return self.injector.without_scopes(entity)

    def reset(self) -> None:
        """Forget all request state so the manager can serve another request."""
        self.context.clear()
        self.registry.clear()
        self.pipeline.clear()
        self._booted.clear()

    # ── Session Hooks ───────────────────────────────────────────

    def install(self, session) -> None:
        """Attach the scoping hooks to a Session or AsyncSession."""
        target = _sync_session(session)
        event.listen(target, "do_orm_execute", self._on_execute)
        event.listen(target, "before_flush", self._on_before_flush)

    def uninstall(self, session) -> None:
        target = _sync_session(session)
        if event.contains(target, "do_orm_execute", self._on_execute):
            event.remove(target, "do_orm_execute", self._on_execute)
        if event.contains(target, "before_flush", self._on_before_flush):
            event.remove(target, "before_flush", self._on_before_flush)

    def _boot(self, cls: type) -> None:
        """First sight of an entity type in this request: request its scope once."""
        if cls in self._booted or not self.context.is_enabled:
            return
        self._booted.add(cls)
        self.apply_scopes(cls)

    def _on_execute(self, state: ORMExecuteState) -> None:
        if not (state.is_select or state.is_update or state.is_delete):
            return
        if state.is_column_load:
            return

        # Relationship loads (lazy, selectin) are scoped like any other query.
        for mapper in state.all_mappers:
            if issubclass(mapper.class_, BelongsToTenants):
                self._boot(mapper.class_)

        # Every bound entity, so tenant entities that are only joined are filtered too
        entities = self.pipeline.bound_entities()
        if not entities:
            return

        excluded = state.execution_options.get(EXCLUDED_SCOPES_OPTION, ())
        state.statement = self.pipeline.apply(state.statement, entities, excluded)

    def _on_before_flush(self, session: Session, flush_context, instances) -> None:
        for obj in list(session.new):
            if isinstance(obj, BelongsToTenants):
                self._boot(type(obj))
                self.on_new_record(obj)

    # ── Extensions ──────────────────────────────────────────────

    def register_extension(self, name: str, fn: Callable[..., Any]) -> None:
        """Register a named helper; it is called with the manager first."""
        self._extensions[name] = fn
        logger.info("Registered tenancy extension: %s", name)

    def has_extension(self, name: str) -> bool:
        return name in self._extensions

    def call_extension(self, name: str, *args, **kwargs) -> Any:
        fn = self._extensions.get(name)
        if fn is None:
            raise UnknownExtensionError(name)
        return fn(self, *args, **kwargs)

    def __repr__(self) -> str:
        return f"TenantManager({self.context!r}, deferred={len(self.registry)})"


def _sync_session(session) -> Session:
    return getattr(session, "sync_session", session)
