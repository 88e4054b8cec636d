# Copyright (c) 2026 RowGuard Contributors. All Rights Reserved.

"""
Predicate Builder — The tenant filter for one entity type.

For every tenant column the entity declares and the context knows:

    qualified(col) = effective_id          (always)
    qualified(col) IS NULL                 (entity allows default records)

All disjuncts form one OR group, which the pipeline ANDs into the query.
A row is visible under any applicable tenant dimension.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement

from rowguard.core.tenant import TenantContext

logger = logging.getLogger("rowguard.predicates")


def entity_type(entity: Any) -> type:
    """The mapped class of an entity given as a class or an instance."""
    return entity if isinstance(entity, type) else type(entity)


class PredicateBuilder:
    """Builds the tenant-column predicate group from the current context."""

    def __init__(self, context: TenantContext) -> None:
        self._context = context

    def build(self, entity: Any) -> Optional[ColumnElement[bool]]:
        """
        Return the OR group for entity, or None when nothing applies.

        None means no column of the entity is present in the context; the
        query is then left unconstrained by this scope.
        """
        disjuncts = self.disjuncts(entity_type(entity))
        if not disjuncts:
            return None
        return or_(*disjuncts)

    def disjuncts(self, cls: type) -> List[ColumnElement[bool]]:
        clauses: List[ColumnElement[bool]] = []
        tenants = self._context.tenants_for(cls.get_tenant_columns())
        for column, tenant_id in tenants.items():
            effective_id = self._context.effective_tenant_id(tenant_id)
            if effective_id != tenant_id:
                logger.debug(
                    "%s.%s: primary tenant %r overrides %r",
                    cls.__name__, column, effective_id, tenant_id,
                    extra={"tenant_id": effective_id, "entity": cls.__name__},
                )

            qualified = cls.get_qualified_tenant(column)
            clauses.append(qualified == effective_id)
            if cls.has_default_records():
                clauses.append(qualified.is_(None))
        return clauses
