# Copyright (c) 2026 RowGuard Contributors. All Rights Reserved.

"""
Query Pipeline — Named, removable filters on an entity's ORM queries.

Each ScopeBinding is rebuilt at execution time and attached with
with_loader_criteria, so the predicate always reflects the tenant context
of the moment the query runs. A statement opts out of named scopes through
the EXCLUDED_SCOPES_OPTION execution option.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import with_loader_criteria
from sqlalchemy.sql import Select

logger = logging.getLogger("rowguard.pipeline")

EXCLUDED_SCOPES_OPTION = "rowguard_excluded_scopes"


@dataclass(frozen=True)
class ScopeBinding:
    """A named predicate factory bound to one entity type."""
    name: str
    entity: type
    build: Callable[[type], Any]

    def criteria(self):
        return self.build(self.entity)


class QueryPipeline:
    """Per-request registry of scope bindings keyed by entity type and name."""

    def __init__(self) -> None:
        self._bindings: Dict[type, Dict[str, ScopeBinding]] = {}

    # ── Registration ────────────────────────────────────────────

    def bind(self, binding: ScopeBinding) -> Optional[ScopeBinding]:
        """Register a binding, replacing (and returning) any prior one of the same name."""
        scopes = self._bindings.setdefault(binding.entity, {})
        previous = scopes.get(binding.name)
        scopes[binding.name] = binding
        logger.debug(
            "Bound scope '%s' to %s%s", binding.name, binding.entity.__name__,
            " (replaced)" if previous else "",
            extra={"scope": binding.name, "entity": binding.entity.__name__},
        )
        return previous

    def unbind(self, entity: type, name: str) -> None:
        self._bindings.get(entity, {}).pop(name, None)

    def get_binding(self, entity: type, name: str) -> Optional[ScopeBinding]:
        return self._bindings.get(entity, {}).get(name)

    def bindings_for(self, entity: type) -> List[ScopeBinding]:
        return list(self._bindings.get(entity, {}).values())

    def bound_entities(self) -> List[type]:
        return [entity for entity, scopes in self._bindings.items() if scopes]

    def clear(self) -> None:
        self._bindings.clear()

    # ── Statement Rewriting ─────────────────────────────────────

    def apply(self, statement, entities: Iterable[type], excluded: Iterable[str] = ()):
        """Attach every non-excluded binding of the given entities to statement."""
        excluded = set(excluded or ())
        options = []
        for entity in entities:
            for binding in self.bindings_for(entity):
                if binding.name in excluded:
                    continue
                criteria = binding.criteria()
                if criteria is None:
                    continue
                options.append(
                    with_loader_criteria(entity, criteria, include_aliases=True)
                )
        if not options:
            return statement
        return statement.options(*options)

    def without(self, entity: type, *names: str) -> Select:
        """A select() for entity that skips the named scopes."""
        return select(entity).execution_options(
            **{EXCLUDED_SCOPES_OPTION: frozenset(names)}
        )
