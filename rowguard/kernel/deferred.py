# Copyright (c) 2026 RowGuard Contributors. All Rights Reserved.

"""
Deferred Registry — Entities that asked for scoping before any tenant existed.

Entities are queued as DeferredTask values and processed once, by flush(),
after the first tenant is registered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

logger = logging.getLogger("rowguard.deferred")


@dataclass(frozen=True)
class DeferredTask:
    """An entity awaiting scoping, plus the predicate builder meant for it."""
    entity: Any
    build: Optional[Callable[[type], Any]] = None

    @property
    def entity_name(self) -> str:
        target = self.entity if isinstance(self.entity, type) else type(self.entity)
        return target.__name__


class DeferredRegistry:
    """Append-only queue drained atomically by flush()."""

    def __init__(self) -> None:
        self._tasks: List[DeferredTask] = []

    def defer(self, entity: Any, build: Optional[Callable[[type], Any]] = None) -> DeferredTask:
        task = DeferredTask(entity=entity, build=build)
        self._tasks.append(task)
        logger.debug("Deferred scoping for %s", task.entity_name, extra={"entity": task.entity_name})
        return task

    def flush(self, apply_fn: Callable[[DeferredTask], None]) -> int:
        """
        Call apply_fn once per distinct queued entity and empty the queue.

        The queue is swapped out before processing, so entities deferred
        while flushing are kept for the next flush. Returns the number of
        entities processed.
        """
        tasks, self._tasks = self._tasks, []
        seen: set[int] = set()
        processed = 0
        for task in tasks:
            if id(task.entity) in seen:
                continue
            seen.add(id(task.entity))
            apply_fn(task)
            processed += 1

        if processed:
            logger.info("Flushed %d deferred entit%s", processed, "y" if processed == 1 else "ies")
        return processed

    def pending(self) -> List[DeferredTask]:
        return list(self._tasks)

    def clear(self) -> None:
        self._tasks.clear()

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, entity: Any) -> bool:
        return any(task.entity is entity for task in self._tasks)
