# Copyright (c) 2026 RowGuard Contributors. All Rights Reserved.

"""
Sharing Predicate Builder — Cross-tenant grants on top of the tenant filter.

An entity with company sharing is also visible when it has a grant row
that references the primary tenant (or carries the request's share token)
and passes the approval filter:

    EXISTS (grant WHERE (referenced_tenant_id = :primary OR token = :token)
                    AND approval_status <filter>)

The ambient request is read through a RequestParams accessor so the core
never touches an HTTP framework.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Sequence, Union

from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

from rowguard.core.config import settings
from rowguard.core.tenant import TenantContext
from rowguard.scoping.predicates import PredicateBuilder

ApprovalFilter = Union[None, int, str, Sequence[Union[int, str]]]


class RequestParams(Protocol):
    """Read-only view of the two request parameters sharing depends on."""

    def share_token(self) -> Optional[str]: ...

    def approval_status(self) -> ApprovalFilter: ...


@dataclass(frozen=True)
class StaticRequestParams:
    """Fixed request parameters (background jobs, tests, no request at all)."""
    token: Optional[str] = None
    status: ApprovalFilter = None

    def share_token(self) -> Optional[str]:
        return self.token

    def approval_status(self) -> ApprovalFilter:
        return self.status


class SharingPredicateBuilder(PredicateBuilder):
    """PredicateBuilder that also ORs in the sharing-grant EXISTS clause."""

    def __init__(
        self,
        context: TenantContext,
        request_params: Optional[RequestParams] = None,
        rejected_status: Optional[int] = None,
    ) -> None:
        super().__init__(context)
        self._request = request_params or StaticRequestParams()
        self._rejected_status = (
            settings.REJECTED_APPROVAL_STATUS if rejected_status is None else rejected_status
        )

    def disjuncts(self, cls: type) -> List[ColumnElement[bool]]:
        clauses = super().disjuncts(cls)
        if cls.has_company_sharing():
            shared = self.sharing_clause(cls)
            if shared is not None:
                clauses.append(shared)
        return clauses

    def sharing_clause(self, cls: type) -> Optional[ColumnElement[bool]]:
        relationship = cls.get_sharing_relationship()
        grant = cls.get_sharing_grant_class()

        matches = []
        primary = self._context.primary_tenant_id
        if primary is not None:
            matches.append(grant.referenced_tenant_id == primary)
        token = self._request.share_token()
        if token:
            matches.append(grant.token == token)
        if not matches:
            return None

        return relationship.any(and_(or_(*matches), self.approval_clause(grant)))

    def approval_clause(self, grant: type) -> ColumnElement[bool]:
        """Explicit request filter if present, else hide rejected grants."""
        status: Any = self._request.approval_status()
        if status:
            if isinstance(status, (list, tuple, set, frozenset)):
                return grant.approval_status.in_(list(status))
            return grant.approval_status == status
        return grant.approval_status != self._rejected_status
