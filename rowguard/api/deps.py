# Copyright (c) 2026 RowGuard Contributors. All Rights Reserved.

"""
API Dependencies — One TenantManager per request, via FastAPI Depends.

How tenant ids are derived (headers, JWT, ...) stays with the application;
it calls manager.add_tenant(...) in its own dependency or route.
"""

from __future__ import annotations

from typing import AsyncGenerator, List, Optional, Union

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rowguard.core.config import RowGuardSettings, settings as default_settings
from rowguard.scoping.manager import TenantManager
from rowguard.scoping.sharing import ApprovalFilter
from rowguard.storage.database import get_db


def _coerce(value: str) -> Union[int, str]:
    return int(value) if value.isdigit() else value


class QueryParamsRequest:
    """RequestParams backed by a Starlette request's query string."""

    def __init__(self, request: Request, settings: Optional[RowGuardSettings] = None) -> None:
        self._request = request
        self._settings = settings or default_settings

    def share_token(self) -> Optional[str]:
        return self._request.query_params.get(self._settings.SHARE_TOKEN_PARAM) or None

    def approval_status(self) -> ApprovalFilter:
        """A repeated parameter becomes a list; a single value stays scalar."""
        param = self._settings.APPROVAL_STATUS_PARAM
        values: List[str] = [
            v for v in self._request.query_params.getlist(param) if v != ""
        ]
        if not values:
            return None
        if len(values) == 1:
            return _coerce(values[0])
        return [_coerce(v) for v in values]


def get_request_params(request: Request) -> QueryParamsRequest:
    return QueryParamsRequest(request)


async def get_tenant_manager(
    params: QueryParamsRequest = Depends(get_request_params),
) -> AsyncGenerator[TenantManager, None]:
    """Fresh manager per request; its state is dropped when the request ends."""
    manager = TenantManager(request_params=params)
    try:
        yield manager
    finally:
        manager.reset()


async def get_tenant_session(
    manager: TenantManager = Depends(get_tenant_manager),
    db: AsyncSession = Depends(get_db),
) -> AsyncGenerator[AsyncSession, None]:
    """Async DB session with the request's tenant scoping installed."""
    manager.install(db)
    try:
        yield db
    finally:
        manager.uninstall(db)
