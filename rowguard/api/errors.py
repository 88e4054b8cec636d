# Copyright (c) 2026 RowGuard Contributors. All Rights Reserved.

"""
API Error Handling — Tenancy errors as structured JSON.
"""

from __future__ import annotations

import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from rowguard.core.errors import TenancyError


async def tenancy_error_handler(request: Request, exc: TenancyError) -> JSONResponse:
    """Global exception handler for TenancyError."""
    trace_id = getattr(request.state, "trace_id", None) or str(uuid.uuid4())
    return JSONResponse(
        status_code=400,
        content={
            "code": exc.code,
            "message": exc.message,
            "trace_id": trace_id,
            "details": exc.details,
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TenancyError, tenancy_error_handler)
