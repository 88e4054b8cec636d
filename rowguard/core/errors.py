# Copyright (c) 2026 RowGuard Contributors. All Rights Reserved.

"""
Tenancy Errors — Programmer-misuse errors raised by the scoping core.

These are never retried; they surface immediately to the caller.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class TenancyError(Exception):
    """Base tenancy error with a stable code."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NullIdentifierError(TenancyError):
    def __init__(self, key: str):
        super().__init__(
            code="NULL_TENANT_ID",
            message=f"Tenant id for '{key}' must not be None",
            details={"key": key},
        )


class UnknownTenantError(TenancyError):
    def __init__(self, key: Any):
        super().__init__(
            code="UNKNOWN_TENANT",
            message=(
                f"Unknown tenant {key!r}: key must be a registered column name, "
                "a StringKey or a DerivedFromEntity"
            ),
            details={"key": repr(key)},
        )


class UnknownExtensionError(TenancyError):
    def __init__(self, name: str):
        super().__init__(
            code="UNKNOWN_EXTENSION",
            message=f"Extension '{name}' is not registered",
            details={"name": name},
        )
