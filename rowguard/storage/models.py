# Copyright (c) 2026 RowGuard Contributors. All Rights Reserved.

"""
Tenant-aware model mixins.

  - TenantKeyMixin:     key / foreign-key naming for entities used as tenants
  - BelongsToTenants:   entity descriptor for rows scoped by tenant columns
  - SharingGrantMixin:  columns of a cross-tenant sharing grant row
"""

from __future__ import annotations

import enum
import re
from typing import Any, Tuple

from sqlalchemy import Column, Integer, String, inspect as sa_inspect

from rowguard.core.config import settings

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class ApprovalStatus(enum.IntEnum):
    PENDING = 1
    APPROVED = 2
    REJECTED = 3


class TenantKeyMixin:
    """Lets a mapped instance act as a tenant: Company(id=5) -> company_id=5."""

    @classmethod
    def _primary_key_attr(cls) -> str:
        mapper = sa_inspect(cls)
        return mapper.get_property_by_column(mapper.primary_key[0]).key

    def get_key(self) -> Any:
        return getattr(self, self._primary_key_attr())

    @classmethod
    def get_foreign_key_name(cls) -> str:
        snake = _CAMEL_BOUNDARY.sub("_", cls.__name__).lower()
        return f"{snake}_{cls._primary_key_attr()}"


class BelongsToTenants(TenantKeyMixin):
    """
    Entity descriptor for tenant-scoped models.

    Subclasses declare which columns carry tenant ids and which policies
    apply::

        class Project(BelongsToTenants, Base):
            __tablename__ = "projects"
            __tenant_columns__ = ("company_id",)
            __has_default_records__ = True
    """

    __tenant_columns__ = ("tenant_id",)
    __has_default_records__ = False
    __has_company_sharing__ = False
    __sharing_relationship__ = None

    @classmethod
    def get_tenant_columns(cls) -> Tuple[str, ...]:
        return tuple(cls.__tenant_columns__)

    @classmethod
    def has_default_records(cls) -> bool:
        return cls.__has_default_records__

    @classmethod
    def has_company_sharing(cls) -> bool:
        return cls.__has_company_sharing__

    @classmethod
    def get_qualified_tenant(cls, column: str):
        """Table-qualified column expression, e.g. projects.company_id."""
        return getattr(cls, column)

    @classmethod
    def _sharing_relationship_name(cls) -> str:
        return cls.__sharing_relationship__ or settings.SHARING_RELATIONSHIP

    @classmethod
    def get_sharing_relationship(cls):
        return getattr(cls, cls._sharing_relationship_name())

    @classmethod
    def get_sharing_grant_class(cls) -> type:
        # mapper.relationships configures pending mappers first
        return sa_inspect(cls).relationships[cls._sharing_relationship_name()].mapper.class_


class SharingGrantMixin:
    """A grant exposing one row to another tenant (or to a share-link token)."""

    referenced_tenant_id = Column(Integer, nullable=True, index=True)
    token = Column(String(128), nullable=True, index=True)
    approval_status = Column(Integer, nullable=False, default=int(ApprovalStatus.PENDING))
