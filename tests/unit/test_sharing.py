# Copyright (c) 2026 RowGuard Contributors. All Rights Reserved.
"""Unit tests for SharingPredicateBuilder, evaluated against SQLite."""

import pytest
from sqlalchemy import select

from rowguard.core.tenant import TenantContext
from rowguard.scoping.sharing import SharingPredicateBuilder, StaticRequestParams
from rowguard.storage.models import ApprovalStatus
from sample_models import Document, DocumentShare, Project, ids

APPROVED = int(ApprovalStatus.APPROVED)
REJECTED = int(ApprovalStatus.REJECTED)
PENDING = int(ApprovalStatus.PENDING)


@pytest.fixture
def shared_documents(seed):
    seed(
        Document(id=1, title="own", company_id=1),
        Document(id=2, title="approved", company_id=2),
        Document(id=3, title="rejected", company_id=2),
        Document(id=4, title="pending", company_id=2),
        Document(id=5, title="private", company_id=2),
        Document(id=6, title="share link", company_id=2),
        DocumentShare(id=1, document_id=2, referenced_tenant_id=1, approval_status=APPROVED),
        DocumentShare(id=2, document_id=3, referenced_tenant_id=1, approval_status=REJECTED),
        DocumentShare(id=3, document_id=4, referenced_tenant_id=1, approval_status=PENDING),
        DocumentShare(id=4, document_id=6, referenced_tenant_id=3, token="tok-6",
                      approval_status=APPROVED),
    )


def _visible(session, params=None, **kwargs):
    ctx = TenantContext()
    ctx.add_tenant("company_id", 1)
    builder = SharingPredicateBuilder(ctx, request_params=params, **kwargs)
    return ids(session, select(Document).where(builder.build(Document)))


class TestSharingPredicateBuilder:
    def test_default_hides_rejected_grants(self, session, shared_documents):
        assert _visible(session) == [1, 2, 4]

    def test_explicit_status_list_overrides_rejection(self, session, shared_documents):
        params = StaticRequestParams(status=[APPROVED, REJECTED])
        assert _visible(session, params) == [1, 2, 3]

    def test_explicit_scalar_status(self, session, shared_documents):
        assert _visible(session, StaticRequestParams(status=PENDING)) == [1, 4]

    def test_share_token_grants_access(self, session, shared_documents):
        assert _visible(session, StaticRequestParams(token="tok-6")) == [1, 2, 4, 6]

    def test_unknown_token_changes_nothing(self, session, shared_documents):
        assert _visible(session, StaticRequestParams(token="nope")) == [1, 2, 4]

    def test_custom_rejected_status(self, session, shared_documents):
        assert _visible(session, rejected_status=PENDING) == [1, 2, 3]

    def test_sharing_ignored_for_plain_entities(self):
        ctx = TenantContext()
        ctx.add_tenant("tenant_id", 5)
        sql = str(SharingPredicateBuilder(ctx).build(Project))
        assert "EXISTS" not in sql

    def test_sharing_clause_is_exists(self):
        ctx = TenantContext()
        ctx.add_tenant("company_id", 1)
        sql = str(SharingPredicateBuilder(ctx).build(Document))
        assert "EXISTS" in sql
        assert "document_shares.referenced_tenant_id" in sql

    def test_token_only_when_no_tenant(self):
        ctx = TenantContext()
        builder = SharingPredicateBuilder(ctx, StaticRequestParams(token="t"))
        assert builder.sharing_clause(Document) is not None
        assert SharingPredicateBuilder(ctx).sharing_clause(Document) is None


class TestStaticRequestParams:
    def test_defaults(self):
        params = StaticRequestParams()
        assert params.share_token() is None
        assert params.approval_status() is None

    def test_values(self):
        params = StaticRequestParams(token="abc", status=[1, 2])
        assert params.share_token() == "abc"
        assert params.approval_status() == [1, 2]
