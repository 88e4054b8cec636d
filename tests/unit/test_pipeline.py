# Copyright (c) 2026 RowGuard Contributors. All Rights Reserved.
"""Unit tests for QueryPipeline scope bindings."""

from sqlalchemy import select

from rowguard.kernel.pipeline import EXCLUDED_SCOPES_OPTION, QueryPipeline, ScopeBinding
from sample_models import Invoice, Project, ids


def _only(value):
    return lambda cls: cls.tenant_id == value


class TestQueryPipeline:
    def test_bind_and_lookup(self):
        pipeline = QueryPipeline()
        binding = ScopeBinding("tenant", Project, _only(1))
        assert pipeline.bind(binding) is None
        assert pipeline.get_binding(Project, "tenant") is binding
        assert pipeline.bindings_for(Invoice) == []

    def test_rebind_replaces(self):
        pipeline = QueryPipeline()
        first = ScopeBinding("tenant", Project, _only(1))
        second = ScopeBinding("tenant", Project, _only(2))
        pipeline.bind(first)
        assert pipeline.bind(second) is first
        assert pipeline.bindings_for(Project) == [second]

    def test_unbind(self):
        pipeline = QueryPipeline()
        pipeline.bind(ScopeBinding("tenant", Project, _only(1)))
        pipeline.unbind(Project, "tenant")
        pipeline.unbind(Invoice, "tenant")
        assert pipeline.get_binding(Project, "tenant") is None

    def test_apply_filters_rows(self, session, seed):
        seed(Project(id=1, name="a", tenant_id=1), Project(id=2, name="b", tenant_id=2))
        pipeline = QueryPipeline()
        pipeline.bind(ScopeBinding("tenant", Project, _only(2)))
        stmt = pipeline.apply(select(Project), [Project])
        assert ids(session, stmt) == [2]

    def test_apply_skips_excluded_and_empty(self, session, seed):
        seed(Project(id=1, name="a", tenant_id=1), Project(id=2, name="b", tenant_id=2))
        pipeline = QueryPipeline()
        pipeline.bind(ScopeBinding("tenant", Project, _only(2)))
        pipeline.bind(ScopeBinding("noop", Project, lambda cls: None))
        stmt = select(Project)
        assert pipeline.apply(stmt, [Project], excluded={"tenant"}) is stmt
        assert ids(session, stmt) == [1, 2]

    def test_without_marks_statement(self):
        stmt = QueryPipeline().without(Project, "tenant")
        assert stmt.get_execution_options()[EXCLUDED_SCOPES_OPTION] == frozenset({"tenant"})
