# Copyright (c) 2026 RowGuard Contributors. All Rights Reserved.

"""
Shared test fixtures: tenant-aware models on an in-memory SQLite database.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from rowguard.core.config import RowGuardSettings
from rowguard.scoping.manager import TenantManager
from rowguard.storage.database import Base
import sample_models  # noqa: F401  registers the mapped tables


# ── Fixtures ──────────────────────────────────────────────────


@pytest.fixture
def test_settings() -> RowGuardSettings:
    """Settings isolated from any local .env file."""
    return RowGuardSettings(_env_file=None)


@pytest.fixture
def engine():
    eng = create_engine("sqlite://")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def manager(test_settings) -> TenantManager:
    return TenantManager(settings=test_settings)


@pytest.fixture
def seed(engine, session):
    """Insert rows before any scoping hook is installed."""

    def _seed(*rows):
        with Session(engine) as writer:
            writer.add_all(rows)
            writer.commit()
        session.expunge_all()

    return _seed
