"""
tests/conftest.py -- Shared test fixtures for DataWatchman integration tests.

This module provides:
  - _make_test_stores(): isolated in-memory DBs for submissions + BDUK premises
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - client: TestClient on the assembled app (API + web pages), fresh limiters

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

Environment variables must be set before any core/api import so
get_settings() caches the test configuration.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from typing import Optional

# CRITICAL: set before any core/api import so the cached Settings see them.
os.environ.setdefault("DEBUG", "true")
os.environ["PROD_ENV"] = "development"
os.environ["REQUIRE_PASSWORD"] = "true"
os.environ["USRN_ACCESS_PASSWORD"] = "test-password"
os.environ["USRN_LOOKUP_ENABLED"] = "true"
os.environ["ALLOW_MISSING_ORIGIN"] = "false"

import pytest
from fastapi.testclient import TestClient

from api.gating import build_origin_validator, build_rate_limiters
from api.limiter import limiter
from asgi import app
from bduk.store import PremisesStore
from core.address import AddressResolver
from core.config import get_settings
from reports.store import SubmissionStore
from tests.helpers import ban_search, seed_premises


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[SubmissionStore, PremisesStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state (e.g. 'api', 'stores').
    """
    submissions = SubmissionStore(f"sqlite:///file:test_submissions_{db_suffix}?mode=memory&cache=shared&uri=true")
    premises = PremisesStore(
        f"sqlite:///file:test_bduk_{db_suffix}?mode=memory&cache=shared&uri=true",
        "bduk_premises",
        "os_open_identifiers",
    )
    seed_premises(premises)
    return submissions, premises


def _patch_lifespan(submissions: Optional[SubmissionStore], premises: Optional[PremisesStore]):
    """Return an async context manager that replaces the real lifespan.

    Builds fresh gating state from the cached settings on every client start,
    so counters never leak from one test into the next. The address resolver
    answers every query with "no match" until a test swaps it.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        settings = get_settings()
        app.state.origin_validator = build_origin_validator(settings)
        app.state.rate_limiters = build_rate_limiters(settings)
        app.state.address_resolver = AddressResolver(search=ban_search({}))
        app.state.submissions = submissions
        app.state.premises = premises
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def stores() -> Generator[tuple[SubmissionStore, PremisesStore], None, None]:
    submissions, premises = _make_test_stores("api")
    yield submissions, premises
    submissions.close()
    premises.close()


@pytest.fixture
def client(stores: tuple[SubmissionStore, PremisesStore]) -> Generator[TestClient, None, None]:
    """Yield a TestClient on the assembled app with isolated stores.

    base_url uses localhost because TrustedHostMiddleware rejects the
    TestClient default host ("testserver").
    """
    submissions, premises = stores
    app.router.lifespan_context = _patch_lifespan(submissions, premises)
    limiter.reset()

    with TestClient(app, base_url="http://localhost", raise_server_exceptions=False) as test_client:
        yield test_client
