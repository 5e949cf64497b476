"""Test fixtures for the CRM sync engine.

Provides:
- Test settings (ENVIRONMENT=test, no .env, single HTTP attempt)
- In-memory SQLite engine shared across connections via StaticPool
- A Session per test with foreign keys enforced
- FakeCRMApi: an httpx.MockTransport handler serving paginated collections
- RemoteCRMClient and SyncOrchestrator wired to the fake API
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

import httpx
import pytest
from sqlalchemy import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from src.crm_sync.config import Settings
from src.crm_sync.core.database import build_engine, init_db
from src.crm_sync.mapping.store import IdentityMappingStore
from src.crm_sync.reconcile.resolver import ReferenceResolver
from src.crm_sync.remote.client import ClientConfig, RemoteCRMClient
from src.crm_sync.sync.orchestrator import SyncOrchestrator


# ── Fake remote API ────────────────────────────────────────────────────────


class FakeCRMApi:
    """In-memory stand-in for the remote REST API.

    collections maps a collection name to its records. failures maps a
    collection to an HTTP status to return instead; transport_failures
    lists collections whose requests raise httpx.ConnectError.
    """

    def __init__(self) -> None:
        self.collections: dict[str, list[dict[str, Any]]] = {}
        self.failures: dict[str, int] = {}
        self.transport_failures: set[str] = set()
        self.requests: list[httpx.Request] = []

    def add(self, collection: str, *records: dict[str, Any]) -> None:
        self.collections.setdefault(collection, []).extend(records)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.split("/api/v1/", 1)[1].strip("/").split("/")
        collection = parts[0]

        if collection in self.transport_failures:
            raise httpx.ConnectError("connection refused", request=request)
        if collection in self.failures:
            return httpx.Response(
                self.failures[collection],
                json={"success": False, "error": "Server error"},
            )

        records = self.collections.get(collection, [])

        if len(parts) == 2:
            found = next((r for r in records if str(r.get("id")) == parts[1]), None)
            if found is None:
                return httpx.Response(404, json={"success": False, "error": "Not found"})
            return httpx.Response(200, json={"success": True, "data": found})

        start = int(request.url.params.get("start", 0))
        limit = int(request.url.params.get("limit", 100))
        page = records[start : start + limit]
        more = start + limit < len(records)
        pagination: dict[str, Any] = {
            "start": start,
            "limit": limit,
            "more_items_in_collection": more,
        }
        if more:
            pagination["next_start"] = start + limit
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": page or None,
                "additional_data": {"pagination": pagination},
            },
        )


# ── Settings / database ────────────────────────────────────────────────────


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        DATABASE_URL="sqlite://",
        API_TOKEN="",
        COMPANY_DOMAIN="",
        PAGE_SIZE=100,
        HTTP_MAX_ATTEMPTS=1,
    )


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    engine = build_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine: Engine) -> Generator[Session, None, None]:
    with Session(engine, expire_on_commit=False) as session:
        yield session


# ── Remote client / orchestration ──────────────────────────────────────────


@pytest.fixture
def fake_api() -> FakeCRMApi:
    return FakeCRMApi()


@pytest.fixture
def client(settings: Settings, fake_api: FakeCRMApi) -> Generator[RemoteCRMClient, None, None]:
    config = ClientConfig.from_settings(settings)
    with RemoteCRMClient(config, transport=httpx.MockTransport(fake_api.handler)) as client:
        yield client


@pytest.fixture
def mappings(session: Session) -> IdentityMappingStore:
    return IdentityMappingStore(session)


@pytest.fixture
def resolver(
    session: Session,
    mappings: IdentityMappingStore,
    settings: Settings,
    client: RemoteCRMClient,
) -> ReferenceResolver:
    return ReferenceResolver(session, mappings, settings, client)


@pytest.fixture
def orchestrator(
    session: Session, client: RemoteCRMClient, settings: Settings
) -> SyncOrchestrator:
    return SyncOrchestrator(session, client, settings)


@pytest.fixture
def reconciler_factory(session, mappings, resolver, settings):
    """Build any reconciler class on the shared test session."""

    def _make(reconciler_cls):
        return reconciler_cls(session, mappings, resolver, settings)

    return _make
