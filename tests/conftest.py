"""
Shared pytest fixtures for the safetysync tests.

This module provides:
- A controllable clock (FakeClock / clock)
- Gateway and cache fixtures (gateway, cache)
- Freshness fixtures (sync_state, freshness)
- Sink fixtures (audit_sink, notification_sink)
- Component fixtures (scheduler, coordinator)
- SQLite fixtures backed by temporary files
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from safetysync.audit import InMemoryAuditSink
from safetysync.cache import InMemoryCacheStore, SQLiteCacheStore
from safetysync.domains import DEFAULT_COMPANY_ID, default_domains
from safetysync.freshness import FreshnessTracker
from safetysync.gateway import InMemoryRemoteGateway
from safetysync.migration import MigrationCoordinator, MigrationMapping
from safetysync.notifications import InMemoryNotificationSink
from safetysync.postprocessing import default_post_processors
from safetysync.repositories import InMemorySyncStateRepository
from safetysync.scheduler import ConnectivityState, SchedulerConfig, SyncScheduler

# =============================================================================
# Clock
# =============================================================================

START_TIME = datetime(2025, 3, 1, 8, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = START_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta | None = None, **kwargs: Any) -> datetime:
        self.now += delta if delta is not None else timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at START_TIME."""
    return FakeClock()


# =============================================================================
# Sample data
# =============================================================================


def company_records(prefix: str, count: int, **fields: Any) -> list[dict[str, Any]]:
    """Build remote documents belonging to the default company."""
    return [
        {"id": f"{prefix}-{index}", "company": DEFAULT_COMPANY_ID, **fields}
        for index in range(1, count + 1)
    ]


@pytest.fixture
def seeded_gateway() -> InMemoryRemoteGateway:
    """Gateway holding documents for all four default domains."""
    gateway = InMemoryRemoteGateway()
    gateway.seed("safety_standards", company_records("std", 3))
    gateway.seed("training_records", company_records("trn", 2))
    gateway.seed("incidents", company_records("inc", 4))
    gateway.seed("employees", company_records("emp", 5))
    return gateway


# =============================================================================
# Components
# =============================================================================


@pytest.fixture
def gateway() -> InMemoryRemoteGateway:
    return InMemoryRemoteGateway()


@pytest.fixture
def cache() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def sync_state() -> InMemorySyncStateRepository:
    return InMemorySyncStateRepository()


@pytest.fixture
def freshness(sync_state: InMemorySyncStateRepository) -> FreshnessTracker:
    return FreshnessTracker(default_domains(), sync_state, enable_tracing=False)


@pytest.fixture
def audit_sink() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest.fixture
def notification_sink() -> InMemoryNotificationSink:
    return InMemoryNotificationSink()


@pytest.fixture
def connectivity() -> ConnectivityState:
    return ConnectivityState(online=True)


@pytest.fixture
def scheduler(
    freshness: FreshnessTracker,
    seeded_gateway: InMemoryRemoteGateway,
    cache: InMemoryCacheStore,
    audit_sink: InMemoryAuditSink,
    notification_sink: InMemoryNotificationSink,
    connectivity: ConnectivityState,
    clock: FakeClock,
) -> SyncScheduler:
    """Scheduler over the seeded gateway with default post-processors."""
    return SyncScheduler(
        freshness,
        seeded_gateway,
        cache,
        post_processors=default_post_processors(),
        notification_sink=notification_sink,
        audit_sink=audit_sink,
        connectivity=connectivity,
        config=SchedulerConfig(initial_check=False),
        clock=clock,
        enable_tracing=False,
    )


@pytest.fixture
def two_item_plan() -> list[MigrationMapping]:
    return [
        MigrationMapping("incidents", "incidents"),
        MigrationMapping("training", "training_records"),
    ]


@pytest.fixture
def coordinator(
    gateway: InMemoryRemoteGateway,
    cache: InMemoryCacheStore,
    audit_sink: InMemoryAuditSink,
    two_item_plan: list[MigrationMapping],
    clock: FakeClock,
) -> MigrationCoordinator:
    return MigrationCoordinator(
        gateway,
        cache,
        two_item_plan,
        audit_sink=audit_sink,
        clock=clock,
        enable_tracing=False,
    )


# =============================================================================
# SQLite
# =============================================================================


@pytest.fixture
def sqlite_path(tmp_path: Path) -> str:
    """Path of a fresh SQLite database file."""
    return str(tmp_path / "safety_cache.db")


@pytest_asyncio.fixture
async def sqlite_cache(sqlite_path: str) -> AsyncGenerator[SQLiteCacheStore, None]:
    """Initialized SQLite cache store, closed after the test."""
    store = SQLiteCacheStore(sqlite_path, enable_tracing=False)
    await store.initialize()
    yield store
    await store.close()
