"""Unit tests for SyncService wiring."""

import pytest
from conftest import START_TIME, company_records

from safetysync import SyncService
from safetysync.audit import ACTION_MIGRATION_COMPLETE, ACTION_SYNC_PASS
from safetysync.config import SyncConfig
from safetysync.migration import MigrationMapping
from safetysync.scheduler import SchedulerConfig, SyncPassStatus

CONFIG = SyncConfig(enable_tracing=False, scheduler=SchedulerConfig(initial_check=False))


@pytest.fixture
def service(seeded_gateway, cache, sync_state, audit_sink, notification_sink, clock) -> SyncService:
    return SyncService(
        seeded_gateway,
        cache,
        sync_state,
        config=CONFIG,
        migration_plan=[MigrationMapping("mmsIncidents", "incidents")],
        audit_sink=audit_sink,
        notification_sink=notification_sink,
        clock=clock,
    )


class TestWiring:
    def test_default_domains(self, service: SyncService):
        assert service.freshness.domain_ids == [
            "standards",
            "training",
            "incidents",
            "employee_health",
        ]
        assert service.scheduler.domain_ids == service.freshness.domain_ids

    def test_company_applied_to_domains(self, seeded_gateway, cache):
        service = SyncService(seeded_gateway, cache, config=SyncConfig(company_id="acme", enable_tracing=False))
        spec = service.freshness.domain("training").fetch_spec
        assert spec.filters[0].value == "acme"

    def test_guards_are_independent(self, service: SyncService):
        assert service.scheduler.pass_guard is not service.migration.guard

    def test_repr(self, service: SyncService):
        assert "mms_metal_management" in repr(service)


class TestOperations:
    @pytest.mark.asyncio
    async def test_initialize_restores_freshness(self, service, sync_state):
        await sync_state.save_last_sync("standards", START_TIME)

        await service.initialize()
        await service.initialize()

        assert service.freshness.last_sync_at("standards") == START_TIME

    @pytest.mark.asyncio
    async def test_manual_sync(self, service, audit_sink):
        summary = await service.trigger_manual_sync("incidents")
        await service.scheduler.drain_background()

        assert summary.status is SyncPassStatus.COMPLETED
        assert summary.successful_domains == ["incidents"]
        assert len(audit_sink.by_action(ACTION_SYNC_PASS)) == 1

    @pytest.mark.asyncio
    async def test_sync_status(self, service, clock):
        await service.trigger_manual_sync()
        clock.advance(hours=1)

        status = service.sync_status()

        assert set(status) == {"standards", "training", "incidents", "employee_health"}
        assert status["standards"]["hours_ago"] == 1.0
        assert status["standards"]["due"] is False
        assert status["standards"]["last_sync_at"] == START_TIME.isoformat()

    @pytest.mark.asyncio
    async def test_migrate_stamps_company(self, service, seeded_gateway, cache, audit_sink):
        await cache.write_set("mmsIncidents", [{"id": "legacy-1", "title": "Cut"}])

        result = await service.migrate(actor="admin@example.com")

        assert result.success
        assert seeded_gateway.documents("incidents")["legacy-1"]["company"] == CONFIG.company_id
        assert audit_sink.by_action(ACTION_MIGRATION_COMPLETE)[0].actor == "admin@example.com"

    @pytest.mark.asyncio
    async def test_migrated_records_visible_to_next_sync(self, service, cache):
        await cache.write_set("mmsIncidents", company_records("legacy", 2))

        await service.migrate()
        summary = await service.trigger_manual_sync("incidents")

        assert summary.result_for("incidents").record_count == 6

    @pytest.mark.asyncio
    async def test_context_manager_starts_and_stops(self, service):
        async with service:
            await service.start()
            assert service.scheduler.is_started
        assert not service.scheduler.is_started
