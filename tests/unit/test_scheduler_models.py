"""Unit tests for scheduler result models."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

from safetysync.scheduler import (
    DomainOutcome,
    DomainSyncResult,
    SyncIndicator,
    SyncPassStatus,
    SyncPassSummary,
    SyncTrigger,
)

STARTED = datetime(2025, 3, 1, 8, 0, tzinfo=UTC)


def make_summary(*results: DomainSyncResult, status=SyncPassStatus.COMPLETED) -> SyncPassSummary:
    return SyncPassSummary(
        pass_id=uuid4(),
        trigger=SyncTrigger.INTERVAL,
        status=status,
        started_at=STARTED,
        finished_at=STARTED + timedelta(seconds=2),
        results=results,
    )


def ok(domain_id: str, count: int = 1) -> DomainSyncResult:
    return DomainSyncResult(domain_id, DomainOutcome.SUCCESS, record_count=count)


def failed(domain_id: str) -> DomainSyncResult:
    return DomainSyncResult(
        domain_id, DomainOutcome.FAILED, error="unreachable", error_type="unreachable"
    )


class TestSyncPassStatus:
    def test_only_completed_is_executed(self):
        assert [s for s in SyncPassStatus if s.executed] == [SyncPassStatus.COMPLETED]


class TestSyncPassSummary:
    def test_counts(self):
        summary = make_summary(ok("standards"), failed("training"), ok("incidents"))
        assert summary.successful == 2
        assert summary.failed == 1
        assert summary.successful_domains == ["standards", "incidents"]
        assert summary.failed_domains == ["training"]

    def test_indicator_issues(self):
        assert make_summary(ok("standards"), failed("training")).indicator is SyncIndicator.ISSUES

    def test_indicator_synced(self):
        assert make_summary(ok("standards")).indicator is SyncIndicator.SYNCED

    def test_indicator_idle(self):
        summary = make_summary(status=SyncPassStatus.NOTHING_DUE)
        assert summary.indicator is SyncIndicator.IDLE
        assert not summary.executed

    def test_result_for(self):
        summary = make_summary(ok("standards", 3))
        assert summary.result_for("standards").record_count == 3
        assert summary.result_for("training") is None

    def test_to_dict(self):
        summary = make_summary(ok("standards", 3), failed("training"))
        data = summary.to_dict()

        assert data["trigger"] == "interval"
        assert data["status"] == "completed"
        assert data["successful"] == 1
        assert data["failed"] == 1
        assert data["indicator"] == "issues"
        assert data["details"][1] == {
            "domain": "training",
            "outcome": "failed",
            "record_count": 0,
            "error": "unreachable",
            "error_type": "unreachable",
            "facts": {},
        }


class TestDomainSyncResult:
    def test_succeeded(self):
        assert ok("standards").succeeded
        assert not failed("standards").succeeded
