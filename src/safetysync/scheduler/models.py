"""
Data models for the sync scheduler.

Enums:
    - SyncTrigger: What started a pass
    - SyncPassStatus: How a dispatch call ended
    - DomainOutcome: Per-domain result of an executed pass
    - SyncIndicator: Compact UI state derived from a summary

Results:
    - DomainSyncResult: Outcome of one domain within a pass
    - SyncPassSummary: Outcome of one dispatch call
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from safetysync.notifications import SyncNotice


class SyncTrigger(Enum):
    """
    Sources that can start a sync pass.

    All of them funnel into SyncScheduler.dispatch().
    """

    INTERVAL = "interval"
    """Periodic timer elapsed."""

    FOREGROUND = "foreground"
    """Application became visible."""

    RECONNECT = "reconnect"
    """Network connectivity was regained."""

    MANUAL = "manual"
    """User asked for a sync."""


class SyncPassStatus(Enum):
    """
    How a dispatch call ended.

    Only COMPLETED passes touched the network.
    """

    COMPLETED = "completed"
    NOTHING_DUE = "nothing_due"
    OFFLINE = "offline"
    COALESCED = "coalesced"

    @property
    def executed(self) -> bool:
        return self is SyncPassStatus.COMPLETED


class DomainOutcome(Enum):
    SUCCESS = "success"
    FAILED = "failed"


class SyncIndicator(Enum):
    """Sync indicator state shown by the dashboard header."""

    SYNCED = "synced"
    ISSUES = "issues"
    IDLE = "idle"


@dataclass(frozen=True)
class DomainSyncResult:
    """
    Result of syncing one domain.

    Attributes:
        domain_id: Domain that was synced
        outcome: SUCCESS or FAILED
        record_count: Records written to the snapshot (0 on failure)
        error: Error message on failure
        error_type: Failure class: 'unreachable', 'unauthorized' or 'error'
        facts: Facts derived by post-processors
        notices: Notices raised by post-processors
    """

    domain_id: str
    outcome: DomainOutcome
    record_count: int = 0
    error: str | None = None
    error_type: str | None = None
    facts: dict[str, Any] = field(default_factory=dict)
    notices: tuple[SyncNotice, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.outcome is DomainOutcome.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain_id,
            "outcome": self.outcome.value,
            "record_count": self.record_count,
            "error": self.error,
            "error_type": self.error_type,
            "facts": dict(self.facts),
        }


@dataclass(frozen=True)
class SyncPassSummary:
    """
    Summary of one dispatch call.

    Produced only after every domain task of the pass has settled.

    Attributes:
        pass_id: Unique identifier of the dispatch call
        trigger: What started it
        status: How it ended
        started_at: When dispatch was called
        finished_at: When the summary was produced
        results: Per-domain results, in domain registration order
        force: Whether due-ness was bypassed
    """

    pass_id: UUID
    trigger: SyncTrigger
    status: SyncPassStatus
    started_at: datetime
    finished_at: datetime
    results: tuple[DomainSyncResult, ...] = ()
    force: bool = False

    @property
    def executed(self) -> bool:
        return self.status.executed

    @property
    def successful(self) -> int:
        """Number of domains synced successfully."""
        return sum(1 for result in self.results if result.succeeded)

    @property
    def failed(self) -> int:
        """Number of domains whose sync failed."""
        return sum(1 for result in self.results if not result.succeeded)

    @property
    def successful_domains(self) -> list[str]:
        return [result.domain_id for result in self.results if result.succeeded]

    @property
    def failed_domains(self) -> list[str]:
        return [result.domain_id for result in self.results if not result.succeeded]

    @property
    def indicator(self) -> SyncIndicator:
        if self.failed > 0:
            return SyncIndicator.ISSUES
        if self.successful > 0:
            return SyncIndicator.SYNCED
        return SyncIndicator.IDLE

    def result_for(self, domain_id: str) -> DomainSyncResult | None:
        for result in self.results:
            if result.domain_id == domain_id:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "pass_id": str(self.pass_id),
            "trigger": self.trigger.value,
            "status": self.status.value,
            "force": self.force,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "successful": self.successful,
            "failed": self.failed,
            "indicator": self.indicator.value,
            "details": [result.to_dict() for result in self.results],
        }


__all__ = [
    "DomainOutcome",
    "DomainSyncResult",
    "SyncIndicator",
    "SyncPassStatus",
    "SyncPassSummary",
    "SyncTrigger",
]
