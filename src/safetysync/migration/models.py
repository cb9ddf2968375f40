"""
Data models for the one-time local data migration.

Models in this module:

Plan:
    - MigrationMapping: One (source key, target collection) pair
    - DEFAULT_MIGRATION_PLAN: The legacy local-only sets of the dashboard
    - MigrationItem: A mapping together with its record count at run time

Enums:
    - MigrationOutcome: Per-item classification
    - SkipReason: Why an item was skipped

Results:
    - MigrationItemResult: Outcome of one mapping
    - MigrationRunStats: Aggregate counters of a run
    - MigrationRunResult: Everything surfaced to the initiating actor
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


@dataclass(frozen=True)
class MigrationMapping:
    """
    One entry of the migration plan.

    Attributes:
        source_key: Local cache key of the legacy record set
        target_collection: Remote collection receiving the records
    """

    source_key: str
    target_collection: str

    def __post_init__(self) -> None:
        if not self.source_key:
            raise ValueError("source_key must not be empty")
        if not self.target_collection:
            raise ValueError("target_collection must not be empty")


DEFAULT_MIGRATION_PLAN: tuple[MigrationMapping, ...] = (
    MigrationMapping("mmsIncidents", "incidents"),
    MigrationMapping("mmsHealthRecords", "employees"),
    MigrationMapping("mmsPPEItems", "ppe_inventory"),
    MigrationMapping("mmsTraining", "training_records"),
    MigrationMapping("mmsAudits", "safety_audits"),
    MigrationMapping("mmsContractors", "contractors"),
    MigrationMapping("mmsStandards", "safety_standards"),
)
"""Legacy local-only record sets, in migration order."""


@dataclass(frozen=True)
class MigrationItem:
    """
    A mapping as seen at migration time.

    Exists only while a run is processing it; record_count is derived from
    the local set when it is read.
    """

    mapping: MigrationMapping
    record_count: int

    @property
    def source_key(self) -> str:
        return self.mapping.source_key

    @property
    def target_collection(self) -> str:
        return self.mapping.target_collection


class MigrationOutcome(Enum):
    MIGRATED = "migrated"
    FAILED = "failed"
    SKIPPED = "skipped"


class SkipReason(Enum):
    """
    Why a mapping was skipped.

    MALFORMED sets are skipped like empty ones but logged as warnings.
    """

    ABSENT = "absent"
    EMPTY = "empty"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class MigrationItemResult:
    """
    Outcome of one mapping within a run.

    Attributes:
        source_key: Local cache key of the legacy set
        target_collection: Remote collection
        outcome: MIGRATED, FAILED or SKIPPED
        record_count: Records in the set (0 when skipped)
        skip_reason: Why the item was skipped, if it was
        error: Failure message, if it failed
    """

    source_key: str
    target_collection: str
    outcome: MigrationOutcome
    record_count: int = 0
    skip_reason: SkipReason | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if self.record_count < 0:
            raise ValueError(f"record_count must be >= 0, got {self.record_count}")
        if (self.skip_reason is not None) != (self.outcome is MigrationOutcome.SKIPPED):
            raise ValueError("skip_reason must be set exactly when the outcome is SKIPPED")

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_key": self.source_key,
            "target_collection": self.target_collection,
            "outcome": self.outcome.value,
            "record_count": self.record_count,
            "skip_reason": self.skip_reason.value if self.skip_reason else None,
            "error": self.error,
        }


@dataclass(frozen=True)
class MigrationRunStats:
    """
    Aggregate counters of a migration run.

    Record counters and item counters are kept apart:

    - total_records == migrated_records + failed_records
    - migrated_items + failed_items + skipped_items == number of mappings,
      or all counters are zero when the run aborted before processing items

    Skipped items hold no records, so they contribute only to skipped_items.
    """

    total_records: int = 0
    migrated_records: int = 0
    failed_records: int = 0
    migrated_items: int = 0
    failed_items: int = 0
    skipped_items: int = 0

    def __post_init__(self) -> None:
        for name, value in self.to_dict().items():
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")
        if self.total_records != self.migrated_records + self.failed_records:
            raise ValueError(
                f"total_records ({self.total_records}) must equal migrated_records "
                f"({self.migrated_records}) + failed_records ({self.failed_records})"
            )

    @property
    def total_items(self) -> int:
        return self.migrated_items + self.failed_items + self.skipped_items

    @classmethod
    def from_results(cls, results: Iterable[MigrationItemResult]) -> MigrationRunStats:
        """Aggregate per-item results."""
        migrated_records = failed_records = 0
        migrated_items = failed_items = skipped_items = 0
        for result in results:
            if result.outcome is MigrationOutcome.MIGRATED:
                migrated_items += 1
                migrated_records += result.record_count
            elif result.outcome is MigrationOutcome.FAILED:
                failed_items += 1
                failed_records += result.record_count
            else:
                skipped_items += 1
        return cls(
            total_records=migrated_records + failed_records,
            migrated_records=migrated_records,
            failed_records=failed_records,
            migrated_items=migrated_items,
            failed_items=failed_items,
            skipped_items=skipped_items,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "total_records": self.total_records,
            "migrated_records": self.migrated_records,
            "failed_records": self.failed_records,
            "migrated_items": self.migrated_items,
            "failed_items": self.failed_items,
            "skipped_items": self.skipped_items,
        }


@dataclass(frozen=True)
class MigrationRunResult:
    """
    Final result of a migration run.

    Attributes:
        run_id: Identifier of the run, also stamped as migration_batch
        success: True iff at least one item migrated
        stats: Aggregate counters
        items: Per-mapping results in plan order (empty if the run aborted)
        actor: Who ran the migration
        started_at: When the run started
        finished_at: When the run finished
        error: Why the run aborted before processing items, if it did
    """

    run_id: UUID
    success: bool
    stats: MigrationRunStats
    items: tuple[MigrationItemResult, ...]
    actor: str
    started_at: datetime
    finished_at: datetime
    error: str | None = None

    @property
    def aborted(self) -> bool:
        return self.error is not None

    @property
    def message(self) -> str:
        """Human-readable summary for the initiating actor."""
        if self.aborted:
            return f"Migration aborted: {self.error}"
        if self.success:
            return (
                f"Migrated {self.stats.migrated_records} record(s) to cloud storage "
                f"({self.stats.failed_items} item(s) failed, "
                f"{self.stats.skipped_items} skipped)"
            )
        if self.stats.failed_items:
            return f"Migration failed for {self.stats.failed_items} item(s); local data kept"
        return "No local data found to migrate"

    def item(self, source_key: str) -> MigrationItemResult | None:
        for item in self.items:
            if item.source_key == source_key:
                return item
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "run_id": str(self.run_id),
            "success": self.success,
            "message": self.message,
            "stats": self.stats.to_dict(),
            "items": [item.to_dict() for item in self.items],
            "actor": self.actor,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "error": self.error,
        }


__all__ = [
    "DEFAULT_MIGRATION_PLAN",
    "MigrationItem",
    "MigrationItemResult",
    "MigrationMapping",
    "MigrationOutcome",
    "MigrationRunResult",
    "MigrationRunStats",
    "SkipReason",
]
