"""
One-time migration of legacy local-only data into the remote store.

Example:
    >>> from safetysync.migration import MigrationCoordinator
    >>>
    >>> coordinator = MigrationCoordinator(gateway, cache)
    >>> result = await coordinator.run(actor="admin@example.com")
    >>> result.stats.migrated_records
    42
"""

from safetysync.migration.coordinator import MigrationCoordinator
from safetysync.migration.models import (
    DEFAULT_MIGRATION_PLAN,
    MigrationItem,
    MigrationItemResult,
    MigrationMapping,
    MigrationOutcome,
    MigrationRunResult,
    MigrationRunStats,
    SkipReason,
)
from safetysync.migration.provenance import (
    MIGRATION_ORIGIN,
    migration_document_id,
    migration_document_ids,
    stamp_provenance,
)

__all__ = [
    "DEFAULT_MIGRATION_PLAN",
    "MIGRATION_ORIGIN",
    "MigrationCoordinator",
    "MigrationItem",
    "MigrationItemResult",
    "MigrationMapping",
    "MigrationOutcome",
    "MigrationRunResult",
    "MigrationRunStats",
    "SkipReason",
    "migration_document_id",
    "migration_document_ids",
    "stamp_provenance",
]
