"""
Security audit entries.

The sync scheduler emits one entry per executed pass and the migration
coordinator one per run. Entries are handed to an external AuditSink; the
audit store itself is owned by the host application.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

ACTION_SYNC_PASS = "periodic_sync_pass"
ACTION_MIGRATION_COMPLETE = "data_migration_complete"
ACTION_MIGRATION_FAILED = "data_migration_failed"


class SecurityAuditEntry(BaseModel):
    """
    Immutable audit record of a sync pass or migration run.

    Attributes:
        id: Unique entry identifier
        timestamp: When the audited operation finished (UTC)
        actor: User or system that performed the operation
        action: What was done (e.g. 'data_migration_complete')
        domain: Affected domain(s), comma separated, or 'migration'
        outcome: Result of the operation (e.g. 'success', 'partial', 'failure')
        details: Operation-specific summary data

    Example:
        >>> entry = SecurityAuditEntry(
        ...     actor="admin@example.com",
        ...     action=ACTION_MIGRATION_COMPLETE,
        ...     domain="migration",
        ...     outcome="success",
        ...     details={"migrated_records": 12},
        ... )
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique audit entry identifier",
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the audited operation finished (UTC)",
    )
    actor: str = Field(
        default="system",
        description="User/system that performed the operation",
    )
    action: str = Field(
        ...,
        min_length=1,
        description="Audited action",
    )
    domain: str = Field(
        ...,
        description="Affected sync domain(s) or 'migration'",
    )
    outcome: str = Field(
        ...,
        description="Result of the operation",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Operation-specific summary",
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return self.model_dump(mode="json")

    def __str__(self) -> str:
        return f"{self.action}({self.domain}, outcome={self.outcome}, actor={self.actor})"


@runtime_checkable
class AuditSink(Protocol):
    """Receiver of audit entries."""

    async def record(self, entry: SecurityAuditEntry) -> None:
        """
        Record an audit entry.

        Args:
            entry: The entry to record
        """
        ...


class InMemoryAuditSink:
    """Collects audit entries in a list. Useful for testing."""

    def __init__(self) -> None:
        self.entries: list[SecurityAuditEntry] = []

    async def record(self, entry: SecurityAuditEntry) -> None:
        self.entries.append(entry)

    def by_action(self, action: str) -> list[SecurityAuditEntry]:
        return [entry for entry in self.entries if entry.action == action]

    def clear(self) -> None:
        self.entries.clear()


class LoggingAuditSink:
    """
    Writes audit entries to a logger.

    Args:
        logger_name: Name of the logger to write to
        level: Logging level for entries
    """

    def __init__(self, logger_name: str = "safetysync.audit", level: int = logging.INFO) -> None:
        self._logger = logging.getLogger(logger_name)
        self._level = level

    async def record(self, entry: SecurityAuditEntry) -> None:
        self._logger.log(
            self._level,
            "Audit %s: domain=%s outcome=%s actor=%s",
            entry.action,
            entry.domain,
            entry.outcome,
            entry.actor,
            extra={"audit_entry": entry.to_dict()},
        )


__all__ = [
    "ACTION_MIGRATION_COMPLETE",
    "ACTION_MIGRATION_FAILED",
    "ACTION_SYNC_PASS",
    "AuditSink",
    "InMemoryAuditSink",
    "LoggingAuditSink",
    "SecurityAuditEntry",
]
