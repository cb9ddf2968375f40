"""
Standard span attributes for safetysync.

Attribute constants used across all safetysync components for consistent
span naming. These follow OpenTelemetry semantic conventions where applicable.

Example:
    >>> from safetysync.observability.attributes import ATTR_DOMAIN_ID
    >>>
    >>> with tracer.span(
    ...     "safetysync.scheduler.sync_domain",
    ...     {ATTR_DOMAIN_ID: "training"},
    ... ):
    ...     pass
"""

# =============================================================================
# Sync Attributes
# =============================================================================

ATTR_DOMAIN_ID = "safetysync.domain.id"
"""Identifier of the sync domain (e.g., 'training')."""

ATTR_DOMAIN_COUNT = "safetysync.domain.count"
"""Number of domains considered by an operation (integer)."""

ATTR_PASS_ID = "safetysync.pass.id"
"""Identifier of a scheduler pass (UUID string)."""

ATTR_TRIGGER = "safetysync.pass.trigger"
"""What started a scheduler pass (interval, foreground, reconnect, manual)."""

ATTR_FORCE = "safetysync.pass.force"
"""Whether due-ness was bypassed for the pass (boolean)."""

ATTR_RECORD_COUNT = "safetysync.record.count"
"""Number of records read, written or committed (integer)."""

ATTR_CACHE_KEY = "safetysync.cache.key"
"""Local cache key being read or written (string)."""

ATTR_COLLECTION = "safetysync.remote.collection"
"""Remote collection name (string)."""

# =============================================================================
# Migration Attributes
# =============================================================================

ATTR_MIGRATION_RUN_ID = "safetysync.migration.run_id"
"""Identifier of a migration run (UUID string)."""

ATTR_SOURCE_KEY = "safetysync.migration.source_key"
"""Local-only source key being migrated (string)."""

ATTR_ACTOR_ID = "safetysync.actor.id"
"""Actor who initiated the operation (string)."""

# =============================================================================
# Guard Attributes
# =============================================================================

ATTR_GUARD_NAME = "safetysync.guard.name"
"""Name of a run guard (string)."""

# =============================================================================
# Database Attributes (OpenTelemetry semantic conventions)
# =============================================================================

ATTR_DB_SYSTEM = "db.system"
"""Database system identifier (e.g., 'sqlite', 'postgresql')."""

ATTR_DB_NAME = "db.name"
"""Database name or path (string)."""

__all__ = [
    "ATTR_ACTOR_ID",
    "ATTR_CACHE_KEY",
    "ATTR_COLLECTION",
    "ATTR_DB_NAME",
    "ATTR_DB_SYSTEM",
    "ATTR_DOMAIN_COUNT",
    "ATTR_DOMAIN_ID",
    "ATTR_FORCE",
    "ATTR_GUARD_NAME",
    "ATTR_MIGRATION_RUN_ID",
    "ATTR_PASS_ID",
    "ATTR_RECORD_COUNT",
    "ATTR_SOURCE_KEY",
    "ATTR_TRIGGER",
]
