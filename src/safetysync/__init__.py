"""
safetysync - Local cache synchronization and data migration for safety dashboards.

This library provides:
- Per-domain periodic refresh of a local cache from a remote document store
- Freshness tracking that survives restarts (SQLite, SQLAlchemy or in memory)
- Single-flight run guards for sync passes and migration runs
- One-time, idempotent migration of legacy local-only records
- Audit entries and notices handed to pluggable sinks
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("safetysync")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

# Audit and notifications
from safetysync.audit import (
    AuditSink,
    InMemoryAuditSink,
    LoggingAuditSink,
    SecurityAuditEntry,
)

# Local cache
from safetysync.cache import (
    InMemoryCacheStore,
    LocalCacheStore,
    SQLAlchemyCacheStore,
    SQLiteCacheStore,
)
from safetysync.config import SyncConfig

# Domains
from safetysync.domains import (
    DEFAULT_COMPANY_ID,
    CacheSnapshot,
    FetchSpec,
    FieldFilter,
    SyncDomain,
    default_domains,
)

# Exceptions
from safetysync.exceptions import (
    AlreadyRunningError,
    BatchCommitError,
    CacheStoreError,
    GatewayError,
    GuardNotHeldError,
    MalformedLocalDataError,
    SafetySyncError,
    UnauthorizedError,
    UnknownDomainError,
    UnreachableError,
)
from safetysync.freshness import FreshnessStatus, FreshnessTracker

# Remote gateway
from safetysync.gateway import DocumentWrite, InMemoryRemoteGateway, RemoteGateway
from safetysync.locks import GuardInfo, RunGuard

# Migration
from safetysync.migration import (
    DEFAULT_MIGRATION_PLAN,
    MigrationCoordinator,
    MigrationItem,
    MigrationItemResult,
    MigrationMapping,
    MigrationOutcome,
    MigrationRunResult,
    MigrationRunStats,
    SkipReason,
)
from safetysync.notifications import (
    InMemoryNotificationSink,
    LoggingNotificationSink,
    NotificationSink,
    SyncNotice,
)
from safetysync.postprocessing import (
    ExpiringTrainingDetector,
    NewIncidentDetector,
    OverdueMedicalDetector,
    PostProcessResult,
    SnapshotPostProcessor,
    default_post_processors,
)

# Sync state persistence
from safetysync.repositories import (
    InMemorySyncStateRepository,
    SQLAlchemySyncStateRepository,
    SQLiteSyncStateRepository,
    SyncStateRepository,
)

# Scheduler
from safetysync.scheduler import (
    ConnectivityState,
    DomainOutcome,
    DomainSyncResult,
    SchedulerConfig,
    SyncIndicator,
    SyncPassStatus,
    SyncPassSummary,
    SyncScheduler,
    SyncTrigger,
)
from safetysync.service import SyncService
from safetysync.tasks import BackgroundTaskManager

__all__ = [
    "__version__",
    # Audit and notifications
    "AuditSink",
    "InMemoryAuditSink",
    "InMemoryNotificationSink",
    "LoggingAuditSink",
    "LoggingNotificationSink",
    "NotificationSink",
    "SecurityAuditEntry",
    "SyncNotice",
    # Cache
    "InMemoryCacheStore",
    "LocalCacheStore",
    "SQLAlchemyCacheStore",
    "SQLiteCacheStore",
    # Config
    "SchedulerConfig",
    "SyncConfig",
    # Domains
    "DEFAULT_COMPANY_ID",
    "CacheSnapshot",
    "FetchSpec",
    "FieldFilter",
    "SyncDomain",
    "default_domains",
    # Exceptions
    "AlreadyRunningError",
    "BatchCommitError",
    "CacheStoreError",
    "GatewayError",
    "GuardNotHeldError",
    "MalformedLocalDataError",
    "SafetySyncError",
    "UnauthorizedError",
    "UnknownDomainError",
    "UnreachableError",
    # Freshness
    "FreshnessStatus",
    "FreshnessTracker",
    "InMemorySyncStateRepository",
    "SQLAlchemySyncStateRepository",
    "SQLiteSyncStateRepository",
    "SyncStateRepository",
    # Gateway
    "DocumentWrite",
    "InMemoryRemoteGateway",
    "RemoteGateway",
    # Guards and tasks
    "BackgroundTaskManager",
    "GuardInfo",
    "RunGuard",
    # Migration
    "DEFAULT_MIGRATION_PLAN",
    "MigrationCoordinator",
    "MigrationItem",
    "MigrationItemResult",
    "MigrationMapping",
    "MigrationOutcome",
    "MigrationRunResult",
    "MigrationRunStats",
    "SkipReason",
    # Post-processing
    "ExpiringTrainingDetector",
    "NewIncidentDetector",
    "OverdueMedicalDetector",
    "PostProcessResult",
    "SnapshotPostProcessor",
    "default_post_processors",
    # Scheduler
    "ConnectivityState",
    "DomainOutcome",
    "DomainSyncResult",
    "SyncIndicator",
    "SyncPassStatus",
    "SyncPassSummary",
    "SyncScheduler",
    "SyncService",
    "SyncTrigger",
]
