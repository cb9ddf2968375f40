"""
Sync scheduler for safetysync.

Refreshes each sync domain's local snapshot from the remote store on its
own schedule. Triggers (interval, foreground, reconnect, manual) all go
through SyncScheduler.dispatch().

Example:
    >>> from safetysync.scheduler import SyncScheduler, SyncTrigger
    >>>
    >>> summary = await scheduler.dispatch(SyncTrigger.MANUAL, ["training"], force=True)
    >>> summary.indicator
    <SyncIndicator.SYNCED: 'synced'>
"""

from safetysync.scheduler.config import SchedulerConfig
from safetysync.scheduler.connectivity import ConnectivityProbe, ConnectivityState, probe_online
from safetysync.scheduler.models import (
    DomainOutcome,
    DomainSyncResult,
    SyncIndicator,
    SyncPassStatus,
    SyncPassSummary,
    SyncTrigger,
)
from safetysync.scheduler.scheduler import SyncScheduler, classify_error

__all__ = [
    "ConnectivityProbe",
    "ConnectivityState",
    "DomainOutcome",
    "DomainSyncResult",
    "SchedulerConfig",
    "SyncIndicator",
    "SyncPassStatus",
    "SyncPassSummary",
    "SyncScheduler",
    "SyncTrigger",
    "classify_error",
    "probe_online",
]
