"""
Concurrency guards for safetysync.

Provides single-flight run guards used by the sync scheduler and the
migration coordinator.

Example:
    >>> from safetysync.locks import RunGuard
    >>>
    >>> guard = RunGuard("sync-pass")
    >>> if guard.try_acquire("pass-1"):
    ...     try:
    ...         await run_pass()
    ...     finally:
    ...         guard.release("pass-1")
"""

from safetysync.exceptions import AlreadyRunningError, GuardNotHeldError
from safetysync.locks.run_guard import GuardInfo, RunGuard

__all__ = [
    "AlreadyRunningError",
    "GuardInfo",
    "GuardNotHeldError",
    "RunGuard",
]
