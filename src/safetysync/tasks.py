"""
Best-effort background subtasks.

Notification delivery and audit emission must never block or fail a sync
pass. They are submitted here as tracked asyncio tasks: failures are
logged and never propagated, and pending work can be drained on shutdown
or in tests.

Example:
    >>> manager = BackgroundTaskManager()
    >>> manager.submit(sink.notify(notice), label="notify:training")
    >>> await manager.drain(timeout=5.0)
"""

import asyncio
import contextlib
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundTaskManager:
    """
    Tracks fire-and-forget tasks.

    Features:
    - Failed tasks are logged at ERROR with their label
    - Tasks stop being tracked once they finish
    - drain() waits for pending work, cancelling what exceeds the timeout
    """

    def __init__(self) -> None:
        self._tasks: dict[asyncio.Task[Any], str] = {}
        self._failures = 0

    def submit(
        self,
        coro: Coroutine[Any, Any, Any],
        *,
        label: str = "background",
    ) -> asyncio.Task[Any]:
        """
        Run a coroutine in the background.

        Args:
            coro: The coroutine to run
            label: Short description used in log messages

        Returns:
            The created task
        """
        task = asyncio.create_task(coro)
        self._tasks[task] = label
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        label = self._tasks.pop(task, "background")
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._failures += 1
            logger.error(
                "Background task %s failed: %s",
                label,
                exc,
                exc_info=exc,
                extra={"task_label": label},
            )

    @property
    def pending_count(self) -> int:
        """Number of tasks still running."""
        return sum(1 for task in self._tasks if not task.done())

    @property
    def has_pending(self) -> bool:
        return self.pending_count > 0

    @property
    def failure_count(self) -> int:
        """Number of tasks that raised since the manager was created."""
        return self._failures

    async def drain(self, timeout: float | None = None) -> int:
        """
        Wait for all pending tasks.

        Args:
            timeout: Maximum seconds to wait, or None to wait indefinitely

        Returns:
            Number of tasks that were pending when called

        Note:
            Tasks still running after the timeout are cancelled.
        """
        pending = [task for task in self._tasks if not task.done()]
        if not pending:
            return 0

        _, remaining = await asyncio.wait(pending, timeout=timeout)

        if remaining:
            logger.warning(
                "%d background task(s) did not complete within %.1fs",
                len(remaining),
                timeout or 0.0,
                extra={"remaining_tasks": len(remaining), "timeout": timeout},
            )
            for task in remaining:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

        return len(pending)

    def cancel_all(self) -> int:
        """
        Cancel all pending tasks.

        Returns:
            Number of tasks cancelled
        """
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        self._tasks.clear()
        return len(pending)

    def __repr__(self) -> str:
        return f"BackgroundTaskManager(pending={self.pending_count})"


__all__ = ["BackgroundTaskManager"]
