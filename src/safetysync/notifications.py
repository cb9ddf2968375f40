"""
Notification sink for sync-derived notices.

Post-processors raise notices such as "3 trainings expiring soon". The
scheduler delivers them to a NotificationSink as best-effort background
work; a failing sink never affects the pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncNotice:
    """
    A user-facing notice raised after a sync.

    Attributes:
        domain_id: Domain whose snapshot raised the notice
        tag: Stable notice category, used to replace earlier notices of the same kind
        title: Short headline
        body: Longer description
        count: Number of records the notice is about
        created_at: When the notice was raised
    """

    domain_id: str
    tag: str
    title: str
    body: str = ""
    count: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain_id": self.domain_id,
            "tag": self.tag,
            "title": self.title,
            "body": self.body,
            "count": self.count,
            "created_at": self.created_at.isoformat(),
        }


@runtime_checkable
class NotificationSink(Protocol):
    """Receiver of sync notices."""

    async def notify(self, notice: SyncNotice) -> None:
        """
        Deliver a notice.

        Args:
            notice: The notice to deliver
        """
        ...


class InMemoryNotificationSink:
    """Collects notices in a list. Useful for testing."""

    def __init__(self) -> None:
        self.notices: list[SyncNotice] = []

    async def notify(self, notice: SyncNotice) -> None:
        self.notices.append(notice)

    def by_tag(self, tag: str) -> list[SyncNotice]:
        return [notice for notice in self.notices if notice.tag == tag]


class LoggingNotificationSink:
    """Writes notices to the module logger at INFO."""

    async def notify(self, notice: SyncNotice) -> None:
        logger.info(
            "%s: %s",
            notice.title,
            notice.body,
            extra={"notice": notice.to_dict()},
        )


__all__ = [
    "InMemoryNotificationSink",
    "LoggingNotificationSink",
    "NotificationSink",
    "SyncNotice",
]
