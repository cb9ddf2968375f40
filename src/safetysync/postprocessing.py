"""
Post-processing of freshly synced snapshots.

Some domains derive facts from their new snapshot, such as trainings about
to expire or medical exams that are overdue, and may raise a notice for
the user. Post-processors run after the snapshot has been written. An
error in a post-processor is logged by the scheduler and never fails the
domain or the pass.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import Any, Protocol, runtime_checkable

from safetysync.notifications import SyncNotice
from safetysync.types import Record


def coerce_datetime(value: Any) -> datetime | None:
    """
    Interpret a stored date value as an aware UTC datetime.

    Accepts datetimes, dates, ISO 8601 strings, epoch milliseconds, and
    document-store timestamp mappings ({"seconds": ..., "nanoseconds": ...}).
    Returns None for anything else.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    if isinstance(value, dict) and "seconds" in value:
        seconds = value["seconds"] + value.get("nanoseconds", 0) / 1e9
        return datetime.fromtimestamp(seconds, tz=UTC)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return None


@dataclass(frozen=True)
class PostProcessResult:
    """
    Facts derived from a snapshot.

    Attributes:
        facts: Summary values merged into the domain's sync result
        notices: Notices to deliver to the notification sink
    """

    facts: dict[str, Any] = field(default_factory=dict)
    notices: tuple[SyncNotice, ...] = ()


@runtime_checkable
class SnapshotPostProcessor(Protocol):
    """Derives facts from a domain's freshly written snapshot."""

    domain_id: str

    def process(
        self,
        records: Sequence[Record],
        previous: Sequence[Record] | None,
        now: datetime,
    ) -> PostProcessResult:
        """
        Derive facts from a snapshot.

        Args:
            records: The new snapshot
            previous: The snapshot it replaced, or None if there was none
            now: Time of the sync

        Returns:
            Derived facts and notices
        """
        ...


class ExpiringTrainingDetector:
    """Flags training records whose expiry falls within the warning window."""

    def __init__(self, warning_days: int = 30, domain_id: str = "training") -> None:
        if warning_days < 0:
            raise ValueError(f"warning_days must be >= 0, got {warning_days}")
        self.domain_id = domain_id
        self.warning_days = warning_days

    def process(
        self,
        records: Sequence[Record],
        previous: Sequence[Record] | None,
        now: datetime,
    ) -> PostProcessResult:
        horizon = now + timedelta(days=self.warning_days)
        expiring = []
        for record in records:
            expiry = coerce_datetime(record.get("expiry_date"))
            if expiry is not None and now <= expiry <= horizon:
                expiring.append(
                    {
                        "employee": record.get("employee_name") or "Unknown",
                        "training": record.get("training_type") or "Unknown",
                        "expiry": expiry.date().isoformat(),
                    }
                )

        notices: tuple[SyncNotice, ...] = ()
        if expiring:
            notices = (
                SyncNotice(
                    domain_id=self.domain_id,
                    tag="training-expiry",
                    title=f"{len(expiring)} Training(s) Expiring Soon",
                    body="Check training module for details",
                    count=len(expiring),
                    created_at=now,
                ),
            )
        return PostProcessResult(
            facts={"expiring": len(expiring), "expiring_soon": expiring},
            notices=notices,
        )


class NewIncidentDetector:
    """Counts incidents that were not present in the previous snapshot."""

    def __init__(self, domain_id: str = "incidents") -> None:
        self.domain_id = domain_id

    def process(
        self,
        records: Sequence[Record],
        previous: Sequence[Record] | None,
        now: datetime,
    ) -> PostProcessResult:
        previous_ids = {record.get("id") for record in previous or ()}
        new_ids = [record.get("id") for record in records if record.get("id") not in previous_ids]
        return PostProcessResult(facts={"new": len(new_ids), "new_ids": new_ids})


class OverdueMedicalDetector:
    """Flags employees whose next medical exam date has passed."""

    def __init__(self, domain_id: str = "employee_health") -> None:
        self.domain_id = domain_id

    def process(
        self,
        records: Sequence[Record],
        previous: Sequence[Record] | None,
        now: datetime,
    ) -> PostProcessResult:
        overdue = []
        for record in records:
            due = coerce_datetime(record.get("next_medical_due"))
            if due is not None and due < now:
                overdue.append(
                    {
                        "name": record.get("name") or "Unknown",
                        "location": record.get("location") or "Unknown",
                        "days_overdue": (now - due).days,
                    }
                )

        notices: tuple[SyncNotice, ...] = ()
        if overdue:
            notices = (
                SyncNotice(
                    domain_id=self.domain_id,
                    tag="medical-overdue",
                    title=f"{len(overdue)} Medical Exam(s) Overdue",
                    body="Check employee health module",
                    count=len(overdue),
                    created_at=now,
                ),
            )
        return PostProcessResult(
            facts={"overdue": len(overdue), "overdue_medical": overdue},
            notices=notices,
        )


def default_post_processors(expiry_warning_days: int = 30) -> list[SnapshotPostProcessor]:
    """Post-processors for the default safety domains."""
    return [
        ExpiringTrainingDetector(warning_days=expiry_warning_days),
        NewIncidentDetector(),
        OverdueMedicalDetector(),
    ]


__all__ = [
    "ExpiringTrainingDetector",
    "NewIncidentDetector",
    "OverdueMedicalDetector",
    "PostProcessResult",
    "SnapshotPostProcessor",
    "coerce_datetime",
    "default_post_processors",
]
