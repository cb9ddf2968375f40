"""
Sync domain definitions.

A sync domain is a named category of safety data (standards, training,
incidents, employee health) that is refreshed from the remote store on its
own schedule and cached locally under its own key.

Models in this module:
    - FieldFilter: A single equality/range filter on a remote query
    - FetchSpec: Query descriptor handed to the remote gateway
    - SyncDomain: Static definition of a sync domain
    - CacheSnapshot: The locally cached records of one domain
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from safetysync.types import Record

DEFAULT_COMPANY_ID = "mms_metal_management"

FILTER_OPERATORS = frozenset({"==", "!=", "<", "<=", ">", ">=", "in"})


@dataclass(frozen=True)
class FieldFilter:
    """
    Filter applied to a remote query.

    Attributes:
        field: Document field to compare
        op: Comparison operator, one of ==, !=, <, <=, >, >=, in
        value: Value to compare against
    """

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPERATORS:
            raise ValueError(
                f"Unsupported filter operator '{self.op}'. "
                f"Expected one of: {', '.join(sorted(FILTER_OPERATORS))}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "op": self.op, "value": self.value}


@dataclass(frozen=True)
class FetchSpec:
    """
    Descriptor of the remote query for one domain.

    The scheduler never interprets a FetchSpec; it is passed unchanged to
    the gateway, which translates it into a query against its store.

    Attributes:
        collection: Remote collection name
        order_by: Field to order results by (None for store order)
        descending: Whether ordering is descending
        limit: Maximum number of records to return (None for no cap)
        filters: Filters every returned document must satisfy
    """

    collection: str
    order_by: str | None = None
    descending: bool = False
    limit: int | None = None
    filters: tuple[FieldFilter, ...] = ()

    def __post_init__(self) -> None:
        if not self.collection:
            raise ValueError("collection must not be empty")
        if self.limit is not None and self.limit < 1:
            raise ValueError(f"limit must be >= 1, got {self.limit}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "collection": self.collection,
            "order_by": self.order_by,
            "descending": self.descending,
            "limit": self.limit,
            "filters": [f.to_dict() for f in self.filters],
        }


@dataclass(frozen=True)
class SyncDomain:
    """
    Static definition of a sync domain.

    The time of the last successful sync is not part of the definition; it
    is owned by the FreshnessTracker.

    Attributes:
        id: Stable domain identifier
        refresh_interval: Minimum time between successful syncs
        fetch_spec: Remote query descriptor
        cache_key: Local cache key holding the domain snapshot

    Example:
        >>> domain = SyncDomain(
        ...     id="standards",
        ...     refresh_interval=timedelta(hours=24),
        ...     fetch_spec=FetchSpec("safety_standards", order_by="updated_at"),
        ...     cache_key="mms_safety_standards",
        ... )
        >>> domain.refresh_interval_ms
        86400000
    """

    id: str
    refresh_interval: timedelta
    fetch_spec: FetchSpec
    cache_key: str

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("domain id must not be empty")
        if not self.cache_key:
            raise ValueError("cache_key must not be empty")
        if self.refresh_interval <= timedelta(0):
            raise ValueError(f"refresh_interval must be positive, got {self.refresh_interval}")

    @property
    def refresh_interval_ms(self) -> int:
        """Refresh interval in whole milliseconds."""
        return int(self.refresh_interval.total_seconds() * 1000)

    @classmethod
    def from_millis(
        cls,
        id: str,
        refresh_interval_ms: int,
        fetch_spec: FetchSpec,
        cache_key: str,
    ) -> SyncDomain:
        """Create a domain from a refresh interval given in milliseconds."""
        return cls(
            id=id,
            refresh_interval=timedelta(milliseconds=refresh_interval_ms),
            fetch_spec=fetch_spec,
            cache_key=cache_key,
        )


@dataclass(frozen=True)
class CacheSnapshot:
    """
    The most recent complete set of records cached for a domain.

    Attributes:
        domain_id: Domain the snapshot belongs to
        records: Records in the order the remote store returned them
        captured_at: Time of the sync that produced the snapshot, if known
    """

    domain_id: str
    records: tuple[Record, ...] = field(default_factory=tuple)
    captured_at: datetime | None = None

    def __len__(self) -> int:
        return len(self.records)


def default_domains(company_id: str = DEFAULT_COMPANY_ID) -> list[SyncDomain]:
    """
    Build the standard safety-dashboard sync domains.

    Args:
        company_id: Company whose documents are fetched

    Returns:
        Domains for standards (24h), training (12h), incidents (2h) and
        employee health (6h)
    """
    company = (FieldFilter("company", "==", company_id),)
    return [
        SyncDomain(
            id="standards",
            refresh_interval=timedelta(hours=24),
            fetch_spec=FetchSpec(
                collection="safety_standards",
                order_by="updated_at",
                descending=True,
                limit=50,
                filters=company,
            ),
            cache_key="mms_safety_standards",
        ),
        SyncDomain(
            id="training",
            refresh_interval=timedelta(hours=12),
            fetch_spec=FetchSpec(
                collection="training_records",
                order_by="expiry_date",
                limit=100,
                filters=company,
            ),
            cache_key="mms_training_records",
        ),
        SyncDomain(
            id="incidents",
            refresh_interval=timedelta(hours=2),
            fetch_spec=FetchSpec(
                collection="incidents",
                order_by="created_at",
                descending=True,
                limit=20,
                filters=company,
            ),
            cache_key="mms_recent_incidents",
        ),
        SyncDomain(
            id="employee_health",
            refresh_interval=timedelta(hours=6),
            fetch_spec=FetchSpec(
                collection="employees",
                order_by="next_medical_due",
                limit=100,
                filters=company,
            ),
            cache_key="mms_employee_health",
        ),
    ]


__all__ = [
    "DEFAULT_COMPANY_ID",
    "CacheSnapshot",
    "FetchSpec",
    "FieldFilter",
    "SyncDomain",
    "default_domains",
]
