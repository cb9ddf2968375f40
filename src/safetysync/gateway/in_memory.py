"""
In-memory remote gateway.

Useful for testing and development. Behaves like a small document store:
queries honour filters, ordering and limits, and batch commits are
all-or-nothing. Failures can be injected per collection to exercise the
scheduler's and coordinator's error paths.
"""

from __future__ import annotations

import asyncio
import copy
import operator
from collections import defaultdict
from collections.abc import Callable, Sequence
from typing import Any

from safetysync.domains import FetchSpec, FieldFilter
from safetysync.exceptions import BatchCommitError, UnreachableError
from safetysync.gateway.interface import DocumentWrite
from safetysync.observability import (
    ATTR_COLLECTION,
    ATTR_RECORD_COUNT,
    SpanKindEnum,
    Tracer,
    create_tracer,
)
from safetysync.types import Record

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda value, options: value in options,
}


def _matches(document: Record, filters: Sequence[FieldFilter]) -> bool:
    for field_filter in filters:
        if field_filter.field not in document:
            return False
        value = document[field_filter.field]
        try:
            if not _OPERATORS[field_filter.op](value, field_filter.value):
                return False
        except TypeError:
            return False
    return True


class InMemoryRemoteGateway:
    """
    In-memory implementation of RemoteGateway.

    Documents are stored per collection, keyed by document id. Fetched
    records include their id under the "id" key.

    Example:
        >>> gateway = InMemoryRemoteGateway()
        >>> gateway.seed("incidents", [{"id": "i-1", "company": "acme"}])
        >>> records = await gateway.fetch_domain(FetchSpec("incidents"))
        >>> gateway.fail_fetch["training_records"] = UnreachableError()

    Attributes:
        online: When False, every call raises UnreachableError
        delay: Seconds each call sleeps before doing its work
        fail_fetch: Exceptions to raise when fetching a collection
        fail_commit: Exceptions to raise when committing to a collection
        fetch_calls: Collections fetched, in call order
        commit_calls: (collection, document count) of each commit attempt
        ping_calls: Number of ping() calls
    """

    def __init__(
        self,
        *,
        delay: float = 0.0,
        tracer: Tracer | None = None,
        enable_tracing: bool = False,
    ) -> None:
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._enable_tracing = self._tracer.enabled
        self._collections: dict[str, dict[str, Record]] = defaultdict(dict)
        self.online = True
        self.delay = delay
        self.fail_fetch: dict[str, Exception] = {}
        self.fail_commit: dict[str, Exception] = {}
        self.fetch_calls: list[str] = []
        self.commit_calls: list[tuple[str, int]] = []
        self.ping_calls = 0

    def seed(self, collection: str, records: Sequence[Record]) -> None:
        """Insert records directly, bypassing failure injection."""
        for index, record in enumerate(records):
            document_id = str(record.get("id", f"{collection}-{index}"))
            data = {key: value for key, value in record.items() if key != "id"}
            self._collections[collection][document_id] = copy.deepcopy(data)

    def documents(self, collection: str) -> dict[str, Record]:
        """Return a copy of a collection's documents keyed by id."""
        return copy.deepcopy(dict(self._collections.get(collection, {})))

    def count(self, collection: str) -> int:
        return len(self._collections.get(collection, {}))

    async def _simulate_latency(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.online:
            raise UnreachableError()

    async def fetch_domain(self, spec: FetchSpec) -> list[Record]:
        with self._tracer.span_with_kind(
            "safetysync.gateway.fetch_domain",
            SpanKindEnum.CLIENT,
            {ATTR_COLLECTION: spec.collection},
        ):
            self.fetch_calls.append(spec.collection)
            await self._simulate_latency()
            if spec.collection in self.fail_fetch:
                raise self.fail_fetch[spec.collection]

            records = [
                {"id": document_id, **copy.deepcopy(data)}
                for document_id, data in self._collections.get(spec.collection, {}).items()
                if _matches(data, spec.filters)
            ]

            if spec.order_by is not None:
                present = [r for r in records if r.get(spec.order_by) is not None]
                missing = [r for r in records if r.get(spec.order_by) is None]
                present.sort(key=lambda r: r[spec.order_by], reverse=spec.descending)
                records = present + missing

            if spec.limit is not None:
                records = records[: spec.limit]
            return records

    async def commit_batch(self, collection: str, documents: Sequence[DocumentWrite]) -> None:
        with self._tracer.span_with_kind(
            "safetysync.gateway.commit_batch",
            SpanKindEnum.CLIENT,
            {ATTR_COLLECTION: collection, ATTR_RECORD_COUNT: len(documents)},
        ):
            self.commit_calls.append((collection, len(documents)))
            await self._simulate_latency()
            if collection in self.fail_commit:
                raise self.fail_commit[collection]

            staged: dict[str, Record] = {}
            for document in documents:
                if not document.document_id:
                    raise BatchCommitError(collection, len(documents), "document id is empty")
                staged[document.document_id] = copy.deepcopy(dict(document.data))

            self._collections[collection].update(staged)

    async def ping(self) -> None:
        self.ping_calls += 1
        await self._simulate_latency()


__all__ = ["InMemoryRemoteGateway"]
