"""
Provenance stamping for migrated records.

Every document written by a migration run carries fields recording where
it came from, when, by whom and in which run. Document ids are stable
across runs so that re-committing a set never duplicates documents.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any
from uuid import UUID, uuid5

from safetysync.serialization import json_dumps
from safetysync.types import Record

MIGRATION_ORIGIN = "local_cache"

MIGRATION_NAMESPACE = UUID("6f1c4b5e-2d7a-5c39-9e84-3b0a7d61f2c8")
"""Namespace for ids of migrated records that have no id of their own."""


def migration_document_id(source_key: str, record: Record, position: int) -> str:
    """
    Document id for a migrated record.

    A record's own non-empty "id" is used as is. Otherwise the id is a
    UUID5 of the source key, the record's position in its set and its
    content, so identical records in one set still get distinct ids while
    a retried set maps to the same documents.
    """
    own_id = record.get("id")
    if own_id is not None and str(own_id) != "":
        return str(own_id)
    return _generated_id(source_key, record, position)


def migration_document_ids(source_key: str, records: Sequence[Record]) -> list[str]:
    """
    Document ids for a whole local set, one per record and all distinct.

    The first record carrying a given "id" keeps it; later records repeating
    that id get a generated id instead. Their original id is still kept as
    original_local_id by stamp_provenance().
    """
    ids: list[str] = []
    seen: set[str] = set()
    for position, record in enumerate(records):
        document_id = migration_document_id(source_key, record, position)
        if document_id in seen:
            document_id = _generated_id(source_key, record, position)
        seen.add(document_id)
        ids.append(document_id)
    return ids


def _generated_id(source_key: str, record: Record, position: int) -> str:
    content = json_dumps(record, sort_keys=True)
    return str(uuid5(MIGRATION_NAMESPACE, f"{source_key}:{position}:{content}"))


def stamp_provenance(
    record: Record,
    *,
    source_key: str,
    run_id: UUID,
    actor: str,
    migrated_at: datetime,
    company: str | None = None,
) -> Record:
    """
    Return a copy of a record with migration provenance fields.

    Args:
        record: The legacy local record
        source_key: Local cache key the record was read from
        run_id: Migration run id, stored as migration_batch
        actor: Who performed the migration
        migrated_at: Time of the migration run
        company: Company the record belongs to, if configured

    Returns:
        The stamped record. created_at is kept when present and otherwise
        set to the migration time; updated_at is always the migration time.
    """
    timestamp = migrated_at.isoformat()
    stamped: dict[str, Any] = dict(record)
    stamped.update(
        {
            "migrated_from": MIGRATION_ORIGIN,
            "migrated_at": timestamp,
            "migrated_by": actor,
            "migration_batch": str(run_id),
            "original_local_id": record.get("id"),
            "source_key": source_key,
            "created_at": record.get("created_at") or timestamp,
            "updated_at": timestamp,
        }
    )
    if company is not None:
        stamped["company"] = company
    return stamped


__all__ = [
    "MIGRATION_NAMESPACE",
    "MIGRATION_ORIGIN",
    "migration_document_id",
    "migration_document_ids",
    "stamp_provenance",
]
