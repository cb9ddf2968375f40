"""
Remote gateway interface.

The remote gateway is the boundary to the remote document store. The sync
scheduler reads through it and the migration coordinator writes through it.
Query mechanics and authentication belong to the implementation.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from safetysync.domains import FetchSpec
from safetysync.types import Record


@dataclass(frozen=True)
class DocumentWrite:
    """
    One document in a batch commit.

    Attributes:
        document_id: Identifier of the remote document (create or overwrite)
        data: Document fields
    """

    document_id: str
    data: Record = field(default_factory=dict)


@runtime_checkable
class RemoteGateway(Protocol):
    """
    Protocol for remote document store access.

    Implementations raise UnreachableError when the store cannot be reached
    and UnauthorizedError when the caller is not permitted. Any exception
    from commit_batch means no document of the batch was written.
    """

    async def fetch_domain(self, spec: FetchSpec) -> list[Record]:
        """
        Fetch the records described by a fetch spec.

        Args:
            spec: Collection, ordering, limit and filters of the query

        Returns:
            Matching records in query order, each including its "id"
        """
        ...

    async def commit_batch(self, collection: str, documents: Sequence[DocumentWrite]) -> None:
        """
        Write documents to a collection as one atomic batch.

        Args:
            collection: Target collection
            documents: Documents to create or overwrite

        Raises:
            BatchCommitError: If the store rejected the batch
        """
        ...

    async def ping(self) -> None:
        """
        Check that the remote store is reachable.

        Raises:
            UnreachableError: If the store cannot be reached
        """
        ...


__all__ = ["DocumentWrite", "RemoteGateway"]
