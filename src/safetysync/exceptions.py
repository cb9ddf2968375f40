"""Library exceptions for the safetysync package."""

from __future__ import annotations


class SafetySyncError(Exception):
    """Base exception for safetysync library."""

    pass


class GatewayError(SafetySyncError):
    """Raised when the remote document store rejects or cannot serve a request."""

    pass


class UnreachableError(GatewayError):
    """Raised when the remote store cannot be reached (offline, timeout, DNS)."""

    def __init__(self, message: str = "Remote store is unreachable") -> None:
        super().__init__(message)


class UnauthorizedError(GatewayError):
    """Raised when the remote store rejects the caller's credentials or permissions."""

    def __init__(self, resource: str, message: str | None = None) -> None:
        self.resource = resource
        super().__init__(message or f"Not authorized to access {resource}")


class BatchCommitError(GatewayError):
    """
    Raised when an atomic batch commit is rejected by the remote store.

    Because batch commits are all-or-nothing, none of the documents in the
    batch were written when this error is raised.

    Attributes:
        collection: Target collection of the rejected batch
        document_count: Number of documents in the rejected batch
    """

    def __init__(self, collection: str, document_count: int, message: str) -> None:
        self.collection = collection
        self.document_count = document_count
        super().__init__(
            f"Batch commit of {document_count} document(s) to '{collection}' failed: {message}"
        )


class AlreadyRunningError(SafetySyncError):
    """
    Raised when a guarded operation is invoked while it is already running.

    Attributes:
        guard_name: Name of the guard that is held
        holder: Token of the current holder, if known
    """

    def __init__(self, guard_name: str, holder: str | None = None) -> None:
        self.guard_name = guard_name
        self.holder = holder
        holder_info = f" (held by {holder})" if holder else ""
        super().__init__(f"Operation '{guard_name}' is already running{holder_info}")


class GuardNotHeldError(SafetySyncError):
    """Raised when releasing a guard with a token that does not hold it."""

    def __init__(self, guard_name: str, token: str) -> None:
        self.guard_name = guard_name
        self.token = token
        super().__init__(f"Guard '{guard_name}' is not held by token {token}")


class CacheStoreError(SafetySyncError):
    """Raised when the local cache store cannot be read or written."""

    pass


class MalformedLocalDataError(CacheStoreError):
    """
    Raised when a locally stored record set cannot be parsed.

    Distinguishable from an absent or empty set so callers can log it
    differently while still treating it as "nothing to do".

    Attributes:
        key: Cache key of the unparseable set
        reason: Why the payload was rejected
    """

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Malformed local data under '{key}': {reason}")


class UnknownDomainError(SafetySyncError):
    """Raised when an operation references a domain that is not registered."""

    def __init__(self, domain_id: str, known: list[str] | None = None) -> None:
        self.domain_id = domain_id
        self.known = known or []
        known_str = ", ".join(self.known) if self.known else "none"
        super().__init__(f"Unknown sync domain '{domain_id}'. Registered domains: {known_str}")
