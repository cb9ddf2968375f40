"""
Remote gateway for safetysync.

The gateway abstracts the remote document store: fetching the records of a
sync domain, committing atomic batches, and checking reachability.
"""

from safetysync.gateway.in_memory import InMemoryRemoteGateway
from safetysync.gateway.interface import DocumentWrite, RemoteGateway

__all__ = [
    "DocumentWrite",
    "InMemoryRemoteGateway",
    "RemoteGateway",
]
