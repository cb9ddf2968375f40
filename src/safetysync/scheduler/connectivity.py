"""
Connectivity state.

The scheduler asks a connectivity probe whether the device is online before
each pass. ConnectivityState is the default probe: the host application
updates it from its own network events.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable

ConnectivityProbe = Callable[[], bool | Awaitable[bool]]


class ConnectivityState:
    """
    Mutable online/offline flag usable as a connectivity probe.

    Example:
        >>> state = ConnectivityState()
        >>> state.set_online(False)
        >>> state()
        False
    """

    def __init__(self, online: bool = True) -> None:
        self._online = online

    @property
    def online(self) -> bool:
        return self._online

    def set_online(self, online: bool) -> bool:
        """
        Update the flag.

        Returns:
            True if the device just came back online
        """
        regained = online and not self._online
        self._online = online
        return regained

    def __call__(self) -> bool:
        return self._online

    def __repr__(self) -> str:
        return f"ConnectivityState(online={self._online})"


async def probe_online(probe: ConnectivityProbe) -> bool:
    """Evaluate a probe that may be synchronous or asynchronous."""
    result = probe()
    if inspect.isawaitable(result):
        result = await result
    return bool(result)


__all__ = ["ConnectivityProbe", "ConnectivityState", "probe_online"]
