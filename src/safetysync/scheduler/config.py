"""Configuration for the sync scheduler."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any


@dataclass(frozen=True)
class SchedulerConfig:
    """
    Configuration for SyncScheduler.

    Attributes:
        check_interval: Period of the interval trigger (default 30 minutes)
        max_concurrent_fetches: Upper bound on simultaneous domain fetches,
            None for no bound (default None)
        initial_check: Run an interval pass as soon as start() is called
            (default True)
        background_timeout: Seconds stop() waits for pending notices and
            audit entries (default 5.0)

    Example:
        >>> config = SchedulerConfig(check_interval=timedelta(minutes=5))
        >>> config.check_interval_seconds
        300.0
    """

    check_interval: timedelta = timedelta(minutes=30)
    max_concurrent_fetches: int | None = None
    initial_check: bool = True
    background_timeout: float = 5.0

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.check_interval <= timedelta(0):
            raise ValueError(f"check_interval must be positive, got {self.check_interval}")

        if self.max_concurrent_fetches is not None and self.max_concurrent_fetches < 1:
            raise ValueError(
                f"max_concurrent_fetches must be >= 1, got {self.max_concurrent_fetches}"
            )

        if self.background_timeout < 0:
            raise ValueError(f"background_timeout must be >= 0, got {self.background_timeout}")

    @property
    def check_interval_seconds(self) -> float:
        return self.check_interval.total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON storage.

        Returns:
            Dictionary representation suitable for JSON serialization.
        """
        return {
            "check_interval_seconds": self.check_interval_seconds,
            "max_concurrent_fetches": self.max_concurrent_fetches,
            "initial_check": self.initial_check,
            "background_timeout": self.background_timeout,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SchedulerConfig:
        """
        Create from dictionary.

        Args:
            data: Dictionary containing configuration values.

        Returns:
            SchedulerConfig instance.
        """
        return cls(
            check_interval=timedelta(seconds=data.get("check_interval_seconds", 1800)),
            max_concurrent_fetches=data.get("max_concurrent_fetches"),
            initial_check=data.get("initial_check", True),
            background_timeout=data.get("background_timeout", 5.0),
        )


__all__ = ["SchedulerConfig"]
