"""Top-level configuration for safetysync."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from safetysync.domains import DEFAULT_COMPANY_ID
from safetysync.scheduler.config import SchedulerConfig


@dataclass(frozen=True)
class SyncConfig:
    """
    Configuration for SyncService.

    Attributes:
        company_id: Company whose documents are synced and stamped on
            migrated records (default 'mms_metal_management')
        expiry_warning_days: Window for the expiring-training notice (default 30)
        enable_tracing: Whether components create OpenTelemetry spans (default True)
        scheduler: Scheduler configuration

    Example:
        >>> config = SyncConfig.from_dict({"company_id": "acme", "scheduler": {"initial_check": False}})
        >>> config.scheduler.initial_check
        False
    """

    company_id: str = DEFAULT_COMPANY_ID
    expiry_warning_days: int = 30
    enable_tracing: bool = True
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not self.company_id:
            raise ValueError("company_id must not be empty")

        if self.expiry_warning_days < 0:
            raise ValueError(f"expiry_warning_days must be >= 0, got {self.expiry_warning_days}")

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON storage.

        Returns:
            Dictionary representation suitable for JSON serialization.
        """
        return {
            "company_id": self.company_id,
            "expiry_warning_days": self.expiry_warning_days,
            "enable_tracing": self.enable_tracing,
            "scheduler": self.scheduler.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncConfig:
        """
        Create from dictionary.

        Args:
            data: Dictionary containing configuration values.

        Returns:
            SyncConfig instance.
        """
        return cls(
            company_id=data.get("company_id", DEFAULT_COMPANY_ID),
            expiry_warning_days=data.get("expiry_warning_days", 30),
            enable_tracing=data.get("enable_tracing", True),
            scheduler=SchedulerConfig.from_dict(data.get("scheduler", {})),
        )


__all__ = ["SyncConfig"]
