"""Configuration models for the poller."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class StorageBackend(str, Enum):
    """Where the cursor is kept between runs."""

    FILE = "file"  # single integer in a state file
    SQLITE = "sqlite"  # cursor row plus activity log


@dataclass
class RetryConfig:
    """Backoff applied after a failed fetch or cursor write."""

    max_backoff: float = 300.0  # seconds, cap on the exponential delay
    max_consecutive_failures: int = 0  # 0 = never give up


@dataclass
class PollerConfig:
    """Complete poller configuration."""

    # Poller
    poll_wait: float = 0.25  # seconds, after a full page
    poll_idle_wait: float = 10.0  # seconds, after a partial or empty page
    event_types: list[str] = field(default_factory=lambda: ["user/updated"])
    per_page: int | None = None  # None = API default (100)
    handlers: list[str] = field(default_factory=lambda: ["log"])
    log_level: str = "info"
    retry: RetryConfig = field(default_factory=RetryConfig)

    # Flex Integration API
    client_id: str = ""  # loaded from env var FLEX_INTEGRATION_CLIENT_ID
    client_secret: str = ""  # loaded from env var FLEX_INTEGRATION_CLIENT_SECRET
    base_url: str = "https://flex-integ-api.sharetribe.com"
    request_timeout: float = 30.0  # seconds

    # Storage
    storage: StorageBackend = StorageBackend.FILE
    state_file: str = "./notify-new-listings.state"
    db_path: str = "~/.flex_poller/state.db"
