"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from flex_poller.models.config import PollerConfig, RetryConfig, StorageBackend

# Variable names used by the vendor's own SDK examples
VENDOR_CLIENT_ID = "FLEX_INTEGRATION_CLIENT_ID"
VENDOR_CLIENT_SECRET = "FLEX_INTEGRATION_CLIENT_SECRET"
VENDOR_BASE_URL = "FLEX_INTEGRATION_BASE_URL"


def _str_list(value: object) -> list[str]:
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v) for v in value]  # type: ignore[union-attr]


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "FLEX_POLLER_",
) -> PollerConfig:
    """Load poller configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (FLEX_POLLER_*, then FLEX_INTEGRATION_*)
        2. TOML config file
        3. Defaults from PollerConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = PollerConfig()

    # ── Poller section ─────────────────────────────────────
    poller = raw.get("poller", {})
    if (v := poller.get("poll_wait")) is not None:
        cfg.poll_wait = float(v)
    if (v := poller.get("poll_idle_wait")) is not None:
        cfg.poll_idle_wait = float(v)
    if v := poller.get("event_types"):
        cfg.event_types = _str_list(v)
    if v := poller.get("per_page"):
        cfg.per_page = int(v)
    if (v := poller.get("handlers")) is not None:
        cfg.handlers = _str_list(v)
    if v := poller.get("log_level"):
        cfg.log_level = str(v)

    # ── Retry section ──────────────────────────────────────
    retry = raw.get("retry", {})
    cfg.retry = RetryConfig(
        max_backoff=float(retry.get("max_backoff", 300.0)),
        max_consecutive_failures=int(retry.get("max_consecutive_failures", 0)),
    )

    # ── Flex section ───────────────────────────────────────
    flex = raw.get("flex", {})
    if v := flex.get("client_id"):
        cfg.client_id = str(v)
    if v := flex.get("client_secret"):
        cfg.client_secret = str(v)
    if v := flex.get("base_url"):
        cfg.base_url = str(v)
    if v := flex.get("request_timeout"):
        cfg.request_timeout = float(v)

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("backend"):
        cfg.storage = StorageBackend(v)
    if v := storage.get("state_file"):
        cfg.state_file = str(v)
    if v := storage.get("db_path"):
        cfg.db_path = str(v)

    # ── Environment variable overrides (highest priority) ──
    if client_id := os.environ.get(f"{env_prefix}CLIENT_ID") or os.environ.get(VENDOR_CLIENT_ID):
        cfg.client_id = client_id
    if secret := os.environ.get(f"{env_prefix}CLIENT_SECRET") or os.environ.get(VENDOR_CLIENT_SECRET):
        cfg.client_secret = secret
    if base_url := os.environ.get(f"{env_prefix}BASE_URL") or os.environ.get(VENDOR_BASE_URL):
        cfg.base_url = base_url
    if event_types := os.environ.get(f"{env_prefix}EVENT_TYPES"):
        cfg.event_types = _str_list(event_types)
    if backend := os.environ.get(f"{env_prefix}STORAGE"):
        cfg.storage = StorageBackend(backend)
    if state_file := os.environ.get(f"{env_prefix}STATE_FILE"):
        cfg.state_file = state_file
    if db_path := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = db_path

    # Expand ~ in paths
    cfg.state_file = str(Path(cfg.state_file).expanduser())
    cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg
