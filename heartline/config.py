"""
heartline.config — YAML Configuration Loader
=============================================

Reads ``config.yaml`` for deployment settings (community identity, API port,
platform account, allocation model).  Secrets and connection strings
(``DATABASE_URL``, ``JWT_SECRET``) come from the environment instead.

Usage::

    from heartline.config import load_config

    cfg = load_config()                    # reads ./config.yaml by default
    print(cfg.platform_account_ref)        # "9161499698 (Opay)"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from heartline.constants import (
    COMMUNITY_RECIPIENT_ID,
    PLATFORM_ACCOUNT_REF,
    RECIPIENT_SHARE_PERCENT,
    REQUEST_WINDOW_HOURS,
)


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class HeartlineConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    community_name: str = "The Love Culture"

    # API
    api_port: int = 8000

    # Allocation model
    platform_account_ref: str = PLATFORM_ACCOUNT_REF
    recipient_share_percent: int = RECIPIENT_SHARE_PERCENT

    # Aggregate account that can never receive a recognition transfer
    community_recipient_id: str = COMMUNITY_RECIPIENT_ID

    # Outgoing request quota window
    request_window_hours: int = REQUEST_WINDOW_HOURS


def default_config_path() -> Path:
    """``HEARTLINE_CONFIG`` if set, else ``./config.yaml``."""
    return Path(os.getenv("HEARTLINE_CONFIG", "config.yaml"))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path | None = None, *, required: bool = True) -> HeartlineConfig:
    """Read *path* and return a :class:`HeartlineConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.  Defaults to
        :func:`default_config_path`.
    required:
        When ``False`` a missing file yields the built-in defaults instead
        of raising.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist and *required* is true.
    ValueError
        If ``recipient_share_percent`` is outside 0–100.
    """
    config_path = Path(path) if path is not None else default_config_path()
    if not config_path.exists():
        if not required:
            return HeartlineConfig()
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    defaults = HeartlineConfig()
    percent = int(raw.get("recipient_share_percent", defaults.recipient_share_percent))
    if not 0 <= percent <= 100:
        raise ValueError(
            f"recipient_share_percent must be between 0 and 100, got {percent}"
        )

    return HeartlineConfig(
        community_name=raw.get("community_name", defaults.community_name),
        api_port=int(raw.get("api_port", defaults.api_port)),
        platform_account_ref=str(
            raw.get("platform_account_ref", defaults.platform_account_ref)
        ),
        recipient_share_percent=percent,
        community_recipient_id=str(
            raw.get("community_recipient_id", defaults.community_recipient_id)
        ),
        request_window_hours=int(
            raw.get("request_window_hours", defaults.request_window_hours)
        ),
    )
