"""Configuration settings for the deep-link SDK."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_BASE_URL = "https://phantom.app/ul/v1"


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() == "true"


@dataclass
class Settings:
    """SDK settings, read from the environment unless given explicitly."""

    base_url: str = field(default_factory=lambda: os.getenv("PHANTOM_BASE_URL", DEFAULT_BASE_URL))
    cluster: str = field(default_factory=lambda: os.getenv("PHANTOM_CLUSTER", "devnet"))
    app_url: str = field(default_factory=lambda: os.getenv("PHANTOM_APP_URL", "https://phantom.app"))
    redirect_scheme: str = field(
        default_factory=lambda: os.getenv("PHANTOM_REDIRECT_SCHEME", "phantomtestapp")
    )
    redirect_path: str = field(
        default_factory=lambda: os.getenv("PHANTOM_REDIRECT_PATH", "onPhantomConnected")
    )
    # e.g. "http://127.0.0.1:10000" when redirects land on the local callback server
    redirect_base: str | None = field(default_factory=lambda: os.getenv("PHANTOM_REDIRECT_BASE"))
    session_db_url: str | None = field(
        default_factory=lambda: os.getenv("PHANTOM_SESSION_DB_URL")
    )
    rpc_url: str | None = field(default_factory=lambda: os.getenv("PHANTOM_RPC_URL"))
    launch_url: str | None = field(default_factory=lambda: os.getenv("PHANTOM_LAUNCH_URL"))
    dev_mode: bool = field(default_factory=lambda: _env_flag("SDK_DEV_MODE"))
    host: str = field(default_factory=lambda: os.getenv("SDK_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("SDK_PORT", "10000")))
