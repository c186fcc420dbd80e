"""Process-wide settings for recordproxy.

``RecordProxySettings`` holds the values a host application usually sets
once per process (where database files live, log level). Per-proxy values
(database name, object store, version) live in
:class:`recordproxy.proxy.config.ProxyConfig`.

Features:
    - **env_prefix:** ``RECORDPROXY_DATA_DIR``, ``RECORDPROXY_LOG_LEVEL``, ...
    - **.env file support:** Automatic loading via pydantic-settings
    - **Extra ignore:** Unknown env vars don't cause startup failures

Examples:
    >>> from recordproxy.core.settings import RecordProxySettings
    >>> settings = RecordProxySettings(data_dir="/tmp/stores")
    >>> settings.data_dir
    PosixPath('/tmp/stores')
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RecordProxySettings(BaseSettings):
    """Settings shared by every proxy in the process.

    Fields
    ──────
    data_dir     : Directory holding one ``<db_name>.sqlite3`` file per database
    debug        : Enable debug mode (verbose logging)
    log_level    : Structlog log level
    """

    model_config = SettingsConfigDict(
        env_prefix="RECORDPROXY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    debug: bool = False
    log_level: str = "INFO"

    # ── Storage ──────────────────────────────────────────────────
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".recordproxy",
        description="Directory for local database files",
    )


def get_settings() -> RecordProxySettings:
    """Build settings from the current environment."""
    return RecordProxySettings()


__all__ = ["RecordProxySettings", "get_settings"]
