"""Per-proxy configuration.

Validated synchronously when a proxy is constructed; a proxy with a bad
configuration is never created.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from recordproxy.core.errors import InvalidConfigError, MissingConfigError

_REQUIRED_STRINGS = ("db_name", "object_store_name")


class ProxyConfig(BaseModel):
    """Options recognized by :class:`~recordproxy.proxy.local.LocalStoreProxy`.

    Attributes:
        db_name: Database name; one SQLite file per name.
        object_store_name: Collection holding this proxy's records.
        db_version: Database version. Raising it drops and recreates the
            collection.
        is_hierarchical: Force the data shape instead of inferring it.
        data_dir: Directory for database files (defaults to settings).
    """

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    db_name: str
    object_store_name: str
    db_version: int = Field(default=1, ge=0)
    is_hierarchical: bool | None = None
    data_dir: Path | None = None

    @field_validator(*_REQUIRED_STRINGS)
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must be a non-empty string")
        return value

    @classmethod
    def build(cls, **options: Any) -> ProxyConfig:
        """Validate ``options`` and raise typed config errors on failure.

        Raises:
            MissingConfigError: If ``db_name`` or ``object_store_name`` is absent.
            InvalidConfigError: If any option has the wrong type or value.
        """
        for key in _REQUIRED_STRINGS:
            if options.get(key) is None:
                raise MissingConfigError(key, f"The {key} string has not been defined.")
        if isinstance(options.get("data_dir"), str):
            options["data_dir"] = Path(options["data_dir"])

        try:
            return cls(**options)
        except ValidationError as e:
            error = e.errors()[0]
            loc = error["loc"]
            key = str(loc[0]) if loc else "config"
            raise InvalidConfigError(
                key,
                options.get(key),
                f"Invalid configuration for {key}: {error['msg']}",
            ) from e


__all__ = ["ProxyConfig"]
