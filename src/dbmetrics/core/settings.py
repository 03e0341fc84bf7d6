"""Runtime settings for metrics collection.

Values come from explicit overrides (CLI options) first, then environment
variables, then defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dbmetrics.core.errors import ConfigError

DEFAULT_PAGE_LIMIT = 25
DEFAULT_SPARK_UI_PORT = 40001


@dataclass(frozen=True)
class Settings:
    """
    Collection settings.

    Attributes:
        page_limit: Page size used for every paginated workspace call.
        spark_endpoint: Base URL of the Spark driver proxy (usually the
                        workspace host).
        spark_ui_port: Port of the Spark UI on the cluster driver.
        org_id: Workspace org id used in Spark proxy URLs.
        max_parallel: Number of clusters fetched concurrently during a scrape.
    """

    page_limit: int = DEFAULT_PAGE_LIMIT
    spark_endpoint: str | None = None
    spark_ui_port: int = DEFAULT_SPARK_UI_PORT
    org_id: str | None = None
    max_parallel: int = 1

    _PAGE_LIMIT_ENV = "DBMETRICS_PAGE_LIMIT"
    _SPARK_ENDPOINT_ENV = "DBMETRICS_SPARK_ENDPOINT"
    _SPARK_UI_PORT_ENV = "DBMETRICS_SPARK_UI_PORT"
    _ORG_ID_ENV = "DBMETRICS_ORG_ID"
    _MAX_PARALLEL_ENV = "DBMETRICS_MAX_PARALLEL"

    def __post_init__(self) -> None:
        if self.page_limit < 1:
            raise ConfigError("page_limit must be >= 1")
        if self.max_parallel < 1:
            raise ConfigError("max_parallel must be >= 1")
        if not 0 < self.spark_ui_port < 65536:
            raise ConfigError(f"spark_ui_port out of range: {self.spark_ui_port}")

    @classmethod
    def from_env(
        cls,
        *,
        page_limit: int | None = None,
        spark_endpoint: str | None = None,
        spark_ui_port: int | None = None,
        org_id: str | None = None,
        max_parallel: int | None = None,
    ) -> Settings:
        """Build settings from overrides, falling back to DBMETRICS_* env vars."""
        if page_limit is None:
            page_limit = _env_int(cls._PAGE_LIMIT_ENV, DEFAULT_PAGE_LIMIT)
        if spark_ui_port is None:
            spark_ui_port = _env_int(cls._SPARK_UI_PORT_ENV, DEFAULT_SPARK_UI_PORT)
        if max_parallel is None:
            max_parallel = _env_int(cls._MAX_PARALLEL_ENV, 1)
        return cls(
            page_limit=page_limit,
            spark_endpoint=spark_endpoint or os.getenv(cls._SPARK_ENDPOINT_ENV) or None,
            spark_ui_port=spark_ui_port,
            org_id=org_id or os.getenv(cls._ORG_ID_ENV) or None,
            max_parallel=max_parallel,
        )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
