"""Application context management for the CLI."""

from __future__ import annotations

from dataclasses import dataclass

from databricks.sdk.core import Config

from dbmetrics.cli.common.exits import die, exit_from_exc
from dbmetrics.core.adapters.spark_api import SparkApiFactory
from dbmetrics.core.adapters.workspace_api import WorkspaceApi
from dbmetrics.core.auth import AuthError, get_config, header_factory, org_id_from_host
from dbmetrics.core.errors import ConfigError
from dbmetrics.core.settings import Settings
from dbmetrics.core.spark import SparkService
from dbmetrics.core.transport import HttpTransport
from dbmetrics.core.workspace import WorkspaceService


@dataclass
class AppContext:
    """Application context holding resolved configuration and services."""

    profile: str | None
    config: Config
    settings: Settings
    workspace: WorkspaceService
    spark: SparkService | None

    def require_spark(self) -> SparkService:
        """Return the Spark service or exit if it could not be configured."""
        if self.spark is None:
            die(
                "Spark access needs a workspace org id. "
                "Pass --org-id or set DBMETRICS_ORG_ID.",
                code=2,
            )
        return self.spark


def build_context(profile: str | None, **overrides) -> AppContext:
    """
    Build and return the application context.

    Args:
        profile: Optional Databricks profile name to use for authentication.
        **overrides: Settings overrides from CLI options; None means unset.

    Returns:
        AppContext with workspace service and, when an org id is known,
        Spark service.
    """
    try:
        cfg = get_config(profile)
        settings = Settings.from_env(**overrides)
    except (AuthError, ConfigError) as exc:
        exit_from_exc(exc)
    if not cfg.host:
        die("No Databricks host configured.", code=1)

    headers = header_factory(cfg)
    workspace = WorkspaceService(
        WorkspaceApi(HttpTransport(cfg.host, headers)),
        settings.page_limit,
    )

    org_id = settings.org_id or org_id_from_host(cfg.host)
    spark = None
    if org_id:
        factory = SparkApiFactory(
            endpoint=settings.spark_endpoint or cfg.host,
            org_id=org_id,
            port=settings.spark_ui_port,
            headers=headers,
        )
        spark = SparkService(factory)

    return AppContext(
        profile=profile,
        config=cfg,
        settings=settings,
        workspace=workspace,
        spark=spark,
    )
