"""Authentication helpers for Databricks.

This module centralizes resolution of the Databricks SDK configuration and
applies small but important normalization rules (such as sanitizing the host
URL) before the host is used to build API and Spark proxy URLs.
"""

from __future__ import annotations

import re
from typing import Callable

from databricks.sdk.core import Config

from dbmetrics.core.errors import DbMetricsError

_AZURE_ORG_RE = re.compile(r"adb-(\d+)\.\d+\.azuredatabricks\.net")
_ORG_QUERY_RE = re.compile(r"[?&]o=(\d+)")


class AuthError(DbMetricsError):
    """Raised when Databricks authentication fails."""


def _format_auth_error(message: str, profile: str | None) -> str:
    """Return a user-friendly auth error message."""
    login_match = re.search(r"databricks auth login ([^\s]+)", message)
    host = login_match.group(1) if login_match else None
    if host:
        cmd = "databricks auth login"
        if profile:
            cmd = f"{cmd} --profile {profile}"
        return (
            "Databricks authentication failed. Your refresh token is invalid.\n"
            f"Re-authenticate with:\n  $ {cmd}"
        )
    return f"Databricks authentication failed: {message}"


def _sanitize_host(host: str | None) -> str | None:
    """
    Normalize a Databricks host URL.

    - Removes query strings (e.g. '?o=123456789')
    - Removes trailing slashes
    """
    if not host:
        return host
    host = host.split("?", 1)[0]
    return host.rstrip("/")


def org_id_from_host(host: str | None) -> str | None:
    """
    Derive the workspace org id from a host URL.

    Azure hosts carry it as `adb-<org id>.<n>.azuredatabricks.net`; other
    clouds expose it as the `?o=<org id>` query parameter of workspace URLs.
    Returns None when neither form is present.
    """
    if not host:
        return None
    for rx in (_AZURE_ORG_RE, _ORG_QUERY_RE):
        match = rx.search(host)
        if match:
            return match.group(1)
    return None


def get_config(profile: str | None = None) -> Config:
    """
    Resolve and return a Databricks SDK Config.

    If a profile is provided, it is resolved using the Databricks unified
    authentication configuration (~/.databrickscfg or environment variables).
    The host URL is sanitized before it is returned.
    """
    try:
        cfg = Config(profile=profile) if profile else Config()
    except ValueError as exc:
        raise AuthError(_format_auth_error(str(exc), profile)) from exc
    cfg.host = _sanitize_host(cfg.host)
    return cfg


def header_factory(cfg: Config) -> Callable[[], dict[str, str]]:
    """
    Return a callable producing fresh auth headers for each request.

    The SDK refreshes OAuth tokens on demand, so headers are resolved per
    request rather than once.
    """

    def _headers() -> dict[str, str]:
        try:
            return dict(cfg.authenticate())
        except ValueError as exc:
            raise AuthError(_format_auth_error(str(exc), cfg.profile)) from exc

    return _headers
