import pytest

from dbmetrics.core.auth import _format_auth_error, _sanitize_host, org_id_from_host


@pytest.mark.parametrize(
    "host, expected",
    [
        ("https://adb-123.4.azuredatabricks.net/?o=123", "https://adb-123.4.azuredatabricks.net"),
        ("https://dbc-1.cloud.databricks.com/", "https://dbc-1.cloud.databricks.com"),
        (None, None),
        ("", ""),
    ],
)
def test_sanitize_host(host, expected):
    assert _sanitize_host(host) == expected


@pytest.mark.parametrize(
    "host, expected",
    [
        ("https://adb-4429673989716691.11.azuredatabricks.net", "4429673989716691"),
        ("https://dbc-1.cloud.databricks.com/?o=987", "987"),
        ("https://dbc-1.cloud.databricks.com", None),
        (None, None),
    ],
)
def test_org_id_from_host(host, expected):
    assert org_id_from_host(host) == expected


def test_format_auth_error_suggests_login_with_profile():
    msg = _format_auth_error(
        "invalid refresh token. Run databricks auth login https://host", "dev"
    )

    assert "databricks auth login --profile dev" in msg


def test_format_auth_error_passes_other_messages_through():
    assert _format_auth_error("no host", None) == "Databricks authentication failed: no host"
