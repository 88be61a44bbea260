"""Shared fixtures for notice intake tests."""

import json

import pytest


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "smoke: mark test as smoke test (fast, critical path - included in CI)"
    )


DEFAULT_BACKTRACE = [
    {"file": "[PROJECT_ROOT]/app/models/order.rb", "method": "block_2_in_total", "number": "42"},
    {"file": "[PROJECT_ROOT]/app/controllers/orders_controller.rb", "method": "show", "number": "10"},
]


def build_notice_xml(
    version="2.4",
    params=None,
    error_class="RuntimeError",
    message="RuntimeError: boom",
    backtrace=None,
    environment_name="production",
    session_log=None,
    include_notifier=True,
    include_error=True,
):
    """Build an Airbrake v2.4 notice document."""
    if params is None:
        params = {"project": "shop", "tracker": "Bug", "api_key": "secret"}
    if backtrace is None:
        backtrace = DEFAULT_BACKTRACE

    version_attr = f' version="{version}"' if version is not None else ""
    parts = [f"<notice{version_attr}>"]

    if params is not False:
        parts.append(f"<api-key>{json.dumps(params)}</api-key>")

    if include_notifier:
        parts.append(
            "<notifier><name>Airbrake Notifier</name><version>3.1.6</version>"
            "<url>http://airbrake.io</url></notifier>"
        )

    if include_error:
        parts.append("<error>")
        if error_class is not None:
            parts.append(f"<class>{error_class}</class>")
        if message is not None:
            parts.append(f"<message>{message}</message>")
        if backtrace:
            parts.append("<backtrace>")
            for frame in backtrace:
                attrs = " ".join(f'{k}="{v}"' for k, v in frame.items())
                parts.append(f"<line {attrs}/>")
            parts.append("</backtrace>")
        parts.append("</error>")

    parts.append("<request><url>http://shop.example.com/orders/1</url>"
                 "<component>orders</component><action>show</action>")
    parts.append('<params><var key="id">1</var><var key="format">html</var></params>')
    parts.append('<session><var key="user-id">7</var>')
    if session_log is not None:
        log_text = session_log if isinstance(session_log, str) else json.dumps(session_log)
        escaped = log_text.replace("&", "&amp;").replace("<", "&lt;")
        parts.append(f'<var key="log">{escaped}</var>')
    parts.append("</session></request>")

    if environment_name is not None:
        parts.append(
            "<server-environment><project-root>/srv/shop</project-root>"
            f"<environment-name>{environment_name}</environment-name></server-environment>"
        )

    parts.append("</notice>")
    return "".join(parts)


@pytest.fixture
def notice_xml():
    """Factory fixture returning notice documents."""
    return build_notice_xml


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set up test environment variables and reset cached settings."""
    from airbrake_intake.config import get_settings

    monkeypatch.setenv("AIRBRAKE_REOPEN_REGEXP", "stag.*")
    monkeypatch.setenv("AIRBRAKE_LOG_LEVEL", "DEBUG")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def issue_store():
    """A fresh in-memory issue store."""
    from airbrake_intake.services.issue_store import InMemoryIssueStore

    return InMemoryIssueStore()
