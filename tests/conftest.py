"""Pytest configuration and shared fixtures for all tests."""

import pytest


@pytest.fixture(autouse=True)
def disable_sentry_for_tests(monkeypatch):
    """Disable Sentry telemetry for all tests.

    This fixture runs automatically for every test to prevent Sentry events
    from being sent during test runs. Tests that specifically need to test
    Sentry functionality should set SENTRY_DSN themselves.
    """
    monkeypatch.setenv("TELEMETRY", "false")
    monkeypatch.delenv("SENTRY_DSN", raising=False)
