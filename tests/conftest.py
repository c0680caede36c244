"""
Pytest configuration and shared fixtures for commander tests

Every test runs against a fresh global configuration in strict mode, with the
error sink replaced by a recorder so reports can be asserted on.
"""

import pytest

from commandant import CommanderConfig, configure


class RecordingErrorSink:
    """Error handler that keeps every report."""

    def __init__(self):
        self.reports: list[tuple[BaseException, dict]] = []

    def __call__(self, error, context):
        self.reports.append((error, dict(context)))

    @property
    def errors(self) -> list[BaseException]:
        return [error for error, _ in self.reports]

    def contexts_for(self, error_type: type) -> list[dict]:
        return [context for error, context in self.reports if isinstance(error, error_type)]


# ============================================
# AUTO-USE FIXTURES
# ============================================


@pytest.fixture
def error_sink():
    return RecordingErrorSink()


@pytest.fixture(autouse=True)
def commander_config(error_sink):
    """
    Install a strict configuration for the duration of each test.

    Strict mode re-raises notification failures, so notification bugs in the
    commanders under test surface as test failures.
    """
    config = CommanderConfig(error_handler=error_sink, strict=True)
    configure(config)

    yield config

    configure(None)


@pytest.fixture
def lenient_config(error_sink):
    """Configuration with strict mode off: notification failures are swallowed."""
    config = CommanderConfig(error_handler=error_sink, strict=False)
    configure(config)
    return config


# ============================================
# DATA FIXTURES
# ============================================


@pytest.fixture
def entries():
    return []


@pytest.fixture
def notifications():
    return []
