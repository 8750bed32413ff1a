"""Shared test configuration for reqbus tests."""

import pytest

from reqbus.core.logging import setup_logging


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom settings."""
    config.option.asyncio_mode = "auto"

    # Route structlog through the same processors the library ships with.
    setup_logging(json_logs=False, log_level_name="DEBUG")
