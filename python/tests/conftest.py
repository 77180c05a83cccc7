"""
Pytest configuration and fixtures for Scout tests.

Specialized fixtures are organized in the fixtures/ directory:
- fixtures.workspace: temporary workspaces, fake extractor, index builders
- fixtures.watcher: fake clock and fake watchdog observer
"""

import logging

import pytest

from scout.config import IndexOptions, Settings

# Load fixture modules
pytest_plugins = [
    "tests.fixtures.workspace",
    "tests.fixtures.watcher",
]


@pytest.fixture
def fast_options():
    """IndexOptions without inter-batch pauses."""
    return IndexOptions(batch_delay=0)


@pytest.fixture
def fast_settings():
    """Settings without inter-batch pauses, independent of SCOUT_* env vars."""
    return Settings(batch_delay=0, debounce_seconds=2.0)


@pytest.fixture
def clean_scout_logger():
    """Remove any handlers a test installs on the "scout" logger."""
    logger = logging.getLogger("scout")
    before = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in list(logger.handlers):
        if handler not in before:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
