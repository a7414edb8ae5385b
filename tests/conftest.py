"""
Central pytest configuration and fixtures.

This module provides the fixtures shared across the unit and integration
tests: reporter configuration pointing at temporary directories, the mock
ADB channel, and a factory for recording sessions with a fixed clock.
"""

import logging
from collections.abc import Callable, Generator
from datetime import datetime, timezone
from pathlib import Path

import pytest

from adbvideo.config_models import ReporterConfig
from adbvideo.drivers.adb import MockAdbDeviceChannel
from adbvideo.logging_config import ROOT_LOGGER, LogCapture
from adbvideo.session import RecordingSession

FIXED_INSTANT = datetime(2024, 3, 5, 14, 7, 9, 123456, tzinfo=timezone.utc)


# ================================================================================
# Configuration fixtures
# ================================================================================

@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Output directory that does not exist yet."""
    return tmp_path / "videos"


@pytest.fixture
def make_config(output_dir: Path) -> Callable[..., ReporterConfig]:
    """
    Build reporter configurations rooted at the temporary output directory.

    Timestamps are off unless a test asks for them, so filenames are exact.
    """
    def _make(**overrides) -> ReporterConfig:
        values = {"output_dir": output_dir, "timestamp": False}
        values.update(overrides)
        return ReporterConfig(**values)

    return _make


# ================================================================================
# Device and session fixtures
# ================================================================================

@pytest.fixture
def mock_channel() -> MockAdbDeviceChannel:
    """Provide a mock ADB channel that records calls."""
    return MockAdbDeviceChannel()


@pytest.fixture
def make_session(
    make_config: Callable[..., ReporterConfig],
    mock_channel: MockAdbDeviceChannel
) -> Callable[..., RecordingSession]:
    """Build recording sessions wired to the mock channel and a fixed clock."""
    def _make(**overrides) -> RecordingSession:
        return RecordingSession(make_config(**overrides), mock_channel, clock=lambda: FIXED_INSTANT)

    return _make


@pytest.fixture
def log_capture() -> Generator[LogCapture, None, None]:
    """Capture everything logged under the adbvideo logger."""
    with LogCapture() as capture:
        yield capture


@pytest.fixture
def restore_reporter_logger() -> Generator[logging.Logger, None, None]:
    """Undo handler and level changes made by setup_logging."""
    logger = logging.getLogger(ROOT_LOGGER)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate


# ================================================================================
# Pytest hooks
# ================================================================================

def pytest_collection_modifyitems(config: pytest.Config, items) -> None:
    """Add markers based on the test directory."""
    for item in items:
        if "integration" in str(item.path):
            item.add_marker(pytest.mark.integration)
        elif "unit" in str(item.path):
            item.add_marker(pytest.mark.unit)
