"""
pytest plugin that records the Android device screen during a test run.

Enable with ``--adb-video``, ``adb_video = true`` in the ini file, or
``ADB_VIDEO=1`` in the environment; ``ADB_VIDEO=0`` switches it off again.
The recording starts once collection finishes (or, under xdist, when the
first test starts) and is saved to the output directory when any test
failed (or always with ``--adb-video-save-all``).
"""

from pathlib import Path
from typing import Optional

import pytest

from .config_loader import ConfigurationError, apply_overrides, env_toggle, load_config
from .config_models import ReporterConfig, SystemConfig
from .drivers.adb import AdbDeviceChannel
from .interfaces import DeviceChannel
from .logging_config import get_logger, setup_logging
from .models import Decision, DecisionKind, SessionState
from .session import RecordingSession

PLUGIN_NAME = "adbvideo-reporter"


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("adbvideo", "Android screen recording")
    group.addoption(
        "--adb-video",
        action="store_true",
        default=False,
        help="Record the device screen with adb during the test run"
    )
    group.addoption(
        "--adb-video-config",
        type=Path,
        default=None,
        help="YAML configuration file for the video reporter"
    )
    group.addoption(
        "--adb-video-dir",
        default=None,
        help="Directory for saved videos (default: ./videos)"
    )
    group.addoption(
        "--adb-video-save-all",
        action="store_true",
        default=False,
        help="Save the video even when every test passed"
    )
    group.addoption(
        "--adb-video-no-timestamp",
        action="store_true",
        default=False,
        help="Do not prefix video filenames with a timestamp"
    )
    group.addoption(
        "--adb-video-logs",
        action="store_true",
        default=False,
        help="Show verbose video reporter logs"
    )
    parser.addini("adb_video", type="bool", default=False, help="Enable the adb video reporter")


def build_config(config: pytest.Config) -> SystemConfig:
    """
    Resolve reporter configuration from file, environment and command line.

    Raises:
        ConfigurationError: If the resulting configuration is invalid
    """
    system_config = load_config(config.getoption("adb_video_config"))
    return apply_overrides(
        system_config,
        reporter={
            "output_dir": config.getoption("adb_video_dir"),
            "save_all_videos": True if config.getoption("adb_video_save_all") else None,
            "timestamp": False if config.getoption("adb_video_no_timestamp") else None,
            "logs": True if config.getoption("adb_video_logs") else None,
        },
    )


def is_enabled(config: pytest.Config) -> bool:
    """ADB_VIDEO=0 turns recording off even when the command line asks for it."""
    toggle = env_toggle()
    if toggle is not None:
        return toggle
    return bool(config.getoption("adb_video") or config.getini("adb_video"))


def pytest_configure(config: pytest.Config) -> None:
    if not is_enabled(config):
        return

    # One device, one recording: xdist workers leave it to the controller
    if hasattr(config, "workerinput"):
        return

    try:
        system_config = build_config(config)
    except ConfigurationError as e:
        raise pytest.UsageError(str(e)) from e

    setup_logging(system_config.logging, verbose=system_config.reporter.logs)
    plugin = VideoReporterPlugin(system_config.reporter, AdbDeviceChannel(system_config.device))
    config.pluginmanager.register(plugin, PLUGIN_NAME)


class VideoReporterPlugin:
    """Drives one RecordingSession across a pytest run."""

    def __init__(self, config: ReporterConfig, channel: DeviceChannel):
        """
        Initialize the plugin.

        Args:
            config: Reporter configuration snapshot
            channel: Device channel the recording session talks to
        """
        self.session = RecordingSession(config, channel)
        self.logger = get_logger(__name__)

    @property
    def decision(self) -> Optional[Decision]:
        return self.session.decision

    @pytest.hookimpl(trylast=True)
    def pytest_collection_finish(self, session: pytest.Session) -> None:
        spec_path = session.items[0].path if session.items else None
        self.session.start(spec_path)

    def pytest_runtest_logstart(self, nodeid: str, location) -> None:
        # xdist controllers never finish collection, they only see worker reports
        if self.session.state == SessionState.IDLE:
            self.session.start(location[0] if location else nodeid)

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:
        if report.failed:
            self.logger.debug(f"Test failed: {report.nodeid} ({report.when})")
            self.session.mark_failure()

    @pytest.hookimpl(trylast=True)
    def pytest_sessionfinish(self, session: pytest.Session, exitstatus: int) -> None:
        self.session.finish()

    def pytest_terminal_summary(self, terminalreporter) -> None:
        decision = self.session.decision
        if decision is None or decision.kind == DecisionKind.SKIPPED:
            return

        terminalreporter.write_sep("-", "adb video")
        if decision.kind == DecisionKind.DISCARDED:
            terminalreporter.write_line("video discarded (all tests passed)")
        elif decision.artifact_saved:
            terminalreporter.write_line(f"video saved: {decision.path}")
        else:
            terminalreporter.write_line(f"video could not be saved to {decision.path}", red=True)

        for result in decision.failed_steps:
            terminalreporter.write_line(f"  {result.step.value} failed: {result.error}", yellow=True)

    def pytest_unconfigure(self, config: pytest.Config) -> None:
        # Interrupted runs may never reach sessionfinish
        self.session.abandon()
