"""
Screen recording session for a single test run.

A session starts a detached recorder on the device when the run begins,
remembers whether any test failed, and when the run ends decides whether
to keep the video. Stopping the recorder and removing the temporary file
from the device are always attempted, whatever else fails.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Union

from .config_models import ReporterConfig
from .interfaces import DeviceChannel, RecorderHandle
from .logging_config import get_logger
from .models import Decision, SessionState, Step, StepResult
from .naming import UNKNOWN_SPEC_LABEL, build_video_filename, derive_spec_label

REMOTE_TEMP_PATH = "/sdcard/adbvideo-screen-record.mp4"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecordingSession:
    """Manages one screen recording from test run start to finish."""

    def __init__(
        self,
        config: ReporterConfig,
        channel: DeviceChannel,
        logger: Optional[logging.Logger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the recording session.

        Args:
            config: Reporter configuration snapshot
            channel: Device command channel used for all remote operations
            logger: Logger for diagnostics (defaults to this module's logger)
            clock: Returns the current instant, used for filename timestamps
        """
        self.config = config
        self.channel = channel
        self.logger = logger or get_logger(__name__)
        self._clock = clock or _utc_now

        self.state = SessionState.IDLE
        self.has_failed_tests = False
        self.spec_label = UNKNOWN_SPEC_LABEL
        self.handle: Optional[RecorderHandle] = None
        self.spawn_result: Optional[StepResult] = None
        self.decision: Optional[Decision] = None

        if self.config.disabled:
            self.logger.info("ADB video reporter is disabled")
        else:
            self._ensure_output_dir()

    @property
    def disabled(self) -> bool:
        return self.config.disabled

    @property
    def is_recording(self) -> bool:
        """True when the session is recording and holds a live recorder."""
        return self.state == SessionState.RECORDING and self.handle is not None

    def start(self, spec_path: Optional[Union[str, Path]] = None) -> None:
        """
        Start recording the device screen.

        Args:
            spec_path: First spec file of the run, used to name the video
        """
        if self.disabled:
            self.logger.debug("Skipping video recording - reporter is disabled")
            return

        if self.state != SessionState.IDLE:
            self.logger.warning(f"Cannot start recording from state {self.state.value}")
            return

        self.spec_label = derive_spec_label(spec_path)
        self._ensure_output_dir()

        self.logger.info("Starting screen record...")
        self.spawn_result = self._run_step(Step.SPAWN, self._spawn_recorder)
        if not self.spawn_result.ok:
            self.logger.error(f"Failed to start screen record: {self.spawn_result.error}")

        self.state = SessionState.RECORDING

    def mark_failure(self) -> None:
        """Record that a test failed. Idempotent."""
        if self.disabled:
            return
        self.has_failed_tests = True

    def finish(self) -> Decision:
        """
        Stop recording and save or discard the video.

        Returns:
            SAVED with the destination path when the video was kept,
            DISCARDED when it was thrown away, SKIPPED when disabled
        """
        if self.decision is not None:
            self.logger.warning("Recording session already finished")
            return self.decision

        if self.disabled:
            self.logger.debug("Skipping video handling - reporter is disabled")
            return self._close(Decision.skipped())

        should_save = self.config.save_all_videos or self.has_failed_tests
        destination: Optional[Path] = None
        if should_save:
            filename = build_video_filename(self.spec_label, self.config.timestamp, self._clock())
            destination = self.config.output_dir / filename

        steps: List[StepResult] = [self._run_step(Step.STOP, self._stop_recorder)]

        if destination is not None:
            steps.extend(self._save_video(destination))
        else:
            self.logger.info("Video discarded")

        steps.append(self._cleanup_temp_file())

        if destination is not None:
            return self._close(Decision.saved(destination, steps))
        return self._close(Decision.discarded(steps))

    def abandon(self) -> Decision:
        """
        Tear down a session whose run ended without ``finish()``.

        The recorder is stopped and the temporary file removed, nothing is saved.
        """
        if self.decision is not None:
            return self.decision

        if self.disabled or self.state == SessionState.IDLE:
            return self._close(Decision.skipped())

        self.logger.warning("Test run ended without finishing the recording, discarding video")
        steps = [self._run_step(Step.STOP, self._stop_recorder), self._cleanup_temp_file()]
        return self._close(Decision.discarded(steps))

    def _close(self, decision: Decision) -> Decision:
        self.state = SessionState.STOPPED
        self.decision = decision
        return decision

    def _run_step(self, step: Step, operation: Callable[[], None]) -> StepResult:
        """Run one step, turning any error it raises into a failed result."""
        try:
            operation()
        except Exception as e:
            return StepResult.failure(step, e)
        return StepResult.success(step)

    def _spawn_recorder(self) -> None:
        self.handle = self.channel.start_screen_record(REMOTE_TEMP_PATH)
        self.logger.debug(f"Screen record running with pid {self.handle.pid}")

    def _stop_recorder(self) -> None:
        handle, self.handle = self.handle, None
        if handle is None or not handle.is_running:
            return
        self.logger.info("Stopping screen record...")
        handle.stop()

    def _save_video(self, destination: Path) -> List[StepResult]:
        mkdir = self._run_step(Step.CREATE_DIR, lambda: self._make_output_dir(destination.parent))
        if not mkdir.ok:
            self.logger.error(f"Failed to create output directory: {mkdir.error}")
            return [mkdir, StepResult.skip(Step.PULL, "output directory unavailable")]

        pull = self._run_step(Step.PULL, lambda: self.channel.pull(REMOTE_TEMP_PATH, destination))
        if pull.ok:
            self.logger.info(f"Video saved as {destination}")
        else:
            self.logger.error(f"Failed to pull video: {pull.error}")
        return [mkdir, pull]

    def _cleanup_temp_file(self) -> StepResult:
        result = self._run_step(Step.CLEANUP, lambda: self.channel.remove(REMOTE_TEMP_PATH))
        if not result.ok:
            self.logger.warning(f"Failed to cleanup temp file: {result.error}")
        return result

    def _ensure_output_dir(self) -> None:
        try:
            self._make_output_dir(self.config.output_dir)
        except OSError as e:
            self.logger.warning(f"Failed to create output directory: {e}")

    def _make_output_dir(self, directory: Path) -> None:
        if not directory.exists():
            self.logger.info(f"Creating output directory: {directory}")
            directory.mkdir(parents=True, exist_ok=True)
