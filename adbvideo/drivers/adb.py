"""ADB command channel for Android devices."""

import os
import signal
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from ..config_models import DeviceConfig
from ..interfaces import (
    CommandError,
    DeviceChannel,
    RecorderHandle,
    SpawnError,
    StopError,
)
from ..logging_config import get_logger

REAP_TIMEOUT = 5.0


class AdbRecorderHandle(RecorderHandle):
    """
    A detached ``adb shell screenrecord`` process.

    The process leads its own process group, so stopping it signals the
    whole group rather than just the local ``adb`` client.
    """

    def __init__(self, process: subprocess.Popen, config: DeviceConfig):
        self._process = process
        self._config = config
        self._stopped = False
        self._logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid

    @property
    def is_running(self) -> bool:
        return not self._stopped and self._process.poll() is None

    def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True

        pid = self._process.pid
        if pid is None:
            raise StopError("Cannot stop screen record process: pid is unknown")

        try:
            os.killpg(pid, self._config.signal_number)
        except ProcessLookupError:
            self._logger.debug(f"Screen record process group {pid} already exited")
            return
        except OSError as e:
            raise StopError(f"Failed to signal process group {pid}: {e}") from e

        # Give screenrecord a moment to finalize the file on the device
        try:
            self._process.wait(timeout=self._config.stop_grace_period)
            return
        except subprocess.TimeoutExpired:
            self._logger.debug(
                f"Screen record process {pid} still running after "
                f"{self._config.stop_grace_period}s, killing it"
            )

        # Force it down and reap it so no zombie outlives the session
        try:
            os.killpg(pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        except OSError as e:
            raise StopError(f"Failed to kill process group {pid}: {e}") from e
        try:
            self._process.wait(timeout=REAP_TIMEOUT)
        except subprocess.TimeoutExpired:
            self._logger.warning(f"Screen record process {pid} did not exit after SIGKILL")


class AdbDeviceChannel(DeviceChannel):
    """Device channel that shells out to the ``adb`` client."""

    def __init__(self, config: Optional[DeviceConfig] = None):
        """
        Initialize the ADB channel.

        Args:
            config: Device configuration (uses defaults if None)
        """
        self.config = config or DeviceConfig()
        self._logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    def _command(self, *args: str) -> List[str]:
        return [self.config.adb_path, *args]

    def start_screen_record(self, remote_path: str) -> RecorderHandle:
        argv = self._command("shell", "screenrecord", remote_path)
        self._logger.debug(f"Spawning: {' '.join(argv)}")
        try:
            process = subprocess.Popen(
                argv,
                start_new_session=True,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise SpawnError(f"Failed to start {argv[0]}: {e}") from e
        return AdbRecorderHandle(process, self.config)

    def pull(self, remote_path: str, local_path: Path) -> None:
        self._run(self._command("pull", remote_path, str(local_path)), quiet=False)

    def remove(self, remote_path: str) -> None:
        self._run(self._command("shell", "rm", "-f", remote_path), quiet=True)

    def _run(self, argv: List[str], quiet: bool) -> None:
        """Run a blocking adb command, raising CommandError on any failure."""
        self._logger.debug(f"Running: {' '.join(argv)}")
        output = subprocess.DEVNULL if quiet else None
        try:
            subprocess.run(
                argv,
                check=True,
                stdin=subprocess.DEVNULL,
                stdout=output,
                stderr=output,
                timeout=self.config.command_timeout,
            )
        except subprocess.CalledProcessError as e:
            raise CommandError(f"{' '.join(argv)} exited with status {e.returncode}") from e
        except subprocess.TimeoutExpired as e:
            raise CommandError(f"{' '.join(argv)} timed out after {e.timeout}s") from e
        except OSError as e:
            raise CommandError(f"Failed to run {argv[0]}: {e}") from e


class MockRecorderHandle(RecorderHandle):
    """Mock recorder handle for testing without a device."""

    def __init__(self, channel: "MockAdbDeviceChannel", pid: int):
        self._channel = channel
        self._pid = pid
        self._running = True

    @property
    def pid(self) -> Optional[int]:
        return self._pid

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        self._channel.calls.append(("stop", self._pid))
        if self._channel.fail_stop:
            raise StopError("Mock stop failure")
        self._running = False


class MockAdbDeviceChannel(DeviceChannel):
    """
    Mock ADB channel that records every call in order.

    Set ``fail_spawn``, ``fail_stop``, ``fail_pull`` or ``fail_remove`` to
    make the matching operation raise. A successful pull writes
    ``video_bytes`` to the local path.
    """

    def __init__(self, video_bytes: bytes = b"mock-mp4"):
        self.video_bytes = video_bytes
        self.calls: List[Tuple] = []
        self.handles: List[MockRecorderHandle] = []
        self.remote_files: dict = {}
        self.fail_spawn = False
        self.fail_stop = False
        self.fail_pull = False
        self.fail_remove = False
        self._next_pid = 4242
        self._logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    def start_screen_record(self, remote_path: str) -> RecorderHandle:
        self.calls.append(("start_screen_record", remote_path))
        if self.fail_spawn:
            raise SpawnError("Mock spawn failure")
        handle = MockRecorderHandle(self, self._next_pid)
        self._next_pid += 1
        self.handles.append(handle)
        self.remote_files[remote_path] = self.video_bytes
        self._logger.debug(f"Mock screen record started into {remote_path}")
        return handle

    def pull(self, remote_path: str, local_path: Path) -> None:
        self.calls.append(("pull", remote_path, Path(local_path)))
        if self.fail_pull:
            raise CommandError("Mock pull failure")
        if remote_path not in self.remote_files:
            raise CommandError(f"remote object '{remote_path}' does not exist")
        Path(local_path).write_bytes(self.remote_files[remote_path])

    def remove(self, remote_path: str) -> None:
        self.calls.append(("remove", remote_path))
        if self.fail_remove:
            raise CommandError("Mock remove failure")
        self.remote_files.pop(remote_path, None)

    def call_names(self) -> List[str]:
        """Return the names of recorded calls in order."""
        return [call[0] for call in self.calls]

    def count(self, name: str) -> int:
        """Return how many times the named operation was called."""
        return self.call_names().count(name)
