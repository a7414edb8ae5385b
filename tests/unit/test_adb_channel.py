"""Unit tests for the ADB command channel with subprocess patched out."""

import signal
import subprocess
from pathlib import Path
from unittest.mock import Mock, call, patch

import pytest

from adbvideo.config_models import DeviceConfig
from adbvideo.drivers.adb import (
    REAP_TIMEOUT,
    AdbDeviceChannel,
    AdbRecorderHandle,
    MockAdbDeviceChannel,
)
from adbvideo.interfaces import CommandError, SpawnError, StopError

REMOTE = "/sdcard/adbvideo-screen-record.mp4"

# Captured before any test patches subprocess.Popen (shared module object).
_REAL_POPEN = subprocess.Popen


@pytest.fixture
def channel() -> AdbDeviceChannel:
    return AdbDeviceChannel(DeviceConfig(adb_path="/usr/bin/adb", command_timeout=30))


def make_process(pid: int = 1234, running: bool = True) -> Mock:
    process = Mock(spec=_REAL_POPEN)
    process.pid = pid
    process.poll.return_value = None if running else 0
    return process


class TestStartScreenRecord:
    """Spawning the detached recorder."""

    def test_spawns_detached_screenrecord(self, channel):
        with patch("adbvideo.drivers.adb.subprocess.Popen") as popen:
            popen.return_value = make_process()
            handle = channel.start_screen_record(REMOTE)

        args, kwargs = popen.call_args
        assert args[0] == ["/usr/bin/adb", "shell", "screenrecord", REMOTE]
        assert kwargs["start_new_session"] is True
        assert kwargs["stdout"] is subprocess.DEVNULL
        assert kwargs["stderr"] is subprocess.DEVNULL
        assert isinstance(handle, AdbRecorderHandle)
        assert handle.pid == 1234
        assert handle.is_running

    def test_missing_adb_raises_spawn_error(self, channel):
        with patch("adbvideo.drivers.adb.subprocess.Popen", side_effect=FileNotFoundError("adb")):
            with pytest.raises(SpawnError, match="Failed to start /usr/bin/adb"):
                channel.start_screen_record(REMOTE)


class TestRecorderHandle:
    """Stopping signals the whole process group."""

    def test_stop_kills_process_group(self):
        process = make_process(pid=777)
        handle = AdbRecorderHandle(process, DeviceConfig(stop_grace_period=1.5))

        with patch("adbvideo.drivers.adb.os.killpg") as killpg:
            handle.stop()

        killpg.assert_called_once_with(777, signal.SIGTERM)
        process.wait.assert_called_once_with(timeout=1.5)
        assert handle.is_running is False

    def test_stop_uses_configured_signal(self):
        handle = AdbRecorderHandle(make_process(pid=5), DeviceConfig(stop_signal="SIGINT"))

        with patch("adbvideo.drivers.adb.os.killpg") as killpg:
            handle.stop()

        killpg.assert_called_once_with(5, signal.SIGINT)

    def test_stop_is_idempotent(self):
        handle = AdbRecorderHandle(make_process(), DeviceConfig())

        with patch("adbvideo.drivers.adb.os.killpg") as killpg:
            handle.stop()
            handle.stop()

        assert killpg.call_count == 1

    def test_already_exited_group_is_not_an_error(self):
        process = make_process()
        handle = AdbRecorderHandle(process, DeviceConfig())

        with patch("adbvideo.drivers.adb.os.killpg", side_effect=ProcessLookupError()):
            handle.stop()

        process.wait.assert_not_called()

    def test_permission_error_raises_stop_error(self):
        handle = AdbRecorderHandle(make_process(pid=9), DeviceConfig())

        with patch("adbvideo.drivers.adb.os.killpg", side_effect=PermissionError("not allowed")):
            with pytest.raises(StopError, match="process group 9"):
                handle.stop()

    def test_slow_exit_is_killed_and_reaped(self):
        process = make_process(pid=31)
        process.wait.side_effect = [subprocess.TimeoutExpired(cmd="adb", timeout=2.0), -9]
        handle = AdbRecorderHandle(process, DeviceConfig(stop_grace_period=2.0))

        with patch("adbvideo.drivers.adb.os.killpg") as killpg:
            handle.stop()

        assert killpg.call_args_list == [call(31, signal.SIGTERM), call(31, signal.SIGKILL)]
        assert process.wait.call_args_list == [call(timeout=2.0), call(timeout=REAP_TIMEOUT)]

    def test_unreapable_process_is_logged_not_raised(self, log_capture):
        process = make_process(pid=32)
        process.wait.side_effect = subprocess.TimeoutExpired(cmd="adb", timeout=2.0)
        handle = AdbRecorderHandle(process, DeviceConfig())

        with patch("adbvideo.drivers.adb.os.killpg"):
            handle.stop()

        assert any("did not exit after SIGKILL" in log["message"]
                   for log in log_capture.get_logs("WARNING"))

    def test_exited_process_is_not_running(self):
        handle = AdbRecorderHandle(make_process(running=False), DeviceConfig())
        assert handle.is_running is False


class TestBlockingCommands:
    """pull and remove block and wrap subprocess failures."""

    def test_pull_command(self, channel, tmp_path):
        destination = tmp_path / "checkout.mp4"
        with patch("adbvideo.drivers.adb.subprocess.run") as run:
            channel.pull(REMOTE, destination)

        args, kwargs = run.call_args
        assert args[0] == ["/usr/bin/adb", "pull", REMOTE, str(destination)]
        assert kwargs["check"] is True
        assert kwargs["timeout"] == 30

    def test_remove_command(self, channel):
        with patch("adbvideo.drivers.adb.subprocess.run") as run:
            channel.remove(REMOTE)

        args, kwargs = run.call_args
        assert args[0] == ["/usr/bin/adb", "shell", "rm", "-f", REMOTE]
        assert kwargs["stdout"] is subprocess.DEVNULL

    def test_no_timeout_by_default(self):
        with patch("adbvideo.drivers.adb.subprocess.run") as run:
            AdbDeviceChannel().remove(REMOTE)

        assert run.call_args.kwargs["timeout"] is None
        assert run.call_args.args[0][0] == "adb"

    @pytest.mark.parametrize("error, message", [
        (subprocess.CalledProcessError(1, ["adb"]), "exited with status 1"),
        (subprocess.TimeoutExpired(["adb"], 30), "timed out after 30"),
        (FileNotFoundError("adb"), "Failed to run /usr/bin/adb"),
    ])
    def test_failures_wrapped_in_command_error(self, channel, tmp_path, error, message):
        with patch("adbvideo.drivers.adb.subprocess.run", side_effect=error):
            with pytest.raises(CommandError, match=message):
                channel.pull(REMOTE, tmp_path / "x.mp4")


class TestMockChannel:
    """The mock backend behaves like a device with one recording."""

    def test_pull_writes_recorded_bytes(self, tmp_path):
        channel = MockAdbDeviceChannel(video_bytes=b"frames")
        channel.start_screen_record(REMOTE)

        channel.pull(REMOTE, tmp_path / "out.mp4")

        assert (tmp_path / "out.mp4").read_bytes() == b"frames"

    def test_pull_after_remove_fails(self, tmp_path):
        channel = MockAdbDeviceChannel()
        channel.start_screen_record(REMOTE)
        channel.remove(REMOTE)

        with pytest.raises(CommandError, match="does not exist"):
            channel.pull(REMOTE, tmp_path / "out.mp4")

    def test_pids_are_unique(self):
        channel = MockAdbDeviceChannel()
        first = channel.start_screen_record(REMOTE)
        second = channel.start_screen_record(REMOTE)
        assert first.pid != second.pid
        assert channel.count("start_screen_record") == 2

    def test_records_local_path(self, tmp_path):
        channel = MockAdbDeviceChannel()
        channel.start_screen_record(REMOTE)
        channel.pull(REMOTE, str(tmp_path / "a.mp4"))
        assert channel.calls[-1] == ("pull", REMOTE, Path(tmp_path / "a.mp4"))
