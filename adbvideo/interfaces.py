"""Abstract base classes for the device command channel."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional


class DeviceBridgeError(Exception):
    """Base exception for device command channel errors."""


class SpawnError(DeviceBridgeError):
    """Raised when the screen recorder process cannot be started."""


class StopError(DeviceBridgeError):
    """Raised when the screen recorder process cannot be signalled."""


class CommandError(DeviceBridgeError):
    """Raised when a blocking device command (pull, remove) fails."""


class RecorderHandle(ABC):
    """A running screen recorder owned by exactly one recording session."""

    @property
    @abstractmethod
    def pid(self) -> Optional[int]:
        """Return the recorder's local process id, if known."""

    @property
    @abstractmethod
    def is_running(self) -> bool:
        """Return True while the recorder has not been stopped or exited."""

    @abstractmethod
    def stop(self) -> None:
        """
        Stop the recorder and everything it spawned.

        Raises:
            StopError: If the recorder cannot be signalled
        """


class DeviceChannel(ABC):
    """Commands the recording session needs from a device backend."""

    @abstractmethod
    def start_screen_record(self, remote_path: str) -> RecorderHandle:
        """
        Begin capturing the device screen into ``remote_path`` without blocking.

        Args:
            remote_path: File on the device the recording is written to

        Returns:
            Handle to the detached recorder

        Raises:
            SpawnError: If the recorder cannot be started
        """

    @abstractmethod
    def pull(self, remote_path: str, local_path: Path) -> None:
        """
        Copy a file from the device, blocking until the transfer ends.

        Raises:
            CommandError: If the transfer fails
        """

    @abstractmethod
    def remove(self, remote_path: str) -> None:
        """
        Delete a file on the device.

        Raises:
            CommandError: If the file cannot be removed
        """
