"""Device command channel backends."""

from .adb import (
    AdbDeviceChannel,
    AdbRecorderHandle,
    MockAdbDeviceChannel,
    MockRecorderHandle,
)

__all__ = [
    "AdbDeviceChannel",
    "AdbRecorderHandle",
    "MockAdbDeviceChannel",
    "MockRecorderHandle",
]
