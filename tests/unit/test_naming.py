"""Unit tests for video filename helpers."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from adbvideo.naming import build_video_filename, derive_spec_label, format_timestamp


class TestSpecLabel:
    """Spec labels come from the first spec file's basename."""

    @pytest.mark.parametrize("spec_path, expected", [
        ("tests/login_test.py", "login_test"),
        (Path("/abs/suite/test_checkout.py"), "test_checkout"),
        ("tests/test_cart.py::TestCart::test_add", "test_cart"),
        ("checkout.spec.ts", "checkout.spec"),
        ("README", "README"),
        (None, "unknown"),
        ("", "unknown"),
        ("   ", "unknown"),
    ])
    def test_derive_spec_label(self, spec_path, expected):
        assert derive_spec_label(spec_path) == expected


class TestFilenames:
    """Filenames are deterministic for a given label and instant."""

    def test_timestamp_is_filesystem_safe(self):
        instant = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
        assert format_timestamp(instant) == "2024-01-02T03-04-05"

    def test_timestamp_without_fraction(self):
        assert format_timestamp(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03-04-05"

    def test_timestamp_converted_to_utc(self):
        tz = timezone(timedelta(hours=2))
        instant = datetime(2024, 1, 2, 3, 4, 5, tzinfo=tz)
        assert format_timestamp(instant) == "2024-01-02T01-04-05"

    def test_filename_with_timestamp(self):
        instant = datetime(2024, 6, 30, 23, 59, 59, 999999, tzinfo=timezone.utc)
        assert build_video_filename("login_test", True, instant) == "2024-06-30T23-59-59_login_test.mp4"

    def test_filename_without_timestamp(self):
        instant = datetime(2024, 6, 30, 23, 59, 59, tzinfo=timezone.utc)
        assert build_video_filename("login_test", False, instant) == "login_test.mp4"
