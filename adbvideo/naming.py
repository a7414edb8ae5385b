"""Helpers for deriving deterministic video filenames."""

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

VIDEO_EXTENSION = ".mp4"
UNKNOWN_SPEC_LABEL = "unknown"


def derive_spec_label(spec_path: Optional[Union[str, Path]]) -> str:
    """Return the spec file's basename without its extension, or ``unknown``."""
    if spec_path is None:
        return UNKNOWN_SPEC_LABEL
    # pytest node ids carry "::test_name" after the file path
    text = str(spec_path).split("::", 1)[0].strip()
    if not text:
        return UNKNOWN_SPEC_LABEL
    return Path(text).stem or UNKNOWN_SPEC_LABEL


def format_timestamp(instant: datetime) -> str:
    """
    Format ``instant`` as a filesystem-safe UTC timestamp with second precision.

    ``2024-03-05T14:07:09.123456+00:00`` becomes ``2024-03-05T14-07-09``.
    """
    if instant.tzinfo is not None:
        instant = instant.astimezone(timezone.utc)
    return re.sub(r"[:.]", "-", instant.isoformat())[:19]


def build_video_filename(spec_label: str, use_timestamp: bool, instant: datetime) -> str:
    """Build the destination filename for a saved video."""
    if use_timestamp:
        return f"{format_timestamp(instant)}_{spec_label}{VIDEO_EXTENSION}"
    return f"{spec_label}{VIDEO_EXTENSION}"
