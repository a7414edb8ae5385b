"""Configuration models for the ADB video reporter."""

import signal
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReporterConfig(BaseModel):
    """Recording behaviour captured once per test run."""

    model_config = ConfigDict(frozen=True)

    output_dir: Path = Field(default=Path("./videos"), description="Directory for saved videos")
    save_all_videos: bool = Field(default=False, description="Save videos regardless of test results")
    disabled: bool = Field(default=False, description="Disable video recording completely")
    timestamp: bool = Field(default=True, description="Prefix video filenames with a timestamp")
    logs: bool = Field(default=False, description="Enable verbose reporter logging")

    @field_validator("output_dir", mode="before")
    @classmethod
    def coerce_output_dir(cls, v: str | Path) -> Path:
        if isinstance(v, str):
            if not v.strip():
                raise ValueError("Output directory must not be empty")
            v = Path(v)
        return v


class DeviceConfig(BaseModel):
    """Configuration for the ADB command channel."""

    model_config = ConfigDict(frozen=True)

    adb_path: str = Field(default="adb", description="adb executable name or path")
    command_timeout: Optional[float] = Field(
        default=None,
        description="Timeout in seconds for pull and remove commands (None waits forever)"
    )
    stop_signal: str = Field(default="SIGTERM", description="Signal sent to the recorder process group")
    stop_grace_period: float = Field(
        default=2.0,
        description="Seconds to wait for the recorder to exit after signalling it"
    )

    @field_validator("command_timeout")
    @classmethod
    def timeout_must_be_positive(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("Command timeout must be positive")
        return v

    @field_validator("stop_grace_period")
    @classmethod
    def grace_period_not_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Stop grace period must not be negative")
        return v

    @field_validator("stop_signal")
    @classmethod
    def validate_stop_signal(cls, v: str) -> str:
        name = v.upper()
        if not name.startswith("SIG"):
            name = f"SIG{name}"
        if name not in signal.Signals.__members__:
            raise ValueError(f"Unknown signal: {v}")
        return name

    @property
    def signal_number(self) -> signal.Signals:
        """Return the configured stop signal as a ``signal.Signals`` member."""
        return signal.Signals[self.stop_signal]


class LoggingConfig(BaseModel):
    """Configuration for reporter logging."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="WARNING", description="Console log level when verbose logs are off")
    format_console: str = Field(
        default="%(asctime)s %(levelname)s %(name)s: %(message)s",
        description="Console log format"
    )
    log_file: Optional[Path] = Field(default=None, description="Optional JSON log file")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Level must be one of {valid_levels}")
        return v.upper()


class SystemConfig(BaseModel):
    """Main configuration."""

    model_config = ConfigDict(frozen=True)

    reporter: ReporterConfig = Field(default_factory=ReporterConfig)
    device: DeviceConfig = Field(default_factory=DeviceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
