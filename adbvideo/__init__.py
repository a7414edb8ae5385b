"""Android screen recording reporter for pytest runs."""

__version__ = "0.1.0"

from .config_loader import load_config as load_config
from .config_models import ReporterConfig as ReporterConfig
from .config_models import SystemConfig as SystemConfig
from .models import Decision as Decision
from .models import DecisionKind as DecisionKind
from .session import RecordingSession as RecordingSession

__all__ = [
    "load_config",
    "ReporterConfig",
    "SystemConfig",
    "Decision",
    "DecisionKind",
    "RecordingSession",
]
