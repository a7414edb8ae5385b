"""Data models describing recording session state and outcomes."""

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


class SessionState(str, Enum):
    """Lifecycle states of a recording session. Only moves forward."""

    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"


class DecisionKind(str, Enum):
    """What happened to the captured video when the session finished."""

    SAVED = "saved"
    DISCARDED = "discarded"
    SKIPPED = "skipped"


class Step(str, Enum):
    """Individual device or filesystem operations performed by a session."""

    SPAWN = "spawn"
    STOP = "stop"
    CREATE_DIR = "create_dir"
    PULL = "pull"
    CLEANUP = "cleanup"


class StepResult(BaseModel):
    """Outcome of a single step."""

    step: Step
    ok: bool
    error: Optional[str] = None
    skipped: bool = False

    @classmethod
    def success(cls, step: Step) -> "StepResult":
        return cls(step=step, ok=True)

    @classmethod
    def failure(cls, step: Step, error: BaseException) -> "StepResult":
        return cls(step=step, ok=False, error=f"{type(error).__name__}: {error}")

    @classmethod
    def skip(cls, step: Step, reason: str) -> "StepResult":
        """A step that was not attempted. Counts as not ok."""
        return cls(step=step, ok=False, error=reason, skipped=True)


class Decision(BaseModel):
    """Result of finishing a recording session."""

    kind: DecisionKind
    path: Optional[Path] = None
    steps: List[StepResult] = Field(default_factory=list)

    @classmethod
    def saved(cls, path: Path, steps: List[StepResult]) -> "Decision":
        return cls(kind=DecisionKind.SAVED, path=path, steps=steps)

    @classmethod
    def discarded(cls, steps: List[StepResult]) -> "Decision":
        return cls(kind=DecisionKind.DISCARDED, steps=steps)

    @classmethod
    def skipped(cls) -> "Decision":
        return cls(kind=DecisionKind.SKIPPED)

    def result_for(self, step: Step) -> Optional[StepResult]:
        """Return the recorded result for ``step``, if the step ran."""
        for result in self.steps:
            if result.step == step:
                return result
        return None

    @property
    def failed_steps(self) -> List[StepResult]:
        """Steps that were attempted and failed."""
        return [r for r in self.steps if not r.ok and not r.skipped]

    @property
    def artifact_saved(self) -> bool:
        """
        True only when the video was pulled and exists on disk.

        ``kind`` reports the branch taken; a SAVED decision whose pull failed
        still has ``artifact_saved == False``.
        """
        if self.kind != DecisionKind.SAVED or self.path is None:
            return False
        pull = self.result_for(Step.PULL)
        return pull is not None and pull.ok and self.path.exists()
