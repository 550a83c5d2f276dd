"""Enumerations for the inspection proxy."""

from enum import Enum
from typing import Optional


class TaskState(str, Enum):
    """State of a Kie.ai job as reported by recordInfo."""
    PENDING = "pending"
    PROCESSING = "processing"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    ERROR = "error"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "TaskState":
        """Map a provider state string; anything unrecognised is UNKNOWN."""
        if not isinstance(raw, str):
            return cls.UNKNOWN
        raw = raw.strip().lower()
        # Kie reports failed jobs as "fail"
        if raw == "fail":
            return cls.FAILED
        try:
            return cls(raw)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.SUCCESS, TaskState.FAILED, TaskState.ERROR)

    @property
    def is_failure(self) -> bool:
        return self in (TaskState.FAILED, TaskState.ERROR)


class ModelProvider(str, Enum):
    """Third-party provider behind a proxy route."""
    KIE = "kie"
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
