"""Data models for the keepalive supervisor.

Uses Pydantic so the configuration is validated once, at load time, and
stays immutable afterwards.
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_RETRY_SECONDS = 10
DEFAULT_SHELL = "/bin/sh"


class LoopState(str, Enum):
    """Lifecycle state of a keepalive loop."""

    IDLE = "idle"
    SLEEPING_STARTUP = "sleeping_startup"
    RUNNING = "running"
    SLEEPING_RETRY = "sleeping_retry"
    CANCELLING = "cancelling"
    TERMINATED = "terminated"
    FAILED = "failed"


class CommandSpec(BaseModel):
    """A single supervised command, as declared in the config file."""

    model_config = {"frozen": True, "populate_by_name": True}

    name: str = Field(..., min_length=1)
    cmd: str = Field(..., min_length=1)
    sleep: int = Field(default=0, ge=0)  # startup delay, seconds
    show_log: bool = Field(default=False, alias="showLog")
    # 0 or missing means "use the default"; always positive once validated
    retry_sec: int = Field(default=DEFAULT_RETRY_SECONDS, gt=0, alias="retrySec")

    @field_validator("retry_sec", mode="before")
    @classmethod
    def _resolve_retry_default(cls, value: object) -> object:
        if value is None or value == 0:
            return DEFAULT_RETRY_SECONDS
        return value

    @property
    def startup_delay(self) -> float:
        return float(self.sleep)

    @property
    def retry_delay(self) -> float:
        return float(self.retry_sec)


class SupervisorConfig(BaseModel):
    """The full, read-only command list handed to the Supervisor."""

    model_config = {"frozen": True}

    commands: tuple[CommandSpec, ...] = Field(default_factory=tuple)
    shell: str = Field(default=DEFAULT_SHELL, min_length=1)

    @model_validator(mode="after")
    def _check_unique_names(self) -> "SupervisorConfig":
        seen: set[str] = set()
        duplicates: list[str] = []
        for command in self.commands:
            if command.name in seen and command.name not in duplicates:
                duplicates.append(command.name)
            seen.add(command.name)
        if duplicates:
            raise ValueError(f"Duplicate command names: {', '.join(duplicates)}")
        return self

    @property
    def names(self) -> list[str]:
        return [command.name for command in self.commands]
