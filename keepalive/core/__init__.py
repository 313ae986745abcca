"""Core modules for the keepalive supervisor."""

from keepalive.core.cancellation import CancellationSignal
from keepalive.core.config import load_config, parse_config
from keepalive.core.errors import ConfigError, KeepaliveError, LaunchError, TerminationError
from keepalive.core.launcher import ProcessHandle, ProcessLauncher
from keepalive.core.loop import KeepaliveLoop, LoopResult
from keepalive.core.models import CommandSpec, LoopState, SupervisorConfig
from keepalive.core.supervisor import Supervisor

__all__ = [
    "CancellationSignal",
    "CommandSpec",
    "ConfigError",
    "KeepaliveError",
    "KeepaliveLoop",
    "LaunchError",
    "LoopResult",
    "LoopState",
    "ProcessHandle",
    "ProcessLauncher",
    "Supervisor",
    "SupervisorConfig",
    "TerminationError",
    "load_config",
    "parse_config",
]
