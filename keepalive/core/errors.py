"""Exception hierarchy for the keepalive supervisor.

Child process exits are never errors; they are the normal restart trigger.
Everything raised from here is fatal for the whole supervisor.
"""


class KeepaliveError(Exception):
    """Base class for fatal supervisor errors."""

    pass


class ConfigError(KeepaliveError):
    """Configuration file is unreadable or invalid."""

    pass


class CommandError(KeepaliveError):
    """A fatal error tied to one supervised command."""

    action = "handle"

    def __init__(self, name: str, cause: BaseException | str):
        self.name = name
        self.cause = cause
        super().__init__(f"error trying to {self.action} process {name}: {cause}")


class LaunchError(CommandError):
    """The OS could not start a process for a command."""

    action = "run"


class TerminationError(CommandError):
    """The termination request could not be delivered to a live child."""

    action = "terminate"
