"""Process launching for supervised commands.

Each command runs as `<shell> -c <cmd>` so the command line may use pipes and
redirection. Children get their own session: a terminal Ctrl-C reaches only
the supervisor, and a termination request reaches the whole shell pipeline.

No retries here - restart policy lives in KeepaliveLoop.
"""

import logging
import os
import signal
import subprocess

from keepalive.core.errors import LaunchError, TerminationError
from keepalive.core.models import DEFAULT_SHELL, CommandSpec

logger = logging.getLogger(__name__)


class ProcessHandle:
    """The live OS process for one run of a command.

    Owned by exactly one KeepaliveLoop; nothing else waits on or signals it.
    """

    def __init__(self, name: str, process: subprocess.Popen):
        self.name = name
        self.process = process

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def returncode(self) -> int | None:
        return self.process.returncode

    def wait(self) -> int:
        """Block until the child exits and reap it."""
        return self.process.wait()

    def terminate(self) -> None:
        """Send SIGTERM to the child's process group. Does not wait.

        Raises:
            TerminationError: If the signal cannot be delivered (process group
                already gone, permission denied)
        """
        try:
            os.killpg(self.process.pid, signal.SIGTERM)
        except OSError as e:
            raise TerminationError(self.name, e) from e
        logger.debug(f"Sent SIGTERM to process group {self.process.pid} ({self.name})")

    def __repr__(self) -> str:
        return f"ProcessHandle(name={self.name!r}, pid={self.pid})"


class ProcessLauncher:
    """Start one shell process per CommandSpec."""

    def __init__(self, shell: str = DEFAULT_SHELL):
        self.shell = shell

    def launch(self, spec: CommandSpec) -> ProcessHandle:
        """Start a new process for `spec`.

        With `show_log` set, stdout/stderr are inherited from the supervisor so
        output shows up live on its own streams; otherwise both are discarded.

        Raises:
            LaunchError: If the OS cannot create the process
        """
        output = None if spec.show_log else subprocess.DEVNULL
        try:
            process = subprocess.Popen(
                [self.shell, "-c", spec.cmd],
                stdin=subprocess.DEVNULL,
                stdout=output,
                stderr=output,
                start_new_session=True,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise LaunchError(spec.name, e) from e

        logger.debug(f"Started {spec.name!r} as pid {process.pid}")
        return ProcessHandle(spec.name, process)
