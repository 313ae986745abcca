"""Per-command keepalive state machine.

    IDLE -> SLEEPING_STARTUP -> RUNNING -> SLEEPING_RETRY -> RUNNING -> ...
                                   |
                                   +-> CANCELLING -> TERMINATED

Any exit of the child, whatever its status, is a restart request. Launch and
termination failures are fatal and raised to the caller.

Both delays are waited on the cancellation signal, so a loop asleep in a
delay returns as soon as shutdown is requested, without launching again.
"""

import logging
import threading
from dataclasses import dataclass

from keepalive.core.cancellation import CancellationSignal
from keepalive.core.launcher import ProcessHandle, ProcessLauncher
from keepalive.core.models import CommandSpec, LoopState

logger = logging.getLogger(__name__)


@dataclass
class LoopResult:
    """Terminal report of one keepalive loop."""

    name: str
    launches: int
    restarts: int
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.error is None


def describe_exit(returncode: int | None) -> str:
    if returncode is None:
        return "unknown status"
    if returncode < 0:
        return f"signal {-returncode}"
    return f"exit code {returncode}"


class KeepaliveLoop:
    """Keep one command running until cancelled.

    USAGE:
        loop = KeepaliveLoop(spec, launcher, cancel)
        result = loop.run()  # blocks; raises LaunchError / TerminationError
    """

    def __init__(
        self,
        spec: CommandSpec,
        launcher: ProcessLauncher,
        cancel: CancellationSignal,
    ):
        self.spec = spec
        self.launcher = launcher
        self.cancel = cancel
        self.state = LoopState.IDLE
        self.launches = 0
        self.restarts = 0
        self.last_returncode: int | None = None

    @property
    def name(self) -> str:
        return self.spec.name

    def run(self) -> LoopResult:
        """Supervise the command until the cancellation signal fires.

        Returns:
            LoopResult for a clean shutdown

        Raises:
            LaunchError: If the first launch or any relaunch fails
            TerminationError: If the child cannot be signalled on shutdown
        """
        try:
            self._run()
        except Exception:
            self.state = LoopState.FAILED
            raise
        self.state = LoopState.TERMINATED
        return self.result()

    def result(self, error: Exception | None = None) -> LoopResult:
        return LoopResult(
            name=self.name,
            launches=self.launches,
            restarts=self.restarts,
            error=error,
        )

    def _run(self) -> None:
        if self.spec.sleep > 0:
            self.state = LoopState.SLEEPING_STARTUP
            logger.info(
                f"Sleeping for {self.spec.sleep} seconds before starting command: {self.name}"
            )
            if self._pause(self.spec.startup_delay):
                logger.info(f"Cancelled before first launch: {self.name}")
                return
        elif self.cancel.is_set():
            return

        logger.info(f"Spinning up process watcher for: {self.name}")
        handle = self._launch()

        while True:
            exited = self._wait_running(handle)

            # Cancellation wins when both are visible, so nothing is relaunched
            # after shutdown has been requested.
            if self.cancel.is_set():
                self._shutdown(handle, exited)
                return

            logger.info(
                f"Process {self.name} stopped ({describe_exit(self.last_returncode)}), "
                f"restarting in {self.spec.retry_sec}s"
            )
            self.state = LoopState.SLEEPING_RETRY
            if self._pause(self.spec.retry_delay):
                logger.info(f"Cancelled while waiting to restart: {self.name}")
                return

            logger.info(f"Trying to rerun process: {self.name}")
            handle = self._launch()
            self.restarts += 1

    def _pause(self, seconds: float) -> bool:
        """Sleep for `seconds`. Returns True if cancelled meanwhile."""
        return self.cancel.wait(timeout=seconds)

    def _launch(self) -> ProcessHandle:
        handle = self.launcher.launch(self.spec)
        self.launches += 1
        self.state = LoopState.RUNNING
        return handle

    def _wait_running(self, handle: ProcessHandle) -> threading.Event:
        """Block until the child exits or cancellation fires.

        Returns the event the reaper sets once the child has been collected.
        """
        wake = threading.Event()
        exited = threading.Event()

        def reap() -> None:
            self.last_returncode = handle.wait()
            exited.set()
            wake.set()

        reaper = threading.Thread(target=reap, name=f"keepalive-reap-{self.name}", daemon=True)
        reaper.start()

        self.cancel.add_listener(wake)
        try:
            wake.wait()
        finally:
            self.cancel.remove_listener(wake)
        return exited

    def _shutdown(self, handle: ProcessHandle, exited: threading.Event) -> None:
        self.state = LoopState.CANCELLING
        # Checked as late as possible; the reaper may finish at any moment
        if exited.is_set():
            logger.info(
                f"Process {self.name} already stopped "
                f"({describe_exit(self.last_returncode)}), nothing to terminate"
            )
            return
        logger.info(f"Terminating process: {self.name}")
        # Fire-and-forget: the reaper thread collects the exit status.
        handle.terminate()
