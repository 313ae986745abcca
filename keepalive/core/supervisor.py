"""Concurrent orchestration of keepalive loops.

One thread per configured command, all sharing a single CancellationSignal.
Each loop reports its terminal LoopResult through a queue; the first fatal
error brings the whole supervisor down (fail-fast), after giving the
siblings a bounded grace period to send their own termination requests.
"""

import logging
import queue
import signal
import threading
import time
from typing import Any

from keepalive.core.cancellation import CancellationSignal
from keepalive.core.launcher import ProcessLauncher
from keepalive.core.loop import KeepaliveLoop, LoopResult
from keepalive.core.models import LoopState, SupervisorConfig

logger = logging.getLogger(__name__)

GRACE_PERIOD_SECONDS = 5.0

EXIT_OK = 0
EXIT_FATAL = 1


class Supervisor:
    """Run one KeepaliveLoop per command until interrupted.

    USAGE:
        supervisor = Supervisor(load_config("commands.yaml"))
        exit_code = supervisor.run()  # blocks until Ctrl-C or a fatal error
    """

    def __init__(
        self,
        config: SupervisorConfig,
        launcher: ProcessLauncher | None = None,
        shutdown_grace: float = GRACE_PERIOD_SECONDS,
    ):
        self.config = config
        self.launcher = launcher or ProcessLauncher(shell=config.shell)
        self.shutdown_grace = shutdown_grace
        self.cancel = CancellationSignal()
        self.loops: dict[str, KeepaliveLoop] = {}
        self.results: list[LoopResult] = []
        self._results: queue.Queue[LoopResult] = queue.Queue()

    def run(self) -> int:
        """Supervise every command; return the process exit status.

        Returns:
            0 once every loop has shut down cleanly, 1 on the first fatal error
        """
        if not self.config.commands:
            logger.warning("No commands configured, nothing to supervise")
            return EXIT_OK

        self.loops = {
            spec.name: KeepaliveLoop(spec, self.launcher, self.cancel)
            for spec in self.config.commands
        }
        installed = self._install_interrupt_handler()
        try:
            for loop in self.loops.values():
                threading.Thread(
                    target=self._run_loop,
                    args=(loop,),
                    name=f"keepalive-{loop.name}",
                    daemon=True,
                ).start()
            return self._collect()
        finally:
            self._restore_interrupt_handler(installed)

    def request_shutdown(self) -> bool:
        """Trigger the cancellation broadcast. Returns False if already triggered."""
        return self.cancel.trigger()

    def states(self) -> dict[str, LoopState]:
        return {name: loop.state for name, loop in self.loops.items()}

    @property
    def errors(self) -> list[LoopResult]:
        return [r for r in self.results if r.error is not None]

    def _run_loop(self, loop: KeepaliveLoop) -> None:
        try:
            result = loop.run()
        except Exception as e:
            result = loop.result(error=e)
        self._results.put(result)

    def _collect(self) -> int:
        pending = len(self.loops)
        while pending:
            result = self._results.get()
            pending -= 1
            self.results.append(result)
            if result.error is not None:
                logger.error(f"Fatal error in command '{result.name}': {result.error}")
                self._abort(pending)
                return EXIT_FATAL
            logger.debug(f"Loop for '{result.name}' terminated")

        logger.info("All commands terminated")
        return EXIT_OK

    def _abort(self, pending: int) -> None:
        """Broadcast cancellation and wait a bounded time for the other loops.

        Loops still running after the grace period are abandoned; their
        threads are daemons and do not block interpreter exit.
        """
        self.cancel.trigger()
        deadline = time.monotonic() + self.shutdown_grace
        while pending:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                result = self._results.get(timeout=remaining)
            except queue.Empty:
                break
            pending -= 1
            self.results.append(result)
            if result.error is not None:
                logger.error(f"Fatal error in command '{result.name}': {result.error}")

        if pending:
            logger.warning(
                f"Abandoning {pending} command(s) still shutting down after "
                f"{self.shutdown_grace}s"
            )

    def _handle_interrupt(self, signum: int, frame: Any) -> None:
        if self.cancel.trigger():
            logger.info("Interrupt received, shutting down all commands")
        else:
            logger.info("Shutdown already in progress, ignoring interrupt")

    def _install_interrupt_handler(self) -> tuple[bool, Any]:
        # signal.signal is only allowed from the main thread
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on main thread, interrupt handler not installed")
            return False, None
        return True, signal.signal(signal.SIGINT, self._handle_interrupt)

    def _restore_interrupt_handler(self, installed: tuple[bool, Any]) -> None:
        was_installed, previous = installed
        if not was_installed:
            return
        # None means the previous handler was not installed from Python
        signal.signal(signal.SIGINT, previous if previous is not None else signal.SIG_DFL)
