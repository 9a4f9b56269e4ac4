import enum
import time
import logging
import threading
import subprocess
from typing import List, Optional, Sequence

from arpwatch_container.config import EntrypointConfig
from arpwatch_container.errors import EntrypointError, LaunchError
from arpwatch_container.translator import ArpwatchArgs, build_arpwatch_args
from arpwatch_container.supervisor import process_utils, shutdown, startup

log = logging.getLogger(__name__)


class SupervisorState(enum.Enum):
    IDLE = "idle"
    TRANSLATING = "translating"
    LAUNCHING = "launching"
    SUPERVISING = "supervising"
    EXITED = "exited"


class ArpwatchSupervisor:
    """
    Runs arpwatch as the container's primary workload.

    This is a single-shot, run-to-completion supervisor:
    IDLE -> TRANSLATING -> LAUNCHING -> SUPERVISING -> EXITED. Any failure
    jumps straight to EXITED with code 1; a termination signal jumps to EXITED
    with code 0. Restarting is left to the container orchestrator.
    """

    def __init__(self, config: EntrypointConfig, extra_argv: Sequence[str] = ()) -> None:
        self.config = config
        self.extra_argv: List[str] = list(extra_argv)
        self.state = SupervisorState.IDLE
        self.args: Optional[ArpwatchArgs] = None
        self.process: Optional[subprocess.Popen] = None
        self.capture = process_utils.CaptureBuffer()
        self.shutdown_requested = threading.Event()
        self.exit_code: Optional[int] = None
        self._reader_threads: List[threading.Thread] = []
        self._start_time: Optional[float] = None

    def _transition(self, new_state: SupervisorState) -> None:
        log.debug(f"Supervisor state: {self.state.value} -> {new_state.value}")
        self.state = new_state

    def _finish(self, exit_code: int) -> int:
        self.exit_code = exit_code
        self._transition(SupervisorState.EXITED)
        return exit_code

    #* --- Child Process ---
    @property
    def child_pid(self) -> Optional[int]:
        return self.process.pid if self.process else None

    def launch(self) -> None:
        """
        Starts the wrapped binary with the translated arguments.

        :raises LaunchError: If the binary cannot be executed.
        """
        if self.args is None:
            raise LaunchError("Arguments were not translated before launch.")
        command = self.args.command()
        try:
            self.process, self._reader_threads = process_utils.launch_process(command, self.capture)
        except OSError as e:
            raise LaunchError(f"Could not execute {command[0]}: {e}") from e
        self._start_time = time.monotonic()

    def is_child_alive(self) -> bool:
        return self.process is not None and process_utils.is_process_alive(self.process)

    def child_returncode(self) -> Optional[int]:
        return self.process.poll() if self.process else None

    def drain_output(self) -> None:
        process_utils.drain_output(self._reader_threads)

    #* --- Lifecycle ---
    def supervision_loop(self) -> bool:
        """
        Polls the child every `poll_interval` seconds.

        :return: True if the loop ended because of a shutdown signal, False if the child exited.
        """
        log.debug(f"Polling arpwatch every {self.config.poll_interval}s.")
        while not self.shutdown_requested.wait(self.config.poll_interval):
            if not self.is_child_alive():
                self.drain_output()
                runtime = time.monotonic() - self._start_time if self._start_time else 0.0
                log.warning(
                    f"Arpwatch exited with code: {self.child_returncode()} "
                    f"after {time.strftime('%H:%M:%S', time.gmtime(runtime))}"
                )
                return False
        return True

    def stop(self) -> int:
        """Forwards termination to the child and reports a clean shutdown."""
        # The whole shutdown must fit in one poll interval
        timeout = min(self.config.shutdown_timeout, self.config.poll_interval)
        shutdown.terminate_child(self.child_pid if self.is_child_alive() else None, timeout)
        log.info("Shutdown complete.")
        return self._finish(0)

    def run(self) -> int:
        """
        Translates the configuration, launches arpwatch and supervises it.

        :return: The exit code for the container.
        """
        previous_handlers = shutdown.install_signal_handlers(self.shutdown_requested)
        try:
            return self._run()
        finally:
            shutdown.restore_signal_handlers(previous_handlers)

    def _run(self) -> int:
        startup.log_startup_banner(self.config)

        self._transition(SupervisorState.TRANSLATING)
        try:
            self.args = build_arpwatch_args(self.config, self.extra_argv)
        except EntrypointError as e:
            log.error(str(e))
            return self._finish(e.exit_code)

        startup.check_data_directory(self.config)
        log.info(f"Executing: {self.args}")

        self._transition(SupervisorState.LAUNCHING)
        try:
            interrupted = startup.launch_and_settle(self)
        except LaunchError as e:
            shutdown.report_launch_failure(e)
            return self._finish(e.exit_code)
        if interrupted:
            return self.stop()

        self._transition(SupervisorState.SUPERVISING)
        if self.supervision_loop():
            return self.stop()
        return self._finish(1)
