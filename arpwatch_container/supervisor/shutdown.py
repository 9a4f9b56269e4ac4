import signal
import logging
import threading
from typing import Any, Dict, List, Optional

import psutil

from arpwatch_container import settings
from arpwatch_container.errors import LaunchError

log = logging.getLogger(__name__)

HANDLED_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def install_signal_handlers(shutdown_event: threading.Event) -> Dict[int, Any]:
    """
    Installs SIGTERM/SIGINT handlers that request an orderly shutdown.

    :param shutdown_event: Event set when a termination signal arrives.
    :return: The previous handlers, to be passed to `restore_signal_handlers`.
    """
    def handle_shutdown_signal(signum, frame):
        log.info(f"Received {signal.Signals(signum).name}, shutting down...")
        shutdown_event.set()

    previous = {}
    for signum in HANDLED_SIGNALS:
        previous[signum] = signal.signal(signum, handle_shutdown_signal)
    return previous


def restore_signal_handlers(previous: Dict[int, Any]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler if handler is not None else signal.SIG_DFL)


def terminate_child(pid: Optional[int], timeout: float) -> None:
    """
    Forwards SIGTERM to the child and force-kills it if it outlives the timeout.

    :param pid: PID of the managed child, or None if nothing was launched.
    :param timeout: Seconds to wait for a graceful exit.
    """
    if pid is None:
        return
    try:
        proc = psutil.Process(pid)
        log.debug(f"Sending SIGTERM to {proc.name()} (PID {pid})")
        proc.terminate()
    except psutil.NoSuchProcess:
        log.debug(f"Process {pid} already exited.")
        return

    _, alive = psutil.wait_procs([proc], timeout=timeout)
    for stubborn in alive:
        try:
            log.warning(f"Killing stubborn process {stubborn.name()} (PID {stubborn.pid}).")
            stubborn.kill()
        except psutil.NoSuchProcess:
            continue


def report_launch_failure(error: LaunchError) -> None:
    """Logs a launch failure with the captured output and the checklist of likely causes."""
    log.error(str(error))
    if error.output:
        log.error("Captured output:")
        for line in error.output:
            log.error(f"  {line}")
    else:
        log.error("No output was captured from the process.")
    log.error("This may be due to:")
    for line in format_failure_checklist():
        log.error(line)


def format_failure_checklist() -> List[str]:
    return [f"  - {cause}" for cause in settings.LAUNCH_FAILURE_CAUSES]
