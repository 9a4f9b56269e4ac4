import os
import logging
from typing import TYPE_CHECKING

from arpwatch_container.config import EntrypointConfig
from arpwatch_container.errors import LaunchError

if TYPE_CHECKING:
    from .supervisor import ArpwatchSupervisor

log = logging.getLogger(__name__)


def log_startup_banner(config: EntrypointConfig) -> None:
    """Logs the version and the effective configuration before anything is launched."""
    log.info("Starting arpwatch container...")
    log.info(f"Version: {config.version}")
    log.info(f"Data directory: {config.data_dir if config.data_dir else '(none)'}")
    log.debug(f"Effective configuration: {config.as_dict()}")


def check_data_directory(config: EntrypointConfig) -> bool:
    """
    Checks that the data directory exists and is writable by the effective user.
    Problems are reported but do not stop the launch; arpwatch will report its
    own error if it cannot write its database.

    :return: True if the directory looks usable.
    """
    data_dir = config.data_dir
    if data_dir is None:
        return True
    if not data_dir.is_dir():
        log.warning(f"Data directory {data_dir} does not exist.")
        return False
    if not os.access(data_dir, os.W_OK):
        log.warning(f"Data directory {data_dir} is not writable by UID {config.effective_uid}.")
        return False
    return True


def launch_and_settle(supervisor: "ArpwatchSupervisor") -> bool:
    """
    Launches the child and waits the settling delay before the first liveness check.

    :return: True if the settling wait was cut short by a shutdown signal.
    :raises LaunchError: If the binary cannot be executed or is dead after the delay.
    """
    supervisor.launch()
    if supervisor.shutdown_requested.wait(supervisor.config.settle_delay):
        return True

    if not supervisor.is_child_alive():
        supervisor.drain_output()
        raise LaunchError(
            f"{supervisor.config.binary} failed to start or exited immediately "
            f"(exit code {supervisor.child_returncode()}).",
            output=supervisor.capture.lines(),
        )

    log.info(f"Arpwatch started successfully (PID: {supervisor.child_pid})")
    return False
