import os
import sys
import logging
from typing import List, Optional

# Basic console logger for messages BEFORE full setup is complete.
# This logger will be replaced by the full setup later.
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)-8s - [console] - %(message)s',
    stream=sys.stdout
)
log = logging.getLogger("console")

import setproctitle

from arpwatch_container import settings
from arpwatch_container.config import EntrypointConfig
from arpwatch_container.errors import EntrypointError
from arpwatch_container.log.setup import setup_logging
from arpwatch_container.supervisor import ArpwatchSupervisor
from arpwatch_container.supervisor.process_utils import find_monitored_processes


def exec_command(argv: List[str]) -> int:
    """
    Replaces the current process with `argv`. Used for shell access and
    one-off commands (e.g. `docker run image arpwatch -v` vs `docker run image sh`).

    :return: Only returns, with 126/127 like a shell, if the exec itself fails.
    """
    try:
        os.execvp(argv[0], argv)
    except FileNotFoundError:
        log.error(f"{argv[0]}: command not found")
        return 127
    except OSError as e:
        log.error(f"{argv[0]}: cannot execute: {e}")
        return 126
    return 0  # unreachable after a successful exec


def main(argv: Optional[List[str]] = None) -> int:
    """The main entry point of the container."""
    if argv is None:
        argv = sys.argv[1:]

    # Anything other than the default command is executed directly
    if argv and argv[0] != settings.ARPWATCH_BINARY:
        return exec_command(argv)

    setproctitle.setproctitle(settings.PROCESS_TITLE)
    config = EntrypointConfig.from_environ()
    setup_logging(config=config)

    try:
        return ArpwatchSupervisor(config, extra_argv=argv[1:]).run()
    except EntrypointError as e:
        log.error(str(e))
        return e.exit_code


def healthcheck() -> int:
    """
    Container health probe: succeeds while arpwatch is running.
    After a privilege drop the process must be owned by the arpwatch user.
    """
    config = EntrypointConfig.from_environ()
    user = config.run_user if config.drop_privileges else None
    procs = find_monitored_processes(config.binary, user)
    if procs:
        log.debug(f"Healthy: {config.binary} running with PID(s) {', '.join(str(p.pid) for p in procs)}")
        return 0
    owner = f" as user {user}" if user else ""
    log.error(f"Unhealthy: no {config.binary} process running{owner}.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
