"""
Translates the entrypoint configuration into the argument vector of the
wrapped arpwatch binary.

The generated flags always come first and in a fixed order. User supplied
extra tokens are appended after them verbatim; how arpwatch resolves a
conflicting repeated flag is up to its own option parser.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from arpwatch_container.config import EntrypointConfig
from arpwatch_container.errors import ConfigurationError, PrivilegeError
from arpwatch_container import settings

log = logging.getLogger(__name__)


class ArpwatchArgs:
    """
    Typed builder for the arpwatch command line.

    Only the flags arpwatch is launched with are modelled here. Anything else
    goes through `extra`, which is always emitted last.
    """

    FLAG_INTERFACE = "-i"
    FLAG_DATA_FILE = "-f"
    FLAG_NETWORK = "-n"
    FLAG_DEBUG = "-d"
    FLAG_NO_FORK = "-N"
    FLAG_USER = "-u"

    def __init__(self, binary: str = settings.ARPWATCH_BINARY) -> None:
        self.binary = binary
        self.interface: Optional[str] = None
        self.data_file: Optional[Path] = None
        self.network: Optional[str] = None
        self.debug = False
        self.foreground = True
        self.user: Optional[str] = None
        self.extra: List[str] = []

    def with_interface(self, name: str) -> "ArpwatchArgs":
        self.interface = name
        return self

    def with_data_file(self, path: Path) -> "ArpwatchArgs":
        self.data_file = path
        return self

    def with_network(self, cidr: str) -> "ArpwatchArgs":
        self.network = cidr
        return self

    def with_debug(self, enabled: bool = True) -> "ArpwatchArgs":
        self.debug = enabled
        return self

    def with_user(self, user: str) -> "ArpwatchArgs":
        self.user = user
        return self

    def with_extra(self, tokens: Sequence[str]) -> "ArpwatchArgs":
        self.extra.extend(tokens)
        return self

    def to_argv(self) -> List[str]:
        """Returns the arguments, without the binary name."""
        if not self.interface:
            raise ConfigurationError("Cannot build arpwatch arguments without an interface.")

        argv = [self.FLAG_INTERFACE, self.interface]
        if self.data_file is not None:
            argv += [self.FLAG_DATA_FILE, str(self.data_file)]
        if self.network:
            argv += [self.FLAG_NETWORK, self.network]
        if self.debug:
            argv.append(self.FLAG_DEBUG)
        if self.foreground:
            argv.append(self.FLAG_NO_FORK)
        if self.user:
            argv += [self.FLAG_USER, self.user]
        argv += self.extra
        return argv

    def command(self) -> List[str]:
        """Returns the full command line, binary first."""
        return [self.binary] + self.to_argv()

    def __str__(self) -> str:
        return " ".join(self.command())


def ensure_data_file(path: Path) -> bool:
    """
    Creates the per-interface data file if it does not exist yet.
    Failure is not fatal: arpwatch can create the file itself.

    :param path: Full path of the `<interface>.dat` file.
    :return: True if the file exists afterwards, False otherwise.
    """
    if path.is_file():
        return True
    try:
        path.touch(exist_ok=True)
        log.debug(f"Created data file {path}")
        return True
    except OSError as e:
        log.warning(f"Cannot create {path}: {e}")
        return False


def check_privileges(config: EntrypointConfig) -> None:
    """
    Verifies the privilege precondition for opening raw sockets.

    :raises PrivilegeError: If not root and the pre-dropped mode is not configured.
    """
    if config.is_root:
        if config.skip_privilege_drop:
            log.warning(
                f"{settings.ENV_SKIP_PRIVILEGE_DROP}=true while running as root. "
                "arpwatch will keep running as root."
            )
        return

    if not config.skip_privilege_drop:
        raise PrivilegeError(
            f"Not running as root (UID {config.effective_uid}) and {settings.ENV_SKIP_PRIVILEGE_DROP} is not 'true'. "
            "arpwatch needs root or file capabilities to open raw sockets. "
            f"Run the container as root, or as the {config.run_user} user with {settings.ENV_SKIP_PRIVILEGE_DROP}=true."
        )

    if config.effective_uid != config.run_uid:
        log.warning(f"Not running as {config.run_user} user (UID {config.run_uid}), current UID is {config.effective_uid}.")


def build_arpwatch_args(config: EntrypointConfig, extra_argv: Sequence[str] = ()) -> ArpwatchArgs:
    """
    Produces the validated arpwatch argument vector for the given configuration.

    :param config: The startup configuration.
    :param extra_argv: Additional tokens passed on the command line after the binary name.
    :return: The populated ArpwatchArgs builder.
    :raises ConfigurationError: If no interface is configured.
    :raises PrivilegeError: If the privilege precondition is not met.
    """
    interface = config.interface
    if not interface:
        raise ConfigurationError(
            f"No interface specified. Set the {settings.ENV_INTERFACES} environment variable "
            f"(example: {settings.ENV_INTERFACES}=eth0)."
        )
    if "/" in interface:
        raise ConfigurationError(
            f"Invalid interface name '{interface}' in {settings.ENV_INTERFACES}: interface names cannot contain '/'."
        )

    if config.extra_interfaces:
        log.warning(
            f"Multiple interfaces given ({config.interface_spec!r}). Only one interface per process is supported; "
            f"monitoring '{interface}' and ignoring {', '.join(config.extra_interfaces)}. "
            "Run one container per interface to monitor the others."
        )

    check_privileges(config)

    args = ArpwatchArgs(config.binary).with_interface(interface)
    log.info(f"Monitoring interface: {interface}")

    data_file = config.data_file
    if data_file is not None:
        ensure_data_file(data_file)
        args.with_data_file(data_file)

    if config.network:
        args.with_network(config.network)
        log.info(f"Network filter: {config.network}")

    args.with_debug(config.debug)

    if config.drop_privileges:
        args.with_user(config.run_user)

    extra = config.extra_opts.split() + list(extra_argv)
    if extra:
        log.info(f"Additional options: {' '.join(extra)}")
        args.with_extra(extra)

    return args
