from typing import List, Optional


class EntrypointError(Exception):
    """Base class for every failure that ends the entrypoint with exit code 1."""
    exit_code = 1


class ConfigurationError(EntrypointError):
    """A required setting is missing or unusable."""


class PrivilegeError(EntrypointError):
    """The process lacks the privileges needed to open raw sockets."""


class LaunchError(EntrypointError):
    """
    The wrapped binary could not be started or died during the settling delay.

    :param message: Human readable description of the failure.
    :param output: Lines captured from the child's stdout/stderr, if any.
    """
    def __init__(self, message: str, output: Optional[List[str]] = None):
        super().__init__(message)
        self.output: List[str] = list(output or [])
