import os
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from arpwatch_container import settings

log = logging.getLogger(__name__)


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    """Interprets an environment string as a boolean using the shared truthy set."""
    if value is None or not value.strip():
        return default
    return value.strip().lower() in settings.TRUTHY_VALUES


def _parse_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning(f"Ignoring non-numeric value '{raw}' for {key}. Using default {default}.")
        return default


class EntrypointConfig:
    """
    The complete runtime configuration of the entrypoint.

    It is populated exactly once at startup (see `from_environ`) and then passed
    explicitly to the translator and the supervisor. Nothing else in the package
    reads the process environment.
    """

    def __init__(
        self,
        interface_spec: str = "",
        network: str = "",
        extra_opts: str = "",
        data_dir: Optional[Path] = settings.DEFAULT_DATA_DIR,
        skip_privilege_drop: bool = False,
        debug: bool = False,
        version: str = settings.DEFAULT_VERSION,
        effective_uid: int = 0,
        binary: str = settings.ARPWATCH_BINARY,
        run_user: str = settings.ARPWATCH_USER,
        run_uid: int = settings.ARPWATCH_UID,
        settle_delay: float = settings.SETTLE_DELAY,
        poll_interval: float = settings.POLL_INTERVAL,
        shutdown_timeout: float = settings.SHUTDOWN_TIMEOUT,
        log_level: str = settings.LOG_LEVEL,
        loki_enabled: bool = False,
        loki_url: str = settings.LOKI_URL,
        loki_org_id: str = settings.LOKI_ORG_ID,
    ) -> None:
        self.interface_spec = interface_spec or ""
        self.network = (network or "").strip()
        self.extra_opts = extra_opts or ""
        self.data_dir = Path(data_dir) if data_dir else None
        self.skip_privilege_drop = skip_privilege_drop
        self.debug = debug
        self.version = version or settings.DEFAULT_VERSION
        self.effective_uid = effective_uid
        self.binary = binary
        self.run_user = run_user
        self.run_uid = run_uid
        self.settle_delay = settle_delay
        self.poll_interval = poll_interval
        self.shutdown_timeout = shutdown_timeout
        self.log_level = log_level.upper()
        self.loki_enabled = loki_enabled
        self.loki_url = loki_url
        self.loki_org_id = loki_org_id

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None, effective_uid: Optional[int] = None) -> "EntrypointConfig":
        """
        Builds the configuration from environment variables.

        :param environ: Mapping to read from. Defaults to `os.environ`.
        :param effective_uid: Overrides the detected effective UID.
        :return: A populated EntrypointConfig.
        """
        if environ is None:
            environ = os.environ
        if effective_uid is None:
            effective_uid = os.geteuid()

        return cls(
            interface_spec=environ.get(settings.ENV_INTERFACES, ""),
            network=environ.get(settings.ENV_NETWORK, ""),
            extra_opts=environ.get(settings.ENV_OPTS, ""),
            # An explicitly empty data dir falls back to the default, like ${VAR:-default}
            data_dir=Path(environ.get(settings.ENV_DATA_DIR) or settings.DEFAULT_DATA_DIR),
            skip_privilege_drop=parse_bool(environ.get(settings.ENV_SKIP_PRIVILEGE_DROP)),
            debug=parse_bool(environ.get(settings.ENV_DEBUG)),
            version=environ.get(settings.ENV_VERSION) or settings.DEFAULT_VERSION,
            effective_uid=effective_uid,
            settle_delay=_parse_float(environ, settings.ENV_SETTLE_DELAY, settings.SETTLE_DELAY),
            poll_interval=_parse_float(environ, settings.ENV_POLL_INTERVAL, settings.POLL_INTERVAL),
            shutdown_timeout=_parse_float(environ, settings.ENV_SHUTDOWN_TIMEOUT, settings.SHUTDOWN_TIMEOUT),
            log_level=environ.get(settings.ENV_LOG_LEVEL) or settings.LOG_LEVEL,
            loki_enabled=parse_bool(environ.get(settings.ENV_LOKI_ENABLED)),
            loki_url=environ.get(settings.ENV_LOKI_URL) or settings.LOKI_URL,
            loki_org_id=environ.get(settings.ENV_LOKI_ORG_ID) or settings.LOKI_ORG_ID,
        )

    #* --- Derived values ---
    def _interface_names(self) -> List[str]:
        return [name.strip() for name in self.interface_spec.split(",") if name.strip()]

    @property
    def interface(self) -> Optional[str]:
        """The single interface in effect: the first trimmed name, or None."""
        names = self._interface_names()
        return names[0] if names else None

    @property
    def extra_interfaces(self) -> List[str]:
        """Interfaces listed after the first one. These are ignored."""
        return self._interface_names()[1:]

    @property
    def is_root(self) -> bool:
        return self.effective_uid == 0

    @property
    def drop_privileges(self) -> bool:
        """True when the launched binary must switch to the fixed non-root user."""
        return self.is_root and not self.skip_privilege_drop

    @property
    def data_file(self) -> Optional[Path]:
        if self.data_dir is None or self.interface is None:
            return None
        return self.data_dir / f"{self.interface}{settings.DATA_FILE_SUFFIX}"

    def as_dict(self) -> Dict[str, Any]:
        """Returns the settings as a plain dictionary, for debug logging."""
        return {key: value for key, value in vars(self).items() if not key.startswith("_")}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.as_dict()!r})"
