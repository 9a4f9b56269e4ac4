import sys
import logging
from typing import TYPE_CHECKING, Optional, Union

from arpwatch_container.log.handler import LokiHandler

if TYPE_CHECKING:
    from arpwatch_container.config import EntrypointConfig

LOG_FORMAT = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'


class MainFormatter(logging.Formatter):
    """A custom formatter to handle regular logs and raw subprocess logs."""

    def __init__(self) -> None:
        super().__init__(LOG_FORMAT)

    def format(self, record):
        # arpwatch output lines are already complete messages
        if record.name.startswith('proc.'):
            return record.getMessage()
        return super().format(record)


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(console_level: Union[int, str] = logging.INFO, config: Optional["EntrypointConfig"] = None) -> None:
    """
    Configures the root logger for the entrypoint.
    This sets up the console handler and optionally Loki, clearing any
    previously configured handlers to prevent duplication.

    :param console_level: The logging level for the console output (e.g., logging.INFO).
    :param config: When given, its log level and Loki settings take precedence.
    """
    if config is not None:
        console_level = config.log_level

    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(_resolve_level(console_level))
    console_handler.setFormatter(MainFormatter())
    root_logger.addHandler(console_handler)

    # --- Loki Handler (conditional) ---
    if config is not None and config.loki_enabled:
        try:
            loki_handler = LokiHandler(url=config.loki_url, org_id=config.loki_org_id)
            loki_handler.setLevel(logging.INFO)
            loki_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root_logger.addHandler(loki_handler)
            root_logger.info(f"Grafana Loki logging handler initialized for {config.loki_url}.")
        except Exception as e:
            root_logger.error(f"Failed to initialize Grafana Loki logging handler: {e}")
