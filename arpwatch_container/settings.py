"""
This module contains the static configuration settings for the arpwatch entrypoint.
It defines environment variable names, defaults for the wrapped binary and the
timing constants used by the supervisor.
"""

import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file (without clobbering the container env)
load_dotenv(override=False)

#* --- Wrapped Binary ---
ARPWATCH_BINARY = "arpwatch"
ARPWATCH_USER = "arpwatch"
ARPWATCH_UID = 102

#* --- Environment Variable Names ---
ENV_INTERFACES = "ARPWATCH_INTERFACES"
ENV_NETWORK = "ARPWATCH_NETWORK"
ENV_OPTS = "ARPWATCH_OPTS"
ENV_DATA_DIR = "ARPWATCH_DATA_DIR"
ENV_SKIP_PRIVILEGE_DROP = "ARPWATCH_SKIP_PRIVILEGE_DROP"
ENV_DEBUG = "ARPWATCH_DEBUG"
ENV_VERSION = "VERSION"
ENV_SETTLE_DELAY = "ARPWATCH_SETTLE_DELAY"
ENV_POLL_INTERVAL = "ARPWATCH_POLL_INTERVAL"
ENV_SHUTDOWN_TIMEOUT = "ARPWATCH_SHUTDOWN_TIMEOUT"
ENV_LOG_LEVEL = "LOG_LEVEL"
ENV_LOKI_ENABLED = "LOKI_ENABLED"
ENV_LOKI_URL = "LOKI_URL"
ENV_LOKI_ORG_ID = "LOKI_ORG_ID"

#* --- Defaults ---
DEFAULT_DATA_DIR = pathlib.Path("/var/lib/arpwatch")
DEFAULT_VERSION = "unknown"
DATA_FILE_SUFFIX = ".dat"

#* --- Supervisor Settings ---
SETTLE_DELAY = 1.0       # seconds before the first liveness check
POLL_INTERVAL = 10.0     # seconds between liveness checks
SHUTDOWN_TIMEOUT = 5.0   # seconds before force-killing the child
CAPTURE_BUFFER_LINES = 200

#* --- Logging ---
LOG_LEVEL = "INFO"
LOKI_URL = "http://localhost:3100"
LOKI_ORG_ID = "fake"
LOG_BUFFER_FLUSH_INTERVAL = 10
LOG_BUFFER_BATCH_SIZE = 200

#* --- Parsing ---
TRUTHY_VALUES = ('true', '1', 't', 'yes', 'y')

PROCESS_TITLE = "arpwatch - Entrypoint"

#* --- Launch Failure Checklist ---
LAUNCH_FAILURE_CAUSES = (
    "Invalid interface name",
    "Missing required capabilities (NET_RAW, NET_ADMIN)",
    "Network mode not set to 'host'",
    "Data directory not writable by the arpwatch user",
    "Running on Docker Desktop (limited packet capture support)",
)
