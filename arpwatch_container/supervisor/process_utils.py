import logging
import threading
import subprocess
from collections import deque
from typing import Deque, List, Optional, Sequence, Tuple

import psutil

from arpwatch_container import settings

log = logging.getLogger(__name__)


#* --- Output Capture ---
class CaptureBuffer:
    """Keeps the most recent output lines of the child for diagnostic replay."""

    def __init__(self, max_lines: int = settings.CAPTURE_BUFFER_LINES) -> None:
        self._lines: Deque[str] = deque(maxlen=max_lines)
        self._lock = threading.Lock()

    def append(self, line: str) -> None:
        with self._lock:
            self._lines.append(line)

    def lines(self) -> List[str]:
        with self._lock:
            return list(self._lines)

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)


def _read_pipe(pipe, process_name: str, level: int, capture: Optional[CaptureBuffer] = None) -> None:
    """Target function for reader threads. Reads, logs and captures lines from a subprocess pipe."""
    proc_logger = logging.getLogger(f"proc.{process_name}")
    try:
        for line_bytes in iter(pipe.readline, b""):
            line = line_bytes.decode("utf-8", errors="replace").rstrip()
            if not line:
                continue
            if capture is not None:
                capture.append(line)
            proc_logger.log(level, line)
    except (OSError, ValueError) as e:
        proc_logger.debug(f"Pipe reader for {process_name} stream exited: {e}")
    finally:
        pipe.close()


def log_process_output(process: subprocess.Popen, name: str, capture: Optional[CaptureBuffer] = None) -> List[threading.Thread]:
    """Starts background threads to consume, log and capture a process's stdout/stderr."""
    threads = []
    # arpwatch reports everything (including its debug output) on stderr, so
    # both streams are logged at INFO and errors are judged by exit status.
    for stream, suffix in ((process.stdout, "stdout"), (process.stderr, "stderr")):
        if stream is None:
            continue
        thread = threading.Thread(
            target=_read_pipe,
            args=(stream, name, logging.INFO, capture),
            daemon=True,
            name=f"{name}-{suffix}-reader",
        )
        thread.start()
        threads.append(thread)
    return threads


#* --- Process Creation ---
def launch_process(command: Sequence[str], capture: Optional[CaptureBuffer] = None) -> Tuple[subprocess.Popen, List[threading.Thread]]:
    """
    Launches the wrapped binary as a child process with piped output.

    :param command: Full command line, binary first.
    :param capture: Buffer that receives every output line.
    :return: The Popen handle and the reader threads.
    :raises OSError: If the binary cannot be executed.
    """
    name = command[0].rsplit("/", 1)[-1]
    log.debug(f"Launching: {' '.join(command)}")
    p = subprocess.Popen(
        list(command),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        stdin=subprocess.DEVNULL,
    )
    threads = log_process_output(p, name, capture)
    return p, threads


def drain_output(threads: Sequence[threading.Thread], timeout: float = 1.0) -> None:
    """Gives the reader threads a moment to consume what the child wrote before exiting."""
    for thread in threads:
        thread.join(timeout)


#* --- Process Status & Monitoring ---
def is_process_alive(process: subprocess.Popen) -> bool:
    """
    Checks whether the managed child is still running.
    A zombie counts as dead; `poll()` reaps it and records the return code.
    """
    if process.poll() is not None:
        return False
    try:
        return psutil.Process(process.pid).status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False


def _matches_name(proc: psutil.Process, name: str) -> bool:
    try:
        if proc.name() == name:
            return True
        cmdline = proc.cmdline()
        return bool(cmdline) and cmdline[0].rsplit("/", 1)[-1] == name
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
        return False


def find_monitored_processes(name: str = settings.ARPWATCH_BINARY, user: Optional[str] = None) -> List[psutil.Process]:
    """
    Finds running processes with the given executable name, optionally owned by `user`.
    This is the equivalent of `pgrep -u <user> <name>`.
    """
    matches = []
    for proc in psutil.process_iter(["name", "username", "status"]):
        if proc.info.get("status") == psutil.STATUS_ZOMBIE:
            continue
        if user is not None and proc.info.get("username") != user:
            continue
        if _matches_name(proc, name):
            matches.append(proc)
    return matches
