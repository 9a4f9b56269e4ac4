import sys
import socket
import logging
import threading
from collections import deque
from typing import Any, Deque, Dict, List, Optional

import requests

from arpwatch_container import settings


class LokiHandler(logging.Handler):
    """
    A custom logging handler that sends logs to a Grafana Loki instance
    in batches using a background thread.
    """
    def __init__(
        self,
        url: str,
        org_id: Optional[str] = None,
        flush_interval: float = settings.LOG_BUFFER_FLUSH_INTERVAL,
        batch_size: int = settings.LOG_BUFFER_BATCH_SIZE,
    ):
        """
        Initializes the Loki handler.

        :param url: The base URL of the Loki instance.
        :param org_id: The tenant ID for Loki (e.g., 'X-Scope-OrgID').
        :param flush_interval: Seconds between background flushes.
        :param batch_size: Number of buffered entries that triggers an immediate flush.
        """
        super().__init__()
        self.url = f"{url.rstrip('/')}/loki/api/v1/push"
        self.org_id = org_id
        self.log_buffer: Deque[Dict[str, Any]] = deque()
        self.buffer_lock = threading.Lock()
        self.flush_interval = flush_interval
        self.batch_size = batch_size
        self.hostname = socket.gethostname() or 'unknown-host'

        self.stop_event = threading.Event()
        self.flush_thread = threading.Thread(target=self._periodic_flush, daemon=True, name="LokiFlushThread")
        self.flush_thread.start()

    def _periodic_flush(self) -> None:
        """
        Periodically flushes the log buffer. This runs in a background thread.
        The final flush is called when the handler is closed.
        """
        while not self.stop_event.wait(self.flush_interval):
            self.flush()
        self.flush()

    def build_entry(self, record: logging.LogRecord) -> Dict[str, Any]:
        """Converts a log record into a Loki stream entry."""
        if record.name.startswith('proc.'):
            msg = record.getMessage()
            logger_name = record.name.split('.')[-1]
        else:
            msg = self.format(record)
            logger_name = record.name

        return {
            "stream": {
                "job": "arpwatch",
                "level": record.levelname.lower(),
                "hostname": self.hostname,
                "logger": logger_name,
            },
            "values": [
                [str(int(record.created * 1e9)), msg]
            ]
        }

    def emit(self, record: logging.LogRecord) -> None:
        """
        Adds a formatted record to the internal buffer.
        If the buffer reaches the batch size, it is sent right away.
        """
        try:
            entry = self.build_entry(record)
            with self.buffer_lock:
                self.log_buffer.append(entry)
                if len(self.log_buffer) < self.batch_size:
                    return
                logs_to_send = self._take_buffer()
            self._send(logs_to_send)
        except Exception:
            self.handleError(record)

    def _take_buffer(self) -> List[Dict[str, Any]]:
        """Empties the buffer. The caller must hold the buffer lock."""
        logs = list(self.log_buffer)
        self.log_buffer.clear()
        return logs

    def _send(self, logs_to_send: List[Dict[str, Any]]) -> None:
        """Pushes a batch to Loki. Called without holding the buffer lock."""
        if not logs_to_send:
            return

        headers = {'Content-Type': 'application/json'}
        if self.org_id:
            headers['X-Scope-OrgID'] = self.org_id

        try:
            response = requests.post(self.url, json={"streams": logs_to_send}, headers=headers, timeout=5)
            # 204 No Content is the success status for Loki push
            if response.status_code != 204:
                print(f"ERROR: Loki returned non-204 status: {response.status_code} - {response.text}", file=sys.stderr)
        except requests.RequestException as e:
            print(f"CRITICAL: Failed to send {len(logs_to_send)} logs to Loki: {e}", file=sys.stderr)

    def flush(self) -> None:
        """Sends everything currently buffered."""
        with self.buffer_lock:
            logs_to_send = self._take_buffer()
        self._send(logs_to_send)

    def close(self) -> None:
        """
        Shuts down the handler, ensuring all buffered logs are flushed and threads are joined.
        """
        self.stop_event.set()
        if self.flush_thread.is_alive():
            self.flush_thread.join(timeout=self.flush_interval + 2)
        super().close()
