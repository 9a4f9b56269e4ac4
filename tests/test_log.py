import logging

import pytest

from arpwatch_container.config import EntrypointConfig
from arpwatch_container.log import setup_logging
from arpwatch_container.log.handler import LokiHandler
from arpwatch_container.log.setup import MainFormatter


def _record(name: str, msg: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, msg, None, None)


def test_formatter_passes_subprocess_lines_raw():
    formatter = MainFormatter()
    assert formatter.format(_record("proc.arpwatch", "new station 10.0.0.5")) == "new station 10.0.0.5"

    formatted = formatter.format(_record("arpwatch_container.supervisor", "Shutdown complete."))
    assert "INFO" in formatted
    assert "[arpwatch_container.supervisor]" in formatted
    assert formatted.endswith("Shutdown complete.")


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_setup_logging_uses_config_level(restore_root_logger):
    setup_logging(config=EntrypointConfig(log_level="warning"))

    handlers = restore_root_logger.handlers
    assert len(handlers) == 1
    assert handlers[0].level == logging.WARNING
    assert isinstance(handlers[0].formatter, MainFormatter)


@pytest.fixture
def loki(monkeypatch):
    posts = []

    class Response:
        status_code = 204
        text = ""

    def fake_post(url, json, headers, timeout):
        posts.append((url, json, headers))
        return Response()

    monkeypatch.setattr("arpwatch_container.log.handler.loki.requests.post", fake_post)
    handler = LokiHandler("http://loki:3100/", org_id="tenant", flush_interval=60, batch_size=2)
    yield handler, posts
    handler.close()


def test_loki_handler_batches_and_labels(loki):
    handler, posts = loki

    handler.emit(_record("proc.arpwatch", "changed ethernet address"))
    assert posts == []

    handler.emit(_record("arpwatch_container.main", "hello", logging.WARNING))
    assert len(posts) == 1

    url, payload, headers = posts[0]
    assert url == "http://loki:3100/loki/api/v1/push"
    assert headers["X-Scope-OrgID"] == "tenant"
    streams = payload["streams"]
    assert [s["stream"]["logger"] for s in streams] == ["arpwatch", "arpwatch_container.main"]
    assert streams[0]["values"][0][1] == "changed ethernet address"
    assert streams[1]["stream"]["level"] == "warning"


def test_loki_flush_on_close_sends_remaining(loki):
    handler, posts = loki
    handler.emit(_record("proc.arpwatch", "new activity"))
    handler.flush()
    assert len(posts) == 1
    handler.flush()
    assert len(posts) == 1
