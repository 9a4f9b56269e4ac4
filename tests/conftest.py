import stat
import textwrap
from pathlib import Path
from typing import Callable

import pytest

from arpwatch_container.config import EntrypointConfig


@pytest.fixture
def fake_binary(tmp_path: Path) -> Callable[[str], Path]:
    """Writes an executable shell script standing in for arpwatch."""
    def _make(body: str, name: str = "arpwatch") -> Path:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        script = bin_dir / name
        script.write_text("#!/bin/sh\n" + textwrap.dedent(body).lstrip())
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script
    return _make


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def make_config(data_dir: Path) -> Callable[..., EntrypointConfig]:
    """Builds a root, fast-polling configuration with overridable fields."""
    def _make(**overrides) -> EntrypointConfig:
        values = dict(
            interface_spec="eth0",
            data_dir=data_dir,
            effective_uid=0,
            settle_delay=0.2,
            poll_interval=0.2,
            shutdown_timeout=2.0,
        )
        values.update(overrides)
        return EntrypointConfig(**values)
    return _make
