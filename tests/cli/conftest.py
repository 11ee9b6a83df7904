"""CLI test fixtures."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog
from click.testing import CliRunner, Result


@pytest.fixture(autouse=True)
def _reset_logging() -> Generator[None, None, None]:
    """Drop handlers bound to the runner's streams after each invocation."""
    yield
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def db_path(project_root: Path) -> Path:
    return project_root / "kb.db"


@pytest.fixture
def mkb(tmp_path: Path, project_root: Path) -> Callable[..., Result]:
    """Invoke the CLI rooted at project_root, isolated from any global config."""
    from mismokb.cli.main import cli

    runner = CliRunner()

    def _invoke(*args: str) -> Result:
        with patch("mismokb.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml"):
            return runner.invoke(cli, ["--config-root", str(project_root), *args])

    return _invoke


@pytest.fixture
def ingested(mkb: Callable[..., Result], sample_xmi: Path, db_path: Path) -> Path:
    """Project store populated with the sample dictionary."""
    result = mkb("ingest", str(sample_xmi), "--db", str(db_path))
    assert result.exit_code == 0, result.output
    return db_path
