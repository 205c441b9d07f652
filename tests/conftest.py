from __future__ import annotations

import pytest
from loguru import logger
from typer.testing import CliRunner

from urlcanon.config import CONFIG_ENV


@pytest.fixture()
def runner(monkeypatch) -> CliRunner:
    monkeypatch.delenv(CONFIG_ENV, raising=False)
    yield CliRunner()
    # The CLI points loguru at the runner's captured stderr.
    logger.remove()
    logger.disable("urlcanon")
