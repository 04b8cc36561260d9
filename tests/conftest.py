"""Shared fixtures: an isolated project directory and an app built on it."""

from pathlib import Path

import pytest

from trindade import App
from trindade.config import AppConfig, DatabaseConfig, PathsConfig


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    """Config rooted in a temporary directory with its own SQLite file."""
    return AppConfig(
        secret_key="test-secret",
        paths=PathsConfig(base=str(tmp_path)),
        database=DatabaseConfig(url="sqlite:///storage/test.sqlite"),
    )


@pytest.fixture
def app(config: AppConfig) -> App:
    return App(config)
