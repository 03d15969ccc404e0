from __future__ import annotations

from pathlib import Path

import pytest

from printrelay.config import Settings
from printrelay.main import create_app
from printrelay.services.config_store import ConfigStore


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        config_dir=tmp_path / "config",
        upload_dir=tmp_path / "uploads",
        static_dir=tmp_path / "static",
        mdns_enabled=False,
    )


@pytest.fixture
def upload_dir(settings: Settings) -> Path:
    return settings.upload_dir


@pytest.fixture
def store(settings: Settings) -> ConfigStore:
    return ConfigStore(settings.config_dir)


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)
