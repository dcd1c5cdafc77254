import os

import pytest

from utils.config_loader import load_config


@pytest.fixture
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("MUSIC_ORGANIZER_"):
            monkeypatch.delenv(key)


@pytest.fixture
def config(clean_env):
    return load_config(None)


@pytest.fixture
def music_dir(tmp_path):
    base = tmp_path / "music"
    base.mkdir()
    return base
