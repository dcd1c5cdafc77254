"""Tests for utils/config_loader.py."""

import pytest
import yaml

from utils.config_loader import get_config_template, load_config
from utils.exceptions import ConfigurationError


def write_config(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults(config):
    assert config['filesystem']['base_dir'] == "."
    assert config['filesystem']['audio_extensions'] == ['.mp3', '.m4a', '.flac', '.wav']
    assert config['tags']['reader'] == "ffprobe"
    assert config['tags']['probe_timeout_seconds'] == 30.0
    assert config['logging']['level'] == "INFO"
    assert config['logging']['file'] is None


def test_missing_file_means_defaults(clean_env, tmp_path):
    assert load_config(tmp_path / "absent.yaml") == load_config(None)


def test_yaml_is_merged_over_defaults(clean_env, tmp_path):
    path = write_config(tmp_path, "tags:\n  reader: mutagen\nlogging:\n  level: DEBUG\n")

    config = load_config(path)

    assert config['tags']['reader'] == "mutagen"
    assert config['tags']['ffprobe_path'] == "ffprobe"
    assert config['logging']['level'] == "DEBUG"


def test_env_overrides(clean_env, monkeypatch):
    monkeypatch.setenv("MUSIC_ORGANIZER_TAGS__PROBE_TIMEOUT_SECONDS", "5")
    monkeypatch.setenv("MUSIC_ORGANIZER_FILESYSTEM__REMOVE_EMPTY_DIRS", "true")
    monkeypatch.setenv("MUSIC_ORGANIZER_FILESYSTEM__AUDIO_EXTENSIONS", '[".mp3", ".ogg"]')

    config = load_config(None)

    assert config['tags']['probe_timeout_seconds'] == 5
    assert config['filesystem']['remove_empty_dirs'] is True
    assert config['filesystem']['audio_extensions'] == [".mp3", ".ogg"]


def test_env_value_that_is_not_yaml_is_kept_verbatim(clean_env, monkeypatch):
    monkeypatch.setenv("MUSIC_ORGANIZER_LOGGING__FORMAT", "%(levelname)s: %(message)s")
    monkeypatch.setenv("MUSIC_ORGANIZER_LOGGING__FILE", "")

    config = load_config(None)

    assert config['logging']['format'] == "%(levelname)s: %(message)s"
    assert config['logging']['file'] is None
    assert config['logging']['level'] == "INFO"


@pytest.mark.parametrize("text", [
    "filesystem:\n  audio_extensions: []\n",
    "tags:\n  reader: vlc\n",
    "tags:\n  probe_timeout_seconds: 0\n",
    "logging:\n  level: LOUD\n",
    "- just\n- a list\n",
    "tags: [unclosed\n",
])
def test_invalid_config(clean_env, tmp_path, text):
    with pytest.raises(ConfigurationError):
        load_config(write_config(tmp_path, text))


def test_template_loads_cleanly(clean_env, tmp_path):
    parsed = yaml.safe_load(get_config_template())
    assert parsed['tags']['reader'] == "ffprobe"
    assert load_config(write_config(tmp_path, get_config_template())) == load_config(None)
