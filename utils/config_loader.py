"""
Configuration management for the music organizer.

Settings are layered: dataclass defaults, then an optional YAML file, then
``MUSIC_ORGANIZER_*`` environment variables. The merged result is validated
once and handed around as a plain dictionary.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import asdict, dataclass, field

from utils.exceptions import ConfigurationError

ENV_PREFIX = "MUSIC_ORGANIZER_"
TAG_READERS = ('ffprobe', 'mutagen')
VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


@dataclass
class FilesystemConfig:
    base_dir: str = "."
    audio_extensions: list = field(default_factory=lambda: ['.mp3', '.m4a', '.flac', '.wav'])
    follow_symlinks: bool = False
    remove_empty_dirs: bool = False


@dataclass
class TagsConfig:
    reader: str = "ffprobe"
    ffprobe_path: str = "ffprobe"
    probe_timeout_seconds: float = 30.0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024
    backup_count: int = 5


@dataclass
class MusicConfig:
    filesystem: FilesystemConfig = field(default_factory=FilesystemConfig)
    tags: TagsConfig = field(default_factory=TagsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Build the effective configuration.

    A missing ``config_path`` is not an error; the defaults apply.

    Raises:
        ConfigurationError: If the file is unreadable or any value is invalid
    """
    config = asdict(MusicConfig())
    if config_path and config_path.exists():
        config = _merge_configs(config, _read_config_file(config_path))
    config = _merge_configs(config, _env_overrides(os.environ))

    _validate_config(config)
    return config


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            file_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file: {e}")
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {config_path}: {e}")

    if file_config is None:
        return {}
    if not isinstance(file_config, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")
    return file_config


def _merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``base`` with ``override`` laid over it; nested mappings merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _merge_configs(current, value)
        merged[key] = value
    return merged


def _env_overrides(environ) -> Dict[str, Any]:
    """
    Collect ``MUSIC_ORGANIZER_*`` variables into a nested mapping.

    A double underscore separates nesting levels, so
    ``MUSIC_ORGANIZER_TAGS__READER=mutagen`` sets ``tags.reader``. Values are
    parsed as YAML scalars or flow collections (``true``, ``5``,
    ``[".mp3", ".ogg"]``); anything unparseable is kept as the raw string.
    """
    overrides: Dict[str, Any] = {}
    for name, raw in environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        *parents, leaf = name[len(ENV_PREFIX):].lower().split('__')
        section = overrides
        for part in parents:
            section = section.setdefault(part, {})
        section[leaf] = _parse_env_value(raw)
    return overrides


def _parse_env_value(raw: str) -> Any:
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw


def _validate_config(config: Dict[str, Any]):
    """
    Validate configuration values.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    filesystem_config = config.get('filesystem', {})

    audio_extensions = filesystem_config.get('audio_extensions', [])
    if not isinstance(audio_extensions, list) or not audio_extensions:
        raise ConfigurationError("filesystem.audio_extensions must be a non-empty list")
    for ext in audio_extensions:
        if not isinstance(ext, str) or not ext.lstrip('.'):
            raise ConfigurationError(f"filesystem.audio_extensions contains an invalid entry: {ext!r}")

    base_dir = filesystem_config.get('base_dir', '.')
    if not isinstance(base_dir, str) or not base_dir:
        raise ConfigurationError("filesystem.base_dir must be a non-empty path")

    tags_config = config.get('tags', {})

    reader = tags_config.get('reader', 'ffprobe')
    if reader not in TAG_READERS:
        raise ConfigurationError(f"tags.reader must be one of {list(TAG_READERS)}")

    timeout_seconds = tags_config.get('probe_timeout_seconds', 30.0)
    if isinstance(timeout_seconds, bool) or not isinstance(timeout_seconds, (int, float)) \
            or timeout_seconds <= 0:
        raise ConfigurationError("tags.probe_timeout_seconds must be a positive number")

    logging_config = config.get('logging', {})

    log_level = logging_config.get('level', 'INFO')
    if not isinstance(log_level, str) or log_level.upper() not in VALID_LOG_LEVELS:
        raise ConfigurationError(f"logging.level must be one of {VALID_LOG_LEVELS}")


def get_config_template() -> str:
    """
    Get a YAML template for the configuration file.

    Returns:
        YAML configuration template as string
    """
    return """# Configuration for the music organizer
filesystem:
  base_dir: "."              # Used when no directory is given on the command line
  audio_extensions:
    - .mp3
    - .m4a
    - .flac
    - .wav
  follow_symlinks: false     # Symlinked files are skipped unless enabled
  remove_empty_dirs: false   # Prune empty directories after the run

tags:
  reader: ffprobe            # ffprobe | mutagen
  ffprobe_path: ffprobe
  probe_timeout_seconds: 30

logging:
  level: INFO
  format: "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
  file: null                 # e.g. "music-organizer.log"
  max_file_size: 10485760
  backup_count: 5
"""
