"""
Container-level tag readers.

A tag reader turns an audio file into a plain ``{tag name: value}`` mapping
of its format-level tags. Two backends exist: ffprobe (the default, run as a
subprocess with a per-file timeout) and mutagen (pure Python, in-process).
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import Dict, Any, Optional

import mutagen
from mutagen import MutagenError

from utils.exceptions import DependencyMissingError, TagReadError

logger = logging.getLogger(__name__)

TAG_FIELDS = ('album', 'artist', 'title')


def lookup_tag(tags: Dict[str, str], field: str) -> Optional[str]:
    """
    Find ``field`` among ``tags`` regardless of key casing.

    Encoders disagree on casing (``artist`` vs ``ARTIST``), so the lower-case
    key is tried first, then upper-case, then any other casing. The first
    non-empty value wins.
    """
    candidates = [field.lower(), field.upper()]
    candidates.extend(
        key for key in tags
        if key.casefold() == field.casefold() and key not in candidates
    )
    for key in candidates:
        value = tags.get(key)
        if value is not None and str(value).strip():
            return str(value)
    return None


class TagReader:
    """Interface shared by the tag-reading backends."""

    name = "base"

    def check_available(self) -> None:
        """Raise DependencyMissingError if this backend cannot run at all."""
        raise NotImplementedError

    def read_format_tags(self, file_path: Path) -> Dict[str, str]:
        """Return the file's container-level tags or raise TagReadError."""
        raise NotImplementedError


class FFprobeTagReader(TagReader):
    """Reads ``format.tags`` from ffprobe's JSON output."""

    name = "ffprobe"

    def __init__(self, ffprobe_path: str = "ffprobe", timeout_seconds: float = 30.0):
        self.ffprobe_path = ffprobe_path
        self.timeout_seconds = timeout_seconds

    def check_available(self) -> None:
        try:
            subprocess.run(
                [self.ffprobe_path, '-version'],
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout_seconds
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            raise DependencyMissingError(
                self.ffprobe_path,
                f"ffprobe (from FFmpeg) is not usable, please install FFmpeg: {e}"
            )
        logger.debug(f"FFprobe is available: {self.ffprobe_path}")

    def read_format_tags(self, file_path: Path) -> Dict[str, str]:
        cmd = [
            self.ffprobe_path,
            '-v', 'quiet',
            '-print_format', 'json',
            '-show_format',
            str(file_path)
        ]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                check=True,
                timeout=self.timeout_seconds
            )
        except subprocess.CalledProcessError as e:
            raise TagReadError(str(file_path), f"ffprobe exited with status {e.returncode}")
        except subprocess.TimeoutExpired:
            raise TagReadError(str(file_path), f"ffprobe timed out after {self.timeout_seconds}s")
        except OSError as e:
            raise TagReadError(str(file_path), f"could not run ffprobe: {e}")

        try:
            output = json.loads(result.stdout.decode('utf-8', errors='replace') or '{}')
        except json.JSONDecodeError as e:
            raise TagReadError(str(file_path), f"unparseable ffprobe output: {e}")

        tags = output.get('format', {}).get('tags', {}) if isinstance(output, dict) else {}
        if not isinstance(tags, dict):
            return {}
        return {str(key): str(value) for key, value in tags.items()}


class MutagenTagReader(TagReader):
    """Reads tags in-process with mutagen, normalizing keys across containers."""

    name = "mutagen"

    # ID3 frames, Vorbis comments (matched case-insensitively by mutagen), MP4 atoms
    TAG_MAPPING = {
        'album': ['TALB', 'ALBUM', '\xa9alb'],
        'artist': ['TPE1', 'ARTIST', '\xa9ART'],
        'title': ['TIT2', 'TITLE', '\xa9nam'],
    }

    def check_available(self) -> None:
        logger.debug(f"Using mutagen {mutagen.version_string} for tag reading")

    def read_format_tags(self, file_path: Path) -> Dict[str, str]:
        try:
            audio_file = mutagen.File(str(file_path))
        except (MutagenError, OSError) as e:
            raise TagReadError(str(file_path), f"mutagen failed to load file: {e}")

        if audio_file is None:
            raise TagReadError(str(file_path), "format not recognized by mutagen")

        if not audio_file.tags:
            return {}

        tags = {}
        for standard_key, possible_keys in self.TAG_MAPPING.items():
            for key in possible_keys:
                try:
                    if key not in audio_file.tags:
                        continue
                    value = _first_text(audio_file.tags[key])
                except (ValueError, KeyError, TypeError) as tag_error:
                    logger.debug(f"Error reading tag {key} from {file_path}: {tag_error}")
                    continue
                if value:
                    tags[standard_key] = value
                    break
        return tags


def _first_text(value: Any) -> Optional[str]:
    """Pull the first text value out of an ID3 frame, tag list or scalar."""
    if hasattr(value, 'text'):
        value = value.text
    if isinstance(value, list):
        value = value[0] if value else None
    return str(value) if value is not None else None


def create_tag_reader(tags_config: Dict[str, Any]) -> TagReader:
    """Build the backend named by ``tags.reader`` in the configuration."""
    reader = tags_config.get('reader', 'ffprobe')
    if reader == 'ffprobe':
        return FFprobeTagReader(
            ffprobe_path=tags_config.get('ffprobe_path', 'ffprobe'),
            timeout_seconds=tags_config.get('probe_timeout_seconds', 30.0)
        )
    if reader == 'mutagen':
        return MutagenTagReader()
    raise ValueError(f"Unknown tag reader: {reader}")
