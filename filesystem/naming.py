"""
Filename and directory-name synthesis for organized tracks.

Everything here is pure string logic. Filesystem state enters only through
the ``exists`` predicate handed to :func:`next_free_name`.
"""

import re
from typing import Callable, Optional, Tuple

ILLEGAL_CHARS = '[]\\/:*?"<>|'
EDGE_CHARS = ' .'

_ILLEGAL_RE = re.compile('[' + re.escape(ILLEGAL_CHARS) + ']')


def sanitize(value: Optional[str]) -> Optional[str]:
    """
    Make a string safe to use as a single path component.

    Removes every character in ``[ ] \\ / : * ? " < > |`` and then trims
    leading and trailing spaces and dots. An empty result is returned as
    None, so callers can tell "absent" apart from a usable value.
    """
    if value is None:
        return None
    cleaned = _ILLEGAL_RE.sub('', value).strip(EDGE_CHARS)
    return cleaned or None


def split_extension(filename: str) -> Tuple[str, str]:
    """
    Split ``filename`` at its last dot.

    Returns (stem, extension) with the extension lacking its dot. A name
    without a dot has an empty extension; ``".mp3"`` has an empty stem.
    """
    stem, dot, extension = filename.rpartition('.')
    if not dot:
        return filename, ''
    return stem, extension


def compose_stem(artist: Optional[str], title: Optional[str]) -> Optional[str]:
    """Build the tag-derived part of a filename, or None if tags don't allow one."""
    if artist and title:
        return f"{artist} - {title}"
    if title:
        return title
    return None


def join_extension(stem: str, extension: str) -> str:
    return f"{stem}.{extension}" if extension else stem


def next_free_name(filename: str, exists: Callable[[str], bool]) -> str:
    """
    Return the first of ``filename``, ``stem_1.ext``, ``stem_2.ext``, ...
    for which ``exists`` is false.

    ``exists`` answers whether a candidate name is already taken in the
    target directory. The counter is always applied to the original stem,
    so with N taken variants the result carries ``_N``.
    """
    stem, extension = split_extension(filename)
    candidate = filename
    counter = 1
    while exists(candidate):
        candidate = join_extension(f"{stem}_{counter}", extension)
        counter += 1
    return candidate
