"""
Filesystem operations for the organizer, built on pathlib and os.

Discovery, directory creation, collision-aware naming against the live
directory and a move that refuses to overwrite an existing file.
"""

import errno
import os
import shutil
from pathlib import Path
from typing import List, Iterable, Optional, Set
import logging

from filesystem.naming import next_free_name
from utils.exceptions import ConfigurationError, DirectoryCreateError, MoveError

logger = logging.getLogger(__name__)

# os.link failures that mean "hard links are not possible here", not "target exists"
_LINK_UNSUPPORTED = {errno.EXDEV, errno.EPERM, errno.EMLINK, errno.ENOTSUP, errno.EOPNOTSUPP, errno.EACCES}


class FileSystemOperations:
    """Handles all filesystem operations with proper error handling."""

    def __init__(self, audio_extensions: Iterable[str], follow_symlinks: bool = False):
        """
        Initialize filesystem operations.

        Args:
            audio_extensions: Supported audio file extensions, with or without dots
            follow_symlinks: Whether symlinked files and directories are processed
        """
        self.audio_extensions = {ext.lower().lstrip('.') for ext in audio_extensions}
        self.follow_symlinks = follow_symlinks

    def is_audio_file(self, name: str) -> bool:
        _, dot, extension = name.rpartition('.')
        return bool(dot) and extension.lower() in self.audio_extensions

    def discover_audio_files(self, root_dir: Path) -> List[Path]:
        """
        Find audio files anywhere under ``root_dir``.

        Directories and files are visited in lexicographic order so collision
        numbering is reproducible. The full list is collected before returning;
        files moved into new album directories are not visited again.

        Raises:
            ConfigurationError: If the root directory is missing or not a directory
        """
        if not root_dir.exists():
            raise ConfigurationError(f"Music directory does not exist: {root_dir}")

        if not root_dir.is_dir():
            raise ConfigurationError(f"Music path is not a directory: {root_dir}")

        def _on_error(error: OSError):
            logger.warning(f"Cannot scan {error.filename}: {error.strerror}")

        found = []
        for dirpath, dirnames, filenames in os.walk(
            root_dir, onerror=_on_error, followlinks=self.follow_symlinks
        ):
            dirnames.sort()
            for filename in sorted(filenames):
                if not self.is_audio_file(filename):
                    continue

                path = Path(dirpath) / filename
                if path.is_symlink() and not self.follow_symlinks:
                    logger.warning(f"Skipping symlink: {path}")
                    continue
                if not path.is_file():
                    logger.warning(f"Skipping non-regular file: {path}")
                    continue

                found.append(path)

        return found

    def ensure_directory(self, directory: Path, file_path: Path) -> None:
        """
        Create ``directory`` and any missing parents.

        Raises:
            DirectoryCreateError: If the directory cannot be created
        """
        if directory.is_dir():
            return
        logger.info(f"  Creating directory: {directory}")
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreateError(str(file_path), str(directory), str(e))

    def resolve_collision(
        self, directory: Path, filename: str, source: Path, reserved: Optional[Set[Path]] = None
    ) -> str:
        """
        Pick a name in ``directory`` that no other file currently occupies.

        ``source`` itself never counts as a collision, so a file that already
        sits at its target keeps its name. Paths in ``reserved`` count as
        occupied even if nothing exists there yet (used by dry runs).
        """
        def taken(candidate: str) -> bool:
            path = directory / candidate
            if reserved and path in reserved:
                return True
            if not os.path.lexists(path):
                return False
            return not self._is_same_file(path, source)

        return next_free_name(filename, taken)

    def _is_same_file(self, path: Path, source: Path) -> bool:
        if path == source:
            return True
        try:
            return path.samefile(source)
        except OSError:
            return False

    def move_no_clobber(self, source: Path, destination: Path) -> None:
        """
        Move ``source`` to ``destination`` without ever replacing an existing file.

        A hard link claims the destination atomically and fails if anything is
        already there; the source is unlinked afterwards. Where hard links are
        not possible (other device, FAT-style filesystems) an existence check
        followed by shutil.move is used instead.

        Raises:
            MoveError: If the destination exists or the move fails
        """
        if self._is_same_file(destination, source) and destination != source:
            # Same inode under another name, e.g. a case-only rename
            try:
                os.rename(source, destination)
            except OSError as e:
                raise MoveError(str(source), str(destination), str(e))
            return

        try:
            os.link(source, destination)
        except FileExistsError:
            raise MoveError(str(source), str(destination), "destination already exists")
        except OSError as e:
            if e.errno not in _LINK_UNSUPPORTED:
                raise MoveError(str(source), str(destination), str(e))
            self._fallback_move(source, destination)
            return

        try:
            os.unlink(source)
        except OSError as e:
            destination.unlink(missing_ok=True)
            raise MoveError(str(source), str(destination), f"could not remove source: {e}")

    def _fallback_move(self, source: Path, destination: Path) -> None:
        if os.path.lexists(destination):
            raise MoveError(str(source), str(destination), "destination already exists")
        try:
            shutil.move(str(source), str(destination))
        except (OSError, shutil.Error) as e:
            raise MoveError(str(source), str(destination), str(e))

    def remove_empty_directories(self, root_dir: Path) -> List[Path]:
        """
        Remove empty directories below ``root_dir``, deepest first.

        ``root_dir`` itself is kept. Only directories are removed, never files.
        """
        removed = []
        for dirpath, dirnames, filenames in os.walk(root_dir, topdown=False):
            directory = Path(dirpath)
            if directory == root_dir:
                continue
            try:
                if any(directory.iterdir()):
                    continue
                directory.rmdir()
            except OSError as e:
                logger.warning(f"Could not remove empty directory {directory}: {e}")
                continue
            logger.info(f"Removed empty directory: {directory}")
            removed.append(directory)
        return removed
