"""
Custom exception hierarchy for the music organizer application.

Fatal errors (ConfigurationError, DependencyMissingError) stop a run before
any file is touched. Everything deriving from FileProcessingError is scoped
to a single file: the pipeline records it and moves on to the next file.
"""


class MusicOrganizerError(Exception):
    """Base class for all application-specific errors."""
    pass


class ConfigurationError(MusicOrganizerError):
    """Raised when there are configuration-related issues."""
    pass


class DependencyMissingError(MusicOrganizerError):
    """Raised when the tag-reading capability is unavailable at startup."""

    def __init__(self, dependency: str, reason: str = None):
        self.dependency = dependency
        self.reason = reason

        message = f"Required dependency not available: {dependency}"
        if reason:
            message += f" - {reason}"

        super().__init__(message)


class FileProcessingError(MusicOrganizerError):
    """Base class for errors confined to a single file."""

    def __init__(self, file_path: str, message: str):
        self.file_path = file_path
        super().__init__(message)


class TagReadError(FileProcessingError):
    """Raised when tags cannot be read from an audio file."""

    def __init__(self, file_path: str, reason: str = None):
        self.reason = reason

        message = f"Failed to read tags from file: {file_path}"
        if reason:
            message += f" - {reason}"

        super().__init__(file_path, message)


class DirectoryCreateError(FileProcessingError):
    """Raised when a target directory cannot be created."""

    def __init__(self, file_path: str, directory: str, reason: str = None):
        self.directory = directory
        self.reason = reason

        message = f"Could not create directory '{directory}'"
        if reason:
            message += f": {reason}"

        super().__init__(file_path, message)


class MoveError(FileProcessingError):
    """Raised when moving a file to its target fails."""

    def __init__(self, source_path: str, dest_path: str, reason: str = None):
        self.source_path = source_path
        self.dest_path = dest_path
        self.reason = reason

        message = f"Failed to move '{source_path}' to '{dest_path}'"
        if reason:
            message += f": {reason}"

        super().__init__(source_path, message)


class UnresolvableNameError(FileProcessingError):
    """Raised when no valid target filename can be formed."""

    def __init__(self, file_path: str):
        message = f"Could not determine a valid filename for '{file_path}'"
        super().__init__(file_path, message)
