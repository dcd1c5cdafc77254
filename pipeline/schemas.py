"""
Pydantic schemas for the organization pipeline.

These models are the values handed from one stage to the next. None of
them outlive a run.
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional, Dict

from pydantic import BaseModel, Field, field_validator

from filesystem.naming import sanitize, split_extension


class FileTask(BaseModel):
    """One discovered audio file."""

    original_path: Path = Field(..., description="Path of the file as discovered")
    directory: Path = Field(..., description="Directory currently containing the file")
    base_name: str = Field(..., description="Filename including extension")
    extension: str = Field(..., description="Lower-cased suffix after the last dot")
    name_without_extension: str = Field(..., description="Filename up to the last dot")

    @classmethod
    def from_path(cls, file_path: Path) -> "FileTask":
        stem, extension = split_extension(file_path.name)
        return cls(
            original_path=file_path,
            directory=file_path.parent,
            base_name=file_path.name,
            extension=extension.lower(),
            name_without_extension=stem,
        )


class TrackTags(BaseModel):
    """Sanitized album/artist/title values; None means the tag is absent."""

    album: Optional[str] = None
    artist: Optional[str] = None
    title: Optional[str] = None

    @field_validator('album', 'artist', 'title', mode='before')
    @classmethod
    def sanitize_value(cls, v):
        if v is None:
            return None
        return sanitize(str(v))


class PlacementPlan(BaseModel):
    """Where a file should end up, before collision resolution."""

    target_directory: Path
    target_file_name: str

    @property
    def target_path(self) -> Path:
        return self.target_directory / self.target_file_name


class FileOutcome(str, Enum):
    MOVED = "moved"
    SKIPPED_NOOP = "skipped_noop"
    SKIPPED_ERROR = "skipped_error"
    PLANNED = "planned"  # dry-run: would have been moved


class FileResult(BaseModel):
    """Result of processing a single music file."""

    original_path: Path
    outcome: FileOutcome
    tags: Optional[TrackTags] = None
    target_path: Optional[Path] = None
    error_message: Optional[str] = None
    processing_time_seconds: float = 0.0


class RunReport(BaseModel):
    """Everything that happened during one run."""

    base_dir: Path
    dry_run: bool = False
    results: List[FileResult] = Field(default_factory=list)
    removed_directories: List[Path] = Field(default_factory=list)
    total_processing_time_seconds: float = 0.0

    def count(self, outcome: FileOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def outcome_counts(self) -> Dict[str, int]:
        return {outcome.value: self.count(outcome) for outcome in FileOutcome}
