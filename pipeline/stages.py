"""
Implementation of the four-stage organization pipeline.

Stage 1: Triage (path -> FileTask)
Stage 2: Tag Extraction
Stage 3: Path Synthesis
Stage 4: Placement
"""

import logging
import time
from pathlib import Path

from filesystem.file_ops import FileSystemOperations
from filesystem.naming import compose_stem, join_extension, sanitize, split_extension
from filesystem.tag_reader import TAG_FIELDS, TagReader, lookup_tag
from pipeline.schemas import FileTask, TrackTags, PlacementPlan, FileOutcome, FileResult
from utils.exceptions import TagReadError, UnresolvableNameError

logger = logging.getLogger(__name__)


class Stage1Triage:
    """Stage 1: Triage - turn a discovered path into a FileTask."""

    def process(self, file_path: Path) -> FileTask:
        logger.info(f"Processing: {file_path}")
        return FileTask.from_path(file_path)


class Stage2TagExtraction:
    """Stage 2: Tag Extraction - read album, artist and title from format tags."""

    def __init__(self, tag_reader: TagReader):
        self.tag_reader = tag_reader

    def process(self, task: FileTask) -> TrackTags:
        """
        Read the file's tags. An unreadable file yields empty TrackTags so it
        still flows through the rest of the pipeline.
        """
        try:
            raw_tags = self.tag_reader.read_format_tags(task.original_path)
        except TagReadError as e:
            logger.warning(f"  {e}; continuing without tags")
            raw_tags = {}

        tags = TrackTags(**{field: lookup_tag(raw_tags, field) for field in TAG_FIELDS})

        logger.info(f"  Album: '{tags.album or 'N/A'}'")
        logger.info(f"  Artist: '{tags.artist or 'N/A'}'")
        logger.info(f"  Track: '{tags.title or 'N/A'}'")
        return tags


class Stage3PathSynthesis:
    """Stage 3: Path Synthesis - compute the target directory and filename."""

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def process(self, task: FileTask, tags: TrackTags) -> PlacementPlan:
        """
        Build the placement plan for ``task``.

        Raises:
            UnresolvableNameError: If the file has no usable name at all
        """
        if tags.album:
            target_directory = self.base_dir / tags.album
            logger.info(f"  Target album directory: {target_directory}")
        else:
            target_directory = self.base_dir
            logger.info(f"  No valid album name found. Target base directory: {target_directory}")

        return PlacementPlan(
            target_directory=target_directory,
            target_file_name=self.target_file_name(task, tags),
        )

    def target_file_name(self, task: FileTask, tags: TrackTags) -> str:
        composed = compose_stem(tags.artist, tags.title)
        if composed is None:
            # No usable tags: the original filename is kept exactly as it is
            if not task.name_without_extension:
                raise UnresolvableNameError(str(task.original_path))
            return task.base_name

        stem = sanitize(composed)
        if stem is None:
            logger.warning(
                f"  Sanitized new filename is empty. Using original filename part: "
                f"{task.name_without_extension}"
            )
            stem = task.name_without_extension
            if not stem:
                raise UnresolvableNameError(str(task.original_path))
            return join_extension(stem, split_extension(task.base_name)[1])

        return join_extension(stem, task.extension)


class Stage4Placement:
    """Stage 4: Placement - create the directory, avoid collisions, move."""

    def __init__(self, filesystem_ops: FileSystemOperations, dry_run: bool = False):
        self.filesystem_ops = filesystem_ops
        self.dry_run = dry_run
        self.planned_targets = set()

    def process(self, task: FileTask, tags: TrackTags, plan: PlacementPlan) -> FileResult:
        """
        Place the file according to ``plan``.

        Raises:
            DirectoryCreateError: If the target directory cannot be created
            MoveError: If the move fails or would overwrite a file
        """
        start_time = time.time()
        source = task.original_path

        if not self.dry_run:
            self.filesystem_ops.ensure_directory(plan.target_directory, source)

        final_name = self.filesystem_ops.resolve_collision(
            plan.target_directory, plan.target_file_name, source,
            reserved=self.planned_targets if self.dry_run else None
        )
        target_path = plan.target_directory / final_name

        if target_path == source:
            logger.info(f"  File is already in the correct location with the correct name: {source}")
            outcome = FileOutcome.SKIPPED_NOOP
        elif self.dry_run:
            logger.info(f"  Would move '{source}' to '{target_path}'")
            self.planned_targets.add(target_path)
            outcome = FileOutcome.PLANNED
        else:
            logger.info(f"  Moving '{source}' to '{target_path}'")
            self.filesystem_ops.move_no_clobber(source, target_path)
            logger.info("  Successfully moved.")
            outcome = FileOutcome.MOVED

        return FileResult(
            original_path=source,
            outcome=outcome,
            tags=tags,
            target_path=target_path,
            processing_time_seconds=time.time() - start_time,
        )
