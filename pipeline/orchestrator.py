"""
Pipeline orchestrator that runs every discovered file through the four stages.

Files are processed strictly one after another: a file is fully placed
before the next one is planned, which keeps collision numbering correct
without any locking.
"""

import csv
import json
import logging
import os
import time
from pathlib import Path
from typing import Optional, Dict, Any, List

from filesystem.file_ops import FileSystemOperations
from filesystem.tag_reader import TagReader, create_tag_reader
from pipeline.schemas import FileOutcome, FileResult, RunReport
from pipeline.stages import Stage1Triage, Stage2TagExtraction, Stage3PathSynthesis, Stage4Placement
from utils.exceptions import ConfigurationError, FileProcessingError

logger = logging.getLogger(__name__)


class MusicPipeline:
    """
    Main pipeline orchestrator for tag-based music organization.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        dry_run: bool = False,
        tag_reader: Optional[TagReader] = None,
        output_dir: Optional[Path] = None
    ):
        """
        Initialize the music processing pipeline.

        Args:
            config: Configuration dictionary
            dry_run: Plan only; create no directories and move nothing
            tag_reader: Tag reader to use instead of the configured backend
            output_dir: Directory for the plan CSV and summary JSON (optional)
        """
        self.config = config
        self.dry_run = dry_run
        self.output_dir = output_dir

        self.filesystem_ops = FileSystemOperations(
            audio_extensions=config['filesystem']['audio_extensions'],
            follow_symlinks=config['filesystem'].get('follow_symlinks', False)
        )
        self.tag_reader = tag_reader or create_tag_reader(config['tags'])

        self.stage1 = Stage1Triage()
        self.stage2 = Stage2TagExtraction(self.tag_reader)
        self.stage4 = Stage4Placement(self.filesystem_ops, dry_run=dry_run)

    def process_library(self, music_dir: Path, remove_empty_dirs: bool = False) -> RunReport:
        """
        Organize every audio file under ``music_dir``.

        Raises:
            ConfigurationError: If ``music_dir`` is missing, not a directory or unreadable
            DependencyMissingError: If the tag reader cannot run
        """
        start_time = time.time()
        music_dir = self._validate_music_directory(music_dir)
        self.tag_reader.check_available()

        logger.info(f"Base directory: {music_dir}")
        if self.dry_run:
            logger.info("Dry run: no directories will be created and no files moved")

        audio_files = self.filesystem_ops.discover_audio_files(music_dir)
        logger.info(f"Found {len(audio_files)} audio files to process")

        stage3 = Stage3PathSynthesis(music_dir)
        report = RunReport(base_dir=music_dir, dry_run=self.dry_run)
        for file_path in audio_files:
            report.results.append(self.process_single_file(file_path, stage3))
            logger.info("-------------------------")

        if remove_empty_dirs and not self.dry_run:
            report.removed_directories = self.filesystem_ops.remove_empty_directories(music_dir)

        report.total_processing_time_seconds = time.time() - start_time

        counts = report.outcome_counts
        logger.info(
            f"Music organization complete. Moved {counts['moved']}, "
            f"already in place {counts['skipped_noop']}, "
            f"planned {counts['planned']}, failed {counts['skipped_error']}"
        )

        if self.output_dir:
            self._generate_output_files(report)

        return report

    def process_single_file(self, file_path: Path, stage3: Stage3PathSynthesis) -> FileResult:
        """
        Process a single music file through all pipeline stages.

        Per-file failures are logged and returned as a SKIPPED_ERROR result;
        they never interrupt the run.
        """
        start_time = time.time()
        tags = None

        try:
            task = self.stage1.process(file_path)
            tags = self.stage2.process(task)
            plan = stage3.process(task, tags)
            return self.stage4.process(task, tags, plan)

        except FileProcessingError as e:
            logger.error(f"  Error: {e}. Skipping file.")
            return FileResult(
                original_path=file_path,
                outcome=FileOutcome.SKIPPED_ERROR,
                tags=tags,
                error_message=str(e),
                processing_time_seconds=time.time() - start_time
            )

        except Exception as e:
            logger.error(f"  Unexpected error processing {file_path}: {e}. Skipping file.")
            return FileResult(
                original_path=file_path,
                outcome=FileOutcome.SKIPPED_ERROR,
                tags=tags,
                error_message=f"{type(e).__name__}: {e}",
                processing_time_seconds=time.time() - start_time
            )

    def _validate_music_directory(self, path: Path) -> Path:
        if not path.exists():
            raise ConfigurationError(f"Music directory does not exist: {path}")

        if not path.is_dir():
            raise ConfigurationError(f"Music path is not a directory: {path}")

        if not os.access(path, os.R_OK | os.X_OK):
            raise ConfigurationError(f"Cannot read music directory: {path}")

        return path.resolve()

    def _generate_output_files(self, report: RunReport):
        """Write the organization plan CSV and the processing summary JSON."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._generate_csv_plan(report.results)
        self._generate_summary_report(report)

    def _generate_csv_plan(self, results: List[FileResult]):
        csv_file = self.output_dir / "organization_plan.csv"

        with open(csv_file, 'w', newline='', encoding='utf-8', errors='surrogateescape') as f:
            writer = csv.writer(f)
            writer.writerow([
                'Original Path', 'Target Path', 'Album', 'Artist', 'Title', 'Outcome', 'Error'
            ])

            for result in results:
                tags = result.tags
                writer.writerow([
                    str(result.original_path),
                    str(result.target_path) if result.target_path else '',
                    (tags.album if tags else None) or '',
                    (tags.artist if tags else None) or '',
                    (tags.title if tags else None) or '',
                    result.outcome.value,
                    result.error_message or ''
                ])

        logger.info(f"Organization plan saved to: {csv_file}")

    def _generate_summary_report(self, report: RunReport):
        summary = {
            'base_dir': str(report.base_dir),
            'dry_run': report.dry_run,
            'total_files': len(report.results),
            'outcomes': report.outcome_counts,
            'removed_directories': [str(d) for d in report.removed_directories],
            'total_processing_time': f"{report.total_processing_time_seconds:.1f}s"
        }

        summary_file = self.output_dir / "processing_summary.json"
        with open(summary_file, 'w', encoding='utf-8', errors='surrogateescape') as f:
            json.dump(summary, f, indent=2, ensure_ascii=False)

        logger.info(f"Summary report saved to: {summary_file}")
