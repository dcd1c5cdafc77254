#!/usr/bin/env python3
"""
music-organizer: sort audio files into <base>/<album>/<artist> - <title>.<ext>

Reads album, artist and title from each file's container tags and moves the
file into an album directory under the base directory.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional, List

from utils.logging_config import setup_logging, configure_library_logging, get_logger
from utils.config_loader import load_config, get_config_template, TAG_READERS
from pipeline.orchestrator import MusicPipeline
from utils.exceptions import MusicOrganizerError


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Rename and move music files into album directories using their tags",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                   # Organize the configured base directory
  %(prog)s /path/to/music                    # Organize /path/to/music
  %(prog)s /path/to/music --dry-run          # Show what would be moved
  %(prog)s /path/to/music --tag-reader mutagen
        """
    )

    parser.add_argument(
        "music_directory",
        type=Path,
        nargs="?",
        help="Base directory to organize (default: filesystem.base_dir from config)"
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (default: ./config.yaml)"
    )

    parser.add_argument(
        "--tag-reader",
        choices=TAG_READERS,
        help="Backend used to read tags (default: from config, ffprobe)"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Plan only: create no directories and move no files"
    )

    parser.add_argument(
        "--remove-empty-dirs",
        action="store_true",
        help="Remove directories left empty under the base directory after the run"
    )

    parser.add_argument(
        "--report-dir",
        type=Path,
        help="Write organization_plan.csv and processing_summary.json to this directory"
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write the log to this file"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Print a configuration template and exit"
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    try:
        args = parse_arguments(argv)

        if args.print_config:
            print(get_config_template())
            return 0

        config_path = args.config or Path.cwd() / "config.yaml"
        if args.config and not args.config.exists():
            print(f"Config file not found at: {args.config}, using defaults", file=sys.stderr)
        config = load_config(config_path)

        if args.tag_reader:
            config['tags']['reader'] = args.tag_reader

        logging_config = config['logging']
        log_level = "DEBUG" if args.verbose else logging_config['level']
        log_file = args.log_file or (Path(logging_config['file']) if logging_config.get('file') else None)
        setup_logging(
            log_level,
            log_file,
            max_file_size=logging_config['max_file_size'],
            backup_count=logging_config['backup_count'],
            fmt=logging_config['format']
        )
        configure_library_logging()
        logger = get_logger('main')

        music_dir = args.music_directory or Path(config['filesystem']['base_dir'])
        remove_empty_dirs = args.remove_empty_dirs or config['filesystem'].get('remove_empty_dirs', False)

        logger.info("Music Organization")
        logger.info(f"Tag reader: {config['tags']['reader']}")

        pipeline = MusicPipeline(
            config=config,
            dry_run=args.dry_run,
            output_dir=args.report_dir
        )
        pipeline.process_library(music_dir, remove_empty_dirs=remove_empty_dirs)

        return 0

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        return 1
    except MusicOrganizerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
