#!/usr/bin/env python3
"""
CLI tool for deduplicating files across successive release trees.

Files in older releases that are byte-identical to the same path in the
newest release are replaced with hardlinks to the newest copy.
"""

import sys
import argparse
import logging
from typing import Dict, List, Optional
from datetime import datetime

from tqdm import tqdm

from reldedup.config.settings import get_settings
from reldedup.config.validators import ReleaseValidator
from reldedup.core.exceptions import DedupError
from reldedup.core.models import FingerprintMap, MergeStats
from reldedup.services.discovery_service import discover_releases
from reldedup.services.fingerprint_service import (
    LiveHashStrategy, build_manifest_maps, build_release_maps
)
from reldedup.services.merge_service import HardlinkMerger, inconsistent_files
from reldedup.services.release_order import sort_releases
from reldedup.services.resolver_service import resolve_duplicates
from reldedup.utils.file_manager import get_disk_usage
from reldedup.utils.logger import CommandLogger


class ReleaseDedupCLI:
    """Runs discovery, fingerprinting, duplicate resolution and merging."""

    def __init__(self, args: argparse.Namespace):
        self.args = args
        self.settings = get_settings()

        # Flags override settings
        self.base_dir = ReleaseValidator.validate_base_dir(
            args.dir if args.dir is not None else self.settings.scan.base_dir
        )
        self.release_filter = ReleaseValidator.validate_release_filter(
            args.release if args.release is not None else self.settings.scan.release_filter
        )
        self.jobs = ReleaseValidator.validate_positive_int(
            args.jobs if args.jobs is not None else self.settings.performance.worker_threads, "jobs"
        )
        self.timeout = ReleaseValidator.validate_timeout(
            args.timeout if args.timeout is not None else self.settings.performance.map_timeout_seconds
        )
        self.use_manifests = args.manifests or self.settings.scan.use_manifests
        self.dry_run = args.dry_run or self.settings.merge.dry_run
        self.silent = args.silent
        self.manifest_suffix = ReleaseValidator.validate_suffix(self.settings.scan.manifest_suffix, "manifest")
        self.backup_suffix = ReleaseValidator.validate_suffix(self.settings.merge.backup_suffix, "backup")

        self.logger = self._setup_logging()

        self.stats = {
            'releases': 0,
            'mapped_files': 0,
            'duplicated_paths': 0,
            'start_time': None,
            'end_time': None
        }

    def _setup_logging(self) -> logging.Logger:
        """Setup logging with optional file output using CommandLogger."""
        command_params = {
            'release': self.release_filter,
            'jobs': self.jobs,
            'manifests': self.use_manifests,
            'dry_run': self.dry_run,
        }

        log_level = "DEBUG" if self.args.verbose else self.settings.logging.level
        if self.silent and not self.args.verbose:
            log_level = "WARNING"

        self.command_logger = CommandLogger(
            log_dir=self.settings.logging.log_dir,
            command_params=command_params,
            log_to_file=self.settings.logging.log_to_file,
            log_to_console=self.settings.logging.log_to_console,
            log_level=log_level
        )

        if self.settings.logging.log_to_file:
            self.command_logger.cleanup_old_logs(
                max_files=self.settings.logging.max_log_files,
                max_age_days=self.settings.logging.log_rotation_days
            )
            if not self.silent:
                print(f"📝 Logging to: {self.command_logger.get_log_path()}\n")

        return self.command_logger.get_logger()

    def discover(self) -> List[str]:
        """Discover releases and return them in ascending order."""
        releases = discover_releases(
            self.base_dir,
            major_filter=self.release_filter,
            use_manifests=self.use_manifests,
            manifest_suffix=self.manifest_suffix,
            silent=self.silent
        )
        return sort_releases(releases)

    def build_maps(self, releases: List[str]) -> Dict[str, FingerprintMap]:
        """Build a fingerprint map for every release."""
        with tqdm(total=len(releases), desc="Fingerprinting", unit="release", disable=self.silent) as progress:
            if self.use_manifests:
                return build_manifest_maps(
                    self.base_dir,
                    releases,
                    suffix=self.manifest_suffix,
                    jobs=self.jobs,
                    timeout=self.timeout,
                    silent=self.silent,
                    progress=progress
                )

            strategy = LiveHashStrategy(
                self.base_dir,
                jobs=self.jobs,
                chunk_size=self.settings.performance.hash_chunk_size,
                silent=self.silent
            )
            return build_release_maps(releases, strategy, progress=progress)

    def run(self) -> int:
        """Main execution flow. Returns the process exit code."""
        self.stats['start_time'] = datetime.now()
        mode = "manifests" if self.use_manifests else f"live hashing, {self.jobs} jobs"
        self.logger.info(f"Scanning {self.base_dir} ({mode})")

        releases = self.discover()
        self.stats['releases'] = len(releases)

        if len(releases) < 2:
            self.logger.info("Not enough releases to dedup! Exiting...")
            return 0

        self.logger.info(f"Releases in order: {', '.join(releases)}")

        maps = self.build_maps(releases)
        if not maps:
            self.logger.warning("No map built!")
        self.stats['mapped_files'] = sum(len(m) for m in maps.values())

        duplicates = resolve_duplicates(releases, maps)
        self.stats['duplicated_paths'] = len(duplicates)

        merger = HardlinkMerger(
            self.base_dir,
            backup_suffix=self.backup_suffix,
            dry_run=self.dry_run,
            silent=self.silent
        )
        merge_stats = merger.merge(duplicates)
        self.stats['end_time'] = datetime.now()

        for backup in inconsistent_files(merge_stats):
            self.logger.error(f"Manual repair required: {backup}")

        if not self.silent:
            self._print_statistics(merge_stats)

        return 0

    def _print_statistics(self, merge_stats: MergeStats) -> None:
        """Print merge statistics."""
        duration = (self.stats['end_time'] - self.stats['start_time']).total_seconds()
        usage = get_disk_usage(self.base_dir)

        print("\n" + "=" * 60)
        print("📊 DEDUP STATISTICS" + (" (DRY RUN)" if self.dry_run else ""))
        print("=" * 60)
        print(f"Releases:             {self.stats['releases']}")
        print(f"Files mapped:         {self.stats['mapped_files']}")
        print(f"Duplicated paths:     {self.stats['duplicated_paths']}")
        if self.dry_run:
            print(f"Would link:           {merge_stats.would_link}")
        else:
            print(f"Linked:               {merge_stats.linked}")
        print(f"Already linked:       {merge_stats.identical}")
        print(f"Skipped:              {merge_stats.skipped}")
        print(f"Failed (rolled back): {merge_stats.failed}")
        print(f"Needs manual repair:  {merge_stats.inconsistent}")
        print(f"Space reclaimed:      {merge_stats.mb_reclaimed:.2f} MB")
        if usage:
            print(f"Space available:      {usage['available_space_mb']:.2f} MB")
        print(f"Duration:             {duration:.1f} seconds")
        print("=" * 60 + "\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Hardlink files in older releases to identical files in the newest release",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Hash every release under /srv/releases with 8 workers
  %(prog)s -d /srv/releases -j 8

  # Only 7.x releases, using <release>.sums manifests
  %(prog)s -d /srv/releases -r 7 -m

  # Show what would be linked without touching anything
  %(prog)s -d /srv/releases -n
        """
    )

    parser.add_argument(
        '-r', '--release',
        type=str,
        default=None,
        metavar='MAJOR',
        help='Major release to dedup, 0 for all releases (default: DEDUP_RELEASE_FILTER or 0)'
    )

    parser.add_argument(
        '-d', '--dir',
        type=str,
        default=None,
        metavar='DIR',
        help='Directory containing releases to dedup (default: DEDUP_BASE_DIR or .)'
    )

    parser.add_argument(
        '-j', '--jobs',
        type=int,
        default=None,
        metavar='N',
        help='Maximum number of concurrent jobs (default: DEDUP_JOBS or CPU count)'
    )

    parser.add_argument(
        '-m', '--manifests', '--sums',
        action='store_true',
        dest='manifests',
        help='Use precomputed <release>.sums manifests instead of hashing files'
    )

    parser.add_argument(
        '-s', '--silent',
        action='store_true',
        help='Suppress per-file progress output'
    )

    parser.add_argument(
        '-n', '--dry-run',
        action='store_true',
        dest='dry_run',
        help='Find duplicates but do not modify any file'
    )

    parser.add_argument(
        '--timeout',
        type=float,
        default=None,
        metavar='SECONDS',
        help='Liveness timeout per manifest map (default: DEDUP_MAP_TIMEOUT or 30)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging for debugging'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.jobs is not None and args.jobs < 1:
        parser.error("--jobs must be >= 1")

    if args.timeout is not None and args.timeout <= 0:
        parser.error("--timeout must be > 0")

    try:
        cli = ReleaseDedupCLI(args)
    except DedupError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    try:
        return cli.run()
    except KeyboardInterrupt:
        print("\n\n⚠️  Interrupted by user. Exiting...")
        return 1
    except DedupError as e:
        cli.logger.error(f"Fatal error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
