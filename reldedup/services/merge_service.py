"""Hardlink merge of duplicate files into their canonical copies."""

import logging
import os
from pathlib import Path
from typing import Iterator, List, Union

from reldedup.core.models import (
    DuplicateSet, MergeOperation, MergeOutcome, MergeState, MergeStats
)
from reldedup.services.release_order import latest_release, sort_releases
from reldedup.utils.file_manager import normalize_relative_path, same_file


class HardlinkMerger:
    """Replaces duplicates in older releases with hardlinks to the canonical file.

    Each file goes through backup (rename to ``<name><backup_suffix>``),
    link, and commit (remove the backup). A failed link renames the backup
    back. Files already sharing the canonical inode are left untouched, so
    running the same merge twice is a no-op the second time.
    """

    def __init__(
        self,
        base_dir: Union[str, Path],
        backup_suffix: str = ".bak",
        dry_run: bool = False,
        silent: bool = False
    ):
        self.base_dir = Path(base_dir)
        self.backup_suffix = backup_suffix
        self.dry_run = dry_run
        self.silent = silent
        self.logger = logging.getLogger(__name__)

    def plan(self, duplicates: DuplicateSet) -> Iterator[MergeOperation]:
        """Yield one merge operation per non-canonical member of each group."""
        for relative_path in sorted(duplicates):
            members = duplicates[relative_path]
            if len(members) < 2:
                continue

            # Recompute the group maximum instead of trusting member order
            canonical = latest_release(members)
            file_part = normalize_relative_path(relative_path)
            canonical_path = self.base_dir / canonical / file_part

            for release in sort_releases(set(members)):
                if release == canonical:
                    continue
                yield MergeOperation(
                    relative_path=relative_path,
                    canonical_release=canonical,
                    release=release,
                    canonical_path=canonical_path,
                    duplicate_path=self.base_dir / release / file_part
                )

    def merge(self, duplicates: DuplicateSet) -> MergeStats:
        """Merge every duplicate group, reporting each non-success as it happens."""
        stats = MergeStats()
        for operation in self.plan(duplicates):
            outcome = self.merge_file(operation)
            self._record(stats, outcome)
        return stats

    def merge_file(self, operation: MergeOperation) -> MergeOutcome:
        """Run one file through the backup/link/commit sequence."""
        canonical_path = operation.canonical_path
        duplicate_path = operation.duplicate_path

        try:
            canonical_stat = os.stat(canonical_path)
        except OSError as e:
            self.logger.warning(f"Source file {canonical_path} does not exist!")
            return MergeOutcome(operation, MergeState.ROLLED_BACK, "canonical missing", error=str(e))

        try:
            duplicate_stat = os.stat(duplicate_path)
        except OSError as e:
            self.logger.warning(f"File {duplicate_path} does not exist!")
            return MergeOutcome(operation, MergeState.ROLLED_BACK, "duplicate missing", error=str(e))

        if same_file(canonical_stat, duplicate_stat):
            self.logger.debug(f"Skipping identical file {duplicate_path}")
            return MergeOutcome(operation, MergeState.IDENTICAL, "already linked")

        if self.dry_run:
            if not self.silent:
                self.logger.info(f"[DRY RUN] Would link {duplicate_path} -> {canonical_path}")
            return MergeOutcome(
                operation, MergeState.PENDING, "dry run",
                bytes_reclaimed=duplicate_stat.st_size
            )

        backup_path = duplicate_path.with_name(duplicate_path.name + self.backup_suffix)
        if os.path.lexists(backup_path):
            self.logger.warning(f"Backup path {backup_path} already exists, not touching {duplicate_path}")
            return MergeOutcome(operation, MergeState.ROLLED_BACK, "backup path occupied")

        try:
            os.rename(duplicate_path, backup_path)
        except OSError as e:
            self.logger.warning(f"Could not backup old file {duplicate_path}: {e}")
            return MergeOutcome(operation, MergeState.ROLLED_BACK, "backup failed", error=str(e))

        try:
            os.link(canonical_path, duplicate_path)
        except OSError as e:
            self.logger.warning(f"Failed to link file {canonical_path} to {duplicate_path}: {e}")
            return self._rollback(operation, backup_path, e)

        outcome = MergeOutcome(
            operation, MergeState.LINKED, "linked",
            bytes_reclaimed=duplicate_stat.st_size
        )
        try:
            os.remove(backup_path)
        except OSError as e:
            self.logger.warning(f"Failed to remove backup file {backup_path}: {e}")
            outcome.detail = "backup not removed"
            outcome.error = str(e)
            outcome.bytes_reclaimed = 0

        if not self.silent:
            self.logger.info(f"Linked {duplicate_path} -> {canonical_path}")
        return outcome

    def _rollback(self, operation: MergeOperation, backup_path: Path, link_error: OSError) -> MergeOutcome:
        duplicate_path = operation.duplicate_path
        try:
            os.rename(backup_path, duplicate_path)
        except OSError as e:
            self.logger.error(
                f"Could not rename file {backup_path} to {duplicate_path}: {e}. "
                f"Original content left at {backup_path}; manual repair required"
            )
            return MergeOutcome(
                operation, MergeState.BACKED_UP, "rollback failed",
                error=str(e), backup_path=backup_path
            )

        return MergeOutcome(operation, MergeState.ROLLED_BACK, "link failed", error=str(link_error))

    def _record(self, stats: MergeStats, outcome: MergeOutcome) -> None:
        stats.outcomes.append(outcome)
        state = outcome.state

        if state is MergeState.LINKED:
            stats.linked += 1
            stats.bytes_reclaimed += outcome.bytes_reclaimed
            if outcome.error:
                stats.backup_cleanup_failed += 1
        elif state is MergeState.IDENTICAL:
            stats.identical += 1
        elif state is MergeState.PENDING:
            stats.would_link += 1
            stats.bytes_reclaimed += outcome.bytes_reclaimed
        elif state is MergeState.BACKED_UP:
            stats.inconsistent += 1
        elif outcome.detail == "link failed":
            stats.failed += 1
        else:
            stats.skipped += 1


def merge_duplicates(
    base_dir: Union[str, Path],
    duplicates: DuplicateSet,
    backup_suffix: str = ".bak",
    dry_run: bool = False,
    silent: bool = False
) -> MergeStats:
    """Convenience wrapper around ``HardlinkMerger.merge``."""
    merger = HardlinkMerger(base_dir, backup_suffix=backup_suffix, dry_run=dry_run, silent=silent)
    return merger.merge(duplicates)


def inconsistent_files(stats: MergeStats) -> List[Path]:
    """Backup paths left behind by failed rollbacks."""
    return [o.backup_path for o in stats.outcomes if o.inconsistent]
