"""Core domain models for release deduplication."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from enum import Enum
from pathlib import Path


# Relative path (slash separated) -> hex digest, one per release.
FingerprintMap = Dict[str, str]

# Relative path -> releases holding the canonical content, ascending release order.
DuplicateSet = Dict[str, List[str]]


class Stage(Enum):
    """Release stage, declared in ascending order."""
    ALPHA = "alpha"
    BETA = "beta"
    SNAPSHOT = "snapshot"
    RC = "rc"
    GA = "ga"

    @property
    def rank(self) -> int:
        return list(Stage).index(self)

    @classmethod
    def from_token(cls, token: str) -> Optional["Stage"]:
        """Map a stage token (case-insensitive) to a stage, or None."""
        return _STAGE_ALIASES.get(token.lower())


_STAGE_ALIASES = {
    "alpha": Stage.ALPHA,
    "beta": Stage.BETA,
    "snap": Stage.SNAPSHOT,
    "snapshot": Stage.SNAPSHOT,
    "rc": Stage.RC,
    "ga": Stage.GA,
}


@dataclass(frozen=True)
class ReleaseKey:
    """Ordering key derived from a release identifier."""
    major: int
    minor: int
    stage: Stage
    patch: Optional[int] = None
    seq: Optional[int] = None

    def sort_tuple(self) -> Tuple[int, int, int, int, int]:
        """Tuple comparing the way releases are ordered.

        A missing patch counts as 0. GA ignores its sequence. A missing
        sequence sorts before any numbered one of the same stage.
        """
        if self.stage is Stage.GA:
            seq = -1
        else:
            seq = self.seq if self.seq is not None else -1
        return (self.major, self.minor, self.patch or 0, self.stage.rank, seq)


class MergeState(Enum):
    """Per-file merge state."""
    PENDING = "pending"
    IDENTICAL = "identical"
    BACKED_UP = "backed_up"
    LINKED = "linked"
    ROLLED_BACK = "rolled_back"


@dataclass
class MergeOperation:
    """One duplicate file to be replaced by a hardlink to its canonical copy."""
    relative_path: str
    canonical_release: str
    release: str
    canonical_path: Path
    duplicate_path: Path


@dataclass
class MergeOutcome:
    """Terminal result of merging one file."""
    operation: MergeOperation
    state: MergeState
    detail: str = ""
    bytes_reclaimed: int = 0
    error: Optional[str] = None
    backup_path: Optional[Path] = None

    @property
    def inconsistent(self) -> bool:
        """File was left under its backup name and needs manual repair."""
        return self.state is MergeState.BACKED_UP


@dataclass
class MergeStats:
    """Merge statistics."""
    linked: int = 0
    identical: int = 0
    would_link: int = 0
    skipped: int = 0
    failed: int = 0
    inconsistent: int = 0
    backup_cleanup_failed: int = 0
    bytes_reclaimed: int = 0
    outcomes: List[MergeOutcome] = field(default_factory=list)

    @property
    def mutations(self) -> int:
        """Number of files whose on-disk layout changed."""
        return self.linked + self.inconsistent

    @property
    def mb_reclaimed(self) -> float:
        return self.bytes_reclaimed / (1024 * 1024)
