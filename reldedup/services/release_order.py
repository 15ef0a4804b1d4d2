"""Total ordering over release identifiers.

Identifiers follow ``major.minor[.patch]-STAGE[-seq]``, for example
``6.10-GA``, ``7.6-Snap-2`` or ``7.6.1-RC-1``. They are tokenized on every
run of characters that are neither letters nor digits; the token layout is
then inferred from token shape, since the patch component is optional.
"""

import re
from typing import Iterable, List, Optional

from reldedup.core.exceptions import ReleaseParseError
from reldedup.core.models import ReleaseKey, Stage

# Letters and digits only (unicode aware), everything else separates tokens
_TOKEN_PATTERN = re.compile(r'[^\W_]+')
_NUMERIC_PATTERN = re.compile(r'^\d+$')
# Stage with an optional inline sequence, e.g. "RC1"
_STAGE_PATTERN = re.compile(r'^([^\W\d_]+)(\d*)$')

MAX_PATCH_DIGITS = 4


def tokenize(release: str) -> List[str]:
    """Split a release identifier on separator runs."""
    return _TOKEN_PATTERN.findall(release)


def _to_int(release: str, token: str, name: str) -> int:
    if not _NUMERIC_PATTERN.match(token):
        raise ReleaseParseError(
            f"Release {release}: expected numeric {name}, got '{token}'",
            release=release, token=token
        )
    return int(token)


def parse_release_key(release: str) -> ReleaseKey:
    """Derive the ordering key for a release identifier.

    Raises:
        ReleaseParseError: a numeric token is malformed, the stage is
          unknown or the identifier has too few or too many tokens.
    """
    tokens = tokenize(release)
    if len(tokens) < 3:
        raise ReleaseParseError(
            f"Release {release}: expected major, minor and stage",
            release=release
        )

    major = _to_int(release, tokens[0], "major version")
    minor = _to_int(release, tokens[1], "minor version")

    rest = tokens[2:]
    patch = None
    if _NUMERIC_PATTERN.match(rest[0]):
        if len(rest[0]) > MAX_PATCH_DIGITS:
            raise ReleaseParseError(
                f"Release {release}: '{rest[0]}' is neither a patch number nor a stage",
                release=release, token=rest[0]
            )
        patch = int(rest[0])
        rest = rest[1:]

    if not rest:
        raise ReleaseParseError(f"Release {release}: missing stage", release=release)

    match = _STAGE_PATTERN.match(rest[0])
    stage = Stage.from_token(match.group(1)) if match else None
    if stage is None:
        raise ReleaseParseError(
            f"Release {release}: unknown stage '{rest[0]}'",
            release=release, token=rest[0]
        )

    seq_tokens = rest[1:]
    if match.group(2):
        seq_tokens = [match.group(2)] + seq_tokens

    if len(seq_tokens) > 1:
        raise ReleaseParseError(
            f"Release {release}: unexpected trailing tokens {seq_tokens[1:]}",
            release=release, token=seq_tokens[1]
        )

    seq: Optional[int] = None
    if seq_tokens:
        seq = _to_int(release, seq_tokens[0], "stage sequence")

    return ReleaseKey(major=major, minor=minor, stage=stage, patch=patch, seq=seq)


def release_sort_key(release: str):
    """Sort key for ``sorted``; equal keys fall back to the identifier itself."""
    return (parse_release_key(release).sort_tuple(), release)


def compare_releases(a: str, b: str) -> int:
    """Return -1, 0 or 1 as ``a`` sorts before, equal to or after ``b``."""
    key_a = release_sort_key(a)
    key_b = release_sort_key(b)
    if key_a < key_b:
        return -1
    if key_a > key_b:
        return 1
    return 0


def sort_releases(releases: Iterable[str]) -> List[str]:
    """Sort releases ascending; the last element is the canonical release."""
    return sorted(releases, key=release_sort_key)


def latest_release(releases: Iterable[str]) -> str:
    """Return the release that sorts highest."""
    releases = list(releases)
    if not releases:
        raise ValueError("No releases to choose from")
    return max(releases, key=release_sort_key)
