"""Duplicate detection against the canonical (latest) release."""

import logging
from typing import Iterable, Mapping

from reldedup.core.exceptions import CanonicalMapMissingError
from reldedup.core.models import DuplicateSet, FingerprintMap
from reldedup.services.release_order import latest_release, sort_releases

logger = logging.getLogger(__name__)


def resolve_duplicates(releases: Iterable[str], maps: Mapping[str, FingerprintMap]) -> DuplicateSet:
    """Find files in older releases byte-identical to the canonical release's.

    For every path in the canonical release's map, the result lists each
    other release whose map holds the same digest for that path, in
    ascending release order, followed by the canonical release. Paths no
    other release duplicates are omitted.

    Raises:
        CanonicalMapMissingError: The highest-ordered release has no map.
    """
    ordered = sort_releases(set(releases))
    if not ordered:
        return {}

    canonical = latest_release(ordered)
    canonical_map = maps.get(canonical)
    if canonical_map is None:
        raise CanonicalMapMissingError(canonical)

    duplicates: DuplicateSet = {}
    for release in ordered:
        if release == canonical:
            continue

        release_map = maps.get(release)
        if release_map is None:
            logger.warning(f"No fingerprint map for release {release}, skipping it")
            continue

        matched = 0
        for path, digest in canonical_map.items():
            if release_map.get(path) == digest:
                duplicates.setdefault(path, []).append(release)
                matched += 1
        logger.debug(f"{release}: {matched} file(s) identical to {canonical}")

    for members in duplicates.values():
        members.append(canonical)

    logger.info(f"Found {len(duplicates)} duplicated path(s) against canonical release {canonical}")
    return duplicates
