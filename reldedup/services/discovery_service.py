"""Release discovery under a base directory."""

import logging
import os
import re
from pathlib import Path
from typing import Optional, Set, Union

from reldedup.core.exceptions import DiscoveryError

# major.minor[.patch]-STAGE[-seq], see release_order for how it is tokenized
RELEASE_TAIL = r'[.]\d+(?:[.]\d+)?[^0-9A-Za-z]+[A-Za-z]+(?:[^0-9A-Za-z]*\d+)?'


def build_release_pattern(major_filter: Optional[str] = None, manifest_suffix: Optional[str] = None) -> re.Pattern:
    """Compile the pattern a child name must fully match to be a release.

    Args:
        major_filter: Major version to anchor on, None for any
        manifest_suffix: Required suffix in manifest mode
    """
    major = re.escape(major_filter) if major_filter else r'\d+'
    suffix = re.escape(manifest_suffix) if manifest_suffix else ''
    return re.compile(rf'^({major}{RELEASE_TAIL}){suffix}$')


class ReleaseDiscovery:
    """Finds release directories or manifests directly under a base directory."""

    def __init__(
        self,
        base_dir: Union[str, Path],
        major_filter: Optional[str] = None,
        use_manifests: bool = False,
        manifest_suffix: str = ".sums",
        silent: bool = False
    ):
        self.base_dir = Path(base_dir)
        self.major_filter = major_filter
        self.use_manifests = use_manifests
        self.manifest_suffix = manifest_suffix
        self.silent = silent
        self.logger = logging.getLogger(__name__)

        self.pattern = build_release_pattern(
            major_filter,
            manifest_suffix if use_manifests else None
        )

    def discover(self) -> Set[str]:
        """Return the release identifiers found, unordered.

        Raises:
            DiscoveryError: The base directory cannot be read.
        """
        releases: Set[str] = set()

        try:
            with os.scandir(self.base_dir) as entries:
                for entry in entries:
                    release = self._match_entry(entry)
                    if release is None:
                        continue

                    if not self.silent:
                        self.logger.info(f"Found release {release}")
                    releases.add(release)
        except OSError as e:
            raise DiscoveryError(f"Cannot read base directory {self.base_dir}: {e}", str(self.base_dir))

        self.logger.debug(f"Discovered {len(releases)} release(s) in {self.base_dir}")
        return releases

    def _match_entry(self, entry: os.DirEntry) -> Optional[str]:
        match = self.pattern.match(entry.name)
        if not match:
            return None

        if self.use_manifests:
            if not entry.is_file():
                return None
        elif not entry.is_dir(follow_symlinks=False):
            return None

        return match.group(1)


def discover_releases(
    base_dir: Union[str, Path],
    major_filter: Optional[str] = None,
    use_manifests: bool = False,
    manifest_suffix: str = ".sums",
    silent: bool = False
) -> Set[str]:
    """Discover releases under ``base_dir``; see ``ReleaseDiscovery``."""
    return ReleaseDiscovery(
        base_dir,
        major_filter=major_filter,
        use_manifests=use_manifests,
        manifest_suffix=manifest_suffix,
        silent=silent
    ).discover()
