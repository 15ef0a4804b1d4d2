"""Service layer: ordering, discovery, fingerprinting, resolution and merging."""

from .release_order import parse_release_key, compare_releases, sort_releases, latest_release
from .discovery_service import ReleaseDiscovery, discover_releases
from .fingerprint_service import (
    ManifestStrategy, LiveHashStrategy, build_fingerprint_map, build_manifest_maps, build_release_maps
)
from .resolver_service import resolve_duplicates
from .merge_service import HardlinkMerger, merge_duplicates

__all__ = [
    "parse_release_key", "compare_releases", "sort_releases", "latest_release",
    "ReleaseDiscovery", "discover_releases",
    "ManifestStrategy", "LiveHashStrategy",
    "build_fingerprint_map", "build_manifest_maps", "build_release_maps",
    "resolve_duplicates",
    "HardlinkMerger", "merge_duplicates"
]
