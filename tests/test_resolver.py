import pytest

from reldedup.core.exceptions import CanonicalMapMissingError
from reldedup.services.resolver_service import resolve_duplicates


def test_reports_only_matching_digests():
    maps = {
        "7.6-GA": {"/a.txt": "H1", "/b.txt": "H2"},
        "7.5-GA": {"/a.txt": "H1", "/b.txt": "H3"},
    }

    duplicates = resolve_duplicates(["7.5-GA", "7.6-GA"], maps)

    assert duplicates["/a.txt"] == ["7.5-GA", "7.6-GA"]
    assert "7.5-GA" not in duplicates.get("/b.txt", [])


def test_canonical_is_highest_release_not_last_given():
    maps = {
        "7.6-GA": {"x": "new"},
        "7.6-RC-2": {"x": "new"},
        "6.10-GA": {"x": "new"},
    }

    duplicates = resolve_duplicates(["7.6-GA", "6.10-GA", "7.6-RC-2"], maps)

    assert duplicates == {"x": ["6.10-GA", "7.6-RC-2", "7.6-GA"]}


def test_paths_absent_from_canonical_are_ignored():
    maps = {
        "7.6-GA": {"kept": "1"},
        "7.5-GA": {"kept": "1", "removed-in-7.6": "2"},
        "7.4-GA": {"removed-in-7.6": "2"},
    }

    duplicates = resolve_duplicates(maps.keys(), maps)

    assert set(duplicates) == {"kept"}


def test_missing_canonical_map():
    with pytest.raises(CanonicalMapMissingError) as exc_info:
        resolve_duplicates(["7.5-GA", "7.6-GA"], {"7.5-GA": {"a": "1"}})
    assert exc_info.value.release == "7.6-GA"


def test_release_without_map_is_skipped():
    maps = {"7.6-GA": {"a": "1"}, "7.4-GA": {"a": "1"}}

    duplicates = resolve_duplicates(["7.4-GA", "7.5-GA", "7.6-GA"], maps)

    assert duplicates == {"a": ["7.4-GA", "7.6-GA"]}


def test_no_releases():
    assert resolve_duplicates([], {}) == {}
