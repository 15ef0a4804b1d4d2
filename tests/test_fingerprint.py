import builtins
import hashlib
import threading
import time
from pathlib import Path

import pytest

from reldedup.core.exceptions import (
    FingerprintError, HashingError, LivenessTimeoutError, ManifestError
)
from reldedup.services import fingerprint_service
from reldedup.services.fingerprint_service import (
    LiveHashStrategy, ManifestStrategy, build_fingerprint_map, build_manifest_maps,
    parse_manifest_line, parse_manifest_lines
)


def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class TestManifestParsing:

    def test_double_space_and_dot_slash_prefix(self):
        assert parse_manifest_line("deadbeef  ./file with spaces.txt") == ("file with spaces.txt", "deadbeef")

    def test_single_field_line_skipped(self, caplog):
        with caplog.at_level("WARNING"):
            file_map = parse_manifest_lines(["deadbeef  ./a.txt\n", "orphan\n"], source="7.6-GA.sums")

        assert file_map == {"a.txt": "deadbeef"}
        assert "Cannot parse line 2" in caplog.text

    def test_blank_and_comment_lines_ignored(self):
        lines = ["\n", "# generated by sha256sum\n", "cafe  docs/readme.txt\n"]
        assert parse_manifest_lines(lines) == {"docs/readme.txt": "cafe"}

    def test_manifest_strategy_reads_file(self, tmp_path):
        (tmp_path / "7.6-GA.sums").write_text(
            "deadbeef  ./file with spaces.txt\nlonely\nfeed ./docs/readme.txt\n"
        )

        file_map = build_fingerprint_map("7.6-GA", ManifestStrategy(tmp_path, silent=True))
        assert file_map == {"file with spaces.txt": "deadbeef", "docs/readme.txt": "feed"}

    def test_missing_manifest_is_fatal(self, tmp_path):
        with pytest.raises(ManifestError):
            ManifestStrategy(tmp_path).build("7.6-GA")


class TestLiveHashing:

    def test_hashes_every_regular_file(self, release_factory, tmp_path):
        files = {
            "docs/readme.txt": b"hello",
            "bin/tool": b"\x00\x01binary",
            "a/b/c/deep.txt": b"deep",
            "empty.txt": b"",
        }
        release_factory("7.6-GA", files)

        file_map = LiveHashStrategy(tmp_path, jobs=3, chunk_size=2, silent=True).build("7.6-GA")

        assert file_map == {path: sha256(data) for path, data in files.items()}

    def test_directories_not_recorded(self, release_factory, tmp_path):
        root = release_factory("7.6-GA", {"docs/readme.txt": "x"})
        (root / "empty_dir").mkdir()

        file_map = LiveHashStrategy(tmp_path, jobs=2, silent=True).build("7.6-GA")
        assert set(file_map) == {"docs/readme.txt"}

    def test_many_files_with_single_worker(self, release_factory, tmp_path):
        files = {f"dir{i % 7}/file{i}.txt": f"content {i}" for i in range(60)}
        release_factory("7.6-GA", files)

        file_map = LiveHashStrategy(tmp_path, jobs=1, silent=True).build("7.6-GA")
        assert len(file_map) == 60
        assert file_map["dir3/file10.txt"] == sha256(b"content 10")

    def test_missing_release_root_is_fatal(self, tmp_path):
        with pytest.raises(FingerprintError):
            LiveHashStrategy(tmp_path).build("7.6-GA")

    def test_unreadable_file_is_fatal(self, release_factory, tmp_path, monkeypatch):
        release_factory("7.6-GA", {"ok.txt": "ok", "broken.txt": "broken"})
        real_checksum = fingerprint_service.calculate_checksum

        def flaky_checksum(path, chunk_size):
            if path.name == "broken.txt":
                raise HashingError(f"Failed to read {path}", str(path))
            return real_checksum(path, chunk_size)

        monkeypatch.setattr(fingerprint_service, "calculate_checksum", flaky_checksum)

        with pytest.raises(HashingError) as exc_info:
            LiveHashStrategy(tmp_path, jobs=2, silent=True).build("7.6-GA")
        assert exc_info.value.release == "7.6-GA"
        assert exc_info.value.path.endswith("broken.txt")


def block_manifest_open(monkeypatch, release, release_event):
    """Make the synchronous open of ``<release>.sums`` hang until the event is set."""
    def blocking_open(path, *args, **kwargs):
        if Path(path).name == f"{release}.sums":
            release_event.wait(30)
        return builtins.open(path, *args, **kwargs)

    monkeypatch.setattr(fingerprint_service, "open", blocking_open, raising=False)


class TestManifestFanOut:

    def test_collects_one_map_per_release(self, tmp_path):
        for release in ("6.10-GA", "7.5-GA", "7.6-GA"):
            (tmp_path / f"{release}.sums").write_text(f"{release}-digest  ./docs/readme.txt\n")

        maps = build_manifest_maps(tmp_path, ["6.10-GA", "7.5-GA", "7.6-GA"], jobs=2, silent=True)

        assert set(maps) == {"6.10-GA", "7.5-GA", "7.6-GA"}
        assert maps["7.5-GA"] == {"docs/readme.txt": "7.5-GA-digest"}

    def test_workers_go_through_manifest_strategy(self, tmp_path, monkeypatch):
        built = []

        def recording_build(self, release):
            built.append(release)
            return {"a.txt": release}

        monkeypatch.setattr(ManifestStrategy, "build", recording_build)

        maps = build_manifest_maps(tmp_path, ["7.5-GA", "7.6-GA"], jobs=2)

        assert sorted(built) == ["7.5-GA", "7.6-GA"]
        assert maps == {"7.5-GA": {"a.txt": "7.5-GA"}, "7.6-GA": {"a.txt": "7.6-GA"}}

    def test_unreadable_manifest_is_fatal(self, tmp_path):
        (tmp_path / "7.6-GA.sums").write_text("abc  x\n")

        with pytest.raises(ManifestError):
            build_manifest_maps(tmp_path, ["7.5-GA", "7.6-GA"], jobs=2)

    def test_stuck_read_hits_liveness_timeout(self, tmp_path, monkeypatch):
        (tmp_path / "7.6-GA.sums").write_text("abc  x\n")
        unblock = threading.Event()
        block_manifest_open(monkeypatch, "7.6-GA", unblock)

        started = time.monotonic()
        try:
            with pytest.raises(LivenessTimeoutError):
                build_manifest_maps(tmp_path, ["7.6-GA"], jobs=1, timeout=0.2)
            assert time.monotonic() - started < 5
        finally:
            unblock.set()
