"""Fingerprint map construction.

Two strategies produce the same ``FingerprintMap`` shape:

* ``ManifestStrategy`` parses a precomputed ``<digest>  <path>`` manifest.
* ``LiveHashStrategy`` walks a release tree and hashes every regular file
  with a bounded producer/worker pool.

``build_manifest_maps`` fans manifest parsing out across releases with a
thread pool and a per-result liveness timeout.
"""

import logging
import os
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from reldedup.core.exceptions import (
    DedupError, FingerprintError, HashingError, LivenessTimeoutError, ManifestError
)
from reldedup.core.interfaces import FingerprintStrategy
from reldedup.core.models import FingerprintMap
from reldedup.utils.file_manager import (
    DEFAULT_CHUNK_SIZE, calculate_checksum, normalize_relative_path, relative_key, walk_files
)

logger = logging.getLogger(__name__)

DEFAULT_MAP_TIMEOUT = 30.0

# Tells a hashing worker the walk is finished
_WALK_DONE = object()


def parse_manifest_line(line: str) -> Optional[Tuple[str, str]]:
    """Split one manifest line into ``(path, digest)``.

    Returns None for lines without both a digest and a path.
    """
    fields = line.strip().split(None, 1)
    if len(fields) < 2:
        return None

    digest, path = fields[0], normalize_relative_path(fields[1].strip())
    if not path:
        return None
    return path, digest


def parse_manifest_lines(lines: Iterable[str], source: str = "", silent: bool = False) -> FingerprintMap:
    """Build a fingerprint map from manifest lines, skipping unusable ones."""
    file_map: FingerprintMap = {}

    for line_no, line in enumerate(lines, start=1):
        line = line.rstrip("\r\n")
        if not line.strip():
            continue
        if line.lstrip().startswith("#"):
            logger.debug(f"{source}:{line_no}: skipping comment")
            continue

        entry = parse_manifest_line(line)
        if entry is None:
            logger.warning(f"Cannot parse line {line_no} of {source}: {line!r}")
            continue

        path, digest = entry
        file_map[path] = digest
        if not silent:
            logger.info(f"Mapped {path}")

    return file_map


def manifest_path(base_dir: Union[str, Path], release: str, suffix: str) -> Path:
    return Path(base_dir) / f"{release}{suffix}"


class ManifestStrategy(FingerprintStrategy):
    """Reads a release's fingerprint map from ``<base_dir>/<release><suffix>``."""

    def __init__(self, base_dir: Union[str, Path], suffix: str = ".sums", silent: bool = False):
        self.base_dir = Path(base_dir)
        self.suffix = suffix
        self.silent = silent

    def build(self, release: str) -> FingerprintMap:
        path = manifest_path(self.base_dir, release, self.suffix)
        try:
            with open(path, 'r', encoding='utf-8', errors='surrogateescape') as f:
                return parse_manifest_lines(f, source=str(path), silent=self.silent)
        except OSError as e:
            raise ManifestError(f"Cannot read manifest {path}: {e}", str(path), release)

    def describe(self) -> str:
        return "manifest"


class LiveHashStrategy(FingerprintStrategy):
    """Hashes every regular file under ``<base_dir>/<release>``.

    One producer thread walks the tree into a bounded queue; ``jobs`` worker
    threads hash files in parallel and insert results into the map under a
    single lock. The insert is the only critical section.
    """

    def __init__(
        self,
        base_dir: Union[str, Path],
        jobs: int = 1,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        silent: bool = False
    ):
        self.base_dir = Path(base_dir)
        self.jobs = max(1, jobs)
        self.chunk_size = chunk_size
        self.silent = silent

    def describe(self) -> str:
        return f"live hashing ({self.jobs} workers)"

    def build(self, release: str) -> FingerprintMap:
        root = self.base_dir / release
        if not os.access(root, os.R_OK | os.X_OK) or not root.is_dir():
            raise FingerprintError(f"Release root {root} is not a readable directory", release)

        hashed: FingerprintMap = {}
        lock = threading.Lock()
        errors: List[DedupError] = []
        failed = threading.Event()
        work: "queue.Queue" = queue.Queue(maxsize=self.jobs + 1)

        def fail(error: DedupError) -> None:
            with lock:
                errors.append(error)
            failed.set()

        def produce() -> None:
            try:
                for path in walk_files(root):
                    if failed.is_set():
                        break
                    work.put(path)
            except OSError as e:
                fail(FingerprintError(f"Cannot walk {root}: {e}", release))
            finally:
                for _ in range(self.jobs):
                    work.put(_WALK_DONE)

        def consume() -> None:
            while True:
                path = work.get()
                if path is _WALK_DONE:
                    return
                if failed.is_set():
                    continue

                if not self.silent:
                    logger.info(f"Hashing {path}")
                try:
                    digest = calculate_checksum(path, self.chunk_size)
                except HashingError as e:
                    e.release = release
                    fail(e)
                    continue

                key = relative_key(path, root)
                with lock:
                    hashed[key] = digest

        threads = [threading.Thread(target=produce, name=f"walk-{release}", daemon=True)]
        threads += [
            threading.Thread(target=consume, name=f"hash-{release}-{i}", daemon=True)
            for i in range(self.jobs)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        if errors:
            raise errors[0]

        logger.debug(f"Hashed {len(hashed)} files in {release}")
        return hashed


def build_fingerprint_map(release: str, strategy: FingerprintStrategy) -> FingerprintMap:
    """Build one release's fingerprint map with the given strategy."""
    file_map = strategy.build(release)
    logger.debug(f"Built fingerprint map for {release} via {strategy.describe()}: {len(file_map)} entries")
    return file_map


@dataclass
class _ManifestResult:
    release: str
    file_map: Optional[FingerprintMap] = None
    error: Optional[DedupError] = None


def build_manifest_maps(
    base_dir: Union[str, Path],
    releases: Iterable[str],
    suffix: str = ".sums",
    jobs: int = 1,
    timeout: float = DEFAULT_MAP_TIMEOUT,
    silent: bool = False,
    progress=None
) -> Dict[str, FingerprintMap]:
    """Parse every release's manifest with a fixed-size pool of daemon threads.

    Each worker builds maps through ``ManifestStrategy``. Results are collected
    one at a time, each within ``timeout`` seconds; a worker stuck in a read
    is abandoned rather than joined. ``progress`` is an optional tqdm bar
    advanced once per collected map.

    Raises:
        ManifestError: A manifest cannot be read.
        LivenessTimeoutError: No result arrived within ``timeout`` seconds.
    """
    releases = list(releases)
    strategy = ManifestStrategy(base_dir, suffix=suffix, silent=silent)
    pending: "queue.Queue" = queue.Queue()
    for release in releases:
        pending.put(release)
    results: "queue.Queue" = queue.Queue()
    stop = threading.Event()

    def work() -> None:
        while not stop.is_set():
            try:
                release = pending.get_nowait()
            except queue.Empty:
                return

            try:
                file_map = build_fingerprint_map(release, strategy)
            except DedupError as e:
                results.put(_ManifestResult(release, error=e))
            else:
                results.put(_ManifestResult(release, file_map=file_map))

    for i in range(max(1, min(jobs, len(releases)))):
        threading.Thread(target=work, name=f"manifest-{i}", daemon=True).start()

    maps: Dict[str, FingerprintMap] = {}
    try:
        for _ in releases:
            try:
                result = results.get(timeout=timeout)
            except queue.Empty:
                raise LivenessTimeoutError(
                    f"Waiting for map longer than {timeout:g} seconds", timeout
                )
            if result.error is not None:
                raise result.error
            maps[result.release] = result.file_map
            if progress is not None:
                progress.update(1)
    finally:
        stop.set()

    return maps


def build_release_maps(
    releases: Iterable[str],
    strategy: FingerprintStrategy,
    progress=None
) -> Dict[str, FingerprintMap]:
    """Build maps one release at a time; ``progress`` is an optional tqdm bar."""
    maps: Dict[str, FingerprintMap] = {}
    for release in releases:
        maps[release] = build_fingerprint_map(release, strategy)
        if progress is not None:
            progress.update(1)
    return maps
