"""File management utilities."""

import hashlib
import logging
import os
import shutil
from pathlib import Path
from typing import Dict, Iterator, Union

from reldedup.core.exceptions import HashingError

logger = logging.getLogger(__name__)

DIGEST_ALGORITHM = "sha256"
DEFAULT_CHUNK_SIZE = 1024 * 1024


def calculate_checksum(path: Union[str, Path], chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Stream a file through SHA-256 and return the hex digest.

    Raises:
        HashingError: The file cannot be opened or read.
    """
    digest = hashlib.new(DIGEST_ALGORITHM)
    try:
        with open(path, 'rb') as f:
            while chunk := f.read(chunk_size):
                digest.update(chunk)
    except OSError as e:
        raise HashingError(f"Failed to read {path} for hashing: {e}", str(path))
    return digest.hexdigest()


def walk_files(root: Union[str, Path]) -> Iterator[Path]:
    """Yield every regular file below ``root``.

    Uses an explicit stack of pending directories. Symlinks and special
    files are neither followed nor yielded.

    Raises:
        OSError: A directory cannot be listed.
    """
    pending = [Path(root)]
    while pending:
        directory = pending.pop()
        with os.scandir(directory) as entries:
            for entry in sorted(entries, key=lambda e: e.name):
                if entry.is_dir(follow_symlinks=False):
                    pending.append(Path(entry.path))
                elif entry.is_file(follow_symlinks=False):
                    yield Path(entry.path)
                else:
                    logger.debug(f"Skipping non-regular file {entry.path}")


def relative_key(path: Union[str, Path], root: Union[str, Path]) -> str:
    """Slash-separated path of ``path`` relative to ``root``."""
    return Path(os.path.relpath(path, root)).as_posix()


def normalize_relative_path(path: str) -> str:
    """Strip leading './' and '/' so manifest and walked paths agree."""
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")


def same_file(first: os.stat_result, second: os.stat_result) -> bool:
    """True when both stats refer to one inode on one device."""
    return first.st_dev == second.st_dev and first.st_ino == second.st_ino


def get_disk_usage(directory: Union[str, Path]) -> Dict[str, float]:
    """Get disk usage statistics for the filesystem holding ``directory``."""
    try:
        usage = shutil.disk_usage(directory)
    except OSError as e:
        logger.error(f"Error getting disk usage for {directory}: {e}")
        return {}

    return {
        'total_space_mb': usage.total / (1024 * 1024),
        'available_space_mb': usage.free / (1024 * 1024),
        'used_percent': ((usage.total - usage.free) / usage.total) * 100 if usage.total else 0.0
    }
