import logging
from pathlib import Path

import pytest

from reldedup.config import settings as settings_module
from reldedup.utils.logger import LOGGER_NAME


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep settings and the package logger from leaking between tests."""
    for name in (
        "DEDUP_BASE_DIR", "DEDUP_RELEASE_FILTER", "DEDUP_USE_MANIFESTS",
        "DEDUP_MANIFEST_SUFFIX", "DEDUP_BACKUP_SUFFIX", "DEDUP_DRY_RUN",
        "DEDUP_JOBS", "DEDUP_MAP_TIMEOUT", "DEDUP_HASH_CHUNK_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LOG_TO_FILE", "false")
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setattr(settings_module, "_settings", None)

    yield

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def make_release(base: Path, release: str, files: dict) -> Path:
    """Create ``base/release`` populated with ``{relative_path: content}``."""
    root = base / release
    root.mkdir(parents=True, exist_ok=True)
    for rel_path, content in files.items():
        target = root / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        target.write_bytes(content)
    return root


@pytest.fixture
def release_factory(tmp_path):
    def factory(release, files):
        return make_release(tmp_path, release, files)
    return factory
