"""Configuration settings for the release deduplication tool."""

import os
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

from reldedup.core.exceptions import ConfigurationError

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, str(default))
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name, str(default))
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {value!r}")


@dataclass
class ScanConfig:
    """Release discovery configuration."""
    base_dir: Path = field(default_factory=lambda: Path(os.getenv("DEDUP_BASE_DIR", ".")))
    release_filter: str = field(default_factory=lambda: os.getenv("DEDUP_RELEASE_FILTER", "0"))
    use_manifests: bool = field(default_factory=lambda: _env_flag("DEDUP_USE_MANIFESTS"))
    manifest_suffix: str = field(default_factory=lambda: os.getenv("DEDUP_MANIFEST_SUFFIX", ".sums"))


@dataclass
class MergeConfig:
    """Hardlink merge configuration."""
    backup_suffix: str = field(default_factory=lambda: os.getenv("DEDUP_BACKUP_SUFFIX", ".bak"))
    dry_run: bool = field(default_factory=lambda: _env_flag("DEDUP_DRY_RUN"))


@dataclass
class PerformanceConfig:
    """Performance settings."""
    worker_threads: int = field(default_factory=lambda: _env_int("DEDUP_JOBS", os.cpu_count() or 1))
    map_timeout_seconds: float = field(default_factory=lambda: _env_float("DEDUP_MAP_TIMEOUT", 30))
    hash_chunk_size: int = field(default_factory=lambda: _env_int("DEDUP_HASH_CHUNK_SIZE", 1024 * 1024))


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_dir: Path = field(default_factory=lambda: Path(os.getenv("LOG_DIR", "./logs")))
    log_to_file: bool = field(default_factory=lambda: _env_flag("LOG_TO_FILE"))
    log_to_console: bool = field(default_factory=lambda: _env_flag("LOG_TO_CONSOLE", "true"))
    max_log_files: int = field(default_factory=lambda: _env_int("MAX_LOG_FILES", 100))
    log_rotation_days: int = field(default_factory=lambda: _env_int("LOG_ROTATION_DAYS", 30))


@dataclass
class Settings:
    """Complete tool settings."""
    scan: ScanConfig = field(default_factory=ScanConfig)
    merge: MergeConfig = field(default_factory=MergeConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        """Validate settings."""
        if self.performance.worker_threads < 1:
            raise ConfigurationError("DEDUP_JOBS must be at least 1")
        if self.performance.map_timeout_seconds <= 0:
            raise ConfigurationError("DEDUP_MAP_TIMEOUT must be positive")
        if self.performance.hash_chunk_size <= 0:
            raise ConfigurationError("DEDUP_HASH_CHUNK_SIZE must be positive")

        if not self.scan.manifest_suffix:
            raise ConfigurationError("DEDUP_MANIFEST_SUFFIX cannot be empty")
        if not self.merge.backup_suffix:
            raise ConfigurationError("DEDUP_BACKUP_SUFFIX cannot be empty")
        if self.scan.manifest_suffix == self.merge.backup_suffix:
            raise ConfigurationError("Manifest and backup suffixes must differ")


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global _settings
    _settings = Settings()
    return _settings
