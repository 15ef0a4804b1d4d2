"""Logging with optional per-run log files and rotation."""

import logging
import sys
from pathlib import Path
from datetime import datetime, timedelta
from typing import Dict, Any

LOGGER_NAME = "reldedup"


class CommandLogger:
    """Logger that creates a unique log file per run."""

    def __init__(
        self,
        log_dir: Path,
        command_params: Dict[str, Any],
        log_to_file: bool = True,
        log_to_console: bool = True,
        log_level: str = "INFO"
    ):
        """Initialize command logger with automatic filename generation.

        Args:
            log_dir: Directory to store log files
            command_params: Dictionary of command parameters for filename generation
            log_to_file: Whether to log to file
            log_to_console: Whether to log to console
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        self.log_dir = Path(log_dir)
        if log_to_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self.log_file = self._generate_log_filename(command_params)
        self.logger = self._setup_logging(log_to_file, log_to_console, log_level)

    def _generate_log_filename(self, params: Dict[str, Any]) -> Path:
        """Generate unique log filename based on command parameters.

        Format: reldedup_{timestamp}_{mode}_{params}.log
        Example: reldedup_20251007_143052_dryrun_manifests_r7_j8.log

        Args:
            params: Command parameters dictionary

        Returns:
            Path to log file
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

        param_parts = []

        if params.get('manifests'):
            param_parts.append("manifests")
        else:
            param_parts.append("live")

        release = params.get('release')
        if release:
            param_parts.append(f"r{release}")

        if params.get('jobs'):
            param_parts.append(f"j{params['jobs']}")

        operation = "dryrun" if params.get('dry_run') else "merge"

        param_str = "_".join(param_parts)
        filename = f"reldedup_{timestamp}_{operation}_{param_str}.log"

        if len(filename) > 200:
            filename = f"reldedup_{timestamp}_{operation}_{param_str[:100]}.log"

        return self.log_dir / filename

    def _setup_logging(
        self,
        log_to_file: bool,
        log_to_console: bool,
        log_level: str
    ) -> logging.Logger:
        """Setup logging with file and console handlers.

        Args:
            log_to_file: Enable file logging
            log_to_console: Enable console logging
            log_level: Logging level string

        Returns:
            Configured logger instance
        """
        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(logging.DEBUG)  # Capture all levels, handlers will filter

        # Clear existing handlers to avoid duplicates
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        formatter = logging.Formatter(
            '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        if log_to_file:
            try:
                file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
                file_handler.setLevel(logging.DEBUG)  # Log everything to file
                file_handler.setFormatter(formatter)
                logger.addHandler(file_handler)
            except OSError as e:
                print(f"Warning: Failed to create file handler: {e}", file=sys.stderr)

        if log_to_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, log_level.upper(), logging.INFO))
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        logger.propagate = False

        return logger

    def get_logger(self) -> logging.Logger:
        """Get the configured logger instance."""
        return self.logger

    def get_log_path(self) -> Path:
        """Get path to the log file."""
        return self.log_file

    def cleanup_old_logs(self, max_files: int = 100, max_age_days: int = 30) -> int:
        """Clean up old log files based on count and age.

        Args:
            max_files: Maximum number of log files to keep
            max_age_days: Maximum age of log files in days

        Returns:
            Number of log files deleted
        """
        deleted_count = 0

        if not self.log_dir.is_dir():
            return 0

        # Newest first
        log_files = sorted(
            self.log_dir.glob("reldedup_*.log"),
            key=lambda p: p.stat().st_mtime,
            reverse=True
        )

        doomed = set(log_files[max_files:])
        if max_age_days > 0:
            cutoff_time = datetime.now() - timedelta(days=max_age_days)
            for log_file in log_files:
                if datetime.fromtimestamp(log_file.stat().st_mtime) < cutoff_time:
                    doomed.add(log_file)

        for old_file in doomed:
            try:
                old_file.unlink()
                deleted_count += 1
            except OSError as e:
                self.logger.debug(f"Could not remove old log {old_file}: {e}")

        if deleted_count > 0:
            self.logger.debug(f"Cleaned up {deleted_count} old log files")

        return deleted_count
