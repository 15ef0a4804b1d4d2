"""Utility functions and helper classes."""

from .logger import CommandLogger
from .file_manager import calculate_checksum, walk_files, same_file

__all__ = [
    "CommandLogger",
    "calculate_checksum", "walk_files", "same_file"
]
