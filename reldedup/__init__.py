"""Release tree deduplication by hardlinking identical files."""

__version__ = "1.0.0"
