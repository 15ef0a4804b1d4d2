"""Core domain models, interfaces and exceptions."""

from .models import *
from .interfaces import *
from .exceptions import *

__all__ = [
    # Models
    "FingerprintMap", "DuplicateSet", "Stage", "ReleaseKey",
    "MergeState", "MergeOperation", "MergeOutcome", "MergeStats",

    # Interfaces
    "FingerprintStrategy",

    # Exceptions
    "DedupError", "ValidationError", "ConfigurationError", "ReleaseParseError",
    "DiscoveryError", "FingerprintError", "HashingError", "ManifestError",
    "LivenessTimeoutError", "CanonicalMapMissingError"
]
