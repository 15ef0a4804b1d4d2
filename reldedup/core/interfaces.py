"""Abstract interfaces for the deduplication components."""

from abc import ABC, abstractmethod

from .models import FingerprintMap


class FingerprintStrategy(ABC):
    """Abstract interface for building a release's fingerprint map."""

    @abstractmethod
    def build(self, release: str) -> FingerprintMap:
        """Build the path -> digest map for one release."""
        pass

    @abstractmethod
    def describe(self) -> str:
        """Short name for logging."""
        pass
