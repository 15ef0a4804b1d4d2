"""Custom exceptions for the release deduplication tool."""


class DedupError(Exception):
    """Base exception for deduplication errors."""


class ValidationError(DedupError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str = ""):
        super().__init__(message)
        self.field = field


class ConfigurationError(DedupError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str):
        super().__init__(message)


class ReleaseParseError(DedupError):
    """Raised when a release identifier does not follow the version grammar."""

    def __init__(self, message: str, release: str = "", token: str = ""):
        super().__init__(message)
        self.release = release
        self.token = token


class DiscoveryError(DedupError):
    """Raised when the base directory cannot be scanned."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class FingerprintError(DedupError):
    """Raised when a release root cannot be fingerprinted."""

    def __init__(self, message: str, release: str = ""):
        super().__init__(message)
        self.release = release


class HashingError(FingerprintError):
    """Raised when a discovered file cannot be read for hashing."""

    def __init__(self, message: str, path: str = "", release: str = ""):
        super().__init__(message, release=release)
        self.path = path


class ManifestError(FingerprintError):
    """Raised when a manifest file cannot be opened or read."""

    def __init__(self, message: str, path: str = "", release: str = ""):
        super().__init__(message, release=release)
        self.path = path


class LivenessTimeoutError(DedupError):
    """Raised when waiting for a fingerprint map exceeds the liveness timeout."""

    def __init__(self, message: str, timeout: float = 0.0):
        super().__init__(message)
        self.timeout = timeout


class CanonicalMapMissingError(DedupError):
    """Raised when the highest-ordered release has no fingerprint map."""

    def __init__(self, release: str):
        super().__init__(f"Fingerprint map for canonical release {release} does not exist")
        self.release = release

