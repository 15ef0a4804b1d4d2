"""Input validation utilities for the CLI."""

import re
from pathlib import Path
from typing import Optional, Union

from reldedup.core.exceptions import ValidationError


class ReleaseValidator:
    """Validates command-line parameters."""

    MAJOR_FILTER_PATTERN = re.compile(r'^\d+$')
    SUFFIX_PATTERN = re.compile(r'^\.?[A-Za-z0-9_\-.~]+$')

    # Filter values meaning "every release"
    WILDCARD_FILTERS = {"", "0", "*", "all"}

    @classmethod
    def validate_release_filter(cls, value: Optional[str]) -> Optional[str]:
        """Validate a major-version filter; None means no filtering."""
        if value is None:
            return None

        value = str(value).strip()
        if value.lower() in cls.WILDCARD_FILTERS:
            return None

        if not cls.MAJOR_FILTER_PATTERN.match(value):
            raise ValidationError(
                f"Invalid release filter '{value}'. Use a major version number or 0 for all.",
                field="release"
            )

        return str(int(value))

    @classmethod
    def validate_positive_int(cls, value: Union[str, int], name: str, max_value: Optional[int] = None) -> int:
        """Validate positive integer."""
        try:
            result = int(value)
        except (ValueError, TypeError):
            raise ValidationError(f"{name} must be a number", field=name)

        if result <= 0:
            raise ValidationError(f"{name} must be positive", field=name)

        if max_value and result > max_value:
            raise ValidationError(f"{name} cannot exceed {max_value}", field=name)

        return result

    @classmethod
    def validate_timeout(cls, value: Union[str, float]) -> float:
        """Validate a liveness timeout in seconds."""
        try:
            result = float(value)
        except (ValueError, TypeError):
            raise ValidationError("timeout must be a number", field="timeout")

        if result <= 0:
            raise ValidationError("timeout must be positive", field="timeout")

        return result

    @classmethod
    def validate_suffix(cls, value: str, name: str) -> str:
        """Validate a filename suffix such as '.sums' or '.bak'."""
        value = (value or "").strip()
        if not value or not cls.SUFFIX_PATTERN.match(value):
            raise ValidationError(f"Invalid {name} suffix '{value}'", field=name)
        return value

    @classmethod
    def validate_base_dir(cls, value: Union[str, Path]) -> Path:
        """Validate that the base directory exists."""
        path = Path(value)
        if not path.is_dir():
            raise ValidationError(f"Base directory not found: {path}", field="dir")
        return path
