from __future__ import annotations


class DomainError(ValueError):
    """Raised when a numeric range is degenerate (min equals max)."""


class ConfigurationError(ValueError):
    """Raised when a store profile, tier table or range set is unusable."""


class EncodingError(ValueError):
    """Raised when a report field cannot be written under the chosen quoting rule."""

    def __init__(self, message: str, *, row: int | None = None, value: str | None = None) -> None:
        super().__init__(message)
        self.row = row
        self.value = value
