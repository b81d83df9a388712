"""Exception hierarchy for dpistamp."""

from __future__ import annotations


class DpistampError(Exception):
    """Base exception for all dpistamp errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(DpistampError):
    """Configuration or output settings validation failed."""


class SourceError(DpistampError):
    """Source validation or loading failed."""


class DimensionError(DpistampError):
    """Target dimensions could not be resolved for an item.

    ``reason`` is one of ``"too_large"``, ``"too_small"`` or
    ``"unknown_preset"`` so callers can branch without parsing messages.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        reason: str,
        width: int | None = None,
        height: int | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.reason = reason
        self.width = width
        self.height = height


class InvalidFormatError(DpistampError):
    """Encoded bytes do not carry the expected image signature."""

    def __init__(
        self, message: str, *, hint: str | None = None, fmt: str | None = None
    ) -> None:
        super().__init__(message, hint=hint)
        self.fmt = fmt


class RasterizeError(DpistampError):
    """Decoding, drawing or encoding an image failed."""


class PersistenceError(DpistampError):
    """Saving an encoded image failed."""


class InternalError(DpistampError):
    """A dpistamp internal error (bug) or invariant violation."""
