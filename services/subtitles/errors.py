"""Exceptions raised by the subtitle delivery service."""

from __future__ import annotations


class SubtitleDeliveryError(Exception):
    """Base class for subtitle delivery failures."""

    status_code = 500
    error_code = "subtitle_delivery_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SubtitleNotFoundError(SubtitleDeliveryError):
    """Raised when an item, media source or subtitle stream does not exist."""

    status_code = 404
    error_code = "not_found"


class SubtitleValidationError(SubtitleDeliveryError):
    """Raised when a request cannot be served as given."""

    status_code = 400
    error_code = "validation_error"


class SubtitleEncodingError(SubtitleDeliveryError):
    """Raised when the subtitle encoder fails to produce output."""

    status_code = 500
    error_code = "encoding_error"


class UpstreamProviderError(SubtitleDeliveryError):
    """Raised when a remote subtitle provider cannot be reached or fails."""

    status_code = 502
    error_code = "upstream_failure"
