"""
Custom error types for Markdown <-> Google Docs conversion.

Provides a single stable error surface for the compiler and the batch executor.
"""

from typing import Any

# =============================================================================
# Base Exception Hierarchy
# =============================================================================


class GDocsMarkdownError(Exception):
    """Base exception for all gdocs-markdown errors."""

    pass


# =============================================================================
# Conversion Errors
# =============================================================================


class MarkdownConversionError(GDocsMarkdownError):
    """Raised when Markdown cannot be converted into Google Docs requests."""

    pass


class MarkdownStructureError(MarkdownConversionError):
    """Raised when a token implies an illegal nesting that cannot be defaulted."""

    def __init__(self, message: str, token_type: str | None = None):
        super().__init__(message)
        self.token_type = token_type


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(GDocsMarkdownError):
    """Raised when input validation fails."""

    pass


# =============================================================================
# API Errors
# =============================================================================


class APIError(GDocsMarkdownError):
    """Raised for general Google API errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ResourceNotFoundError(APIError):
    """Raised when a requested document doesn't exist (404)."""

    pass


class PermissionDeniedError(APIError):
    """Raised when the user lacks permission for an operation (403)."""

    pass


class RateLimitError(APIError):
    """Raised when API rate limits are exceeded (429)."""

    pass


def _status_code(error: Exception) -> int | None:
    resp = getattr(error, "resp", None)
    status = getattr(resp, "status", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def handle_http_error(error: Exception, document_id: str | None = None) -> APIError:
    """
    Convert a Google API HTTP error to the matching APIError subclass.
    """
    status = _status_code(error)

    if status == 404:
        return ResourceNotFoundError(f"Document not found: {document_id or 'unknown'}", status, error)
    elif status == 403:
        return PermissionDeniedError("Permission denied. You may not have access to this document.", status, error)
    elif status == 429:
        return RateLimitError("Rate limit exceeded. Please wait and try again.", status, error)
    else:
        return APIError(f"Google API error: {error}", status, error)
