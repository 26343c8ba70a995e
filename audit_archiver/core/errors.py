"""
Error taxonomy for export runs.

Every failure raised by the signing, token, fetch and archive layers derives
from :class:`ArchiverError` so entry points can map it to a status code.
"""

from __future__ import annotations


class ArchiverError(RuntimeError):
    """Base class for failures that abort an export run."""

    status_code: int = 500


class ConfigError(ArchiverError):
    """Raised when required settings are missing or invalid."""


class AuthError(ArchiverError):
    """Raised when a signing key or access token cannot be obtained."""


class MalformedResponseError(ArchiverError):
    """Raised when an API response lacks the fields the caller depends on."""


class TooSoonError(ArchiverError):
    """Raised when the minimum interval since the last archived batch has not elapsed."""

    status_code = 417


class TransportError(ArchiverError):
    """Raised on network failures, error statuses and undecodable bodies."""
