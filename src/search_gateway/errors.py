"""
Error taxonomy for the search gateway.

Every per-request failure is one of ``ClientError``, ``DependencyTimeout`` or
``DependencyFailure``. ``ConfigurationError`` is raised only while loading or
validating the deployment configuration.
"""

from __future__ import annotations


class SearchGatewayError(Exception):
    """Base class for all gateway errors."""

    retriable: bool = False


class ClientError(SearchGatewayError, ValueError):
    """Raised when a search request is malformed or unsupported."""


class DependencyTimeout(SearchGatewayError):
    """Raised when the embedding service or backend exceeds its deadline."""

    retriable = True


class DependencyFailure(SearchGatewayError):
    """Raised when the embedding service or backend returns an error."""


class ConfigurationError(SearchGatewayError):
    """Raised when the deployment configuration is invalid."""
