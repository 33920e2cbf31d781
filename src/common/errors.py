"""Error taxonomy shared by the store, the analytics layer and the loaders."""

from __future__ import annotations


class PortalError(Exception):
    """Base class for recoverable analytics errors."""


class InvalidFilterRange(PortalError, ValueError):
    """Raised when a year range or distance band is malformed (e.g. min > max)."""


class TableFormatError(PortalError):
    """Raised when an input table is missing columns or holds malformed rows."""


__all__ = ["PortalError", "InvalidFilterRange", "TableFormatError"]
