"""Exceptions raised by the bundling pipeline."""

from __future__ import annotations

from typing import Optional


class BundleError(Exception):
    """Base class for failures that abort or degrade a build."""


class UnreachableResource(BundleError):
    """A remote or local resource could not be retrieved."""

    def __init__(
        self,
        location: str,
        reason: str = "",
        status: Optional[int] = None,
    ) -> None:
        self.location = location
        self.reason = reason
        self.status = status
        if status is not None:
            message = f"HTTP {status} {location}"
        else:
            message = location
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class UnsupportedLocationScheme(UnreachableResource):
    """A reference resolved to neither HTTP(S) nor a local path."""


class DocumentIOError(BundleError):
    """The input document could not be read or the output could not be written."""
