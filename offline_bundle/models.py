"""Data models used throughout the bundling pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional

ReferenceKind = Literal["script", "stylesheet", "asset"]
Transport = Literal["remote", "local"]


@dataclass(frozen=True)
class ResolvedLocation:
    """Absolute, fetchable form of a reference."""

    target: str
    transport: Transport

    @property
    def is_remote(self) -> bool:
        return self.transport == "remote"

    @property
    def path(self) -> Path:
        """Filesystem path of a local location."""
        if self.is_remote:
            raise ValueError(f"{self.target} is not a local location")
        return Path(self.target)

    def __str__(self) -> str:
        return self.target


@dataclass(frozen=True)
class Reference:
    """Raw reference token discovered in markup or CSS."""

    raw: str
    kind: ReferenceKind
    base: Optional[ResolvedLocation] = None


@dataclass
class FetchedResource:
    """Downloaded content together with its data URI media type."""

    location: ResolvedLocation
    content: bytes
    mime_type: str

    @property
    def size_kb(self) -> float:
        return len(self.content) / 1024


@dataclass(frozen=True)
class RewriteRecord:
    """Replacement text for every occurrence of one raw reference."""

    target: str
    replacement: str
