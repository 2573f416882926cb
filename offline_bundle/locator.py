"""Resolve raw references into absolute remote URLs or local paths."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urljoin, urlsplit

from .errors import UnsupportedLocationScheme
from .models import ResolvedLocation

REMOTE_SCHEMES = ("http", "https")


def local_base(path: Path) -> ResolvedLocation:
    """Base context for references found in the file at ``path``."""
    return ResolvedLocation(os.path.abspath(path), "local")


def _scheme_of(reference: str) -> str:
    return urlsplit(reference).scheme.lower()


def _strip_query(reference: str) -> str:
    return reference.split("?", 1)[0].split("#", 1)[0]


def _is_windows_drive(reference: str) -> bool:
    return len(reference) > 2 and reference[1] == ":" and reference[2] in "\\/"


def resolve(reference: str, base: Optional[ResolvedLocation]) -> ResolvedLocation:
    """Resolve ``reference`` against ``base``.

    Remote bases resolve with standard URL joining, local bases resolve
    against the directory containing the base file. Absolute URLs and
    absolute paths pass through unchanged.

    Raises:
        UnsupportedLocationScheme: If the reference is malformed or cannot
            end up as an HTTP(S) URL or a local filesystem path.
    """
    reference = reference.strip()
    try:
        return _resolve(reference, base)
    except ValueError as exc:
        raise UnsupportedLocationScheme(reference, str(exc)) from exc


def _resolve(reference: str, base: Optional[ResolvedLocation]) -> ResolvedLocation:
    if not reference:
        raise UnsupportedLocationScheme(reference, "empty reference")

    scheme = "" if _is_windows_drive(reference) else _scheme_of(reference)
    if scheme in REMOTE_SCHEMES:
        return ResolvedLocation(reference, "remote")
    if scheme == "file":
        return ResolvedLocation(os.path.abspath(unquote(urlsplit(reference).path)), "local")
    if scheme:
        raise UnsupportedLocationScheme(reference, f"unsupported scheme '{scheme}'")

    if reference.startswith("//"):
        if base is None or not base.is_remote:
            raise UnsupportedLocationScheme(
                reference, "protocol-relative reference needs a remote base"
            )
        return ResolvedLocation(f"{_scheme_of(base.target)}:{reference}", "remote")

    if base is not None and base.is_remote:
        return ResolvedLocation(urljoin(base.target, reference), "remote")

    relative = unquote(_strip_query(reference))
    if "\x00" in relative:
        raise UnsupportedLocationScheme(reference, "embedded null byte")
    if os.path.isabs(relative):
        return ResolvedLocation(os.path.normpath(relative), "local")
    if base is None:
        raise UnsupportedLocationScheme(reference, "relative reference without a base")
    directory = os.path.dirname(base.target)
    return ResolvedLocation(os.path.normpath(os.path.join(directory, relative)), "local")
