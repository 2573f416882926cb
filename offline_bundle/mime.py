"""Extension-based media type lookup for data URIs."""

from __future__ import annotations

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES = {
    "woff2": "font/woff2",
    "woff": "font/woff",
    "ttf": "font/ttf",
    "otf": "font/otf",
    "svg": "image/svg+xml",
    "css": "text/css",
    "js": "text/javascript",
}


def extension_of(location: str) -> str:
    """Return the lowercase trailing extension, ignoring query and fragment."""
    path = location.split("?", 1)[0].split("#", 1)[0]
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def classify(location: str) -> str:
    """Map a location to the media type used in its data URI header."""
    return MIME_TYPES.get(extension_of(str(location)), DEFAULT_MIME_TYPE)
