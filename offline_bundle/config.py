"""Configuration objects and constants for the bundler."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_OUTPUT_SUFFIX = ".offline.html"
DEFAULT_WEB_FONT_HOSTS = ("fonts.googleapis.com",)


@dataclass
class BundleConfig:
    """Top-level settings that control a single offline build."""

    input_path: Path
    output_path: Optional[Path] = None
    banner_source: Optional[str] = None
    request_timeout: Optional[float] = None
    web_font_hosts: Tuple[str, ...] = DEFAULT_WEB_FONT_HOSTS

    def resolved_output_path(self) -> Path:
        """Return the output path, defaulting to a sibling of the input."""
        if self.output_path is not None:
            return self.output_path
        return self.input_path.with_name(self.input_path.stem + DEFAULT_OUTPUT_SUFFIX)

    def resolved_banner_source(self) -> str:
        return self.banner_source or self.input_path.name
