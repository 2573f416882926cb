"""High-level orchestration for producing a single offline HTML file."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

from .config import BundleConfig
from .errors import DocumentIOError
from .fetcher import ResourceFetcher
from .html import HtmlRewriter
from .locator import local_base

logger = logging.getLogger("offline_bundle")

BANNER_TEMPLATE = "<!-- AUTO-GENERATED by offline-bundle: edit {source} instead. -->\n"


def render_banner(source: str) -> str:
    """Single-line comment marking the output as generated from ``source``."""
    return BANNER_TEMPLATE.format(source=source)


def read_document(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DocumentIOError(f"Failed to read {path}: {exc}") from exc


def write_document(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise DocumentIOError(f"Failed to write {path}: {exc}") from exc


async def bundle_html(
    html: str,
    input_path: Path,
    config: BundleConfig,
    fetcher: ResourceFetcher,
) -> str:
    """Rewrite ``html`` found at ``input_path`` and prepend the banner."""
    rewriter = HtmlRewriter(fetcher, web_font_hosts=config.web_font_hosts)
    rewritten = await rewriter.rewrite(html, local_base(input_path))
    return render_banner(config.resolved_banner_source()) + rewritten


async def build(
    config: BundleConfig,
    fetcher: Optional[ResourceFetcher] = None,
) -> Path:
    """Read the input document, inline its dependencies and write the output.

    Nothing is written unless every script and stylesheet was embedded.
    """
    start = time.perf_counter()
    input_path = config.input_path.resolve()
    output_path = config.resolved_output_path()
    logger.info("Building offline HTML")
    logger.info("Input : %s", input_path)
    logger.info("Output: %s", output_path)

    html = read_document(input_path)
    if fetcher is None:
        with ResourceFetcher(timeout=config.request_timeout) as owned:
            bundled = await bundle_html(html, input_path, config, owned)
    else:
        bundled = await bundle_html(html, input_path, config, fetcher)

    write_document(output_path, bundled)
    elapsed = time.perf_counter() - start
    logger.info(
        "Generated %s (%.0f KB -> %.0f KB) in %.2fs",
        output_path,
        len(html.encode("utf-8")) / 1024,
        len(bundled.encode("utf-8")) / 1024,
        elapsed,
    )
    return output_path
