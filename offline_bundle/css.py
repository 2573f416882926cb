"""Embed fonts and other assets referenced from CSS as data URIs."""

from __future__ import annotations

import asyncio
import base64
import logging
import re
from typing import Dict, List, Optional

from .errors import UnreachableResource
from .fetcher import ResourceFetcher
from .locator import resolve
from .models import Reference, ResolvedLocation, RewriteRecord

logger = logging.getLogger("offline_bundle")

CSS_URL_PATTERN = re.compile(r"""url\(\s*(['"]?)([^)'"]+?)\1\s*\)""", re.IGNORECASE)


def _raw_of(match: re.Match) -> str:
    return match.group(2).strip()


def scan_css_references(css_text: str, base: Optional[ResolvedLocation]) -> List[Reference]:
    """Return distinct fetchable ``url(...)`` references in first-seen order.

    Data URIs and fragment-only references such as ``url(#clip)`` are skipped.
    """
    seen = set()
    references: List[Reference] = []
    for match in CSS_URL_PATTERN.finditer(css_text):
        raw = _raw_of(match)
        if not raw or raw.startswith("#") or raw.lower().startswith("data:") or raw in seen:
            continue
        seen.add(raw)
        references.append(Reference(raw=raw, kind="asset", base=base))
    return references


def build_data_uri(mime_type: str, content: bytes) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def apply_rewrites(css_text: str, records: List[RewriteRecord]) -> str:
    """Replace every ``url(...)`` whose raw reference has a rewrite record.

    Targets are distinct raw strings, so a single substitution pass gives
    the same result as applying the records one by one in any order.
    """
    replacements: Dict[str, str] = {record.target: record.replacement for record in records}
    if not replacements:
        return css_text

    def substitute(match: re.Match) -> str:
        return replacements.get(_raw_of(match), match.group(0))

    return CSS_URL_PATTERN.sub(substitute, css_text)


class CssAssetResolver:
    """Inline ``url(...)`` assets of one stylesheet at a time.

    Each call keeps its own deduplication set; identical raw references in
    different stylesheets are fetched once per stylesheet.
    """

    def __init__(self, fetcher: ResourceFetcher) -> None:
        self.fetcher = fetcher

    async def _inline_reference(self, reference: Reference) -> Optional[RewriteRecord]:
        try:
            location = resolve(reference.raw, reference.base)
            resource = await self.fetcher.fetch_asset(location)
        except UnreachableResource as exc:
            logger.warning("Failed to inline asset %s: %s", reference.raw, exc)
            return None
        logger.info(
            "Inlined asset %s -> %s (%.1f KB)",
            reference.raw,
            resource.mime_type,
            resource.size_kb,
        )
        replacement = f"url({build_data_uri(resource.mime_type, resource.content)})"
        return RewriteRecord(target=reference.raw, replacement=replacement)

    async def inline_assets(self, css_text: str, base: Optional[ResolvedLocation]) -> str:
        """Return ``css_text`` with every reachable asset embedded.

        All distinct references are fetched concurrently and applied only
        after every fetch has finished. Unreachable assets keep their
        original ``url(...)``.
        """
        references = scan_css_references(css_text, base)
        if not references:
            return css_text
        results = await asyncio.gather(
            *(self._inline_reference(reference) for reference in references)
        )
        records = [record for record in results if record is not None]
        if len(records) < len(references):
            logger.warning(
                "Inlined %d of %d assets from %s",
                len(records),
                len(references),
                base or "inline CSS",
            )
        return apply_rewrites(css_text, records)
