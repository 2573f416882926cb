"""Rewrite an HTML document so scripts and stylesheets are embedded inline."""

from __future__ import annotations

import base64
import logging
import re
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple

from .css import CssAssetResolver
from .fetcher import ResourceFetcher
from .locator import resolve
from .models import Reference, ResolvedLocation

logger = logging.getLogger("offline_bundle")

ATTRIBUTE_PATTERN = re.compile(
    r"""\s*([^\s"'<>/=]+)(?:\s*=\s*("[^"]*"|'[^']*'|[^\s"'=<>`]+))?""",
)
SCRIPT_PATTERN = re.compile(r"<script\b([^>]*)>\s*</script\s*>", re.IGNORECASE)
# Script elements are matched first so link-like text inside them is skipped.
LINK_PATTERN = re.compile(
    r"(<script\b[^>]*>.*?</script\s*>)|<link\b([^>]*)>",
    re.IGNORECASE | re.DOTALL,
)
START_TAG_PATTERN = re.compile(
    r"(<(script|style)\b[^>]*>)(.*?)(</\2\s*>)|<[A-Za-z][^<>]*>",
    re.IGNORECASE | re.DOTALL,
)
TAG_PARTS_PATTERN = re.compile(r"(<[A-Za-z][^\s/>]*)(.*?)(/?>)$", re.DOTALL)
TRANSPORT_ATTRIBUTES = ("integrity", "crossorigin")
RESOURCE_HINTS = ("preconnect", "dns-prefetch")
STYLESHEET_OPENING = 'link rel="stylesheet"'

Attribute = Tuple[str, Optional[str], str]


def parse_attributes(attrs: str) -> List[Attribute]:
    """Split the inside of a start tag into ``(name, value, source_text)``.

    Values may be double-quoted, single-quoted or bare; valueless attributes
    such as ``crossorigin`` get ``None``. Stray slashes are ignored.
    """
    parsed: List[Attribute] = []
    for match in ATTRIBUTE_PATTERN.finditer(attrs):
        name, value = match.group(1), match.group(2)
        if value is not None and value[:1] in ("'", '"'):
            value = value[1:-1]
        parsed.append((name.lower(), value, match.group(0).strip()))
    return parsed


def get_attribute(attrs: str, name: str) -> Optional[str]:
    for attr_name, value, _ in parse_attributes(attrs):
        if attr_name == name:
            return value
    return None


def strip_attributes(attrs: str, names: Iterable[str]) -> str:
    """Drop the named attributes and join the rest with single spaces."""
    excluded = {name.lower() for name in names}
    kept = [text for name, _, text in parse_attributes(attrs) if name not in excluded]
    return " ".join(kept)


def _strip_in_place(tag: str, names: Iterable[str]) -> str:
    """Remove attributes from a start tag without touching anything else.

    The tag is tokenized with ``ATTRIBUTE_PATTERN`` so names that only occur
    inside another attribute's quoted value are left alone.
    """
    match = TAG_PARTS_PATTERN.match(tag)
    if match is None:
        return tag
    excluded = {name.lower() for name in names}

    def drop(attribute: re.Match) -> str:
        if attribute.group(1).lower() in excluded:
            return ""
        return attribute.group(0)

    head, attrs, tail = match.groups()
    return head + ATTRIBUTE_PATTERN.sub(drop, attrs) + tail


async def sub_async(
    pattern: re.Pattern,
    replace: Callable[[re.Match], Awaitable[str]],
    text: str,
) -> str:
    """Like ``re.sub`` with an async callback, one match at a time in order."""
    parts: List[str] = []
    last = 0
    for match in pattern.finditer(text):
        parts.append(text[last : match.start()])
        parts.append(await replace(match))
        last = match.end()
    parts.append(text[last:])
    return "".join(parts)


def _with_attributes(tag: str, attrs: str) -> str:
    return f"{tag} {attrs}" if attrs else tag


class HtmlRewriter:
    """Run the script, stylesheet, hint and attribute passes over a document."""

    def __init__(
        self,
        fetcher: ResourceFetcher,
        web_font_hosts: Iterable[str] = (),
    ) -> None:
        self.fetcher = fetcher
        self.css_resolver = CssAssetResolver(fetcher)
        self.web_font_hosts = tuple(host.lower() for host in web_font_hosts)

    async def inline_scripts(self, html: str, base: Optional[ResolvedLocation]) -> str:
        """Replace ``<script src=...></script>`` with the script source.

        A script that cannot be fetched aborts the rewrite.
        """

        async def replace(match: re.Match) -> str:
            attrs = match.group(1)
            src = get_attribute(attrs, "src")
            if not src:
                return match.group(0)
            reference = Reference(raw=src, kind="script", base=base)
            location = resolve(reference.raw, reference.base)
            script = await self.fetcher.fetch_text(location)
            kept = strip_attributes(attrs, ("src",) + TRANSPORT_ATTRIBUTES)
            logger.info('Inlined <script src="%s"> (%d chars)', src, len(script))
            return (
                f"<!-- inlined from {src} -->\n"
                f"<{_with_attributes('script', kept)}>\n{script}\n</script>"
            )

        return await sub_async(SCRIPT_PATTERN, replace, html)

    def _is_web_font_css(self, location: ResolvedLocation) -> bool:
        if not location.is_remote:
            return False
        target = location.target.lower()
        return any(host in target for host in self.web_font_hosts)

    async def inline_stylesheets(self, html: str, base: Optional[ResolvedLocation]) -> str:
        """Point ``<link rel="stylesheet">`` at a data URI of the stylesheet.

        Assets referenced by the stylesheet are embedded first, resolved
        against the stylesheet's own location. A stylesheet that cannot be
        fetched aborts the rewrite.
        """

        async def replace(match: re.Match) -> str:
            attrs = match.group(2)
            if attrs is None:
                return match.group(0)
            rel = get_attribute(attrs, "rel")
            href = get_attribute(attrs, "href")
            if not rel or rel.strip().lower() != "stylesheet" or not href:
                return match.group(0)
            reference = Reference(raw=href, kind="stylesheet", base=base)
            location = resolve(reference.raw, reference.base)
            css = await self.fetcher.fetch_text(location)
            if self._is_web_font_css(location):
                logger.info("Embedding web fonts from %s", location)
            css = await self.css_resolver.inline_assets(css, location)
            data_uri = "data:text/css;base64," + base64.b64encode(css.encode("utf-8")).decode("ascii")
            kept = strip_attributes(attrs, ("rel", "href") + TRANSPORT_ATTRIBUTES)
            logger.info('Inlined <link rel="stylesheet" href="%s"> (%d chars)', href, len(css))
            return (
                f"<!-- inlined from {href} -->\n"
                f'<{_with_attributes(STYLESHEET_OPENING, kept)} href="{data_uri}">'
            )

        return await sub_async(LINK_PATTERN, replace, html)

    @staticmethod
    def remove_resource_hints(html: str) -> str:
        """Drop ``preconnect`` and ``dns-prefetch`` links."""

        def replace(match: re.Match) -> str:
            if match.group(2) is None:
                return match.group(0)
            rel = get_attribute(match.group(2), "rel")
            if rel and rel.strip().lower() in RESOURCE_HINTS:
                logger.debug("Removed resource hint %s", match.group(0))
                return ""
            return match.group(0)

        return LINK_PATTERN.sub(replace, html)

    @staticmethod
    def strip_transport_attributes(html: str) -> str:
        """Remove leftover ``integrity``/``crossorigin`` from every start tag.

        Script and style bodies are left untouched.
        """

        def replace(match: re.Match) -> str:
            if match.group(1) is not None:
                opening = _strip_in_place(match.group(1), TRANSPORT_ATTRIBUTES)
                return opening + match.group(3) + match.group(4)
            return _strip_in_place(match.group(0), TRANSPORT_ATTRIBUTES)

        return START_TAG_PATTERN.sub(replace, html)

    async def rewrite(self, html: str, base: Optional[ResolvedLocation]) -> str:
        """Apply all four passes in order and return the rewritten document."""
        html = await self.inline_scripts(html, base)
        html = await self.inline_stylesheets(html, base)
        html = self.remove_resource_hints(html)
        return self.strip_transport_attributes(html)
