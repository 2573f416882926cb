"""Command-line entry point for the offline bundler."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Sequence

from .config import BundleConfig, DEFAULT_OUTPUT_SUFFIX
from .errors import BundleError
from .pipeline import build

logger = logging.getLogger("offline_bundle.cli")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Inline external scripts, stylesheets and CSS assets into a single "
            "self-contained HTML file."
        ),
    )
    parser.add_argument("input", type=Path, help="HTML document to bundle")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help=f"Where to write the bundle (default: <input stem>{DEFAULT_OUTPUT_SUFFIX})",
    )
    parser.add_argument(
        "--banner-source",
        default=None,
        help="Document name shown in the generated-file banner (default: input file name)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds (default: wait indefinitely)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    verbosity.add_argument(
        "--quiet",
        action="store_true",
        help="Only log errors",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    config = BundleConfig(
        input_path=args.input,
        output_path=args.output,
        banner_source=args.banner_source,
        request_timeout=args.timeout,
    )
    try:
        asyncio.run(build(config))
    except BundleError as exc:
        logger.error("Build failed: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
