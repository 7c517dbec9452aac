# src/main.py - v3
"""CLI entry point: analyze, image, cache commands.

Usage:
    pmdesigner analyze <image> [--name NAME] [--brand TEXT] [-o out.json]
    pmdesigner image "<prompt>" [--ratio 1:1] [--reference photo.png] [-o out.png]
    pmdesigner cache {stats,clear,purge}
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import timedelta
from pathlib import Path

from pydantic import ValidationError

from pmdesigner.config.settings import ConfigurationError
from pmdesigner.llm.errors import ClassifiedError
from pmdesigner.media.encoding import ImageTooLargeError, UnsupportedImageTypeError
from pmdesigner.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except ClassifiedError as exc:
        logger.debug("Technical detail: %s", exc.technical_message)
        print(f"Error [{exc.kind.value}]: {exc.user_message}", file=sys.stderr)
        return 2
    except (ImageTooLargeError, UnsupportedImageTypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except (ConfigurationError, ValidationError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="pmdesigner",
        description=f"pm-designer v{__version__} - product marketing asset generator",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--api-key", default=None,
        help="Gemini API key (default: GOOGLE_API_KEY from .env)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- analyze ---
    p_analyze = subparsers.add_parser(
        "analyze", help="Analyze a product photo and propose marketing routes",
    )
    p_analyze.add_argument("image", type=Path, help="Product photo (jpeg, png, webp)")
    p_analyze.add_argument("--name", default="", help="Product name")
    p_analyze.add_argument("--brand", default="", help="Brand information")
    p_analyze.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Write the JSON result here instead of stdout",
    )
    p_analyze.set_defaults(func=_cmd_analyze)

    # --- image ---
    p_image = subparsers.add_parser("image", help="Generate one marketing image")
    p_image.add_argument("prompt", help="English image prompt")
    p_image.add_argument("--ratio", default=None, help="Aspect ratio (default from settings)")
    p_image.add_argument(
        "--reference", type=Path, default=None,
        help="Reference product photo used as a style guide",
    )
    p_image.add_argument(
        "-o", "--output", type=Path, default=Path("image.png"),
        help="Output file (default: ./image.png)",
    )
    p_image.set_defaults(func=_cmd_image)

    # --- cache ---
    p_cache = subparsers.add_parser("cache", help="Inspect or clear the image cache")
    p_cache.add_argument("action", choices=["stats", "clear", "purge"])
    p_cache.set_defaults(func=_cmd_cache)

    return parser


def _load(args: argparse.Namespace):
    from pmdesigner.config.settings import load_settings

    overrides = {"log_level": "DEBUG"} if args.verbose else {}
    return load_settings(**overrides)


def _pipeline(args: argparse.Namespace):
    from pmdesigner.pipeline.workflow import MarketingPipeline

    settings = _load(args)
    return MarketingPipeline.from_settings(settings, api_key=args.api_key)


async def _cmd_analyze(args: argparse.Namespace) -> int:
    """Run the director stage on a product photo."""
    from pmdesigner.media.encoding import file_to_data_uri

    if not args.image.exists():
        logger.error("File not found: %s", args.image)
        return 1

    pipeline = _pipeline(args)
    image = await file_to_data_uri(args.image, pipeline.settings.max_image_size_bytes)
    result = await pipeline.analyze_product(image, args.name, args.brand)

    payload = json.dumps(result.model_dump(), ensure_ascii=False, indent=2)
    if args.output:
        args.output.write_text(payload, encoding="utf-8")
        print(f"Wrote {len(result.marketing_routes)} routes to {args.output}")
    else:
        print(payload)
    return 0


async def _cmd_image(args: argparse.Namespace) -> int:
    """Generate one image and write it to disk."""
    from pmdesigner.media.encoding import file_to_data_uri, parse_data_uri

    pipeline = _pipeline(args)
    reference = None
    if args.reference:
        reference = await file_to_data_uri(
            args.reference, pipeline.settings.max_image_size_bytes
        )

    data_uri = await pipeline.generate_image(args.prompt, args.ratio, reference)
    part = parse_data_uri(data_uri)
    if part is None:
        logger.error("Generated image is not a valid data URI")
        return 1

    args.output.write_bytes(part.data)
    print(f"Wrote {part.size_bytes} bytes ({part.mime_type}) to {args.output}")
    return 0


async def _cmd_cache(args: argparse.Namespace) -> int:
    """Show cache statistics, purge expired entries or clear everything."""
    from pmdesigner.cache.cache_factory import create_cache_store
    from pmdesigner.cache.result_cache import ResultCache
    from pmdesigner.logging.logger import setup_logging

    settings = _load(args)
    setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    cache = ResultCache(
        create_cache_store(settings),
        expiry=timedelta(days=settings.cache_expiry_days),
        key_prefix=settings.cache_key_prefix,
    )

    if args.action == "clear":
        print(f"Removed {cache.clear()} entries")
    elif args.action == "purge":
        print(f"Removed {cache.purge_expired()} expired entries")
    else:
        stats = cache.stats()
        print(f"\nCache ({settings.cache_backend}):")
        print(f"  Entries:  {stats.count}")
        print(f"  Expired:  {stats.expired}")
        print(f"  Size:     {stats.total_bytes / 1024:.1f} KB")
    return 0


if __name__ == "__main__":
    sys.exit(main())
