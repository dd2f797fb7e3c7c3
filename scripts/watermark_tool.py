#!/usr/bin/env python3
"""Forensic watermark tool for investigating leaked screenshots.

Subcommands:
    embed     -- watermark a local image (mainly for staging checks)
    extract   -- recover the viewer payload from a leaked copy
    capacity  -- report whether a WIDTHxHEIGHT image can carry a watermark

The secret key and tuning come from the same WATERMARK_* environment
variables as the service, so a scan here matches what the API embedded.

Usage:
    python scripts/watermark_tool.py extract leaked.jpg
    python scripts/watermark_tool.py embed shot.png out.jpg \
        --viewer-id user123abc --screenshot-id screenshot456
    python scripts/watermark_tool.py capacity 1080 2400

Outputs a JSON object on stdout.

Exit codes:
    0 -- success / watermark found
    1 -- no watermark found, image too small, or unreadable image
"""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any

from PIL import UnidentifiedImageError

from fledgely_forensics.services.watermark import (
    WatermarkCapacityError,
    WatermarkConfig,
    WatermarkPayload,
    detect_watermark,
    embed_watermark,
    get_codec,
    get_payload_bit_length,
    has_watermark_capacity,
    required_pixel_count,
)


def _config_from_args(args: argparse.Namespace) -> WatermarkConfig:
    overrides: dict[str, Any] = {}
    if args.secret_key:
        overrides["secret_key"] = args.secret_key
    if args.repetitions is not None:
        overrides["repetitions"] = args.repetitions
    if args.strength is not None:
        overrides["strength"] = args.strength
    return WatermarkConfig(**overrides)


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

def cmd_embed(args: argparse.Namespace) -> tuple[int, dict[str, Any]]:
    config = _config_from_args(args)
    codec = get_codec(args.format)
    payload = WatermarkPayload(
        viewer_id=args.viewer_id,
        view_timestamp=args.timestamp if args.timestamp is not None else int(time.time() * 1000),
        screenshot_id=args.screenshot_id,
    )
    try:
        output = embed_watermark(Path(args.input).read_bytes(), payload, config, codec)
    except WatermarkCapacityError as exc:
        return 1, {"status": "error", "message": str(exc)}

    Path(args.output).write_bytes(output)
    return 0, {"status": "ok", "output": args.output, "bytes": len(output)}


def cmd_extract(args: argparse.Namespace) -> tuple[int, dict[str, Any]]:
    config = _config_from_args(args)
    result = detect_watermark(Path(args.input).read_bytes(), config)
    report: dict[str, Any] = {
        "status": "ok" if result.found else "not_found",
        "confidence": round(result.confidence, 4),
    }
    if result.payload is not None:
        report["payload"] = {
            "viewer_id": result.payload.viewer_id,
            "view_timestamp": result.payload.view_timestamp,
            "screenshot_id": result.payload.screenshot_id,
        }
    return (0 if result.found else 1), report


def cmd_capacity(args: argparse.Namespace) -> tuple[int, dict[str, Any]]:
    config = _config_from_args(args)
    fits = has_watermark_capacity(args.width, args.height, config)
    return (0 if fits else 1), {
        "has_capacity": fits,
        "payload_bits": get_payload_bit_length(config),
        "required_pixels": required_pixel_count(config),
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--secret-key", default=None)
    parser.add_argument("--repetitions", type=int, default=None)
    parser.add_argument("--strength", type=int, default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    embed = sub.add_parser("embed")
    embed.add_argument("input")
    embed.add_argument("output")
    embed.add_argument("--viewer-id", required=True)
    embed.add_argument("--screenshot-id", required=True)
    embed.add_argument("--timestamp", type=int, default=None)
    embed.add_argument("--format", choices=["jpeg", "png"], default="jpeg")
    embed.set_defaults(handler=cmd_embed)

    extract = sub.add_parser("extract")
    extract.add_argument("input")
    extract.set_defaults(handler=cmd_extract)

    capacity = sub.add_parser("capacity")
    capacity.add_argument("width", type=int)
    capacity.add_argument("height", type=int)
    capacity.set_defaults(handler=cmd_capacity)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        exit_code, report = args.handler(args)
    except (UnidentifiedImageError, OSError) as exc:
        exit_code, report = 1, {"status": "error", "message": str(exc)}

    json.dump(report, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
