#!/usr/bin/env python3
"""Collapse a marker document into ordered multi-attribution segments.

Usage:
    python3 scripts/collapse_spans.py --markers markers.json --content-length 120

    python3 scripts/collapse_spans.py --markers markers.json --content-length 120 \
      --validate --output segments.json

The markers file is ``{"markers": [...]}`` (or a bare list) of records like
``{"attribution": {"kind": "named", "name": "bold"}, "offset": 0, "type": "start"}``.

Structured JSON output goes to stdout; human messages go to stderr.
Exit codes: 0 ok, 1 unreadable input, 2 invariant breach (with --validate).
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from attributed_spans.io_utils import dump_json, load_markers, save_json, segments_to_records
from attributed_spans.span_types import Err
from attributed_spans.spans import AttributedSpans

log = logging.getLogger("collapse_spans")


def run(args: argparse.Namespace) -> int:
    markers_path = Path(args.markers)
    try:
        markers = load_markers(markers_path)
    except (OSError, ValueError) as exc:
        print(f"Could not load markers from {markers_path}: {exc}", file=sys.stderr)
        return 1
    log.info("loaded %d markers from %s", len(markers), markers_path)

    spans = AttributedSpans(markers)
    if args.validate:
        result = spans.validate()
        if isinstance(result, Err):
            issue = result.error
            print(
                f"Invalid markers ({issue.reason}): {issue.marker} {issue.detail}".rstrip(),
                file=sys.stderr,
            )
            return 2

    segments = spans.collapse_spans(args.content_length)
    payload: dict[str, Any] = {
        "content_length": args.content_length,
        "marker_count": len(spans),
        "segments": segments_to_records(segments),
    }

    if args.output:
        output_path = Path(args.output)
        save_json(payload, output_path)
        print(f"Wrote {len(segments)} segments to {output_path}", file=sys.stderr)
    else:
        sys.stdout.buffer.write(dump_json(payload))
        sys.stdout.buffer.write(b"\n")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Collapse attribution markers into ordered multi-attribution segments."
    )
    parser.add_argument("--markers", required=True, help="Path to markers JSON file")
    parser.add_argument(
        "--content-length",
        type=int,
        required=True,
        help="Length of the underlying content; segments cover [0, length - 1]",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Check start/end alternation before collapsing; exit 2 on a breach",
    )
    parser.add_argument("--output", default=None, help="Write JSON here instead of stdout")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    if args.content_length < 0:
        parser.error("--content-length must be >= 0")

    sys.exit(run(args))


if __name__ == "__main__":
    main()
