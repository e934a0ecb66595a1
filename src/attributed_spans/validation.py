"""Marker-list invariant checker.

Verifies that, for every attribution, markers alternate START, END,
START, END... in sorted order with nothing left open and nothing
duplicated. Reports the first breach as a typed MarkerIssue rather than
raising, so tooling can decide how loud to be about it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from attributed_spans.attribution import Attribution
from attributed_spans.span_types import Err, Ok, Result, SpanMarker

ISSUE_DUPLICATE_MARKER = "duplicate_marker"
ISSUE_START_AFTER_START = "start_after_start"
ISSUE_UNMATCHED_END = "unmatched_end"
ISSUE_OPEN_ENDED = "open_ended"


@dataclass(frozen=True, slots=True)
class MarkerIssue:
    """First alternation breach found in a marker list."""
    reason: str          # One of the ISSUE_* constants
    marker: SpanMarker   # The offending marker
    detail: str = ""


def check_markers(
    markers: Iterable[SpanMarker],
) -> Result[tuple[SpanMarker, ...], MarkerIssue]:
    """Check the alternation invariant over *markers*.

    Markers need not be pre-sorted; they are ordered the same way
    AttributedSpans orders them.

    Returns:
        Ok(sorted markers) when every attribution alternates cleanly,
        otherwise Err(MarkerIssue) describing the first breach.
    """
    ordered = tuple(sorted(markers, key=lambda m: m.sort_key))
    seen: set[SpanMarker] = set()
    open_spans: dict[Attribution, SpanMarker] = {}

    for marker in ordered:
        if marker in seen:
            return Err(MarkerIssue(
                ISSUE_DUPLICATE_MARKER, marker,
                f"{marker.marker_type.value} marker repeated at offset {marker.offset}",
            ))
        seen.add(marker)

        if marker.is_start:
            opener = open_spans.get(marker.attribution)
            if opener is not None:
                return Err(MarkerIssue(
                    ISSUE_START_AFTER_START, marker,
                    f"span opened at {opener.offset} was never closed",
                ))
            open_spans[marker.attribution] = marker
        elif open_spans.pop(marker.attribution, None) is None:
            return Err(MarkerIssue(ISSUE_UNMATCHED_END, marker, "no open span to close"))

    if open_spans:
        opener = min(open_spans.values(), key=lambda m: m.sort_key)
        return Err(MarkerIssue(ISSUE_OPEN_ENDED, opener, "span has no end marker"))
    return Ok(ordered)
