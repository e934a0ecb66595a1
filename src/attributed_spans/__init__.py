"""Attributed spans: labeled, possibly-overlapping intervals over discrete content."""

from attributed_spans.attribution import (
    Attribution,
    AttributionFilter,
    LinkAttribution,
    NamedAttribution,
)
from attributed_spans.errors import (
    AttributedSpansError,
    AttributionNotFoundError,
    IncompatibleOverlapError,
    InvalidRangeError,
    InvariantViolationError,
    OverlappingAppendError,
)
from attributed_spans.span_types import (
    AttributionSpan,
    Err,
    MultiAttributionSpan,
    Ok,
    Result,
    SpanMarker,
    SpanMarkerType,
    end_marker,
    start_marker,
)
from attributed_spans.spans import AttributedSpans
from attributed_spans.validation import MarkerIssue, check_markers

__version__ = "0.1.0"

__all__ = [
    "AttributedSpans",
    "AttributedSpansError",
    "Attribution",
    "AttributionFilter",
    "AttributionNotFoundError",
    "AttributionSpan",
    "Err",
    "IncompatibleOverlapError",
    "InvalidRangeError",
    "InvariantViolationError",
    "LinkAttribution",
    "MarkerIssue",
    "MultiAttributionSpan",
    "NamedAttribution",
    "Ok",
    "OverlappingAppendError",
    "Result",
    "SpanMarker",
    "SpanMarkerType",
    "check_markers",
    "end_marker",
    "start_marker",
]
