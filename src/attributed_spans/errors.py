"""Exceptions raised by AttributedSpans.

Two channels:
  - Caller errors (bad range, conflicting overlap, missing attribution,
    overlapping append) subclass the matching builtin so callers can
    catch them the usual way.
  - InvariantViolationError signals corrupted internal state. It is an
    AssertionError on purpose: nothing reachable through the public API
    should ever raise it.

Every operation validates before it writes, so a raised error leaves the
marker list exactly as it was.
"""
from __future__ import annotations

from attributed_spans.attribution import Attribution


class AttributedSpansError(Exception):
    """Base class for every error raised by the span engine."""


class InvalidRangeError(AttributedSpansError, ValueError):
    """Raised when a range has start < 0 or start > end."""

    def __init__(self, operation: str, start: int, end: int) -> None:
        self.operation = operation
        self.start = start
        self.end = end
        super().__init__(
            f"{operation}() requires 0 <= start <= end, got start: {start}, end: {end}"
        )


class IncompatibleOverlapError(AttributedSpansError):
    """Raised when a new attribution would overlap a same-lane attribution it cannot merge with."""

    def __init__(
        self,
        existing_attribution: Attribution,
        new_attribution: Attribution,
        conflict_start: int,
    ) -> None:
        self.existing_attribution = existing_attribution
        self.new_attribution = new_attribution
        self.conflict_start = conflict_start
        super().__init__(
            f"Tried to insert attribution ({new_attribution}) over a conflicting "
            f"existing attribution ({existing_attribution}). "
            f"The overlap began at index {conflict_start}"
        )


class AttributionNotFoundError(AttributedSpansError, LookupError):
    """Raised when an operation requires an attribution at an offset where it is absent."""

    def __init__(self, attribution: Attribution, offset: int) -> None:
        self.attribution = attribution
        self.offset = offset
        super().__init__(
            f"Tried to expand attribution ({attribution}) at offset {offset} "
            f"but the given attribution does not exist at that offset."
        )


class OverlappingAppendError(AttributedSpansError, ValueError):
    """Raised when add_at() would place the appended spans on top of existing markers."""

    def __init__(self, index: int, last_offset: int) -> None:
        self.index = index
        self.last_offset = last_offset
        super().__init__(
            f"Another AttributedSpans can only be appended after the final marker "
            f"(offset {last_offset}); got index {index}"
        )


class InvariantViolationError(AttributedSpansError, AssertionError):
    """Raised when the marker list is found in a state mutation should never produce."""
