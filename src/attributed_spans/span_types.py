"""Core value types shared by every part of the span engine.

All offsets are discrete unit positions (e.g. character offsets) and all
ranges are INCLUSIVE on both ends. Every type here is an immutable value;
none of them holds a reference back to the AttributedSpans that produced
it.

Type hierarchy:
  Ok[T] / Err[E]       : Strict algebraic Result type
  SpanMarkerType       : START | END
  SpanMarker           : One boundary of one attribution's span
  AttributionSpan      : A single attribution over [start, end]
  MultiAttributionSpan : A collapsed segment carrying every attribution active on it
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Generic, TypeAlias, TypeVar

from attributed_spans.attribution import Attribution

T = TypeVar("T")
E = TypeVar("E")

# ---------------------------------------------------------------------------
# Result ADT: strict Ok/Err, NOT tuple hack
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success case of Result[T, E].

    Usage::

        match check_markers(markers):
            case Ok(value=ordered): ...
            case Err(error=issue): print(issue.reason)
    """
    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure case of Result[T, E].

    Preserves the typed failure reason instead of collapsing it to a bool.
    """
    error: E


Result: TypeAlias = Ok[T] | Err[E]


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------

class SpanMarkerType(enum.Enum):
    """Which boundary of a span a marker represents."""

    START = "start"
    END = "end"


@dataclass(frozen=True, slots=True)
class SpanMarker:
    """Marks the start or end of an attribution span.

    Equality is structural (attribution + offset + type). Ordering only
    looks at position: lower offset first, and at the same offset a START
    sorts before an END, so a single linear sweep sees every span open
    before anything at that offset closes.
    """
    attribution: Attribution
    offset: int
    marker_type: SpanMarkerType

    @property
    def is_start(self) -> bool:
        return self.marker_type is SpanMarkerType.START

    @property
    def is_end(self) -> bool:
        return self.marker_type is SpanMarkerType.END

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.offset, 0 if self.is_start else 1)

    def __lt__(self, other: SpanMarker) -> bool:
        return self.sort_key < other.sort_key

    def copy_with(
        self,
        *,
        attribution: Attribution | None = None,
        offset: int | None = None,
        marker_type: SpanMarkerType | None = None,
    ) -> SpanMarker:
        return SpanMarker(
            attribution=self.attribution if attribution is None else attribution,
            offset=self.offset if offset is None else offset,
            marker_type=self.marker_type if marker_type is None else marker_type,
        )

    def __str__(self) -> str:
        return (
            f"[SpanMarker] - attribution: {self.attribution}, "
            f"offset: {self.offset}, type: {self.marker_type.value}"
        )


def start_marker(attribution: Attribution, offset: int) -> SpanMarker:
    return SpanMarker(attribution, offset, SpanMarkerType.START)


def end_marker(attribution: Attribution, offset: int) -> SpanMarker:
    return SpanMarker(attribution, offset, SpanMarkerType.END)


# ---------------------------------------------------------------------------
# Derived spans
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class AttributionSpan:
    """A single attribution applied from start to end, inclusive."""
    attribution: Attribution
    start: int
    end: int

    def constrain(self, start: int, end: int) -> AttributionSpan:
        """Clip this span to [start, end]. Only the returned view changes."""
        return replace(self, start=max(self.start, start), end=min(self.end, end))

    def copy_with(
        self,
        *,
        attribution: Attribution | None = None,
        start: int | None = None,
        end: int | None = None,
    ) -> AttributionSpan:
        return AttributionSpan(
            attribution=self.attribution if attribution is None else attribution,
            start=self.start if start is None else start,
            end=self.end if end is None else end,
        )

    def __str__(self) -> str:
        return f"[AttributionSpan] - {self.attribution}, {self.start} -> {self.end}"


@dataclass(frozen=True, slots=True)
class MultiAttributionSpan:
    """A collapsed segment carrying zero or more attributions.

    Produced only by ``AttributedSpans.collapse_spans``.
    """
    start: int
    end: int
    attributions: frozenset[Attribution] = field(default_factory=frozenset[Attribution])

    def copy_with(
        self,
        *,
        attributions: frozenset[Attribution] | None = None,
        start: int | None = None,
        end: int | None = None,
    ) -> MultiAttributionSpan:
        return MultiAttributionSpan(
            start=self.start if start is None else start,
            end=self.end if end is None else end,
            attributions=self.attributions if attributions is None else attributions,
        )

    def __str__(self) -> str:
        names = ", ".join(sorted(str(a) for a in self.attributions))
        return (
            f"[MultiAttributionSpan] - attributions: {{{names}}}, "
            f"start: {self.start}, end: {self.end}"
        )
