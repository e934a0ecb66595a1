"""AttributedSpans: labeled, possibly-overlapping spans over a discrete range.

Think of an AttributedSpans as a set of lanes. Each lane holds the spans
of one attribution id::

    ------------------------------------------------------
    Bold    :  {xxxx}                      {xxxxx}
    Italics :             {xxxxxxxx}
    Link    :                              {xxxxx}
    ------------------------------------------------------

Spans in the same lane never overlap; spans in different lanes may.

Every span is stored as a pair of SpanMarkers (START and END) in one
list that is kept sorted at all times. All ranges are inclusive. The
class is organised as five layers over that list, each calling only
into the ones above it:

  Marker store : ordering and insertion
  Queries      : point and range lookups
  Mutation     : add / remove / toggle an attribution over a range
  Splicing     : push back, contract, copy a region, append another instance
  Collapse     : flatten every lane into one gapless list of segments

Not thread-safe. Concurrent readers are fine; a writer needs exclusive access.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Iterator

from attributed_spans.attribution import Attribution, AttributionFilter, attributions_match
from attributed_spans.errors import (
    AttributionNotFoundError,
    IncompatibleOverlapError,
    InvalidRangeError,
    InvariantViolationError,
    OverlappingAppendError,
)
from attributed_spans.span_types import (
    AttributionSpan,
    MultiAttributionSpan,
    Result,
    SpanMarker,
    SpanMarkerType,
    end_marker,
    start_marker,
)
from attributed_spans.validation import MarkerIssue, check_markers

log = logging.getLogger(__name__)


class AttributedSpans:
    """A sorted list of span markers plus the operations that keep it consistent.

    Usage::

        spans = AttributedSpans()
        spans.add_attribution(NamedAttribution("bold"), 0, 4)
        spans.has_attribution_at(2, NamedAttribution("bold"))   # True
        spans.collapse_spans(10)   # [0..4]{bold}, [5..9]{}

    The constructor sorts the given markers but does not check that they
    alternate; use ``validate()`` for that.
    """
    __slots__ = ("_markers",)

    def __init__(self, markers: Iterable[SpanMarker] | None = None) -> None:
        self._markers: list[SpanMarker] = sorted(markers or (), key=_sort_key)

    # ------------------------------------------------------------------
    # Marker store
    # ------------------------------------------------------------------

    @property
    def markers(self) -> tuple[SpanMarker, ...]:
        return tuple(self._markers)

    def _insert_marker(self, new_marker: SpanMarker) -> None:
        """Insert *new_marker* after every marker that does not sort after it.

        Precondition: the same marker is not already present.
        """
        key = new_marker.sort_key
        for index, existing in enumerate(self._markers):
            if existing.sort_key > key:
                self._markers.insert(index, new_marker)
                return
        self._markers.append(new_marker)

    def _markers_of(self, attribution: Attribution) -> Iterator[SpanMarker]:
        return (m for m in self._markers if m.attribution == attribution)

    def _get_marker_at(
        self,
        attribution: Attribution,
        offset: int,
        marker_type: SpanMarkerType | None = None,
    ) -> set[SpanMarker]:
        return {
            m for m in self._markers_of(attribution)
            if m.offset == offset and (marker_type is None or m.marker_type is marker_type)
        }

    def _delete_markers(self, to_delete: Iterable[SpanMarker]) -> None:
        doomed = set(to_delete)
        self._markers = [m for m in self._markers if m not in doomed]

    def validate(self) -> Result[tuple[SpanMarker, ...], MarkerIssue]:
        """Check the alternation invariant without raising."""
        return check_markers(self._markers)

    def copy(self) -> AttributedSpans:
        return AttributedSpans(self._markers)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_attribution_at(self, offset: int, attribution: Attribution | None = None) -> bool:
        """Return True if *offset* is covered by *attribution*.

        With no attribution, returns True if any attribution covers *offset*.
        """
        marker_before = self._get_starting_marker_at_or_before(offset, attribution)
        if marker_before is None:
            return False
        marker_after = self._get_ending_marker_at_or_after(marker_before.offset, attribution)
        if marker_after is None:
            log.warning("Found an open-ended attribution starting with %s", marker_before)
            raise InvariantViolationError(
                f"Found an open-ended attribution. It starts with: {marker_before}"
            )
        return marker_before.offset <= offset <= marker_after.offset

    def expand_attribution_to_span(self, attribution: Attribution, offset: int) -> AttributionSpan:
        """Return the full span of *attribution* that contains *offset*.

        For example, with "bold" applied to "Hello, |world!|" between the
        bars, expanding "bold" at offset 10 returns bold from 7 to 14.

        Raises:
            AttributionNotFoundError: *attribution* does not cover *offset*.
        """
        if not self.has_attribution_at(offset, attribution):
            raise AttributionNotFoundError(attribution, offset)

        # Both lookups are guaranteed to succeed after the check above.
        marker_before = self._get_starting_marker_at_or_before(offset, attribution)
        assert marker_before is not None
        marker_after = self._get_ending_marker_at_or_after(marker_before.offset, attribution)
        assert marker_after is not None
        return AttributionSpan(attribution, marker_before.offset, marker_after.offset)

    def get_all_attributions_at(self, offset: int) -> set[Attribution]:
        """Return every attribution whose span covers *offset*."""
        known = dict.fromkeys(m.attribution for m in self._markers)
        return {a for a in known if self.has_attribution_at(offset, a)}

    def has_attributions_within(
        self,
        attributions: Iterable[Attribution],
        start: int,
        end: int,
    ) -> bool:
        """Return True if each of *attributions* covers at least one unit of [start, end]."""
        to_find = set(attributions)
        for offset in range(start, end + 1):
            for attribution in list(to_find):
                if self.has_attribution_at(offset, attribution):
                    to_find.discard(attribution)
            if not to_find:
                return True
        return False

    def get_matching_attributions_within(
        self,
        attributions: Iterable[Attribution],
        start: int,
        end: int,
    ) -> set[Attribution]:
        """Return attributions present in [start, end] whose id matches any of *attributions*.

        Matching is by id only, so a differently parameterized attribution
        in the same lane is still returned.
        """
        wanted_ids = {a.id for a in attributions}
        matching: set[Attribution] = set()
        for offset in range(start, end + 1):
            for other in self.get_all_attributions_at(offset):
                if other.id in wanted_ids:
                    matching.add(other)
        return matching

    def get_attribution_spans_in_range(
        self,
        attribution_filter: AttributionFilter,
        start: int,
        end: int,
        *,
        resize_spans_to_fit_in_range: bool = False,
    ) -> set[AttributionSpan]:
        """Return spans selected by *attribution_filter* that touch [start, end].

        By default each returned span is the attribution's full contiguous
        span, which may reach outside [start, end]. Pass
        ``resize_spans_to_fit_in_range=True`` to clip them; clipping only
        affects the returned values.
        """
        spans: set[AttributionSpan] = set()
        for offset in range(start, end + 1):
            for attribution in self.get_all_attributions_at(offset):
                if not attribution_filter(attribution):
                    continue
                span = self.expand_attribution_to_span(attribution, offset)
                if resize_spans_to_fit_in_range:
                    span = span.constrain(start, end)
                spans.add(span)
        return spans

    def _get_starting_marker_at_or_before(
        self,
        offset: int,
        attribution: Attribution | None = None,
    ) -> SpanMarker | None:
        # Search from the end so we find the nearest start, not the first.
        for marker in reversed(self._markers):
            if attribution is not None and not attributions_match(marker.attribution, attribution):
                continue
            if marker.is_start and marker.offset <= offset:
                return marker
        return None

    def _get_ending_marker_at_or_after(
        self,
        offset: int,
        attribution: Attribution | None = None,
    ) -> SpanMarker | None:
        for marker in self._markers:
            if attribution is not None and not attributions_match(marker.attribution, attribution):
                continue
            if marker.is_end and marker.offset >= offset:
                return marker
        return None

    def _get_nearest_marker_at_or_before(
        self,
        offset: int,
        attribution: Attribution | None = None,
        marker_type: SpanMarkerType | None = None,
    ) -> SpanMarker | None:
        marker_before: SpanMarker | None = None
        for marker in self._markers:
            if attribution is not None and marker.attribution != attribution:
                continue
            if marker_type is not None and marker.marker_type is not marker_type:
                continue
            if marker.offset > offset:
                break
            marker_before = marker
        return marker_before

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_attribution(self, new_attribution: Attribution, start: int, end: int) -> None:
        """Apply *new_attribution* from *start* to *end*, inclusive.

        Compatible spans already touching the range are merged into one.
        An invalid range (start < 0 or start > end) is ignored.

        Raises:
            IncompatibleOverlapError: the range overlaps a same-lane
                attribution that cannot merge with *new_attribution*.
        """
        if start < 0 or start > end:
            log.debug("Ignoring add of %s over invalid range %d -> %d", new_attribution, start, end)
            return

        log.info("Adding attribution %s from %d to %d", new_attribution, start, end)
        for existing in self.get_matching_attributions_within({new_attribution}, start, end):
            if new_attribution.can_merge_with(existing) and existing.can_merge_with(new_attribution):
                continue
            conflict_start = next(
                i for i in range(start, end + 1) if self.has_attribution_at(i, existing)
            )
            raise IncompatibleOverlapError(existing, new_attribution, conflict_start)

        already_started = self.has_attribution_at(start, new_attribution)

        # Interior markers are absorbed into the widened span. An END sitting
        # exactly on `start` is interior too when a span is already open there.
        to_delete = [
            m for m in self._markers_of(new_attribution)
            if start < m.offset <= end or (m.offset == start and m.is_end and already_started)
        ]
        log.debug("removing %d markers between %d and %d", len(to_delete), start, end)
        self._delete_markers(to_delete)

        if not already_started:
            log.debug("adding start marker at: %d", start)
            self._insert_marker(start_marker(new_attribution, start))

        # Cap the span at `end` unless a span that already runs past `end`
        # is still open, i.e. the next surviving marker is its END.
        next_marker = next((m for m in self._markers_of(new_attribution) if m.offset > end), None)
        if next_marker is None or next_marker.is_start:
            log.debug("inserting ending marker at: %d", end)
            self._insert_marker(end_marker(new_attribution, end))

    def remove_attribution(self, attribution: Attribution, start: int, end: int) -> None:
        """Remove *attribution* from *start* to *end*, inclusive.

        Raises:
            InvalidRangeError: start < 0 or start > end.
        """
        log.info("Removing attribution %s from %d to %d", attribution, start, end)
        if start < 0 or start > end:
            raise InvalidRangeError("remove_attribution", start, end)

        if not self.has_attributions_within({attribution}, start, end):
            log.debug("No such attribution exists in the given span range")
            return

        # A span may begin before the removal region and/or end after it.
        # Cap those outer parts one unit outside the region first:
        #
        #    ---[xxxxx]---[yyyyyy]----      starting spans
        #          |-remove-|
        #    ---[xx]|xxx]---[yy|[yyy]----   after capping (temporarily illegal)
        #    ---[xx]--------[yyy]----       after inner markers are removed
        caps: list[SpanMarker] = []
        if (
            self.has_attribution_at(start - 1, attribution)
            and not self._get_marker_at(attribution, start - 1, SpanMarkerType.END)
        ):
            log.debug('Creating a new "end" marker before the removal range at %d', start - 1)
            caps.append(end_marker(attribution, start - 1))

        if (
            self.has_attribution_at(end + 1, attribution)
            and not self._get_marker_at(attribution, end + 1, SpanMarkerType.START)
        ):
            log.debug('Creating a new "start" marker after the removal range at %d', end + 1)
            caps.append(start_marker(attribution, end + 1))

        for cap in caps:
            self._insert_marker(cap)

        to_delete = [m for m in self._markers_of(attribution) if start <= m.offset <= end]
        log.debug("removing %d markers between %d and %d", len(to_delete), start, end)
        self._delete_markers(to_delete)

    def toggle_attribution(self, attribution: Attribution, start: int, end: int) -> None:
        """Remove *attribution* from [start, end] if it covers every unit, else add it."""
        log.info("Toggling attribution %s from %d to %d", attribution, start, end)
        if self._is_continuous_attribution(attribution, start, end):
            self.remove_attribution(attribution, start, end)
        else:
            self.add_attribution(attribution, start, end)

    def _is_continuous_attribution(self, attribution: Attribution, start: int, end: int) -> bool:
        """True if *attribution* covers [start, end] with no break."""
        marker_before = self._get_nearest_marker_at_or_before(
            start, attribution, SpanMarkerType.START,
        )
        log.debug("marker before: %s", marker_before)
        if marker_before is None:
            return False

        index_before = self._markers.index(marker_before)
        next_marker = next(
            (
                m for m in self._markers[index_before:]
                if m.attribution == attribution
                and m.offset >= marker_before.offset
                and m != marker_before
            ),
            None,
        )
        log.debug("next marker: %s", next_marker)

        if next_marker is None:
            log.warning("Found a `start` marker with no matching `end`:\n%r", self)
            raise InvariantViolationError(
                "Inconsistent attributions state. Found a `start` marker with no matching `end`."
            )
        if next_marker.is_start:
            log.warning("Found a `start` marker following a `start` marker:\n%r", self)
            raise InvariantViolationError(
                "Inconsistent attributions state. Found a `start` marker following a `start` marker."
            )

        # Any marker inside the range means the attribution breaks there.
        return next_marker.offset >= end

    # ------------------------------------------------------------------
    # Splicing
    # ------------------------------------------------------------------

    def push_attributions_back(self, offset: int) -> None:
        """Shift every marker by *offset*."""
        self._markers = [m.copy_with(offset=m.offset + offset) for m in self._markers]

    def contract_attributions(self, start_offset: int, count: int) -> None:
        """Cut the region [start_offset, start_offset + count) out of every span.

        Markers after the region move back by *count*. Spans that began or
        ended inside the cut get a replacement boundary at the cut point.
        """
        log.debug("removing %d units starting at %d", count, start_offset)
        cut_end = start_offset + count

        need_to_start: dict[Attribution, None] = {}
        need_to_end: dict[Attribution, None] = {}
        for marker in self._markers:
            if not start_offset <= marker.offset < cut_end:
                continue
            log.debug("removing %s at %d", marker.marker_type.value, marker.offset)
            # A removed START and a removed END of the same attribution cancel out.
            if marker.is_start:
                if marker.attribution in need_to_end:
                    del need_to_end[marker.attribution]
                else:
                    need_to_start[marker.attribution] = None
            elif marker.attribution in need_to_start:
                del need_to_start[marker.attribution]
            else:
                need_to_end[marker.attribution] = None

        contracted = [m for m in self._markers if m.offset < start_offset]
        for attribution in need_to_start:
            log.debug("adding back a start marker at %d", start_offset)
            contracted.append(start_marker(attribution, start_offset))
        for attribution in need_to_end:
            offset = max(start_offset - 1, 0)
            log.debug("adding back an end marker at %d", offset)
            contracted.append(end_marker(attribution, offset))
        contracted.extend(
            m.copy_with(offset=m.offset - count) for m in self._markers if m.offset >= cut_end
        )
        # Re-inserted END markers land before re-inserted STARTs.
        self._markers = sorted(contracted, key=_sort_key)

    def copy_attribution_region(
        self,
        start_offset: int,
        end_offset: int | None = None,
    ) -> AttributedSpans:
        """Return a copy of the spans between *start_offset* and *end_offset*, inclusive.

        The copy is re-based so that *start_offset* becomes offset 0. Spans
        cut by either edge are closed off at that edge. Without
        *end_offset*, copies up to the last marker.
        """
        if end_offset is None:
            end_offset = self._markers[-1].offset if self._markers else 0
        log.debug("copying region %d -> %d", start_offset, end_offset)

        cut: list[SpanMarker] = []

        # Spans still open at `start_offset` restart at 0 in the copy.
        open_before: Counter[Attribution] = Counter()
        for marker in self._markers:
            if marker.offset >= start_offset:
                break
            open_before[marker.attribution] += 1 if marker.is_start else -1
        for attribution, count in open_before.items():
            if count == 1:
                log.debug("inserting %s at start of copy region", attribution)
                cut.append(start_marker(attribution, 0))
            elif count != 0:
                raise InvariantViolationError(
                    f"Found an unbalanced number of `start` and `end` markers "
                    f"before offset: {start_offset} - {self._markers}"
                )

        cut.extend(
            m.copy_with(offset=m.offset - start_offset)
            for m in self._markers
            if start_offset <= m.offset <= end_offset
        )

        # Spans still open past `end_offset` are capped at the copy's end.
        open_after: Counter[Attribution] = Counter()
        for marker in reversed(self._markers):
            if marker.offset <= end_offset:
                break
            open_after[marker.attribution] += 1 if marker.is_end else -1
        for attribution, count in open_after.items():
            if count == 1:
                log.debug("inserting %s at end of copy region", attribution)
                cut.append(end_marker(attribution, end_offset - start_offset))
            elif count != 0:
                raise InvariantViolationError(
                    f"Found an unbalanced number of `start` and `end` markers "
                    f"after offset: {end_offset} - {self._markers}"
                )

        return AttributedSpans(cut)

    def add_at(self, other: AttributedSpans, index: int) -> None:
        """Append *other* so that its offset 0 lands on *index*.

        Spans that end at ``index - 1`` here and restart at *index* in
        *other* with the same attribution are fused into one.

        Raises:
            OverlappingAppendError: *index* is not past this instance's last marker.
        """
        if self._markers and self._markers[-1].offset >= index:
            raise OverlappingAppendError(index, self._markers[-1].offset)

        pushed = other.copy()
        pushed.push_attributions_back(index)
        combined = self._markers + pushed._markers
        _merge_back_to_back_attributions(combined, index)
        self._markers = combined

    # ------------------------------------------------------------------
    # Collapse
    # ------------------------------------------------------------------

    def collapse_spans(self, content_length: int) -> list[MultiAttributionSpan]:
        """Flatten all lanes into ordered, gapless segments covering [0, content_length - 1].

        Each segment lists every attribution active across it.
        """
        log.debug("collapsing %d markers over content length %d", len(self._markers), content_length)
        if content_length <= 0:
            return []

        last_unit = content_length - 1
        if not self._markers or self._markers[0].offset > last_unit:
            return [MultiAttributionSpan(0, last_unit)]

        collapsed: list[MultiAttributionSpan] = []
        current_start = 0
        active: set[Attribution] = set()

        for marker in self._markers:
            if marker.offset > last_unit:
                # Whatever remains lies past the content; the open segment is closed below.
                break

            if (marker.is_start and marker.offset > current_start) or (
                marker.is_end and marker.offset >= current_start
            ):
                # A START closes the segment one unit before it; an END closes it on itself.
                current_end = marker.offset if marker.is_end else marker.offset - 1
                collapsed.append(MultiAttributionSpan(current_start, current_end, frozenset(active)))
                current_start = marker.offset if marker.is_start else marker.offset + 1

            if marker.is_start:
                active.add(marker.attribution)
            else:
                active.discard(marker.attribution)

        if not collapsed or collapsed[-1].end < last_unit:
            collapsed.append(MultiAttributionSpan(current_start, last_unit, frozenset(active)))

        log.debug("returning %d collapsed spans", len(collapsed))
        return collapsed

    # ------------------------------------------------------------------
    # Dunder
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._markers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AttributedSpans):
            return NotImplemented
        return Counter(self._markers) == Counter(other._markers)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        lines = [f"[AttributedSpans] ({round(len(self._markers) / 2)} spans):"]
        lines.extend(f" - {marker}" for marker in self._markers)
        return "\n".join(lines)


def _sort_key(marker: SpanMarker) -> tuple[int, int]:
    return marker.sort_key


def _merge_back_to_back_attributions(markers: list[SpanMarker], merge_point: int) -> None:
    """Fuse spans that end at ``merge_point - 1`` and restart at *merge_point*.

    *markers* is two sorted marker lists concatenated at *merge_point*;
    it is edited in place.
    """
    ends = [m for m in markers if m.is_end and m.offset == merge_point - 1]
    starts = [m for m in markers if m.is_start and m.offset == merge_point]
    for start in starts:
        end = next((m for m in ends if m.attribution == start.attribution), None)
        if end is None:
            continue
        log.debug("combining left/right spans of %s at %d", start.attribution, merge_point)
        markers.remove(start)
        markers.remove(end)
        ends.remove(end)
