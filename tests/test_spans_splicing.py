"""Tests for push/contract/copy/append on AttributedSpans."""
from __future__ import annotations

import pytest

from attributed_spans.attribution import Attribution, LinkAttribution, NamedAttribution
from attributed_spans.errors import InvariantViolationError, OverlappingAppendError
from attributed_spans.span_types import Ok, end_marker, start_marker
from attributed_spans.spans import AttributedSpans

BOLD = NamedAttribution("bold")
ITALICS = NamedAttribution("italics")
LINK_A = LinkAttribution("https://a.example")
LINK_B = LinkAttribution("https://b.example")


def _spans(*ranges: tuple[Attribution, int, int]) -> AttributedSpans:
    markers = []
    for attribution, start, end in ranges:
        markers.append(start_marker(attribution, start))
        markers.append(end_marker(attribution, end))
    return AttributedSpans(markers)


# ---------------------------------------------------------------------------
# push_attributions_back
# ---------------------------------------------------------------------------

def test_push_attributions_back_shifts_every_marker() -> None:
    spans = _spans((BOLD, 2, 4), (ITALICS, 0, 1))
    spans.push_attributions_back(3)
    assert spans == _spans((BOLD, 5, 7), (ITALICS, 3, 4))


# ---------------------------------------------------------------------------
# contract_attributions
# ---------------------------------------------------------------------------

def test_contract_before_span_shifts_it() -> None:
    spans = _spans((BOLD, 5, 8))
    spans.contract_attributions(0, 3)
    assert spans == _spans((BOLD, 2, 5))


def test_contract_inside_span_shrinks_it() -> None:
    spans = _spans((BOLD, 0, 10))
    spans.contract_attributions(3, 4)
    assert spans == _spans((BOLD, 0, 6))


def test_contract_cutting_span_start_restarts_at_cut() -> None:
    spans = _spans((BOLD, 2, 8))
    spans.contract_attributions(0, 4)
    assert spans == _spans((BOLD, 0, 4))


def test_contract_cutting_span_end_closes_before_cut() -> None:
    spans = _spans((BOLD, 2, 8))
    spans.contract_attributions(5, 10)
    assert spans == _spans((BOLD, 2, 4))


def test_contract_drops_spans_entirely_inside_cut() -> None:
    spans = _spans((BOLD, 3, 5), (ITALICS, 8, 9))
    spans.contract_attributions(2, 5)
    assert spans == _spans((ITALICS, 3, 4))


def test_contract_fuses_spans_on_either_side_of_cut() -> None:
    spans = _spans((BOLD, 0, 3), (BOLD, 6, 9))
    spans.contract_attributions(3, 4)
    assert spans == _spans((BOLD, 0, 5))


def test_contract_keeps_markers_sorted() -> None:
    spans = _spans((BOLD, 0, 4), (ITALICS, 3, 9))
    spans.contract_attributions(3, 3)
    assert spans.markers == (
        start_marker(BOLD, 0),
        end_marker(BOLD, 2),
        start_marker(ITALICS, 3),
        end_marker(ITALICS, 6),
    )
    assert isinstance(spans.validate(), Ok)


# ---------------------------------------------------------------------------
# copy_attribution_region
# ---------------------------------------------------------------------------

def test_copy_region_closes_spans_cut_by_edges() -> None:
    spans = _spans((BOLD, 2, 8), (ITALICS, 0, 3))
    copied = spans.copy_attribution_region(4, 6)
    assert copied == _spans((BOLD, 0, 2))
    # Source is untouched.
    assert spans == _spans((BOLD, 2, 8), (ITALICS, 0, 3))


def test_copy_region_rebases_inner_markers() -> None:
    spans = _spans((BOLD, 5, 7), (ITALICS, 9, 12))
    copied = spans.copy_attribution_region(4, 10)
    assert copied == _spans((BOLD, 1, 3), (ITALICS, 5, 6))


def test_copy_region_defaults_to_last_marker() -> None:
    spans = _spans((BOLD, 2, 8))
    assert spans.copy_attribution_region(3) == _spans((BOLD, 0, 5))


def test_copy_region_of_empty_spans() -> None:
    assert len(AttributedSpans().copy_attribution_region(0)) == 0


def test_copy_region_rejects_unbalanced_markers() -> None:
    spans = AttributedSpans([start_marker(BOLD, 0), start_marker(BOLD, 1), end_marker(BOLD, 5)])
    with pytest.raises(InvariantViolationError):
        spans.copy_attribution_region(3, 4)


# ---------------------------------------------------------------------------
# add_at
# ---------------------------------------------------------------------------

def test_add_at_fuses_spans_meeting_at_seam() -> None:
    left = _spans((BOLD, 0, 2))
    right = _spans((BOLD, 0, 3), (ITALICS, 1, 2))
    left.add_at(right, 3)
    assert left == _spans((BOLD, 0, 6), (ITALICS, 4, 5))
    # The appended instance is not modified.
    assert right == _spans((BOLD, 0, 3), (ITALICS, 1, 2))


def test_add_at_leaves_gap_between_spans() -> None:
    left = _spans((BOLD, 0, 2))
    left.add_at(_spans((BOLD, 1, 2)), 3)
    assert left == _spans((BOLD, 0, 2), (BOLD, 4, 5))


def test_add_at_does_not_fuse_different_links() -> None:
    left = _spans((LINK_A, 0, 2))
    left.add_at(_spans((LINK_B, 0, 1)), 3)
    assert left == _spans((LINK_A, 0, 2), (LINK_B, 3, 4))


def test_add_at_onto_empty() -> None:
    spans = AttributedSpans()
    spans.add_at(_spans((BOLD, 0, 1)), 0)
    assert spans == _spans((BOLD, 0, 1))


def test_add_at_overlapping_index_raises() -> None:
    left = _spans((BOLD, 0, 4))
    with pytest.raises(OverlappingAppendError):
        left.add_at(_spans((BOLD, 0, 1)), 4)
    assert left == _spans((BOLD, 0, 4))


def test_copy_then_add_at_reconstructs_original() -> None:
    original = _spans((BOLD, 0, 9), (ITALICS, 3, 5), (LINK_A, 7, 12))
    split = 4
    prefix = original.copy_attribution_region(0, split - 1)
    suffix = original.copy_attribution_region(split, 12)
    assert prefix == _spans((BOLD, 0, 3), (ITALICS, 3, 3))
    assert suffix == _spans((BOLD, 0, 5), (ITALICS, 0, 1), (LINK_A, 3, 8))

    prefix.add_at(suffix, split)
    assert prefix == original
