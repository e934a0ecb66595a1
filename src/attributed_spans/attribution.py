"""Attribution capability and the stock attribution kinds.

An attribution is an opaque label applied to a range of content: bold,
a hyperlink, a custom tag. The span engine never looks inside one. It
relies on three things only:

  id             : lane identity. Attributions with equal ids share a
                    lane, and spans in one lane cannot overlap.
  __eq__/__hash__: structural equality, used to pick out markers that
                    belong to exactly this attribution.
  can_merge_with : whether two same-id attributions may coalesce into
                    one span. Must be reflexive.

Attributions are used as set members and dict keys, so they must be
hashable.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, TypeAlias, runtime_checkable


@runtime_checkable
class Attribution(Protocol):
    """Structural type every attribution must satisfy."""

    @property
    def id(self) -> str: ...

    def can_merge_with(self, other: Attribution) -> bool: ...


# Returns True when the candidate attribution should be selected.
AttributionFilter: TypeAlias = Callable[[Attribution], bool]


@dataclass(frozen=True, slots=True)
class NamedAttribution:
    """Attribution identified purely by name, e.g. ``bold`` or ``italics``.

    Two named attributions with the same name are interchangeable, so they
    always merge.
    """

    name: str

    @property
    def id(self) -> str:
        return self.name

    def can_merge_with(self, other: Attribution) -> bool:
        return self.id == other.id

    def __str__(self) -> str:
        return f"[NamedAttribution]: {self.name}"


LINK_ATTRIBUTION_ID = "link"


@dataclass(frozen=True, slots=True)
class LinkAttribution:
    """Hyperlink attribution.

    Every link shares the ``link`` lane, but a link only merges with a link
    to the same URL. Overlapping two different URLs is a conflict.
    """

    url: str

    @property
    def id(self) -> str:
        return LINK_ATTRIBUTION_ID

    def can_merge_with(self, other: Attribution) -> bool:
        return isinstance(other, LinkAttribution) and other.url == self.url

    def __str__(self) -> str:
        return f"[LinkAttribution]: {self.url}"


def attributions_match(candidate: Attribution, attribution: Attribution) -> bool:
    """True if *candidate* sits in the same lane as *attribution* and may merge with it."""
    return candidate.id == attribution.id and candidate.can_merge_with(attribution)
