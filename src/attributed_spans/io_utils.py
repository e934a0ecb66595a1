"""JSON helpers for inspecting markers and collapsed segments.

orjson-backed load/dump plus plain-record conversion for the stock
attribution kinds. Used by developer tooling (scripts/collapse_spans.py);
the span engine itself never touches files.

Record shapes::

    marker:    {"attribution": {...}, "offset": 3, "type": "start"}
    named:     {"kind": "named", "name": "bold"}
    link:      {"kind": "link", "url": "https://example.com"}
    segment:   {"start": 0, "end": 4, "attributions": [{...}, ...]}
"""
from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import orjson

from attributed_spans.attribution import Attribution, LinkAttribution, NamedAttribution
from attributed_spans.span_types import MultiAttributionSpan, SpanMarker, SpanMarkerType


def load_json(path: Path) -> Any:
    """Load JSON from a file using orjson."""
    return orjson.loads(path.read_bytes())


def dump_json(obj: Any, *, pretty: bool = True) -> bytes:
    """Serialize *obj* to JSON bytes with sorted keys."""
    opts = orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS if pretty else orjson.OPT_SORT_KEYS
    return orjson.dumps(obj, option=opts)


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    """Write *obj* as JSON, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(dump_json(obj, pretty=pretty))


def attribution_to_record(attribution: Attribution) -> dict[str, str]:
    if isinstance(attribution, NamedAttribution):
        return {"kind": "named", "name": attribution.name}
    if isinstance(attribution, LinkAttribution):
        return {"kind": "link", "url": attribution.url}
    raise ValueError(f"No record format for attribution type: {type(attribution).__name__}")


def attribution_from_record(record: dict[str, Any]) -> Attribution:
    if not isinstance(record, dict):
        raise ValueError("Attribution record must be an object")
    kind = record.get("kind", "named")
    field_name = {"named": "name", "link": "url"}.get(kind)
    if field_name is None:
        raise ValueError(f"Unknown attribution kind: {kind!r}")
    value = record.get(field_name)
    if not isinstance(value, str) or not value:
        raise ValueError(f"{kind} attribution requires a non-empty {field_name!r}")
    if kind == "link":
        return LinkAttribution(value)
    return NamedAttribution(value)


def markers_to_records(markers: Iterable[SpanMarker]) -> list[dict[str, Any]]:
    return [
        {
            "attribution": attribution_to_record(m.attribution),
            "offset": m.offset,
            "type": m.marker_type.value,
        }
        for m in markers
    ]


def markers_from_records(records: Iterable[dict[str, Any]]) -> list[SpanMarker]:
    """Build markers from plain records. Raises ValueError on malformed input."""
    markers: list[SpanMarker] = []
    for record in records:
        if not isinstance(record, dict):
            raise ValueError("Marker record must be an object")
        try:
            marker_type = SpanMarkerType(record["type"])
        except (KeyError, ValueError) as exc:
            raise ValueError(f"Invalid marker type in record: {record!r}") from exc
        offset = record.get("offset")
        if not isinstance(offset, int) or offset < 0:
            raise ValueError(f"Marker offset must be a non-negative integer: {record!r}")
        markers.append(SpanMarker(
            attribution=attribution_from_record(record.get("attribution") or {}),
            offset=offset,
            marker_type=marker_type,
        ))
    return markers


def load_markers(path: Path) -> list[SpanMarker]:
    """Load markers from ``{"markers": [...]}`` or a bare list of records."""
    payload = load_json(path)
    if isinstance(payload, dict):
        payload = payload.get("markers", [])
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of marker records in {path}")
    return markers_from_records(payload)


def segments_to_records(segments: Iterable[MultiAttributionSpan]) -> list[dict[str, Any]]:
    """Render collapsed segments; attributions are sorted for stable output."""
    records: list[dict[str, Any]] = []
    for segment in segments:
        attributions = sorted(
            (attribution_to_record(a) for a in segment.attributions),
            key=lambda r: (r["kind"], r.get("name", ""), r.get("url", "")),
        )
        records.append({
            "start": segment.start,
            "end": segment.end,
            "attributions": attributions,
        })
    return records
