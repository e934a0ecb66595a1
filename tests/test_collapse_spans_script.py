"""Tests for scripts/collapse_spans.py."""
from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path


def _run(root: Path, args: list[str]) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(root / "src")
    return subprocess.run(
        [sys.executable, str(root / "scripts" / "collapse_spans.py"), *args],
        cwd=str(root),
        env=env,
        capture_output=True,
        text=True,
        check=False,
    )


def _write_markers(path: Path, markers: list[dict[str, object]]) -> None:
    path.write_text(json.dumps({"markers": markers}))


def test_collapse_spans_outputs_segments(tmp_path: Path) -> None:
    root = Path(__file__).resolve().parents[1]
    markers_path = tmp_path / "markers.json"
    _write_markers(
        markers_path,
        [
            {"attribution": {"kind": "named", "name": "bold"}, "offset": 4, "type": "end"},
            {"attribution": {"kind": "named", "name": "bold"}, "offset": 0, "type": "start"},
        ],
    )

    proc = _run(root, ["--markers", str(markers_path), "--content-length", "10", "--validate"])
    assert proc.returncode == 0, proc.stderr
    output = json.loads(proc.stdout)
    assert output["content_length"] == 10
    assert output["marker_count"] == 2
    assert output["segments"] == [
        {"start": 0, "end": 4, "attributions": [{"kind": "named", "name": "bold"}]},
        {"start": 5, "end": 9, "attributions": []},
    ]


def test_collapse_spans_writes_output_file(tmp_path: Path) -> None:
    root = Path(__file__).resolve().parents[1]
    markers_path = tmp_path / "markers.json"
    _write_markers(markers_path, [])
    out_path = tmp_path / "out" / "segments.json"

    proc = _run(
        root,
        ["--markers", str(markers_path), "--content-length", "3", "--output", str(out_path)],
    )
    assert proc.returncode == 0, proc.stderr
    assert proc.stdout == ""
    assert json.loads(out_path.read_text())["segments"] == [
        {"start": 0, "end": 2, "attributions": []},
    ]


def test_collapse_spans_validate_rejects_open_span(tmp_path: Path) -> None:
    root = Path(__file__).resolve().parents[1]
    markers_path = tmp_path / "markers.json"
    _write_markers(
        markers_path,
        [{"attribution": {"kind": "named", "name": "bold"}, "offset": 2, "type": "start"}],
    )

    proc = _run(root, ["--markers", str(markers_path), "--content-length", "5", "--validate"])
    assert proc.returncode == 2
    assert "open_ended" in proc.stderr


def test_collapse_spans_reports_unreadable_input(tmp_path: Path) -> None:
    root = Path(__file__).resolve().parents[1]
    bad_path = tmp_path / "bad.json"
    bad_path.write_text("{not json")

    proc = _run(root, ["--markers", str(bad_path), "--content-length", "5"])
    assert proc.returncode == 1
    assert "Could not load markers" in proc.stderr
