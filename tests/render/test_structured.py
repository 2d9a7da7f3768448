"""Tests for the JSON and CSV renderers."""

from __future__ import annotations

import csv
import io
import json

from repovariants.render import render_csv, render_json
from repovariants.render.structured import CSV_COLUMNS, diff_report_to_dict, forensic_to_dict
from tests.render._results import sample_result


def test_json_has_one_object_per_candidate_with_best_flag() -> None:
    payload = json.loads(render_json(sample_result()))

    assert [item["path"] for item in payload] == ["/work/app<stale>", "/work/app_dirty", "/work/app_ahead"]
    assert [item["best"] for item in payload] == [False, True, False]
    assert payload[1]["dirty"] is True
    assert payload[1]["activity_epoch"] == 1_000
    assert "changes" not in payload[1]


def test_json_dirty_detail_groups_changes() -> None:
    payload = json.loads(render_json(sample_result(), dirty_detail=True))

    assert payload[1]["changes"] == {"modified": ["src/app.py"], "untracked": ["notes.txt"]}
    assert payload[0]["changes"] == {}


def test_csv_has_header_row() -> None:
    rows = list(csv.reader(io.StringIO(render_csv(sample_result()))))

    assert rows[0] == CSV_COLUMNS
    assert len(rows) == 4
    assert rows[2][0] == "True"
    assert rows[1][CSV_COLUMNS.index("warnings")] == "status: git timed out"


def test_dictionary_views_for_diffs_and_forensics() -> None:
    result = sample_result(forensic=True, with_diff=True)

    diff = diff_report_to_dict(result.diff_reports[0])
    forensic = forensic_to_dict(result.forensic)

    assert diff["summary"] == {"only_in_best": 1, "only_in_other": 0, "content_differs": 1}
    assert [record["relative_path"] for record in diff["records"]] == ["src/new.py", "README.md"]
    assert forensic is not None
    assert forensic["probable_last_active"] == "/work/app_ahead"
    assert [row["bar_width"] for row in forensic["timeline"]] == [100, 50, 5]
    assert forensic_to_dict(None) is None
