"""Tests for the HTML report renderer."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from repovariants.render import html_report_filename, render_html, write_html_report
from tests.render._results import sample_result


def test_html_is_sortable_and_escaped() -> None:
    html = render_html(sample_result(), generated_at=datetime(2024, 1, 2, 3, 4, 5))

    assert html.startswith("<!DOCTYPE html>")
    assert "function sortTable(column)" in html
    assert 'onclick="sortTable(1)"' in html
    assert "/work/app&lt;stale&gt;" in html
    assert "/work/app<stale>" not in html
    assert "2024-01-02 03:04:05" in html
    assert 'class="best"' in html
    assert "<details>" not in html


def test_html_rows_follow_given_order() -> None:
    html = render_html(sample_result())

    assert html.index("app&lt;stale&gt;") < html.index("/work/app_dirty") < html.index("/work/app_ahead")


def test_html_forensic_bars_and_probable_last_active() -> None:
    html = render_html(sample_result(forensic=True))

    assert "width: 100%" in html
    assert "width: 5%" in html
    assert "Probable last active:" in html
    assert '<th onclick="sortTable(9)">Timeline</th>' in html
    assert '<td data-value="100">' in html


def test_html_deep_compare_blocks() -> None:
    html = render_html(sample_result(with_diff=True))

    assert "<details>" in html
    assert "1 only in best, 0 only in other, 1 differ" in html
    assert "src/new.py" in html


def test_write_html_report(tmp_path: Path) -> None:
    destination = tmp_path / "reports" / html_report_filename("app", "2024-01-02_03-04-05")

    written = write_html_report(sample_result(), destination)

    assert written == destination
    assert destination.name == "app_report_2024-01-02_03-04-05.html"
    assert "sortTable" in destination.read_text(encoding="utf-8")
    assert html_report_filename("app", "ts", forensic=True) == "repo_forensics_app_ts.html"
