"""Self-contained HTML report rendered from a Jinja template."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..forensics import HEURISTIC_NOTE
from ..models import RankedResult

_TEMPLATE_NAME = "report.html.j2"


def html_report_filename(name_prefix: str, run_stamp: str, *, forensic: bool = False) -> str:
    if forensic:
        return f"repo_forensics_{name_prefix}_{run_stamp}.html"
    return f"{name_prefix}_report_{run_stamp}.html"


def _create_env() -> Environment:
    loader = FileSystemLoader(str(Path(__file__).with_name("templates")))
    return Environment(
        loader=loader,
        autoescape=select_autoescape(["html", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _rows(result: RankedResult) -> List[Dict[str, Any]]:
    widths: Dict[str, int] = {}
    if result.forensic is not None:
        widths = {row.path: row.bar_width for row in result.forensic.rows}
    return [
        {
            "candidate": candidate,
            "is_best": candidate is result.best,
            "bar_width": widths.get(candidate.path),
        }
        for candidate in result.candidates
    ]


def render_html(result: RankedResult, *, generated_at: datetime | None = None) -> str:
    """Render the ordered candidates, optional activity bars and deep-compare blocks."""
    template = _create_env().get_template(_TEMPLATE_NAME)
    forensic = result.forensic
    return template.render(
        title=("Repository forensics" if forensic is not None else "Repository variants"),
        root_path=result.root_path,
        name_prefix=result.name_prefix,
        generated_at=(generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S"),
        rows=_rows(result),
        forensic=forensic,
        probable_last_active=forensic.probable_last_active if forensic is not None else None,
        heuristic_note=HEURISTIC_NOTE,
        diff_reports=result.diff_reports,
    )


def write_html_report(result: RankedResult, destination: Path) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(render_html(result), encoding="utf-8")
    return destination


__all__ = ["html_report_filename", "render_html", "write_html_report"]
