"""Report renderers; each consumes an already-ordered result."""

from .html import html_report_filename, render_html, write_html_report
from .structured import candidate_to_dict, diff_report_to_dict, forensic_to_dict, render_csv, render_json
from .table import render_table

__all__ = [
    "candidate_to_dict",
    "diff_report_to_dict",
    "forensic_to_dict",
    "html_report_filename",
    "render_csv",
    "render_html",
    "render_json",
    "render_table",
    "write_html_report",
]
