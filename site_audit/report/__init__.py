# File: site_audit/report/__init__.py
"""site_audit.report: Persisting finished reports."""

from .json_report import render_json, report_filename

__all__ = ["render_json", "report_filename"]
