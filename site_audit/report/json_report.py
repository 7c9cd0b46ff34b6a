# site_audit/report/json_report.py

"""
JSON persistence of a SiteAudit Report.
"""
from pathlib import Path
from typing import Union

from site_audit.models import Report


def report_filename(report: Report) -> str:
    """Timestamped file name, e.g. ``audit-20261019T101500.123Z.json``."""
    stamp = report.started_at.replace("-", "").replace(":", "").replace("+0000", "Z")
    return f"audit-{stamp}.json"


def render_json(report: Report, output_path: Union[Path, str]) -> Path:
    """
    Save *report* as JSON at *output_path*; a directory gets a timestamped file.

    :param report: finished Report
    :param output_path: file path, or an existing directory
    :return: Path of the written file

    Example:
    ```python
    from site_audit.report.json_report import render_json
    path = render_json(report, 'reports/')
    ```
    """
    output = Path(output_path)
    if output.is_dir():
        output = output / report_filename(report)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open("w", encoding="utf-8") as f:
        f.write(report.json(pretty=True))
        f.write("\n")

    return output
