# File: site_audit/notifier.py
"""site_audit.notifier: Delivering a finished Report (e-mail with JSON attachment)."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Optional, Protocol

from jinja2 import Environment, PackageLoader, select_autoescape
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import (
    Attachment,
    Disposition,
    FileContent,
    FileName,
    FileType,
    Mail,
)

from site_audit.config import EmailConfig
from site_audit.errors import ReportDeliveryError
from site_audit.logger import get_logger
from site_audit.models import Report
from site_audit.report.json_report import report_filename

__all__ = ["Notifier", "EmailNotifier", "render_summary"]

#: SendGrid answers 202 Accepted for queued mail
ACCEPTED_STATUS = (200, 202)


class Notifier(Protocol):
    """Delivers a report; raises ReportDeliveryError on failure."""

    async def send(self, report: Report) -> None:
        ...


_env = Environment(
    loader=PackageLoader("site_audit", "templates"),
    autoescape=select_autoescape(["html", "xml", "html.j2"]),
    trim_blocks=True,
)


def render_summary(report: Report, *, html: bool = False) -> str:
    """Short per-suite summary used as the e-mail body."""
    template = _env.get_template("summary.html.j2" if html else "summary.txt.j2")
    return template.render(report=report, failed=report.failed_cells())


class EmailNotifier:
    """Sends the report through SendGrid: text/HTML summary plus the full JSON as attachment."""

    def __init__(self, config: EmailConfig, *, logger: Optional[logging.Logger] = None) -> None:
        self.config = config
        self.logger = logger or get_logger("notifier")

    def build_message(self, report: Report) -> Mail:
        message = Mail(
            from_email=self.config.sender,
            to_emails=list(self.config.recipients),
            subject=f"{self.config.subject}: {report.base_url}",
            plain_text_content=render_summary(report),
            html_content=render_summary(report, html=True),
        )
        encoded = base64.b64encode(report.json(pretty=True).encode("utf-8")).decode()
        message.attachment = Attachment(
            FileContent(encoded),
            FileName(report_filename(report)),
            FileType("application/json"),
            Disposition("attachment"),
        )
        return message

    def _deliver(self, message: Mail) -> int:
        response = SendGridAPIClient(self.config.api_key).send(message)
        return response.status_code

    async def send(self, report: Report) -> None:
        recipients = ", ".join(self.config.recipients)
        if not self.config.api_key:
            raise ReportDeliveryError("SendGrid API key is not configured; set SENDGRID_API_KEY")
        try:
            message = self.build_message(report)
            status = await asyncio.to_thread(self._deliver, message)
        except Exception as exc:
            raise ReportDeliveryError(f"Could not e-mail report to {recipients}: {exc}") from exc
        if status not in ACCEPTED_STATUS:
            raise ReportDeliveryError(f"SendGrid returned status {status} for {recipients}")
        self.logger.info("Report e-mailed to %s (status %s)", recipients, status)
