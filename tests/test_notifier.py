# File: tests/test_notifier.py
import base64
import json
from types import SimpleNamespace
from urllib.error import URLError

import pytest

import site_audit.notifier as notifier_module
from site_audit.aggregator import aggregate_results
from site_audit.config import EmailConfig
from site_audit.errors import ReportDeliveryError
from site_audit.models import SuiteName, SuiteResult
from site_audit.notifier import EmailNotifier, render_summary

STARTED = "2026-10-19T10:15:00.000+00:00"


@pytest.fixture()
def report():
    urls = ["https://example.com/", "https://example.com/<b>"]
    results = {
        SuiteName.SEO: [
            SuiteResult(suite=SuiteName.SEO, url=urls[0], timestamp=STARTED, payload={"score": 90}),
            SuiteResult(suite=SuiteName.SEO, url=urls[1], timestamp=STARTED, error="HTTP 500 <oops>"),
        ],
        SuiteName.HEADERS: [
            SuiteResult(suite=SuiteName.HEADERS, url=u, timestamp=STARTED, payload={"score": 50})
            for u in urls
        ],
    }
    return aggregate_results(results, urls=urls, base_url="https://example.com", started_at=STARTED)


@pytest.fixture()
def email_config():
    return EmailConfig(
        api_key="SG.test",
        sender="audit@example.com",
        recipients=["a@example.com", "b@example.com"],
    )


class FakeSendGrid:
    """Stands in for SendGridAPIClient; records the request body it would post."""

    instances = []
    status = 202
    fail_with = None

    def __init__(self, api_key):
        self.api_key = api_key
        self.sent = []
        FakeSendGrid.instances.append(self)

    def send(self, message):
        if FakeSendGrid.fail_with is not None:
            raise FakeSendGrid.fail_with
        self.sent.append(message.get())
        return SimpleNamespace(status_code=FakeSendGrid.status, body=b"", headers={})


@pytest.fixture()
def fake_sendgrid(monkeypatch):
    FakeSendGrid.instances = []
    FakeSendGrid.status = 202
    FakeSendGrid.fail_with = None
    monkeypatch.setattr(notifier_module, "SendGridAPIClient", FakeSendGrid)
    return FakeSendGrid


def test_text_summary(report):
    text = render_summary(report)
    assert "Site audit for https://example.com" in text
    assert "Suites: seo, headers" in text
    assert "runs=2 failures=1 mean=90.0" in text
    assert "- [seo] https://example.com/<b>: HTTP 500 <oops>" in text


def test_html_summary_is_escaped(report):
    html = render_summary(report, html=True)
    assert "HTTP 500 &lt;oops&gt;" in html
    assert "<td>headers</td>" in html


def test_build_message(report, email_config):
    body = EmailNotifier(email_config).build_message(report).get()
    assert body["subject"] == "Site audit report: https://example.com"
    assert body["from"]["email"] == "audit@example.com"
    to = [entry["email"] for p in body["personalizations"] for entry in p["to"]]
    assert to == ["a@example.com", "b@example.com"]
    assert [c["type"] for c in body["content"]] == ["text/plain", "text/html"]

    (attachment,) = body["attachments"]
    assert attachment["filename"].startswith("audit-")
    assert attachment["type"] == "application/json"
    assert attachment["disposition"] == "attachment"
    decoded = base64.b64decode(attachment["content"]).decode("utf-8")
    assert json.loads(decoded) == json.loads(report.json())


@pytest.mark.asyncio()
async def test_send_posts_through_sendgrid(report, email_config, fake_sendgrid):
    await EmailNotifier(email_config).send(report)
    (client,) = fake_sendgrid.instances
    assert client.api_key == "SG.test"
    assert len(client.sent) == 1
    assert client.sent[0]["subject"] == "Site audit report: https://example.com"


@pytest.mark.asyncio()
async def test_missing_api_key_is_delivery_error(report, fake_sendgrid):
    config = EmailConfig(sender="a@example.com", recipients=["b@example.com"])
    with pytest.raises(ReportDeliveryError, match="SENDGRID_API_KEY"):
        await EmailNotifier(config).send(report)
    assert fake_sendgrid.instances == []


@pytest.mark.asyncio()
async def test_rejected_status_becomes_delivery_error(report, email_config, fake_sendgrid):
    fake_sendgrid.status = 401
    with pytest.raises(ReportDeliveryError, match="status 401 for a@example.com, b@example.com"):
        await EmailNotifier(email_config).send(report)


@pytest.mark.asyncio()
async def test_connection_failure_becomes_delivery_error(report, email_config, fake_sendgrid):
    fake_sendgrid.fail_with = URLError("connection refused")
    with pytest.raises(ReportDeliveryError, match="connection refused"):
        await EmailNotifier(email_config).send(report)


@pytest.mark.asyncio()
async def test_template_failure_becomes_delivery_error(report, email_config, fake_sendgrid, monkeypatch):
    def broken_summary(report, *, html=False):
        raise RuntimeError("template exploded")

    monkeypatch.setattr(notifier_module, "render_summary", broken_summary)
    with pytest.raises(ReportDeliveryError, match="template exploded"):
        await EmailNotifier(email_config).send(report)
    assert fake_sendgrid.instances == []
