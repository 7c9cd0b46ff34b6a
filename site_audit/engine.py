# File: site_audit/engine.py
"""site_audit.engine: Orchestration layer running discovery, suites, aggregation and delivery."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

from aiohttp import ClientSession, ClientTimeout

from site_audit.aggregator import aggregate_results
from site_audit.config import AuditConfig
from site_audit.discovery.collector import UrlCollector
from site_audit.errors import ReportDeliveryError
from site_audit.logger import get_logger
from site_audit.models import Report, utc_timestamp
from site_audit.notifier import EmailNotifier, Notifier
from site_audit.orchestrator import Orchestrator
from site_audit.report.json_report import render_json
from site_audit.suites.base import SuiteContext
from site_audit.suites.registry import SuiteRef, SuiteRegistry, default_registry

__all__ = ["Engine", "AuditOutcome", "run_audit"]

CollectorFactory = Callable[[ClientSession, AuditConfig, logging.Logger], UrlCollector]


@dataclass(frozen=True)
class AuditOutcome:
    """What a run produced. Cell failures live inside the report, not here."""

    report: Report
    report_path: Optional[Path] = None
    delivered: bool = False
    delivery_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.delivery_error is None


class Engine:
    """Facade for the CLI and tests: one call runs a whole audit."""

    def __init__(
        self,
        config: AuditConfig,
        *,
        registry: Optional[SuiteRegistry] = None,
        collector_factory: Optional[CollectorFactory] = None,
        notifier: Optional[Notifier] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.registry = registry or default_registry()
        self.collector_factory = collector_factory or UrlCollector.from_config
        self.notifier = notifier
        self.logger = logger or get_logger()

    @classmethod
    def from_config(cls, config: AuditConfig, *, notify: bool = True, **kwargs) -> Engine:
        """Engine with an e-mail notifier when the config has an email block and *notify* is set."""
        if notify and config.email is not None and "notifier" not in kwargs:
            kwargs["notifier"] = EmailNotifier(config.email)
        return cls(config, **kwargs)

    def _session(self) -> ClientSession:
        return ClientSession(
            timeout=ClientTimeout(total=self.config.timeout),
            headers={"User-Agent": self.config.user_agent},
            raise_for_status=False,
        )

    async def run(self, selection: Optional[Iterable[SuiteRef]] = None) -> AuditOutcome:
        """Audit the configured site.

        Raises UnknownSuiteError before any network activity. A delivery
        failure is recorded on the outcome; the report is still returned.
        """
        if selection is None:
            selection = self.config.suites
        suites = self.registry.resolve(selection)
        base_url = self.config.site_url
        started_at = utc_timestamp()
        self.logger.info("Starting audit of %s", base_url)

        async with self._session() as session:
            collector = self.collector_factory(session, self.config, self.logger)
            urls = await collector.collect(base_url)
            context = SuiteContext(session=session, config=self.config, logger=self.logger)
            orchestrator = Orchestrator(
                self.registry, context, concurrency=self.config.concurrency, logger=self.logger
            )
            run_results = await orchestrator.run(urls, suites)

        report = aggregate_results(
            run_results,
            urls=urls,
            base_url=base_url,
            started_at=started_at,
            generated_at=utc_timestamp(),
            suites=suites,
        )
        self.logger.info(
            "Audit finished: %d URL(s), %d failed cell(s)", report.url_count, report.total_failures
        )

        report_path = None
        if self.config.report_dir is not None:
            report_path = render_json(report, self._report_target())
            self.logger.info("JSON report saved: %s", report_path)

        return await self._deliver(report, report_path)

    def _report_target(self) -> Path:
        target = Path(self.config.report_dir)
        target.mkdir(parents=True, exist_ok=True)
        return target

    async def _deliver(self, report: Report, report_path: Optional[Path]) -> AuditOutcome:
        if self.notifier is None:
            return AuditOutcome(report=report, report_path=report_path)
        try:
            await self.notifier.send(report)
        except ReportDeliveryError as exc:
            self.logger.error("Report delivery failed: %s", exc)
            return AuditOutcome(report=report, report_path=report_path, delivery_error=str(exc))
        return AuditOutcome(report=report, report_path=report_path, delivered=True)


async def run_audit(config: AuditConfig, selection: Optional[Iterable[SuiteRef]] = None,
                    *, notify: bool = True) -> AuditOutcome:
    """Shortcut used by the CLI."""
    return await Engine.from_config(config, notify=notify).run(selection)
