# File: site_audit/suites/base.py
"""site_audit.suites.base: Shared context and the isolation boundary every suite runs behind."""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping

from aiohttp import ClientError, ClientSession
from bs4 import BeautifulSoup

from site_audit.config import AuditConfig
from site_audit.errors import SuiteInvocationFault, describe_exception
from site_audit.logger import get_logger
from site_audit.models import SuiteName, SuiteResult

__all__ = [
    "SuiteContext",
    "SuiteHandler",
    "PageSnapshot",
    "suite_handler",
    "fetch_page",
]

#: what the registry calls: never raises, always returns a SuiteResult
SuiteHandler = Callable[[str, "SuiteContext"], Awaitable[SuiteResult]]
#: what a suite module implements: returns the success payload or raises
PayloadFunc = Callable[[str, "SuiteContext"], Awaitable[Mapping[str, Any]]]


@dataclass(slots=True)
class SuiteContext:
    """Collaborators shared by suites during one run."""

    session: ClientSession
    config: AuditConfig
    logger: logging.Logger = field(default_factory=lambda: get_logger("suites"))

    @property
    def suite_timeout(self) -> float:
        return self.config.suite_timeout


@dataclass(slots=True)
class PageSnapshot:
    """Raw HTTP response of an audited page."""

    url: str
    status: int
    headers: Mapping[str, str]
    html: str

    def soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.html, "html.parser")


async def fetch_page(context: SuiteContext, url: str, *, allow_errors: bool = False) -> PageSnapshot:
    """GET *url* with the run session.

    Raises SuiteInvocationFault for HTTP >= 400 unless *allow_errors*.
    Network errors propagate to the suite boundary.
    """
    async with context.session.get(url) as resp:
        if resp.status >= 400 and not allow_errors:
            raise SuiteInvocationFault(f"HTTP {resp.status} for {url}")
        html = await resp.text(errors="replace")
        return PageSnapshot(url=url, status=resp.status, headers=resp.headers, html=html)


def suite_handler(name: SuiteName) -> Callable[[PayloadFunc], SuiteHandler]:
    """Wrap a payload-producing coroutine into a fault-isolated suite handler.

    The wrapped coroutine is bounded by ``context.suite_timeout``. Any
    exception, timeout included, becomes ``SuiteResult.failure``; a returned
    mapping becomes ``SuiteResult.success``. A request timeout raised inside
    the suite keeps its own message instead of the suite deadline's.
    """

    def decorator(func: PayloadFunc) -> SuiteHandler:
        @functools.wraps(func)
        async def wrapper(url: str, context: SuiteContext) -> SuiteResult:
            context.logger.debug("Running %s for %s", name.value, url)
            deadline = asyncio.timeout(context.suite_timeout)
            try:
                async with deadline:
                    payload = await func(url, context)
            except TimeoutError as exc:
                if deadline.expired():
                    message = f"Timed out after {context.suite_timeout:g}s"
                else:
                    # raised by a request inside the suite, not by the suite deadline
                    message = str(exc) or f"HTTP request timed out after {context.config.timeout:g}s"
                context.logger.error("%s failed for %s: %s", name.value, url, message)
                return SuiteResult.failure(name, url, message)
            except (ClientError, SuiteInvocationFault) as exc:
                context.logger.error("%s failed for %s: %s", name.value, url, exc)
                return SuiteResult.failure(name, url, describe_exception(exc))
            except Exception as exc:
                context.logger.exception("%s crashed for %s", name.value, url)
                return SuiteResult.failure(name, url, describe_exception(exc))
            return SuiteResult.success(name, url, payload)

        wrapper.suite_name = name  # type: ignore[attr-defined]
        return wrapper

    return decorator


def ratio(part: int, total: int) -> float:
    return part / total if total else 0.0


def clamp_score(value: float) -> float:
    """Round to two decimals and clamp into [0, 100]."""
    return round(max(0.0, min(100.0, float(value))), 2)

