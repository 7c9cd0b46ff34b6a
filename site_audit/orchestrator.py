# File: site_audit/orchestrator.py
"""site_audit.orchestrator: Drives the (url × suite) matrix with per-cell fault isolation."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Sequence

from site_audit.errors import describe_exception
from site_audit.logger import get_logger
from site_audit.models import RunResults, SuiteName, SuiteResult
from site_audit.suites.base import SuiteContext
from site_audit.suites.registry import SuiteRegistry, SuiteRef

__all__ = ["Orchestrator"]


class Orchestrator:
    """Runs every selected suite against every URL.

    A cell that raises is recorded as an error result; it never stops the
    remaining cells. With ``concurrency > 1`` cells overlap, but each result
    is stored at its URL's index, so ordering never depends on completion.
    """

    def __init__(
        self,
        registry: SuiteRegistry,
        context: SuiteContext,
        *,
        concurrency: int = 1,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.registry = registry
        self.context = context
        self.concurrency = concurrency
        self.logger = logger or get_logger("orchestrator")

    async def run(
        self, urls: Sequence[str], selection: Optional[Iterable[SuiteRef]] = None
    ) -> RunResults:
        suites = self.registry.resolve(selection)
        slots: List[List[Optional[SuiteResult]]] = [[None] * len(urls) for _ in suites]
        self.logger.info(
            "Running %d suite(s) over %d URL(s): %s",
            len(suites), len(urls), ", ".join(s.value for s in suites) or "-",
        )

        async def run_cell(u: int, s: int) -> None:
            slots[s][u] = await self._invoke(suites[s], urls[u])

        if self.concurrency == 1:
            for u in range(len(urls)):
                self.logger.info("[%d/%d] %s", u + 1, len(urls), urls[u])
                for s in range(len(suites)):
                    await run_cell(u, s)
        else:
            semaphore = asyncio.Semaphore(self.concurrency)

            async def bounded(u: int, s: int) -> None:
                async with semaphore:
                    await run_cell(u, s)

            await asyncio.gather(
                *(bounded(u, s) for u in range(len(urls)) for s in range(len(suites)))
            )

        results: RunResults = {}
        for s, name in enumerate(suites):
            results[name] = [cell for cell in slots[s] if cell is not None]
        return results

    async def _invoke(self, suite: SuiteName, url: str) -> SuiteResult:
        try:
            result = await self.registry.invoke(suite, url, self.context)
        except Exception as exc:
            self.logger.error("%s raised for %s: %s", suite.value, url, exc)
            return SuiteResult.failure(suite, url, describe_exception(exc))
        if not isinstance(result, SuiteResult):
            self.logger.error("%s returned %r for %s", suite.value, type(result).__name__, url)
            return SuiteResult.failure(
                suite, url, f"Suite returned {type(result).__name__} instead of a result"
            )
        self.logger.debug(
            "%s %s for %s", suite.value, "ok" if result.ok else f"failed: {result.error}", url
        )
        return result
