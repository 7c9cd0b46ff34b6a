# File: site_audit/discovery/collector.py
"""site_audit.discovery.collector: Ordered discovery strategies with fallback and de-duplication."""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from aiohttp import ClientSession

from site_audit.config import AuditConfig
from site_audit.discovery.crawler import SiteCrawler
from site_audit.discovery.sitemap import SitemapResolver
from site_audit.errors import DiscoveryError
from site_audit.logger import get_logger

__all__ = ["DiscoveryStrategy", "UrlCollector"]


@runtime_checkable
class DiscoveryStrategy(Protocol):
    """Anything that can turn a base URL into page URLs."""

    name: str

    async def discover(self, base_url: str) -> List[str]:
        ...


class UrlCollector:
    """Try each strategy in order until one yields URLs.

    A strategy raising :class:`DiscoveryError` or returning nothing is a
    degradation: it is logged and the next strategy runs. ``collect`` never
    raises, an empty list is a valid result.
    """

    def __init__(
        self,
        strategies: Sequence[DiscoveryStrategy],
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.strategies = tuple(strategies)
        self.logger = logger or get_logger("discovery")

    @classmethod
    def from_config(
        cls,
        session: ClientSession,
        config: AuditConfig,
        logger: Optional[logging.Logger] = None,
    ) -> UrlCollector:
        """Default chain: sitemap first, crawler as fallback."""
        return cls(
            [
                SitemapResolver(session, logger=logger),
                SiteCrawler(session, config.crawl, user_agent=config.user_agent, logger=logger),
            ],
            logger=logger,
        )

    async def collect(self, base_url: str) -> List[str]:
        for strategy in self.strategies:
            try:
                found = await strategy.discover(base_url)
            except DiscoveryError as exc:
                self.logger.warning("Discovery via %s failed, falling back: %s", strategy.name, exc)
                continue
            except Exception:
                self.logger.exception("Discovery via %s crashed, falling back", strategy.name)
                continue

            urls = list(dict.fromkeys(found))
            if urls:
                removed = len(found) - len(urls)
                if removed:
                    self.logger.debug("Removed %d duplicate URLs", removed)
                self.logger.info("Collected %d URLs via %s", len(urls), strategy.name)
                return urls
            self.logger.warning("Discovery via %s found no URLs, falling back", strategy.name)

        self.logger.warning("No URLs discovered for %s", base_url)
        return []
