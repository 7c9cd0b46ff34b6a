# === FILE: site_audit/discovery/crawler.py ===
"""Fallback URL discovery: follow same-origin links from the seed page."""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional
from urllib.parse import urlparse, urlunparse

from aiohttp import ClientError, ClientSession

from site_audit.config import CrawlConfig
from site_audit.discovery.links import extract_links, page_url
from site_audit.discovery.robots import RobotsTxtRules
from site_audit.logger import get_logger

__all__ = ("SiteCrawler",)


class SiteCrawler:
    """Breadth-first, depth-bounded crawler. Soft-fails: never raises, may return ``[]``."""

    name = "crawler"

    def __init__(
        self,
        session: ClientSession,
        config: Optional[CrawlConfig] = None,
        user_agent: str = "SiteAuditBot/1.0",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.session = session
        self.config = config or CrawlConfig()
        self.user_agent = user_agent
        self.logger = logger or get_logger("discovery")
        self.robots_rules: Optional[RobotsTxtRules] = None
        self.disallowed_pages: List[str] = []

    async def crawl(self, base_url: str) -> List[str]:
        """Return the seed page and same-origin links up to ``max_depth`` hops away."""
        seed = page_url(base_url)
        self.logger.info("Crawling %s (depth %d)", seed, self.config.max_depth)
        self.robots_rules = None
        self.disallowed_pages = []
        if self.config.respect_robots:
            await self._load_robots(seed)

        html = await self._fetch(seed)
        if html is None:
            self.logger.warning("Seed page %s could not be fetched; nothing discovered", seed)
            return []

        found: Dict[str, None] = {seed: None}
        frontier = [(seed, html)]
        for depth in range(1, self.config.max_depth + 1):
            next_frontier = []
            for url, content in frontier:
                for link in extract_links(url, content):
                    if link in found or not self._is_allowed(link):
                        continue
                    if len(found) >= self.config.max_pages:
                        return self._finish(found)
                    found[link] = None
                    if depth < self.config.max_depth:
                        child = await self._fetch(link)
                        if child is not None:
                            next_frontier.append((link, child))
            frontier = next_frontier
            if not frontier:
                break
        return self._finish(found)

    async def discover(self, base_url: str) -> List[str]:
        return await self.crawl(base_url)

    def _finish(self, found: Dict[str, None]) -> List[str]:
        self.logger.info("Crawler discovered %d URLs", len(found))
        if self.disallowed_pages:
            self.logger.info("Blocked by robots.txt: %d", len(self.disallowed_pages))
        return list(found)

    async def _fetch(self, url: str) -> Optional[str]:
        """HTML body of *url*, or None on any failure or non-HTML response."""
        try:
            async with self.session.get(url) as resp:
                mime = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
                if not 200 <= resp.status < 300:
                    self.logger.debug("Crawl %s -> HTTP %s", url, resp.status)
                    return None
                if mime not in ("text/html", "application/xhtml+xml"):
                    return None
                return await resp.text()
        except (ClientError, asyncio.TimeoutError, UnicodeDecodeError) as exc:
            self.logger.warning("Failed %s: %s", url, exc)
            return None

    def _is_allowed(self, url: str) -> bool:
        if self.robots_rules is None:
            return True
        if self.robots_rules.can_fetch(self.user_agent, urlparse(url).path or "/"):
            return True
        self.disallowed_pages.append(url)
        return False

    async def _load_robots(self, seed: str) -> None:
        parsed = urlparse(seed)
        robots_url = urlunparse((parsed.scheme, parsed.netloc, "/robots.txt", "", "", ""))
        try:
            async with self.session.get(robots_url) as resp:
                if resp.status == 200:
                    self.robots_rules = RobotsTxtRules(await resp.text())
                else:
                    # default allow all
                    self.robots_rules = None
                    self.logger.debug("robots.txt %s -> HTTP %s", robots_url, resp.status)
        except (ClientError, asyncio.TimeoutError, UnicodeDecodeError) as exc:
            self.logger.warning("Error loading robots.txt: %s", exc)
            self.robots_rules = None
