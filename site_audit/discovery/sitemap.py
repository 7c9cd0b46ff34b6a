# File: site_audit/discovery/sitemap.py
"""site_audit.discovery.sitemap: Fetching and parsing ``sitemap.xml`` into page URLs."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional
from urllib.parse import urljoin

from aiohttp import ClientError, ClientSession
from lxml import etree

from site_audit.errors import FetchError, ParseError
from site_audit.logger import get_logger

__all__ = ["SITEMAP_PATH", "SitemapResolver", "parse_sitemap", "sitemap_url"]

SITEMAP_PATH = "/sitemap.xml"


def sitemap_url(base_url: str) -> str:
    """Canonical sitemap location for *base_url*."""
    return urljoin(base_url, SITEMAP_PATH)


def parse_sitemap(xml_content: bytes | str, source: str = "<sitemap>") -> List[str]:
    """Parse a sitemap document and return ``urlset/url/loc`` values in document order.

    Args:
        xml_content: raw body of sitemap.xml.
        source: URL or name used in error messages.

    Raises:
        ParseError: body is not well-formed XML or the root is not ``urlset``.

    Example:
    ```python
    from site_audit.discovery.sitemap import parse_sitemap

    with open('sitemap.xml', 'rb') as f:
        urls = parse_sitemap(f.read())
    ```
    """
    if isinstance(xml_content, str):
        xml_content = xml_content.encode("utf-8")
    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    try:
        root = etree.fromstring(xml_content, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise ParseError(source, f"malformed XML: {exc}") from exc
    if root is None:
        raise ParseError(source, "empty document")

    tag = etree.QName(root).localname
    if tag != "urlset":
        raise ParseError(source, f"expected <urlset> root, got <{tag}>")

    return [
        loc.text.strip()
        for loc in root.findall("{*}url/{*}loc")
        if loc.text and loc.text.strip()
    ]


class SitemapResolver:
    """First discovery strategy: read the site's ``/sitemap.xml``."""

    name = "sitemap"

    def __init__(self, session: ClientSession, logger: Optional[logging.Logger] = None) -> None:
        self.session = session
        self.logger = logger or get_logger("discovery")

    async def resolve(self, base_url: str) -> List[str]:
        """Return sitemap URLs; raise FetchError/ParseError when a fallback is required."""
        url = sitemap_url(base_url)
        self.logger.debug("Fetching sitemap %s", url)
        try:
            async with self.session.get(url) as resp:
                if not 200 <= resp.status < 300:
                    raise FetchError(url, f"HTTP {resp.status}", status=resp.status)
                body = await resp.read()
        except (ClientError, asyncio.TimeoutError) as exc:
            raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc

        urls = parse_sitemap(body, source=url)
        self.logger.info("Sitemap %s lists %d URLs", url, len(urls))
        return urls

    async def discover(self, base_url: str) -> List[str]:
        return await self.resolve(base_url)
