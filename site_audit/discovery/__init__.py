# File: site_audit/discovery/__init__.py
"""site_audit.discovery: Deciding which pages of a site get audited."""

from .collector import DiscoveryStrategy, UrlCollector
from .crawler import SiteCrawler
from .sitemap import SitemapResolver, parse_sitemap

__all__ = ["DiscoveryStrategy", "UrlCollector", "SiteCrawler", "SitemapResolver", "parse_sitemap"]
