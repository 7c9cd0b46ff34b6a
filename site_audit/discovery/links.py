# site_audit/discovery/links.py
"""
Same-origin link extraction for the fallback crawler.
"""
from __future__ import annotations

from typing import List
from urllib.parse import urldefrag, urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup
from bs4.element import Tag

_SKIPPED_SCHEMES = ("mailto:", "javascript:", "tel:", "data:")


def page_url(url: str) -> str:
    """Drop the fragment and give an empty path the root ``/``."""
    url, _ = urldefrag(url)
    parsed = urlparse(url)
    if not parsed.path:
        parsed = parsed._replace(path="/")
    return urlunparse(parsed)


def extract_links(base_url: str, html: str) -> List[str]:
    """
    Extract same-origin HTTP(S) links from *html*, in first-seen order.

    Ignores mailto:, javascript:, tel:, data: and external hosts.
    """
    soup = BeautifulSoup(html, "html.parser")
    base = urlparse(base_url)
    seen: dict[str, None] = {}
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        raw = href_val.strip()
        if not raw or raw.startswith("#") or raw.lower().startswith(_SKIPPED_SCHEMES):
            continue
        parsed = urlparse(urljoin(base_url, raw))
        if parsed.scheme in ("http", "https") and parsed.netloc == base.netloc:
            seen.setdefault(page_url(parsed.geturl()), None)
    return list(seen)
