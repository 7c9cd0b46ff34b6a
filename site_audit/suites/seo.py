"""
SEO suite
=========

On-page analysis: meta tags, heading structure, link counts, image alt
coverage, plus presence of ``sitemap.xml`` and ``robots.txt`` at the
site origin.
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List
from urllib.parse import urljoin, urlparse

from aiohttp import ClientError
from bs4 import BeautifulSoup

from site_audit.models import SuiteName
from site_audit.suites.base import SuiteContext, fetch_page, suite_handler

WEIGHTS = {
    "has_title": 15,
    "has_description": 15,
    "has_single_h1": 10,
    "has_valid_headings": 10,
    "images_have_alt": 10,
    "has_sitemap": 20,
    "has_robots_txt": 20,
}

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")


def meta_tags(soup: BeautifulSoup) -> Dict[str, str]:
    tags: Dict[str, str] = {}
    for tag in soup.find_all("meta"):
        name = tag.get("name") or tag.get("property")
        if name:
            tags[str(name).lower()] = str(tag.get("content", ""))
    return tags


def heading_outline(soup: BeautifulSoup) -> Dict[str, Dict[str, Any]]:
    outline = {}
    for tag in HEADING_TAGS:
        texts = [h.get_text(" ", strip=True) for h in soup.find_all(tag)]
        outline[tag] = {"count": len(texts), "texts": texts}
    return outline


def valid_heading_structure(headings: Dict[str, Dict[str, Any]]) -> bool:
    """Exactly one H1 and no level used while its parent level is absent."""
    if headings["h1"]["count"] != 1:
        return False
    for upper, lower in zip(HEADING_TAGS, HEADING_TAGS[1:]):
        if headings[upper]["count"] == 0 and headings[lower]["count"] > 0:
            return False
    return True


def link_stats(soup: BeautifulSoup, page_url: str) -> Dict[str, int]:
    host = urlparse(page_url).netloc
    internal = external = broken = 0
    for a in soup.find_all("a"):
        href = str(a.get("href") or "").strip()
        if not href or href == "#":
            broken += 1
            continue
        target = urlparse(urljoin(page_url, href))
        if target.scheme not in ("http", "https"):
            continue
        if target.netloc == host:
            internal += 1
        else:
            external += 1
    return {"internal": internal, "external": external, "broken": broken}


def image_stats(soup: BeautifulSoup) -> Dict[str, int]:
    images = soup.find_all("img")
    with_alt = sum(1 for img in images if str(img.get("alt") or "").strip())
    return {"total": len(images), "with_alt": with_alt, "without_alt": len(images) - with_alt}


def score_factors(factors: Dict[str, bool]) -> int:
    return sum(WEIGHTS[name] for name, present in factors.items() if present)


def recommendations(
    title: str,
    meta: Dict[str, str],
    headings: Dict[str, Dict[str, Any]],
    links: Dict[str, int],
    images: Dict[str, int],
) -> List[str]:
    advice = []
    if not title:
        advice.append("Add a title tag to the page")
    if not meta.get("description"):
        advice.append("Add a meta description to the page")
    if headings["h1"]["count"] != 1:
        advice.append("Ensure the page has exactly one H1 heading")
    if images["without_alt"]:
        advice.append("Add alt text to all images")
    if links["broken"]:
        advice.append(f"Fix {links['broken']} broken links")
    return advice


def analyze_html(html: str, url: str, *, has_sitemap: bool, has_robots_txt: bool) -> Dict[str, Any]:
    soup = BeautifulSoup(html, "html.parser")
    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""
    meta = meta_tags(soup)
    headings = heading_outline(soup)
    links = link_stats(soup, url)
    images = image_stats(soup)

    factors = {
        "has_title": bool(title),
        "has_description": bool(meta.get("description", "").strip()),
        "has_single_h1": headings["h1"]["count"] == 1,
        "has_valid_headings": valid_heading_structure(headings),
        "images_have_alt": images["without_alt"] == 0,
        "has_sitemap": has_sitemap,
        "has_robots_txt": has_robots_txt,
    }
    return {
        "score": score_factors(factors),
        "factors": factors,
        "analysis": {
            "title": title,
            "meta_tags": meta,
            "headings": headings,
            "links": links,
            "images": images,
        },
        "recommendations": recommendations(title, meta, headings, links, images),
    }


async def _exists(context: SuiteContext, url: str) -> bool:
    try:
        async with context.session.get(url) as resp:
            return 200 <= resp.status < 300
    except (ClientError, asyncio.TimeoutError):
        return False


@suite_handler(SuiteName.SEO)
async def run_seo(url: str, context: SuiteContext) -> Dict[str, Any]:
    page = await fetch_page(context, url)
    has_sitemap, has_robots = await asyncio.gather(
        _exists(context, urljoin(url, "/sitemap.xml")),
        _exists(context, urljoin(url, "/robots.txt")),
    )
    return analyze_html(page.html, url, has_sitemap=has_sitemap, has_robots_txt=has_robots)
