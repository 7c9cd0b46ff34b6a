# File: tests/test_crawler.py
# Test-suite for the fallback link crawler
from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import ClientSession, ClientTimeout, web
from helpers import serve_app

from site_audit.config import CrawlConfig
from site_audit.discovery.crawler import SiteCrawler
from site_audit.discovery.links import extract_links, page_url
from site_audit.discovery.robots import RobotsTxtRules

#: number of pages linked from the root of the stress server
STRESS_PAGES: int = 50


async def run_crawler(base_url: str, config: CrawlConfig, user_agent: str = "TestAgent/1.0"):
    async with ClientSession(timeout=ClientTimeout(total=2)) as session:
        crawler = SiteCrawler(session, config, user_agent=user_agent)
        return await crawler.crawl(base_url), crawler


# --------------------------------------------------------------------------- #
#                               Link helpers                                  #
# --------------------------------------------------------------------------- #


def test_extract_links_same_origin_in_order():
    html = (
        '<a href="/b">B</a><a href="http://example.com/a#top">A</a>'
        '<a href="https://other.com/x">X</a><a href="mailto:me@example.com">M</a>'
        '<a href="javascript:void(0)">J</a><a href="#section">S</a><a href="/b">B again</a>'
        '<a href="tel:123">T</a><a>no href</a>'
    )
    assert extract_links("http://example.com/", html) == [
        "http://example.com/b",
        "http://example.com/a",
    ]


def test_extract_links_resolves_relative_paths():
    html = '<a href="child">C</a><a href="../up">U</a>'
    assert extract_links("http://example.com/dir/page", html) == [
        "http://example.com/dir/child",
        "http://example.com/up",
    ]


def test_page_url_drops_fragment_and_adds_root_path():
    assert page_url("http://example.com") == "http://example.com/"
    assert page_url("http://example.com/a?q=1#frag") == "http://example.com/a?q=1"


# --------------------------------------------------------------------------- #
#                                 robots.txt                                  #
# --------------------------------------------------------------------------- #


def test_robots_longest_match_wins():
    rules = RobotsTxtRules("User-agent: *\nDisallow: /private\nAllow: /private/open\n")
    assert rules.can_fetch("Any", "/public") is True
    assert rules.can_fetch("Any", "/private/secret") is False
    assert rules.can_fetch("Any", "/private/open/page") is True


def test_robots_specific_agent_group_overrides_wildcard():
    text = (
        "User-agent: *\nDisallow: /\n\n"
        "User-agent: BotA\nUser-agent: TestAgent\nDisallow: /admin\n"
    )
    rules = RobotsTxtRules(text)
    assert rules.can_fetch("TestAgent/1.0", "/page") is True
    assert rules.can_fetch("TestAgent/1.0", "/admin/users") is False
    assert rules.can_fetch("OtherBot", "/page") is False


def test_robots_empty_disallow_allows_all():
    rules = RobotsTxtRules("User-agent: *\nDisallow:\n")
    assert rules.can_fetch("Any", "/anything") is True


# --------------------------------------------------------------------------- #
#                            Test-server fixtures                             #
# --------------------------------------------------------------------------- #


@pytest_asyncio.fixture
async def test_server_chain(unused_tcp_port: int) -> AsyncIterator[str]:
    app = web.Application()

    async def handle_root(_):
        return web.Response(
            text='<a href="/page1">Page1</a><a href="/page1#dup">Again</a>'
                 '<a href="http://external.test/">Ext</a>',
            content_type="text/html",
        )

    async def handle_page1(_):
        return web.Response(text='<a href="/page2">Page2</a>', content_type="text/html")

    async def handle_page2(_):
        return web.Response(text='<a href="/page3">Page3</a>', content_type="text/html")

    async def handle_page3(_):
        return web.Response(text="<h1>Page3</h1>", content_type="text/html")

    async def handle_robots(_):
        return web.Response(text="User-agent: *\nDisallow:", content_type="text/plain")

    app.router.add_get("/", handle_root)
    app.router.add_get("/page1", handle_page1)
    app.router.add_get("/page2", handle_page2)
    app.router.add_get("/page3", handle_page3)
    app.router.add_get("/robots.txt", handle_robots)

    async for url in serve_app(app, unused_tcp_port):
        yield url


@pytest_asyncio.fixture
async def test_server_block_page1(unused_tcp_port: int) -> AsyncIterator[str]:
    app = web.Application()

    async def handle_root(_):
        return web.Response(
            text='<a href="/page1">Page1</a><a href="/page2">Page2</a>', content_type="text/html"
        )

    async def handle_page(_):
        return web.Response(text="<html><body>Page</body></html>", content_type="text/html")

    async def handle_robots(_):
        return web.Response(
            text="User-agent: TestAgent/1.0\nDisallow: /page1", content_type="text/plain"
        )

    app.router.add_get("/", handle_root)
    app.router.add_get("/page1", handle_page)
    app.router.add_get("/page2", handle_page)
    app.router.add_get("/robots.txt", handle_robots)

    async for url in serve_app(app, unused_tcp_port):
        yield url


@pytest_asyncio.fixture
async def test_server_large(unused_tcp_port: int) -> AsyncIterator[str]:
    app = web.Application()
    links = "".join(f'<a href="/page{i}">Page{i}</a>' for i in range(1, STRESS_PAGES))

    async def handle_root(_):
        return web.Response(text=links, content_type="text/html")

    app.router.add_get("/", handle_root)

    async for url in serve_app(app, unused_tcp_port):
        yield url


@pytest_asyncio.fixture
async def test_server_broken_root(unused_tcp_port: int) -> AsyncIterator[str]:
    app = web.Application()

    async def handle_root(_):
        return web.Response(status=500, text="boom")

    app.router.add_get("/", handle_root)

    async for url in serve_app(app, unused_tcp_port):
        yield url


# --------------------------------------------------------------------------- #
#                                   Tests                                     #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_default_depth_returns_seed_and_its_links(test_server_chain: str):
    urls, _ = await run_crawler(test_server_chain, CrawlConfig())
    assert urls == [f"{test_server_chain}/", f"{test_server_chain}/page1"]


@pytest.mark.asyncio()
async def test_deeper_crawl_follows_links(test_server_chain: str):
    urls, _ = await run_crawler(test_server_chain, CrawlConfig(max_depth=3))
    assert urls == [
        f"{test_server_chain}/",
        f"{test_server_chain}/page1",
        f"{test_server_chain}/page2",
        f"{test_server_chain}/page3",
    ]


@pytest.mark.asyncio()
async def test_zero_depth_returns_only_seed(test_server_chain: str):
    urls, _ = await run_crawler(test_server_chain, CrawlConfig(max_depth=0))
    assert urls == [f"{test_server_chain}/"]


@pytest.mark.asyncio()
async def test_robots_disallow_respected(test_server_block_page1: str):
    urls, crawler = await run_crawler(test_server_block_page1, CrawlConfig())
    assert f"{test_server_block_page1}/page1" not in urls
    assert f"{test_server_block_page1}/page2" in urls
    assert crawler.disallowed_pages == [f"{test_server_block_page1}/page1"]


@pytest.mark.asyncio()
async def test_robots_can_be_ignored(test_server_block_page1: str):
    urls, _ = await run_crawler(test_server_block_page1, CrawlConfig(respect_robots=False))
    assert f"{test_server_block_page1}/page1" in urls


@pytest.mark.asyncio()
async def test_repeated_crawl_starts_fresh(test_server_block_page1: str):
    async with ClientSession(timeout=ClientTimeout(total=2)) as session:
        crawler = SiteCrawler(session, CrawlConfig(), user_agent="TestAgent/1.0")
        await crawler.crawl(test_server_block_page1)
        await crawler.crawl(test_server_block_page1)
        assert crawler.disallowed_pages == [f"{test_server_block_page1}/page1"]

        # rules fetched by an earlier run do not outlive it
        crawler.config = CrawlConfig(respect_robots=False)
        urls = await crawler.crawl(test_server_block_page1)
    assert f"{test_server_block_page1}/page1" in urls
    assert crawler.robots_rules is None
    assert crawler.disallowed_pages == []


@pytest.mark.asyncio()
async def test_max_pages_caps_result(test_server_large: str):
    urls, _ = await run_crawler(test_server_large, CrawlConfig(max_pages=10))
    assert len(urls) == 10
    assert urls[0] == f"{test_server_large}/"


@pytest.mark.asyncio()
async def test_missing_robots_allows_everything(test_server_large: str):
    urls, crawler = await run_crawler(test_server_large, CrawlConfig())
    assert len(urls) == STRESS_PAGES
    assert crawler.robots_rules is None


@pytest.mark.asyncio()
async def test_broken_seed_returns_empty(test_server_broken_root: str):
    urls, _ = await run_crawler(test_server_broken_root, CrawlConfig())
    assert urls == []


@pytest.mark.asyncio()
async def test_unreachable_site_returns_empty(unused_tcp_port: int):
    urls, _ = await run_crawler(f"http://localhost:{unused_tcp_port}", CrawlConfig())
    assert urls == []
