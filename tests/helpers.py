# File: tests/helpers.py
"""Shared helpers: a throwaway aiohttp server and fake suite handlers."""
from collections.abc import AsyncIterator
from typing import Any, Dict, Mapping

from aiohttp import web

from site_audit.models import SuiteName
from site_audit.suites.base import SuiteContext, suite_handler
from site_audit.suites.registry import SuiteRegistry


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


def sitemap_xml(*locs: str) -> str:
    entries = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
        f"{entries}</urlset>"
    )


def scored_handler(name: SuiteName, score: float = 90.0, fail_on: tuple = ()):
    """Suite handler returning *score*, raising for URLs listed in *fail_on*."""

    @suite_handler(name)
    async def handler(url: str, context: SuiteContext) -> Mapping[str, Any]:
        if url in fail_on:
            raise RuntimeError(f"{name.value} exploded on {url}")
        return {"score": score, "checked": url}

    return handler


def fake_registry(**overrides) -> SuiteRegistry:
    """Registry with a scoring fake for every suite; keyword args replace handlers."""
    handlers: Dict[SuiteName, Any] = {name: scored_handler(name) for name in SuiteName}
    for key, handler in overrides.items():
        handlers[SuiteName(key)] = handler
    return SuiteRegistry(handlers)
