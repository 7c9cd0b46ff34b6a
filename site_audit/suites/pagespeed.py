# File: site_audit/suites/pagespeed.py
"""site_audit.suites.pagespeed: Minimal PageSpeed Insights (Lighthouse) API client."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from aiohttp import ClientTimeout

from site_audit.errors import SuiteInvocationFault
from site_audit.suites.base import SuiteContext

LAB_METRICS = (
    "first-contentful-paint",
    "largest-contentful-paint",
    "total-blocking-time",
    "cumulative-layout-shift",
    "speed-index",
    "interactive",
)


async def fetch_pagespeed(
    context: SuiteContext,
    url: str,
    strategy: str,
    categories: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """Return the raw ``runPagespeed`` response for *url* and *strategy*."""
    config = context.config.performance
    params: List[Tuple[str, str]] = [("url", url), ("strategy", strategy)]
    params.extend(("category", c) for c in (categories or config.categories))
    if config.api_key:
        params.append(("key", config.api_key))

    # Lighthouse runs take far longer than a page fetch
    timeout = ClientTimeout(total=config.timeout)
    try:
        async with context.session.get(config.api_url, params=params, timeout=timeout) as resp:
            if resp.status != 200:
                detail = ""
                try:
                    body = await resp.json(content_type=None)
                    detail = (body.get("error") or {}).get("message", "")
                except ValueError:
                    detail = (await resp.text())[:200]
                raise SuiteInvocationFault(
                    f"PageSpeed API HTTP {resp.status} for {url} ({strategy}): {detail}".rstrip(": ")
                )
            return await resp.json(content_type=None)
    except TimeoutError as exc:
        raise SuiteInvocationFault(
            f"PageSpeed API timed out after {config.timeout:g}s for {url} ({strategy})"
        ) from exc


def category_scores(response: Dict[str, Any]) -> Dict[str, Optional[float]]:
    """Lighthouse category scores scaled to 0–100 (None when Lighthouse gave none)."""
    categories = response.get("lighthouseResult", {}).get("categories", {})
    scores: Dict[str, Optional[float]] = {}
    for key, category in categories.items():
        raw = category.get("score")
        scores[key] = round(raw * 100, 2) if isinstance(raw, (int, float)) else None
    return scores


def lab_metrics(response: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    audits = response.get("lighthouseResult", {}).get("audits", {})
    metrics = {}
    for key in LAB_METRICS:
        audit = audits.get(key)
        if audit:
            metrics[key] = {
                "value": audit.get("numericValue"),
                "display": audit.get("displayValue"),
                "score": audit.get("score"),
            }
    return metrics


def final_screenshot(response: Dict[str, Any]) -> Optional[str]:
    """``data:`` URI of the final rendered viewport, if Lighthouse captured one."""
    audit = response.get("lighthouseResult", {}).get("audits", {}).get("final-screenshot", {})
    return (audit.get("details") or {}).get("data")
