"""
Performance suite
=================

Runs Lighthouse through the PageSpeed Insights API and reports category
scores and lab metrics. The suite ``score`` is the performance category.
"""
from __future__ import annotations

from typing import Any, Dict

from site_audit.errors import SuiteInvocationFault
from site_audit.models import SuiteName
from site_audit.suites.base import SuiteContext, suite_handler
from site_audit.suites.pagespeed import category_scores, fetch_pagespeed, lab_metrics


@suite_handler(SuiteName.PERFORMANCE)
async def run_performance(url: str, context: SuiteContext) -> Dict[str, Any]:
    strategy = context.config.performance.strategy
    response = await fetch_pagespeed(context, url, strategy)
    scores = category_scores(response)
    if scores.get("performance") is None:
        raise SuiteInvocationFault("Lighthouse returned no performance score")
    return {
        "score": scores["performance"],
        "strategy": strategy,
        "scores": scores,
        "metrics": lab_metrics(response),
        "lighthouse_version": response.get("lighthouseResult", {}).get("lighthouseVersion"),
    }
