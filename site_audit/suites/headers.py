"""
HTTP headers suite
==================

Checks security and caching response headers of a page. Each expected
header is reported as present (valid value), invalid (present, bad value)
or missing (only when required).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping

from site_audit.models import SuiteName
from site_audit.suites.base import SuiteContext, fetch_page, suite_handler


@dataclass(frozen=True)
class HeaderRule:
    required: bool
    description: str
    validate: Callable[[str], bool]


SECURITY_HEADERS: Dict[str, HeaderRule] = {
    "Strict-Transport-Security": HeaderRule(
        True, "Ensures the browser only connects via HTTPS", lambda v: "max-age=" in v.lower()
    ),
    "Content-Security-Policy": HeaderRule(
        True, "Controls which resources the browser is allowed to load", lambda v: bool(v.strip())
    ),
    "X-Content-Type-Options": HeaderRule(
        True, "Prevents MIME type sniffing", lambda v: v.strip().lower() == "nosniff"
    ),
    "X-Frame-Options": HeaderRule(
        True, "Prevents clickjacking attacks", lambda v: v.strip().upper() in ("DENY", "SAMEORIGIN")
    ),
    "X-XSS-Protection": HeaderRule(
        False, "Enables browser XSS filtering", lambda v: v.strip().startswith("1")
    ),
    "Referrer-Policy": HeaderRule(
        True, "Controls how much referrer information is sent", lambda v: bool(v.strip())
    ),
    "Permissions-Policy": HeaderRule(
        False, "Controls which features and APIs can be used", lambda v: bool(v.strip())
    ),
}

CACHE_HEADERS: Dict[str, HeaderRule] = {
    "Cache-Control": HeaderRule(
        True, "Caching directives for requests and responses", lambda v: bool(v.strip())
    ),
    "ETag": HeaderRule(False, "Validator for conditional requests", lambda v: bool(v.strip())),
}

WEIGHTS = {"security": 0.6, "cache": 0.4}


def check_headers(headers: Mapping[str, str], rules: Dict[str, HeaderRule]) -> Dict[str, List[Dict[str, str]]]:
    lowered = {k.lower(): v for k, v in headers.items()}
    results: Dict[str, List[Dict[str, str]]] = {"present": [], "missing": [], "invalid": []}
    for header, rule in rules.items():
        value = lowered.get(header.lower())
        if not value:
            if rule.required:
                results["missing"].append({"header": header, "description": rule.description})
            continue
        bucket = "present" if rule.validate(value) else "invalid"
        results[bucket].append({"header": header, "value": value, "description": rule.description})
    return results


def category_score(results: Dict[str, List[Dict[str, str]]], total: int) -> float:
    present = len(results["present"]) / total
    invalid_penalty = len(results["invalid"]) / total * 0.5
    return max(0.0, present - invalid_penalty)


def analyze_headers(headers: Mapping[str, str], status: int) -> Dict[str, Any]:
    lowered = {k.lower(): v for k, v in headers.items()}
    security = check_headers(headers, SECURITY_HEADERS)
    cache = check_headers(headers, CACHE_HEADERS)
    score = round(
        (
            category_score(security, len(SECURITY_HEADERS)) * WEIGHTS["security"]
            + category_score(cache, len(CACHE_HEADERS)) * WEIGHTS["cache"]
        )
        * 100
    )
    return {
        "score": score,
        "status_code": status,
        "summary": {
            name: {
                "total": len(rules),
                "present": len(found["present"]),
                "missing": len(found["missing"]),
                "invalid": len(found["invalid"]),
            }
            for name, rules, found in (
                ("security", SECURITY_HEADERS, security),
                ("cache", CACHE_HEADERS, cache),
            )
        },
        "details": {
            "security": security,
            "cache": cache,
            "other": {
                "server": lowered.get("server"),
                "powered_by": lowered.get("x-powered-by"),
                "compression": lowered.get("content-encoding"),
                "content_type": lowered.get("content-type"),
            },
        },
    }


@suite_handler(SuiteName.HEADERS)
async def run_headers(url: str, context: SuiteContext) -> Dict[str, Any]:
    page = await fetch_page(context, url, allow_errors=True)
    return analyze_headers(page.headers, page.status)
