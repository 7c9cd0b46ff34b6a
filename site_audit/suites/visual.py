"""
Visual regression suite
=======================

Captures the rendered page per strategy (mobile/desktop viewports) via the
Lighthouse ``final-screenshot`` audit and compares it with a stored
reference image. The first run for a page stores the reference; later
runs fail a viewport whose pixel mismatch exceeds the threshold.
"""
from __future__ import annotations

import asyncio
import base64
import binascii
import hashlib
import re
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from PIL import Image, ImageChops, UnidentifiedImageError

from site_audit.errors import SuiteInvocationFault
from site_audit.models import SuiteName
from site_audit.suites.base import SuiteContext, clamp_score, ratio, suite_handler
from site_audit.suites.pagespeed import fetch_pagespeed, final_screenshot

#: per-channel difference tolerated as anti-aliasing noise
PIXEL_TOLERANCE = 16


def page_slug(url: str) -> str:
    """Filesystem-safe, collision-resistant directory name for *url*."""
    parsed = urlparse(url)
    readable = re.sub(r"[^A-Za-z0-9]+", "-", f"{parsed.netloc}{parsed.path}").strip("-")[:80]
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:10]
    return f"{readable or 'page'}-{digest}"


def decode_screenshot(data_uri: str) -> Image.Image:
    _, _, encoded = data_uri.partition(",")
    try:
        raw = base64.b64decode(encoded or data_uri, validate=False)
        return Image.open(BytesIO(raw)).convert("RGB")
    except (binascii.Error, UnidentifiedImageError) as exc:
        raise SuiteInvocationFault(f"Unreadable screenshot: {exc}") from exc


def mismatch_percent(reference: Image.Image, candidate: Image.Image) -> float:
    """Share of pixels (percent) differing by more than the tolerance; 100 on size change."""
    if reference.size != candidate.size:
        return 100.0
    diff = ImageChops.difference(reference, candidate).convert("L")
    histogram = diff.histogram()
    changed = sum(histogram[PIXEL_TOLERANCE + 1:])
    total = reference.size[0] * reference.size[1]
    return round(changed / total * 100, 3) if total else 0.0


def compare_with_reference(
    image: Image.Image, reference_path: Path, threshold: float
) -> Dict[str, Any]:
    """Store *image* as the reference when none exists, otherwise diff against it."""
    if not reference_path.exists():
        reference_path.parent.mkdir(parents=True, exist_ok=True)
        image.save(reference_path, format="PNG")
        return {"status": "reference", "mismatch": 0.0, "reference_image": str(reference_path)}

    with Image.open(reference_path) as stored:
        reference = stored.convert("RGB")
    mismatch = mismatch_percent(reference, image)
    result: Dict[str, Any] = {
        "status": "pass" if mismatch <= threshold else "fail",
        "mismatch": mismatch,
        "reference_image": str(reference_path),
    }
    if result["status"] == "fail":
        test_path = reference_path.with_name(f"{reference_path.stem}.test.png")
        image.save(test_path, format="PNG")
        result["test_image"] = str(test_path)
    return result


@suite_handler(SuiteName.VISUAL)
async def run_visual(url: str, context: SuiteContext) -> Dict[str, Any]:
    config = context.config.visual
    page_dir = Path(config.baseline_dir) / page_slug(url)
    details: List[Dict[str, Any]] = []
    for strategy in config.strategies:
        response = await fetch_pagespeed(context, url, strategy, categories=["performance"])
        data_uri: Optional[str] = final_screenshot(response)
        if not data_uri:
            raise SuiteInvocationFault(f"No screenshot captured for {url} ({strategy})")
        image = decode_screenshot(data_uri)
        outcome = await asyncio.to_thread(
            compare_with_reference, image, page_dir / f"{strategy}.png", config.mismatch_threshold
        )
        details.append({"viewport": strategy, **outcome})

    passed = sum(1 for d in details if d["status"] != "fail")
    return {
        "score": clamp_score(ratio(passed, len(details)) * 100),
        "summary": {"total": len(details), "passed": passed, "failed": len(details) - passed},
        "details": details,
    }
