# File: tests/test_orchestrator.py
from __future__ import annotations

import asyncio
import random

import pytest
from helpers import fake_registry, scored_handler

from site_audit.models import SuiteName, SuiteResult
from site_audit.orchestrator import Orchestrator
from site_audit.suites.base import SuiteContext, suite_handler
from site_audit.suites.registry import SuiteRegistry

URLS = ["http://x.test/a", "http://x.test/b", "http://x.test/c"]


def test_concurrency_must_be_positive(suite_context):
    with pytest.raises(ValueError):
        Orchestrator(fake_registry(), suite_context, concurrency=0)


@pytest.mark.asyncio()
async def test_full_matrix_one_result_per_url(suite_context):
    results = await Orchestrator(fake_registry(), suite_context).run(URLS)
    assert list(results) == list(SuiteName)
    for name, rows in results.items():
        assert [r.url for r in rows] == URLS
        assert all(r.suite is name and r.ok for r in rows)


@pytest.mark.asyncio()
async def test_selection_limits_result_keys(suite_context):
    results = await Orchestrator(fake_registry(), suite_context).run(URLS, ["headers", "seo"])
    assert list(results) == [SuiteName.SEO, SuiteName.HEADERS]


@pytest.mark.asyncio()
async def test_empty_url_list_gives_empty_lists(suite_context):
    results = await Orchestrator(fake_registry(), suite_context).run([], ["seo"])
    assert results == {SuiteName.SEO: []}


@pytest.mark.asyncio()
async def test_failing_cell_does_not_stop_others(suite_context):
    registry = fake_registry(seo=scored_handler(SuiteName.SEO, fail_on=("http://x.test/b",)))
    results = await Orchestrator(registry, suite_context).run(URLS)

    seo = results[SuiteName.SEO]
    assert [r.ok for r in seo] == [True, False, True]
    assert seo[1].error == "seo exploded on http://x.test/b"
    assert seo[1].payload == {}
    for name in SuiteName:
        if name is not SuiteName.SEO:
            assert all(r.ok for r in results[name])


@pytest.mark.asyncio()
async def test_raw_exception_from_handler_is_isolated(suite_context):
    async def naked(url: str, context: SuiteContext) -> SuiteResult:
        raise KeyError("missing")

    registry = SuiteRegistry({SuiteName.SEO: naked, SuiteName.HEADERS: scored_handler(SuiteName.HEADERS)})
    results = await Orchestrator(registry, suite_context).run(URLS)
    assert all(not r.ok for r in results[SuiteName.SEO])
    assert results[SuiteName.SEO][0].error == "'missing'"
    assert all(r.ok for r in results[SuiteName.HEADERS])


@pytest.mark.asyncio()
async def test_exception_without_message_uses_type_name(suite_context):
    async def silent(url: str, context: SuiteContext) -> SuiteResult:
        raise RuntimeError()

    registry = SuiteRegistry({SuiteName.SEO: silent})
    results = await Orchestrator(registry, suite_context).run(URLS[:1])
    assert results[SuiteName.SEO][0].error == "RuntimeError"


@pytest.mark.asyncio()
async def test_non_result_return_becomes_failure(suite_context):
    async def sloppy(url: str, context: SuiteContext):
        return {"score": 1}

    registry = SuiteRegistry({SuiteName.SEO: sloppy})
    results = await Orchestrator(registry, suite_context).run(URLS[:1])
    assert results[SuiteName.SEO][0].error == "Suite returned dict instead of a result"


@pytest.mark.asyncio()
async def test_concurrent_run_keeps_url_order(suite_context):
    urls = URLS + ["http://x.test/d", "http://x.test/e", "http://x.test/f"]
    delays = {u: random.uniform(0, 0.05) for u in urls}

    @suite_handler(SuiteName.PERFORMANCE)
    async def jittery(url: str, context: SuiteContext):
        await asyncio.sleep(delays[url])
        return {"score": 50}

    registry = fake_registry(performance=jittery)
    results = await Orchestrator(registry, suite_context, concurrency=4).run(urls)

    for rows in results.values():
        assert [r.url for r in rows] == urls


@pytest.mark.asyncio()
async def test_concurrency_bound_is_respected(suite_context):
    running = 0
    peak = 0

    @suite_handler(SuiteName.SEO)
    async def tracked(url: str, context: SuiteContext):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        return {"score": 10}

    registry = SuiteRegistry({SuiteName.SEO: tracked})
    urls = [f"http://x.test/{i}" for i in range(10)]
    results = await Orchestrator(registry, suite_context, concurrency=3).run(urls)
    assert len(results[SuiteName.SEO]) == 10
    assert 1 < peak <= 3


@pytest.mark.asyncio()
async def test_sequential_mode_runs_url_by_url(suite_context):
    calls = []

    def recorder(name: SuiteName):
        @suite_handler(name)
        async def handler(url: str, context: SuiteContext):
            calls.append((url, name))
            return {}

        return handler

    registry = SuiteRegistry({SuiteName.SEO: recorder(SuiteName.SEO), SuiteName.HEADERS: recorder(SuiteName.HEADERS)})
    await Orchestrator(registry, suite_context).run(URLS[:2])
    assert calls == [
        (URLS[0], SuiteName.SEO),
        (URLS[0], SuiteName.HEADERS),
        (URLS[1], SuiteName.SEO),
        (URLS[1], SuiteName.HEADERS),
    ]
