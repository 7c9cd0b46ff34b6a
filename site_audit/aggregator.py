# File: site_audit/aggregator.py
"""site_audit.aggregator: Builds the run-level Report from per-suite results."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from site_audit.models import Report, RunResults, SuiteName, SuiteResult, SuiteSummary

__all__ = ["aggregate_results", "summarize_suite"]


def _clamp(score: float) -> float:
    return max(0.0, min(100.0, score))


def summarize_suite(results: Sequence[SuiteResult]) -> SuiteSummary:
    """Score statistics over successful results; errors only count as failures."""
    failures = sum(1 for r in results if not r.ok)
    scores: List[float] = [_clamp(s) for s in (r.score for r in results) if s is not None]
    if not scores:
        return SuiteSummary(runs=len(results), failures=failures, scored=0)
    return SuiteSummary(
        runs=len(results),
        failures=failures,
        scored=len(scores),
        mean_score=round(sum(scores) / len(scores), 2),
        min_score=min(scores),
        max_score=max(scores),
    )


def _executed_suites(
    run_results: RunResults, suites: Optional[Iterable[SuiteName]]
) -> Tuple[SuiteName, ...]:
    """Selection intersected with the suites that have result lists, in registry order."""
    wanted = set(run_results) if suites is None else set(suites) & set(run_results)
    return tuple(name for name in SuiteName if name in wanted)


def aggregate_results(
    run_results: RunResults,
    *,
    urls: Sequence[str],
    base_url: str,
    started_at: str,
    generated_at: Optional[str] = None,
    suites: Optional[Iterable[SuiteName]] = None,
) -> Report:
    """Collect every cell into an immutable Report.

    Pure: the same inputs always give an equal Report with identical JSON.
    """
    executed = _executed_suites(run_results, suites)
    summary: Dict[SuiteName, SuiteSummary] = {
        name: summarize_suite(run_results[name]) for name in executed
    }
    return Report(
        base_url=base_url,
        started_at=started_at,
        generated_at=generated_at or started_at,
        url_count=len(urls),
        urls=tuple(urls),
        suites=executed,
        summary=summary,
        results={name: tuple(run_results[name]) for name in executed},
    )
