# File: site_audit/models.py
"""site_audit.models: Data types flowing through discovery, orchestration and aggregation."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class SuiteName(str, Enum):
    """Closed set of audit suites, in priority order."""

    ACCESSIBILITY = "accessibility"
    SEO = "seo"
    PERFORMANCE = "performance"
    VISUAL = "visual"
    LANGUAGE = "language"
    HEADERS = "headers"

    def __str__(self) -> str:
        return self.value


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def _freeze(value: Any) -> Any:
    """Read-only copy of nested payload data: mappings become proxies, lists tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


@dataclass(frozen=True, slots=True)
class SuiteResult:
    """Outcome of one cell: a payload on success or an error message on failure."""

    suite: SuiteName
    url: str
    timestamp: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", _freeze(self.payload))

    @classmethod
    def success(cls, suite: SuiteName, url: str, payload: Mapping[str, Any]) -> SuiteResult:
        return cls(suite=suite, url=url, timestamp=utc_timestamp(), payload=payload)

    @classmethod
    def failure(cls, suite: SuiteName, url: str, error: str) -> SuiteResult:
        return cls(suite=suite, url=url, timestamp=utc_timestamp(), error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def score(self) -> Optional[float]:
        """Numeric score of a successful result, ``None`` if absent or errored."""
        if not self.ok:
            return None
        value = self.payload.get("score")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return float(value)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"url": self.url, "timestamp": self.timestamp}
        if self.ok:
            data.update(_thaw(self.payload))
        else:
            data["error"] = self.error
        return data


#: suite -> one result per URL, in URL collection order
RunResults = Dict[SuiteName, List[SuiteResult]]


@dataclass(frozen=True, slots=True)
class SuiteSummary:
    """Numeric roll-up of one suite across all URLs."""

    runs: int
    failures: int
    scored: int
    mean_score: Optional[float] = None
    min_score: Optional[float] = None
    max_score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "runs": self.runs,
            "failures": self.failures,
            "scored": self.scored,
            "mean_score": self.mean_score,
            "min_score": self.min_score,
            "max_score": self.max_score,
        }


@dataclass(frozen=True, slots=True)
class Report:
    """Run-level report: metadata, per-suite summary and every cell verbatim."""

    base_url: str
    started_at: str
    generated_at: str
    url_count: int
    urls: Tuple[str, ...]
    suites: Tuple[SuiteName, ...]
    summary: Mapping[SuiteName, SuiteSummary]
    results: Mapping[SuiteName, Tuple[SuiteResult, ...]]

    def __post_init__(self) -> None:
        object.__setattr__(self, "summary", MappingProxyType(dict(self.summary)))
        object.__setattr__(
            self,
            "results",
            MappingProxyType({name: tuple(rows) for name, rows in self.results.items()}),
        )

    @property
    def total_failures(self) -> int:
        return sum(s.failures for s in self.summary.values())

    def failed_cells(self) -> List[SuiteResult]:
        """Every errored cell, suite order then URL order."""
        return [r for name in self.suites for r in self.results.get(name, ()) if not r.ok]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_url": self.base_url,
            "started_at": self.started_at,
            "generated_at": self.generated_at,
            "url_count": self.url_count,
            "urls": list(self.urls),
            "suites": [s.value for s in self.suites],
            "summary": {s.value: self.summary[s].to_dict() for s in self.suites},
            "results": {
                s.value: [r.to_dict() for r in self.results.get(s, ())] for s in self.suites
            },
        }

    def json(self, *, pretty: bool = False) -> str:
        """Canonical JSON representation; identical reports serialise identically."""
        return json.dumps(
            self.to_dict(),
            ensure_ascii=False,
            sort_keys=True,
            indent=2 if pretty else None,
            default=str,
        )


__all__ = [
    "SuiteName",
    "SuiteResult",
    "SuiteSummary",
    "RunResults",
    "Report",
    "utc_timestamp",
]
