# File: site_audit/suites/registry.py
"""site_audit.suites.registry: Immutable table of suite name -> fault-isolated handler."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple, Union

from site_audit.errors import UnknownSuiteError
from site_audit.models import SuiteName, SuiteResult
from site_audit.suites.accessibility import run_accessibility
from site_audit.suites.base import SuiteContext, SuiteHandler
from site_audit.suites.headers import run_headers
from site_audit.suites.language import run_language
from site_audit.suites.performance import run_performance
from site_audit.suites.seo import run_seo
from site_audit.suites.visual import run_visual

__all__ = ["SuiteRegistry", "DEFAULT_HANDLERS", "default_registry"]

SuiteRef = Union[str, SuiteName]


class SuiteRegistry:
    """Lookup of registered suites; declaration order is priority order."""

    def __init__(self, handlers: Mapping[SuiteName, SuiteHandler]) -> None:
        ordered = sorted(handlers.items(), key=lambda item: list(SuiteName).index(item[0]))
        self._handlers: Mapping[SuiteName, SuiteHandler] = MappingProxyType(dict(ordered))

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def names(self) -> Tuple[SuiteName, ...]:
        return tuple(self._handlers)

    def resolve(self, selection: Optional[Iterable[SuiteRef]] = None) -> Tuple[SuiteName, ...]:
        """Validate *selection* and return it in registry order; empty means all suites.

        Raises UnknownSuiteError naming every unrecognised entry.
        """
        requested = [s for s in (selection or ()) if str(s).strip()]
        if not requested:
            return self.names()

        chosen = set()
        unknown = []
        for ref in requested:
            key = str(ref.value if isinstance(ref, SuiteName) else ref).strip().lower()
            match = next((n for n in self._handlers if n.value == key), None)
            if match is None:
                unknown.append(str(ref))
            else:
                chosen.add(match)
        if unknown:
            raise UnknownSuiteError(unknown, [n.value for n in self.names()])
        return tuple(n for n in self._handlers if n in chosen)

    async def invoke(self, name: SuiteName, url: str, context: SuiteContext) -> SuiteResult:
        try:
            handler = self._handlers[name]
        except KeyError:
            raise UnknownSuiteError([str(name)], [n.value for n in self.names()]) from None
        return await handler(url, context)


DEFAULT_HANDLERS: Mapping[SuiteName, SuiteHandler] = MappingProxyType({
    SuiteName.ACCESSIBILITY: run_accessibility,
    SuiteName.SEO: run_seo,
    SuiteName.PERFORMANCE: run_performance,
    SuiteName.VISUAL: run_visual,
    SuiteName.LANGUAGE: run_language,
    SuiteName.HEADERS: run_headers,
})


def default_registry() -> SuiteRegistry:
    return SuiteRegistry(DEFAULT_HANDLERS)
