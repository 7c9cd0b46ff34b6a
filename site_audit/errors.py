# File: site_audit/errors.py
"""site_audit.errors: Exception hierarchy shared by discovery, suites, engine and notifiers."""

from __future__ import annotations

from typing import Iterable

__all__ = [
    "SiteAuditError",
    "DiscoveryError",
    "FetchError",
    "ParseError",
    "SuiteInvocationFault",
    "UnknownSuiteError",
    "ReportDeliveryError",
    "describe_exception",
]


class SiteAuditError(Exception):
    """Base class for every error raised by SiteAudit."""


class DiscoveryError(SiteAuditError):
    """A discovery strategy could not produce URLs; the collector falls back."""


class FetchError(DiscoveryError):
    """HTTP request failed: network error, timeout or non-2xx status."""

    def __init__(self, url: str, reason: str, status: int | None = None) -> None:
        self.url = url
        self.status = status
        super().__init__(f"{url}: {reason}")


class ParseError(DiscoveryError):
    """Response body is not well-formed XML or lacks the expected structure."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        super().__init__(f"{url}: {reason}")


class SuiteInvocationFault(SiteAuditError):
    """Raised inside a suite when its upstream tool or API misbehaves."""


class UnknownSuiteError(SiteAuditError, ValueError):
    """A requested suite name is not registered."""

    def __init__(self, names: Iterable[str], valid: Iterable[str]) -> None:
        self.names = tuple(names)
        self.valid = tuple(valid)
        super().__init__(
            f"Unknown suite(s): {', '.join(self.names)}. "
            f"Valid suites: {', '.join(self.valid)}"
        )


class ReportDeliveryError(SiteAuditError):
    """The finished report could not be delivered by a notifier."""


def describe_exception(exc: BaseException) -> str:
    """Message stored in a failed SuiteResult: ``str(exc)`` or the type name if empty."""
    message = str(exc).strip()
    return message if message else type(exc).__name__
