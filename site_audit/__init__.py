# site_audit/__init__.py
"""
SiteAudit package initializer.
Defines package version and exposes the public API and CLI.
"""
__version__ = "0.1.0"

from site_audit.engine import AuditOutcome, Engine, run_audit  # noqa: E402
from site_audit.models import Report, SuiteName, SuiteResult  # noqa: E402

# Expose CLI entry point
from site_audit.cli import cli as main_cli  # noqa: E402

__all__ = [
    "__version__",
    "AuditOutcome",
    "Engine",
    "run_audit",
    "Report",
    "SuiteName",
    "SuiteResult",
    "main_cli",
]
