# File: site_audit/suites/__init__.py
"""site_audit.suites: Independent audit suites and the registry that dispatches to them."""

from .base import SuiteContext, SuiteHandler, suite_handler
from .registry import DEFAULT_HANDLERS, SuiteRegistry, default_registry

__all__ = [
    "SuiteContext",
    "SuiteHandler",
    "suite_handler",
    "SuiteRegistry",
    "DEFAULT_HANDLERS",
    "default_registry",
]
