# File: tests/conftest.py
import pytest

from site_audit.config import AuditConfig
from site_audit.suites.base import SuiteContext


@pytest.fixture()
def audit_config(tmp_path) -> AuditConfig:
    """
    Return a valid AuditConfig writing reports into a temporary directory.
    """
    return AuditConfig(
        base_url="http://example.com",
        timeout=2.0,
        suite_timeout=1.0,
        user_agent="TestAgent/1.0",
        report_dir=tmp_path / "reports",
        visual={"baseline_dir": str(tmp_path / "visual")},
    )


@pytest.fixture()
def suite_context(audit_config) -> SuiteContext:
    """
    Context for suites that never touch the network.
    """
    return SuiteContext(session=None, config=audit_config)  # type: ignore[arg-type]
