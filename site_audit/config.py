# === FILE: site_audit/config.py ===
"""
Loading and validation of the SiteAudit run configuration.
The schema is described with Pydantic; files may be YAML or JSON.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_validator,
    model_validator,
)


class CrawlConfig(BaseModel):
    """Fallback crawler limits."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_depth: int = Field(1, ge=0, description="Link hops followed from the seed page.")
    max_pages: int = Field(200, ge=1, description="Hard limit on discovered pages.")
    respect_robots: bool = Field(True, description="Skip paths disallowed by robots.txt.")


class PerformanceConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    api_url: str = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
    api_key: Optional[str] = None
    timeout: float = Field(60.0, gt=0, description="Timeout per PageSpeed API call (seconds).")
    strategy: str = Field("mobile", pattern="^(mobile|desktop)$")
    categories: List[str] = Field(
        default_factory=lambda: ["performance", "accessibility", "best-practices", "seo"]
    )


class LanguageConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    api_url: str = "https://api.languagetool.org/v2/check"
    language: str = "en-US"
    disabled_rules: List[str] = Field(default_factory=lambda: ["WHITESPACE_RULE"])
    max_chars: int = Field(20000, ge=1, description="Text per request is truncated to this size.")


class VisualConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    baseline_dir: Path = Path("reports/visual/reference")
    strategies: List[str] = Field(default_factory=lambda: ["mobile", "desktop"], min_length=1)
    mismatch_threshold: float = Field(0.1, ge=0, le=100, description="Allowed mismatch, percent.")


class EmailConfig(BaseModel):
    """SendGrid delivery settings for the report notifier."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    api_key: Optional[str] = Field(None, description="SendGrid API key; SENDGRID_API_KEY if unset.")
    sender: str
    recipients: List[str] = Field(..., min_length=1)
    subject: str = "Site audit report"


class AuditConfig(BaseModel):
    """Configuration for one audit run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: HttpUrl = Field(..., description="Root URL of the audited site.")
    suites: Optional[List[str]] = Field(None, description="Suite selection; None runs all.")
    timeout: float = Field(15.0, gt=0, description="Timeout per HTTP request (seconds).")
    suite_timeout: float = Field(120.0, gt=0, description="Timeout per suite invocation (seconds).")
    concurrency: int = Field(1, ge=1, description="Cells executed at the same time.")
    user_agent: str = Field("SiteAuditBot/1.0", min_length=1, description="User-Agent header.")
    crawl: CrawlConfig = Field(default_factory=CrawlConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    language: LanguageConfig = Field(default_factory=LanguageConfig)
    visual: VisualConfig = Field(default_factory=VisualConfig)
    report_dir: Optional[Path] = Field(Path("reports"), description="Where report JSON is written.")
    email: Optional[EmailConfig] = None

    @field_validator("base_url", mode="before")
    def _strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @model_validator(mode="before")
    @classmethod
    def _apply_env_overrides(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        api_key = os.environ.get("PAGESPEED_API_KEY")
        if api_key:
            perf = dict(data.get("performance") or {})
            perf.setdefault("api_key", api_key)
            data["performance"] = perf
        lt_url = os.environ.get("LANGUAGE_TOOL_URL")
        if lt_url:
            lang = dict(data.get("language") or {})
            lang.setdefault("api_url", lt_url)
            data["language"] = lang
        sendgrid_key = os.environ.get("SENDGRID_API_KEY")
        if sendgrid_key and isinstance(data.get("email"), dict):
            email = dict(data["email"])
            email.setdefault("api_key", sendgrid_key)
            data["email"] = email
        return data

    @property
    def site_url(self) -> str:
        """Base URL as a plain string without trailing slash."""
        return str(self.base_url).rstrip("/")


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> AuditConfig:
    """
    Read YAML or JSON and return a validated AuditConfig.
    Raises FileNotFoundError when the file is missing.
    """
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(DEFAULT_CONFIG_PATH))
        path_obj = DEFAULT_CONFIG_PATH
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return AuditConfig(**data)


__all__ = [
    "AuditConfig",
    "CrawlConfig",
    "EmailConfig",
    "LanguageConfig",
    "PerformanceConfig",
    "VisualConfig",
    "ValidationError",
    "load_config",
]
