# site_audit/discovery/robots.py
"""
Parser and checker for robots.txt rules used by the fallback crawler.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class RobotsTxtRules:
    """Parser and checker for robots.txt rules."""

    def __init__(self, text: str) -> None:
        self.groups: List[Dict[str, Any]] = []
        self._parse(text)

    def can_fetch(self, user_agent: str, path: str) -> bool:
        """Return True if *user_agent* may fetch *path*; the longest matching rule wins."""
        group = self._match_group(user_agent)
        if not group:
            return True
        best_len = -1
        allowed = True
        for directive, rule in group["directives"]:
            if path.startswith(rule) and (
                len(rule) > best_len or (len(rule) == best_len and directive == "allow")
            ):
                best_len = len(rule)
                allowed = directive == "allow"
        return allowed

    def _parse(self, text: str) -> None:
        """Parse robots.txt content into user-agent groups and directives."""
        current: Optional[Dict[str, Any]] = None
        for line in text.splitlines():
            line = line.split("#", 1)[0].strip()
            if not line:
                continue
            key, _, val = line.partition(":")
            key = key.strip().lower()
            val = val.strip()
            if key == "user-agent":
                # consecutive User-agent lines share one group
                if current is None or current["directives"]:
                    current = {"agents": [], "directives": []}
                    self.groups.append(current)
                current["agents"].append(val.lower())
            elif key in ("allow", "disallow") and current is not None:
                # empty Disallow means allow all
                if not val:
                    continue
                current["directives"].append((key, val))

    def _match_group(self, ua: str) -> Optional[Dict[str, Any]]:
        """Select the group naming this user-agent, else the ``*`` group."""
        ua = ua.lower()
        for group in self.groups:
            if any(agent != "*" and ua.startswith(agent) for agent in group["agents"]):
                return group
        for group in self.groups:
            if "*" in group["agents"]:
                return group
        return None
