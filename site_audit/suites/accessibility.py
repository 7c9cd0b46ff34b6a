"""
Accessibility suite
===================

Static WCAG 2.1 checks over the served HTML: page language, title,
heading structure, text alternatives, link and button names, form labels
and duplicate ids. Computed-style checks (contrast, focus order) need a
browser and are not covered here.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from bs4 import BeautifulSoup

from site_audit.models import SuiteName
from site_audit.suites.base import SuiteContext, clamp_score, fetch_page, suite_handler

SEVERITY_PENALTY = {"critical": 20, "high": 12, "medium": 6, "low": 2}
#: level A failures weigh more than AA/AAA
LEVEL_A_FACTOR = 1.5


@dataclass
class AccessibilityIssue:
    """A single WCAG finding."""
    wcag_criterion: str
    level: str  # A, AA, AAA
    severity: str  # critical, high, medium, low
    title: str
    description: str
    element: str


def check_language(soup: BeautifulSoup) -> List[AccessibilityIssue]:
    """WCAG 3.1.1: Language of Page (Level A)"""
    html_tag = soup.find("html")
    if html_tag is not None and str(html_tag.get("lang", "")).strip():
        return []
    return [AccessibilityIssue(
        "3.1.1", "A", "high", "Missing page language",
        "HTML element lacks lang attribute", "<html>",
    )]


def check_title(soup: BeautifulSoup) -> List[AccessibilityIssue]:
    """WCAG 2.4.2: Page Titled (Level A)"""
    title = soup.find("title")
    if title is not None and title.get_text(strip=True):
        return []
    return [AccessibilityIssue(
        "2.4.2", "A", "high", "Missing page title", "Page has no <title> text", "<head>",
    )]


def check_headings(soup: BeautifulSoup) -> List[AccessibilityIssue]:
    """WCAG 1.3.1: Info and Relationships (Level A)"""
    headings = soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"])
    if not headings:
        return [AccessibilityIssue(
            "1.3.1", "A", "medium", "No heading structure",
            "Page has no heading elements", "<body>",
        )]

    issues: List[AccessibilityIssue] = []
    previous = 0
    for heading in headings:
        level = int(heading.name[1])
        if previous and level - previous > 1:
            issues.append(AccessibilityIssue(
                "1.3.1", "A", "low", "Skipped heading level",
                f"Heading level skipped from H{previous} to H{level}", f"<h{level}>",
            ))
            break
        previous = level

    empty = [h for h in headings if not h.get_text(strip=True)]
    if empty:
        issues.append(AccessibilityIssue(
            "1.3.1", "A", "medium", "Empty headings found",
            f"{len(empty)} heading(s) have no text", "<h*>",
        ))
    return issues


def check_images(soup: BeautifulSoup) -> List[AccessibilityIssue]:
    """WCAG 1.1.1: Non-text Content (Level A)"""
    missing = [img for img in soup.find_all("img") if img.get("alt") is None]
    if not missing:
        return []
    return [AccessibilityIssue(
        "1.1.1", "A", "critical", "Images missing alt text",
        f"{len(missing)} image(s) lack alt attribute", "<img>",
    )]


def check_links(soup: BeautifulSoup) -> List[AccessibilityIssue]:
    """WCAG 2.4.4: Link Purpose (Level A) and 4.1.2 button names."""
    issues: List[AccessibilityIssue] = []
    empty_links = [
        a for a in soup.find_all("a", href=True)
        if not a.get_text(strip=True)
        and not str(a.get("aria-label", "")).strip()
        and not a.find("img", alt=lambda v: bool(v and v.strip()))
    ]
    if empty_links:
        issues.append(AccessibilityIssue(
            "2.4.4", "A", "high", "Empty links found",
            f"{len(empty_links)} link(s) have no accessible text", "<a>",
        ))

    empty_buttons = [
        b for b in soup.find_all("button")
        if not b.get_text(strip=True) and not str(b.get("aria-label", "")).strip()
    ]
    if empty_buttons:
        issues.append(AccessibilityIssue(
            "4.1.2", "A", "high", "Buttons without accessible name",
            f"{len(empty_buttons)} button(s) have no text or aria-label", "<button>",
        ))
    return issues


def check_forms(soup: BeautifulSoup) -> List[AccessibilityIssue]:
    """WCAG 1.3.1 / 3.3.2: form inputs carry labels."""
    inputs = [
        i for i in soup.find_all(["input", "textarea", "select"])
        if i.get("type") not in ("hidden", "submit", "button", "reset", "image")
    ]
    unlabeled = []
    for field in inputs:
        field_id = field.get("id")
        labelled = (
            field.get("aria-label")
            or field.get("aria-labelledby")
            or field.get("title")
            or (field_id and soup.find("label", attrs={"for": field_id}))
            or field.find_parent("label")
        )
        if not labelled:
            unlabeled.append(field)
    if not unlabeled:
        return []
    return [AccessibilityIssue(
        "1.3.1", "A", "critical", "Form inputs without labels",
        f"{len(unlabeled)} input(s) lack proper labels", "<input>",
    )]


def check_duplicate_ids(soup: BeautifulSoup) -> List[AccessibilityIssue]:
    """WCAG 4.1.1: Parsing (Level A)"""
    counts = Counter(tag["id"] for tag in soup.find_all(id=True))
    duplicated = sorted(i for i, n in counts.items() if n > 1)
    if not duplicated:
        return []
    return [AccessibilityIssue(
        "4.1.1", "A", "medium", "Duplicate id attributes",
        f"Duplicated ids: {', '.join(duplicated[:10])}", "[id]",
    )]


CHECKS = (
    check_language,
    check_title,
    check_headings,
    check_images,
    check_links,
    check_forms,
    check_duplicate_ids,
)


def score_issues(issues: List[AccessibilityIssue]) -> float:
    score = 100.0
    for issue in issues:
        penalty = SEVERITY_PENALTY.get(issue.severity, 0)
        if issue.level == "A":
            penalty *= LEVEL_A_FACTOR
        score -= penalty
    return clamp_score(score)


def analyze_html(html: str) -> Dict[str, Any]:
    """Run every check over *html* and build the suite payload."""
    soup = BeautifulSoup(html, "html.parser")
    issues: List[AccessibilityIssue] = []
    passed: List[str] = []
    for check in CHECKS:
        found = check(soup)
        if found:
            issues.extend(found)
        else:
            passed.append(check.__name__.removeprefix("check_"))

    by_level = Counter(issue.level for issue in issues)
    return {
        "score": score_issues(issues),
        "summary": {
            "issues": len(issues),
            "level_a": by_level.get("A", 0),
            "level_aa": by_level.get("AA", 0),
            "level_aaa": by_level.get("AAA", 0),
        },
        "passed_checks": passed,
        "issues": [asdict(issue) for issue in issues],
    }


@suite_handler(SuiteName.ACCESSIBILITY)
async def run_accessibility(url: str, context: SuiteContext) -> Dict[str, Any]:
    page = await fetch_page(context, url)
    return analyze_html(page.html)
