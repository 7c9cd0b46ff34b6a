"""
Language suite
==============

Collects the visible copy of a page (headings, paragraphs, list items,
buttons, links, labels, submit values and the meta description) and
checks it with a LanguageTool server (``/v2/check``). Matches are mapped
back to the text node they were found in.
"""
from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_audit.config import LanguageConfig
from site_audit.errors import SuiteInvocationFault
from site_audit.models import SuiteName
from site_audit.suites.base import SuiteContext, clamp_score, fetch_page, suite_handler

TEXT_SELECTORS = (
    "h1", "h2", "h3", "h4", "h5", "h6",
    "p", "li", "dt", "dd",
    "button", "a", "label",
    'input[type="submit"]',
    'meta[name="description"]',
)
NODE_SEPARATOR = "\n\n"


@dataclass
class TextNode:
    text: str
    selector: str
    path: str


def element_path(element: Tag) -> str:
    """CSS-like path of *element*, e.g. ``html > body > p:nth-of-type(2)``."""
    parts = []
    node = element
    while isinstance(node, Tag) and node.name != "[document]":
        part = node.name
        if node.get("id"):
            part += f"#{node['id']}"
        else:
            nth = 1 + sum(1 for s in node.find_previous_siblings(node.name))
            if nth != 1:
                part += f":nth-of-type({nth})"
        parts.append(part)
        node = node.parent
    return " > ".join(reversed(parts))


def extract_text_nodes(html: str) -> List[TextNode]:
    soup = BeautifulSoup(html, "html.parser")
    for element in soup(["script", "style", "noscript", "template"]):
        element.decompose()
    nodes: List[TextNode] = []
    for selector in TEXT_SELECTORS:
        for element in soup.select(selector):
            if selector.startswith("meta"):
                text = str(element.get("content") or "")
            elif selector.startswith("input"):
                text = str(element.get("value") or "")
            else:
                text = element.get_text(" ", strip=True)
            text = " ".join(text.split())
            if text:
                nodes.append(TextNode(text=text, selector=selector, path=element_path(element)))
    return nodes


def join_nodes(nodes: List[TextNode], max_chars: int) -> Tuple[str, List[int], List[TextNode]]:
    """Concatenate node texts up to *max_chars*; return text, start offsets and nodes used."""
    chunks: List[str] = []
    starts: List[int] = []
    used: List[TextNode] = []
    length = 0
    for node in nodes:
        extra = len(node.text) + (len(NODE_SEPARATOR) if chunks else 0)
        if length + extra > max_chars:
            break
        if chunks:
            length += len(NODE_SEPARATOR)
        starts.append(length)
        chunks.append(node.text)
        used.append(node)
        length += len(node.text)
    return NODE_SEPARATOR.join(chunks), starts, used


async def check_text(context: SuiteContext, text: str, config: LanguageConfig) -> List[Dict[str, Any]]:
    data = {"text": text, "language": config.language}
    if config.disabled_rules:
        data["disabledRules"] = ",".join(config.disabled_rules)
    async with context.session.post(config.api_url, data=data) as resp:
        if resp.status != 200:
            raise SuiteInvocationFault(f"LanguageTool returned HTTP {resp.status}")
        body = await resp.json(content_type=None)
    return list(body.get("matches", []))


def group_matches(
    matches: List[Dict[str, Any]], starts: List[int], nodes: List[TextNode]
) -> Tuple[List[Dict[str, Any]], Dict[str, List[Dict[str, Any]]]]:
    """Attach matches to their text node and group them by rule category."""
    per_node: Dict[int, List[Dict[str, Any]]] = {}
    categorized: Dict[str, List[Dict[str, Any]]] = {}
    for match in matches:
        offset = int(match.get("offset", 0))
        index = max(0, bisect.bisect_right(starts, offset) - 1)
        rule = match.get("rule") or {}
        issue = {
            "message": match.get("message", ""),
            "suggestions": [r.get("value") for r in match.get("replacements", [])[:5]],
            "rule": rule.get("id"),
            "category": (rule.get("category") or {}).get("id", "UNKNOWN"),
            "offset": offset - starts[index],
            "length": int(match.get("length", 0)),
        }
        per_node.setdefault(index, []).append(issue)
        categorized.setdefault(issue["category"], []).append({
            "text": nodes[index].text,
            "location": nodes[index].path,
            "message": issue["message"],
            "suggestions": issue["suggestions"],
        })
    results = [
        {"text": nodes[i].text, "location": nodes[i].path, "issues": per_node[i]}
        for i in sorted(per_node)
    ]
    return results, categorized


def language_score(total_issues: int, total_words: int) -> float:
    if not total_words:
        return 100.0
    return clamp_score(100 - total_issues / total_words * 1000)


@suite_handler(SuiteName.LANGUAGE)
async def run_language(url: str, context: SuiteContext) -> Dict[str, Any]:
    config = context.config.language
    page = await fetch_page(context, url)
    text, starts, nodes = join_nodes(extract_text_nodes(page.html), config.max_chars)
    matches = await check_text(context, text, config) if text else []
    results, categorized = group_matches(matches, starts, nodes)

    total_words = sum(len(node.text.split()) for node in nodes)
    total_issues = sum(len(r["issues"]) for r in results)
    return {
        "score": language_score(total_issues, total_words),
        "summary": {
            "total_words": total_words,
            "total_issues": total_issues,
            "issues_by_category": [
                {"category": category, "count": len(issues)}
                for category, issues in sorted(categorized.items())
            ],
        },
        "details": {"results": results, "categorized_issues": categorized},
    }
