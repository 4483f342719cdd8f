from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from bs4 import BeautifulSoup

from pagebuilder.config import settings
from pagebuilder.llm.client import (
    GenerativeTextClient,
    LLMGenerationParams,
    MalformedGenerationError,
    ModelTier,
)
from pagebuilder.llm.json_extract import extract_json_object
from pagebuilder.services.page_templates import TemplateDefinition

logger = logging.getLogger(__name__)

JUDGE_MAX_TOKENS = 1024
JUDGE_HTML_CHARS = 12000
_SECTION_TAGS = ["section", "nav", "footer", "header", "article", "aside"]
_GRID_CLASS_RE = re.compile(r"\bcol-(?:sm|md|lg|xl|xxl)-\d+\b")
_CTA_HINT_RE = re.compile(r"\bcta\b|call.to.action", re.IGNORECASE)


@dataclass(frozen=True)
class QualityVerdict:
    score: int
    issues: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()

    def passes(self, threshold: int) -> bool:
        return self.score >= threshold


@dataclass(frozen=True)
class QualityGateConfig:
    threshold: int = 80
    max_attempts: int = 3

    @classmethod
    def from_settings(cls) -> "QualityGateConfig":
        return cls(threshold=settings.QUALITY_GATE_THRESHOLD, max_attempts=settings.QUALITY_GATE_MAX_ATTEMPTS)


class PageScorer(Protocol):
    async def score(self, html: str, template: TemplateDefinition) -> QualityVerdict: ...


def _clamp_score(value: Any) -> int:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError) as exc:
        raise MalformedGenerationError(message=f"Reviewer returned a non-numeric score: {value!r}") from exc
    return max(0, min(100, score))


def _string_list(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(item) for item in value if str(item).strip())


def build_judge_prompt(html: str, template: TemplateDefinition, threshold: int) -> str:
    guidelines = "\n".join(f"- {g}" for g in template.guidelines)
    return f"""You are a senior code reviewer. Evaluate this {template.name} page for production readiness.

PAGE TYPE: {template.name}
EXPECTED SCHEMA TYPE: {template.schema_type}
REQUIRED SECTIONS: {", ".join(template.sections)}

PAGE GUIDELINES:
{guidelines}

The page is assembled from individually generated sections stitched into a <!DOCTYPE html> document. The <head> contains a JSON-LD block with @context and @type.

HTML (first {JUDGE_HTML_CHARS} chars):
{html[:JUDGE_HTML_CHARS]}

=== SCORING (100 points) ===

Bootstrap 5.3 Compliance (30pts): utility classes only, no custom or BEM class names, no inline style="" attributes, responsive col-md-* / col-lg-* grid.
Schema & Meta (25pts): JSON-LD with @context and @type in <head>, descriptive <title>, meta description of 100+ characters, schema @type matches {template.schema_type}.
Accessibility (20pts): semantic wrappers, aria-labelledby on sections, single h1 with h2 section headings, "visually-hidden" instead of "sr-only".
Content Quality (15pts): no emojis, no generic filler, specific details, brand-appropriate tone.
Page Structure (10pts): doctype, head and body, Bootstrap CSS and JS present, every required section present.

Score each category independently and sum them. Pass threshold: {threshold}/100.

Return ONLY valid JSON:
{{"score": 85, "issues": ["issue 1"], "suggestions": ["suggestion 1"]}}"""


class ModelPageScorer:
    def __init__(self, llm: GenerativeTextClient, *, threshold: Optional[int] = None) -> None:
        self._llm = llm
        self._threshold = threshold if threshold is not None else settings.QUALITY_GATE_THRESHOLD

    async def score(self, html: str, template: TemplateDefinition) -> QualityVerdict:
        raw = await self._llm.generate_text(
            build_judge_prompt(html, template, self._threshold),
            LLMGenerationParams(tier=ModelTier.CHEAP, max_tokens=JUDGE_MAX_TOKENS),
        )
        try:
            parsed = extract_json_object(raw)
        except ValueError as exc:
            raise MalformedGenerationError(message=f"Reviewer reply is not JSON: {exc}") from exc
        if "score" not in parsed:
            raise MalformedGenerationError(message="Reviewer reply has no score")
        return QualityVerdict(
            score=_clamp_score(parsed["score"]),
            issues=_string_list(parsed.get("issues")),
            suggestions=_string_list(parsed.get("suggestions")),
        )


@dataclass
class _Checklist:
    score: int = 100
    issues: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def fail(self, points: int, issue: str, suggestion: str) -> None:
        self.score -= points
        self.issues.append(issue)
        self.suggestions.append(suggestion)


def _json_ld_types(soup: BeautifulSoup) -> tuple[bool, set[str]]:
    has_context = False
    types: set[str] = set()
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            data = json.loads(script.string or "")
        except ValueError:
            continue
        for block in data if isinstance(data, list) else [data]:
            if not isinstance(block, dict):
                continue
            if block.get("@context"):
                has_context = True
            if isinstance(block.get("@type"), str):
                types.add(block["@type"])
    return has_context, types


class HeuristicPageScorer:
    """Deterministic, model-free scoring of an assembled page against its template."""

    async def score(self, html: str, template: TemplateDefinition) -> QualityVerdict:
        soup = BeautifulSoup(html, "html.parser")
        check = _Checklist()

        sections = soup.find_all(_SECTION_TAGS)
        if len(sections) < len(template.sections):
            check.fail(
                15,
                f"Expected {len(template.sections)} sections but found {len(sections)}",
                "Make sure every slot renders one <section>, <nav>, <header> or <footer> element",
            )
        if soup.find("main") is None:
            check.fail(5, "Page has no <main> landmark", "Wrap page sections in <main>")

        labelled = [s for s in sections if s.get("aria-labelledby") or s.get("aria-label")]
        if sections and len(labelled) < len(sections):
            check.fail(
                8,
                f"{len(sections) - len(labelled)} sections lack aria-labelledby",
                "Point aria-labelledby at each section heading id",
            )

        headings = [int(tag.name[1]) for tag in soup.find_all(re.compile(r"^h[1-6]$"))]
        if not headings:
            check.fail(10, "Page has no headings", "Give each section a heading")
        else:
            if headings.count(1) != 1:
                check.fail(6, f"Page has {headings.count(1)} h1 elements", "Use exactly one h1, in the hero")
            skipped = any(later - earlier > 1 for earlier, later in zip(headings, headings[1:]))
            if skipped:
                check.fail(5, "Heading hierarchy skips levels", "Step headings down one level at a time")

        if soup.find(attrs={"style": True}) is not None:
            check.fail(10, "Inline style attributes present", "Replace inline styles with Bootstrap utilities")
        if not _GRID_CLASS_RE.search(html):
            check.fail(5, "No responsive grid classes", "Use col-md-* / col-lg-* columns")
        if soup.find(class_="sr-only") is not None:
            check.fail(2, 'Uses "sr-only"', 'Use "visually-hidden" for screen reader text')

        has_context, types = _json_ld_types(soup)
        if not has_context:
            check.fail(10, "JSON-LD block with @context missing", "Add a schema.org JSON-LD block to <head>")
        elif template.schema_type not in types:
            check.fail(
                5,
                f"Schema @type does not include {template.schema_type}",
                f"Declare @type {template.schema_type} in the page JSON-LD",
            )

        title = soup.find("title")
        if title is None or not title.get_text(strip=True):
            check.fail(5, "Missing <title>", "Add a descriptive <title>")
        meta = soup.find("meta", attrs={"name": "description"})
        content = str(meta.get("content") or "") if meta is not None else ""
        if len(content) < 100:
            check.fail(4, "Meta description shorter than 100 characters", "Write a 150-160 character description")

        if any(_CTA_HINT_RE.search(g) and "multiple" in g.lower() for g in template.guidelines):
            buttons = soup.find_all("a", class_=re.compile(r"\bbtn\b")) + soup.find_all("button")
            if len(buttons) < 2:
                check.fail(5, "Call to action appears fewer than two times", "Repeat the primary CTA")

        return QualityVerdict(
            score=max(0, check.score),
            issues=tuple(check.issues),
            suggestions=tuple(check.suggestions),
        )


def build_scorer(llm: GenerativeTextClient, *, kind: Optional[str] = None) -> PageScorer:
    scorer_kind = kind or settings.QUALITY_GATE_SCORER
    if scorer_kind == "heuristic":
        return HeuristicPageScorer()
    return ModelPageScorer(llm)
