from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence, Union

from pagebuilder.config import settings
from pagebuilder.errors import PipelineError
from pagebuilder.llm.client import (
    GenerativeServiceError,
    GenerativeTextClient,
    LLMGenerationParams,
    MalformedGenerationError,
    ModelTier,
)
from pagebuilder.llm.json_extract import strip_code_fences
from pagebuilder.services.component_index import ComponentIndex, ReusableComponent
from pagebuilder.services.page_templates import TemplateDefinition, section_type_for_slot

logger = logging.getLogger(__name__)

FailurePolicy = Literal["abort", "placeholder"]

ADAPT_MAX_TOKENS = 4096
GENERATE_MAX_TOKENS = 8192
HISTORY_HTML_CHARS = 2000

_SECTION_ROOT_RE = re.compile(r"^\s*(?:<!--.*?-->\s*)*<(section|nav|footer|header|article|aside)\b", re.IGNORECASE | re.DOTALL)
_INLINE_STYLE_RE = re.compile(r"\s+style\s*=\s*\"[^\"]*\"", re.IGNORECASE)
_CLASS_ATTR_RE = re.compile(r'class="([^"]*)"')
_BEM_RE = re.compile(r"__|--")
_BOOTSTRAP_CLASS_RE = re.compile(
    r"^(bg-|text-|btn-|col-|row|container|d-|flex-|justify-|align-|m[trblxy]?-|p[trblxy]?-|g[xy]?-|w-|h-|"
    r"border|rounded|shadow|opacity-|overflow-|position-|top-|bottom-|start-|end-|float-|order-|gap-|fs-|fw-|"
    r"fst-|lh-|font-|list-|nav|navbar|dropdown|accordion|card|modal|badge|alert|spinner|table|form|input|"
    r"visually|display-|ratio-|vstack|hstack|sticky-|fixed-|clearfix|img-|figure|blockquote|lead|small|mark|"
    r"initialism|placeholder|link-|icon-|bi-|bi$|active|disabled|show|hide|fade|collapse|collapsed|collapsing|"
    r"offcanvas|tab-|carousel|breadcrumb|pagination|page-|progress|toast|popover|tooltip|stretched-link|sr-only)"
)
_CUSTOM_PREFIX_RE = re.compile(
    r"^(hero|faq|cta|footer|nav|section|feature|pricing|testimonial|blog|contact|about|service|team|stat)-",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Reuse:
    component: ReusableComponent


@dataclass(frozen=True)
class Generate:
    pass


SlotStrategy = Union[Reuse, Generate]


@dataclass(frozen=True)
class AttemptFeedback:
    attempt: int
    score: int
    issues: tuple[str, ...]
    suggestions: tuple[str, ...]
    previous_html: str


@dataclass(frozen=True)
class SectionFragment:
    index: int
    slot: str
    html: str
    strategy: SlotStrategy
    placeholder: bool = False


@dataclass
class SlotPlan:
    index: int
    slot: str
    strategy: SlotStrategy
    history: list[AttemptFeedback] = field(default_factory=list)


class SectionGenerationError(PipelineError):
    error_code = "section_generation_failed"
    status_code = 502

    def __init__(self, *, slot: str, message: str) -> None:
        super().__init__(message=f"Section {slot!r} failed: {message}")
        self.slot = slot


def decide_strategy(slot: str, index: ComponentIndex) -> SlotStrategy:
    """Reuse the first indexed candidate of the slot's type; unmapped or empty types generate."""
    component_type = section_type_for_slot(slot)
    if component_type is None:
        return Generate()
    candidates = index.candidates(component_type)
    if not candidates:
        return Generate()
    return Reuse(component=candidates[0])


def plan_slots(template: TemplateDefinition, index: ComponentIndex) -> list[SlotPlan]:
    return [
        SlotPlan(index=i, slot=slot, strategy=decide_strategy(slot, index))
        for i, slot in enumerate(template.sections)
    ]


def is_well_formed_fragment(html: str) -> bool:
    return bool(html) and _SECTION_ROOT_RE.match(html) is not None


def _keep_class(name: str) -> bool:
    # Bootstrap never uses BEM separators; its names win over the custom-prefix rule (nav-link).
    if _BEM_RE.search(name):
        return False
    if _BOOTSTRAP_CLASS_RE.match(name):
        return True
    if _CUSTOM_PREFIX_RE.match(name):
        return False
    return True


def strip_custom_classes(html: str) -> str:
    def _rewrite(match: re.Match[str]) -> str:
        tokens = [name for name in match.group(1).split() if _keep_class(name)]
        return f'class="{" ".join(tokens)}"' if tokens else ""

    return _CLASS_ATTR_RE.sub(_rewrite, html)


def clean_fragment(raw: str, *, strip_classes: bool) -> str:
    cleaned = strip_code_fences(raw)
    cleaned = _INLINE_STYLE_RE.sub("", cleaned)
    if strip_classes:
        cleaned = strip_custom_classes(cleaned)
    return cleaned.strip()


def placeholder_fragment(slot: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", slot.lower()).strip("-") or "section"
    return (
        f'<section class="py-5" aria-labelledby="{slug}-heading" data-placeholder="true">'
        f'<div class="container"><h2 id="{slug}-heading" class="visually-hidden">{slot}</h2></div>'
        "</section>"
    )


def build_adapt_prompt(component: ReusableComponent, slot: str, brand_context: str) -> str:
    return f"""You are a senior frontend developer. You have an existing Bootstrap 5.3+ HTML component for a "{slot}" section.

Rewrite ONLY the text content (headings, paragraphs, button labels, alt text, aria-labels) to match the brand context below. Keep the HTML structure, Bootstrap classes, aria attributes, and schema.org markup completely intact.

=== BRAND CONTEXT ===
{brand_context}

=== EXISTING COMPONENT HTML ===
{component.html}

=== RULES ===
1. Do NOT change any HTML tags, class attributes, or structural markup
2. Do NOT add or remove elements
3. Do NOT change Bootstrap utility classes
4. Do NOT add inline styles or custom CSS classes
5. Update text content, alt attributes, and aria-label values to match the brand
6. Keep schema.org itemprop attributes intact
7. NO emojis, NO generic AI phrases, NO excessive exclamation marks
8. Use specific, human-sounding copy that matches the brand tone

Return ONLY the updated HTML string. No JSON wrapper and no code fences."""


def _history_block(history: Sequence[AttemptFeedback]) -> str:
    if not history:
        return ""
    lines = ["", "=== ATTEMPT HISTORY (learn from previous failures) ==="]
    for entry in history:
        lines.append(f"\n--- Attempt {entry.attempt} (Score: {entry.score}/100) ---")
        lines.append("Issues found:")
        lines.extend(f"  {n}. {issue}" for n, issue in enumerate(entry.issues, start=1))
        lines.append("Suggestions:")
        lines.extend(f"  {n}. {suggestion}" for n, suggestion in enumerate(entry.suggestions, start=1))
        lines.append(f"HTML produced (first {HISTORY_HTML_CHARS} chars):")
        lines.append(entry.previous_html[:HISTORY_HTML_CHARS])
    lines.append(
        "\nYou MUST fix ALL issues listed above. Do NOT repeat the same mistakes. "
        "The reviewer is automated and will check the same criteria again."
    )
    return "\n".join(lines) + "\n"


def build_generate_prompt(
    slot: str,
    template: TemplateDefinition,
    brand_context: str,
    *,
    history: Sequence[AttemptFeedback] = (),
    first_section: bool = False,
) -> str:
    brand_block = f"\n=== BRAND CONTEXT ===\n{brand_context}\n" if brand_context else ""
    guidelines = "\n".join(f"- {g}" for g in template.guidelines)
    image_rule = (
        'Images use descriptive alt text; the first image stays eager, later ones use loading="lazy"'
        if first_section
        else 'Unsplash images with descriptive alt text and loading="lazy"'
    )
    return f"""You are a senior frontend developer. Generate a single production-ready "{slot}" section using Bootstrap 5.3+.
{_history_block(history)}{brand_block}
=== CONTEXT ===
This section is part of a {template.name} page ({template.description}).
It will be placed inside a <body> tag alongside other sections. The page wrapper already includes JSON-LD schema with @context and @type.

=== PAGE GUIDELINES ===
{guidelines}

=== REQUIREMENTS ===

Bootstrap Compliance:
- ONLY Bootstrap 5.3 utility classes (bg-primary, bg-dark, text-white, py-5, mb-3, etc.)
- ZERO inline style="" attributes
- ZERO custom CSS class names (no hero-section, no faq-wrapper, no BEM names)
- Use the Bootstrap grid: container, row, col-md-*, col-lg-*

Accessibility:
- Wrap in semantic HTML: <section>, <nav>, <header> or <footer> as appropriate
- Add aria-labelledby pointing to the section's heading id
- Heading hierarchy: h1 only in Hero, h2 for other section headings
- Use "visually-hidden" for screen reader text

Structured data:
- Add schema.org microdata (itemscope, itemtype, itemprop) where the content has a natural type

Content:
- NO emojis, NO generic filler, NO excessive exclamation marks
- Specific numbers, realistic names, concrete details in the brand's tone
- {image_rule}

Return ONLY the raw HTML for this single section. No JSON, no code fences, no wrapping document."""


class SectionResolver:
    """Turns a slot plan into one HTML fragment per slot, in slot order."""

    def __init__(self, llm: GenerativeTextClient, *, failure_policy: Optional[FailurePolicy] = None) -> None:
        self._llm = llm
        self._failure_policy: FailurePolicy = failure_policy or settings.SECTION_FAILURE_POLICY

    async def adapt(self, component: ReusableComponent, slot: str, brand_context: str) -> str:
        raw = await self._llm.generate_text(
            build_adapt_prompt(component, slot, brand_context),
            LLMGenerationParams(tier=ModelTier.CHEAP, max_tokens=ADAPT_MAX_TOKENS),
        )
        return clean_fragment(raw, strip_classes=False)

    async def generate(
        self,
        slot: str,
        template: TemplateDefinition,
        brand_context: str,
        *,
        history: Sequence[AttemptFeedback] = (),
        first_section: bool = False,
    ) -> str:
        raw = await self._llm.generate_text(
            build_generate_prompt(slot, template, brand_context, history=history, first_section=first_section),
            LLMGenerationParams(tier=ModelTier.EXPENSIVE, max_tokens=GENERATE_MAX_TOKENS),
        )
        return clean_fragment(raw, strip_classes=True)

    async def resolve_slot(self, plan: SlotPlan, template: TemplateDefinition, brand_context: str) -> SectionFragment:
        strategy = plan.strategy
        try:
            if isinstance(strategy, Reuse):
                try:
                    html = await self.adapt(strategy.component, plan.slot, brand_context)
                except MalformedGenerationError:
                    html = ""
                if not is_well_formed_fragment(html):
                    # The snippet could not be adapted; switch this slot to generation for good.
                    logger.warning(
                        "Adapted fragment is malformed; generating instead",
                        extra={"slot": plan.slot, "component_id": strategy.component.id},
                    )
                    plan.strategy = strategy = Generate()
            if isinstance(strategy, Generate):
                html = await self.generate(
                    plan.slot,
                    template,
                    brand_context,
                    history=plan.history,
                    first_section=plan.index == 0,
                )
                if not is_well_formed_fragment(html):
                    raise SectionGenerationError(slot=plan.slot, message="output has no section-level root tag")
        except (GenerativeServiceError, SectionGenerationError) as exc:
            if self._failure_policy == "placeholder":
                logger.warning(
                    "Section failed; substituting placeholder",
                    extra={"slot": plan.slot, "reason": str(exc)},
                )
                return SectionFragment(
                    index=plan.index,
                    slot=plan.slot,
                    html=placeholder_fragment(plan.slot),
                    strategy=strategy,
                    placeholder=True,
                )
            raise

        logger.info(
            "Section resolved",
            extra={"slot": plan.slot, "strategy": type(strategy).__name__.lower(), "chars": len(html)},
        )
        return SectionFragment(index=plan.index, slot=plan.slot, html=html, strategy=strategy)

    async def resolve(
        self,
        plans: Sequence[SlotPlan],
        template: TemplateDefinition,
        brand_context: str,
        *,
        previous: Optional[Sequence[SectionFragment]] = None,
    ) -> list[SectionFragment]:
        """Resolve every slot concurrently and return fragments in slot order.

        With ``previous`` set, only generated slots are redone; reused slots keep their earlier fragment.
        """
        kept: dict[int, SectionFragment] = {}
        pending: list[SlotPlan] = []
        for plan in plans:
            prior = previous[plan.index] if previous is not None else None
            if prior is not None and isinstance(plan.strategy, Reuse) and not prior.placeholder:
                kept[plan.index] = prior
            else:
                pending.append(plan)

        results = await asyncio.gather(*(self.resolve_slot(plan, template, brand_context) for plan in pending))
        by_index = {**kept, **{fragment.index: fragment for fragment in results}}
        return [by_index[plan.index] for plan in sorted(plans, key=lambda p: p.index)]
