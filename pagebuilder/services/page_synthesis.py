from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from pagebuilder.errors import InvalidRequestError, PipelineError
from pagebuilder.observability import LangfuseTraceContext, bind_langfuse_trace_context, start_langfuse_span
from pagebuilder.services.artifact_store import ArtifactStore, artifact_key
from pagebuilder.services.component_index import ComponentIndex, ComponentServiceClient, load_component_index
from pagebuilder.services.document_assembler import assemble_document
from pagebuilder.services.industry_templates import IndustryTemplateClient
from pagebuilder.services.page_templates import (
    IndustryProfile,
    TemplateDefinition,
    build_brand_context,
    get_industry,
    page_slug,
    resolve_template,
    slugify,
)
from pagebuilder.services.quality_gate import PageScorer, QualityGateConfig, QualityVerdict
from pagebuilder.services.section_resolver import (
    AttemptFeedback,
    Generate,
    SectionFragment,
    SectionResolver,
    plan_slots,
)

logger = logging.getLogger(__name__)

# Prebuilt industry pages are hand-tuned and skip the quality gate.
PREBUILT_PAGE_SCORE = 100


class PageAlreadyExistsError(PipelineError):
    error_code = "page_exists"
    status_code = 409

    def __init__(self, *, key: str) -> None:
        super().__init__(message=f"Page already exists at {key}")
        self.key = key


class QualityExhaustedError(PipelineError):
    error_code = "quality_exhausted"
    status_code = 422

    def __init__(self, *, verdict: QualityVerdict, attempts: int, threshold: int) -> None:
        super().__init__(
            message=f"Failed to reach score {threshold} after {attempts} attempts (last: {verdict.score})"
        )
        self.verdict = verdict
        self.attempts = attempts

    def payload(self) -> dict[str, Any]:
        body = super().payload()
        body.update(
            {
                "score": self.verdict.score,
                "issues": list(self.verdict.issues),
                "suggestions": list(self.verdict.suggestions),
                "attempts": self.attempts,
            }
        )
        return body


@dataclass(frozen=True)
class SynthesisResult:
    page_name: str
    slug: str
    key: str
    score: int
    version_tag: str
    attempts: int
    fragments: tuple[SectionFragment, ...] = ()


@dataclass(frozen=True)
class SiteCreationResult:
    site: str
    pages: list[dict[str, Any]] = field(default_factory=list)
    failures: list[dict[str, Any]] = field(default_factory=list)


class PageSynthesizer:
    """
    Template + brand context -> stored page.

    Each attempt resolves slots, assembles the document and scores it. Below the threshold, the
    verdict is fed back into the next attempt for generated slots only; reused slots keep their
    adapted fragment. Nothing is written until an attempt passes.
    """

    def __init__(
        self,
        *,
        components: ComponentServiceClient,
        resolver: SectionResolver,
        scorer: PageScorer,
        store: ArtifactStore,
        gate: Optional[QualityGateConfig] = None,
        site_url_base: Optional[str] = None,
        templates: Optional[IndustryTemplateClient] = None,
    ) -> None:
        self._components = components
        self._resolver = resolver
        self._scorer = scorer
        self._store = store
        self._gate = gate or QualityGateConfig.from_settings()
        self._site_url_base = (site_url_base or "").rstrip("/")
        self._templates = templates

    def canonical_url(self, site: str, slug: str) -> str:
        return f"{self._site_url_base}/{site}/{slug}.html"

    async def synthesize(
        self,
        *,
        site: str,
        page_name: str,
        template_key: Optional[str] = None,
        brand_context: str = "",
        index: Optional[ComponentIndex] = None,
    ) -> SynthesisResult:
        template = resolve_template(template_key or page_name)
        slug = page_slug(page_name)
        key = artifact_key(site, slug)

        if await self._store.head(key) is not None:
            raise PageAlreadyExistsError(key=key)

        if index is None:
            index = await load_component_index(self._components)

        trace = LangfuseTraceContext(
            name="pagebuilder.synthesize",
            session_id=site,
            metadata={"site": site, "page": slug, "template": template.key},
            tags=["synthesis"],
        )
        with bind_langfuse_trace_context(trace):
            return await self._run_attempts(
                site=site,
                page_name=page_name,
                slug=slug,
                key=key,
                template=template,
                brand_context=brand_context,
                index=index,
            )

    async def _run_attempts(
        self,
        *,
        site: str,
        page_name: str,
        slug: str,
        key: str,
        template: TemplateDefinition,
        brand_context: str,
        index: ComponentIndex,
    ) -> SynthesisResult:
        canonical_url = self.canonical_url(site, slug)
        plans = plan_slots(template, index)
        fragments: Optional[list[SectionFragment]] = None
        verdict: Optional[QualityVerdict] = None

        for attempt in range(1, self._gate.max_attempts + 1):
            with start_langfuse_span(
                name="pagebuilder.synthesis_attempt",
                input={"attempt": attempt, "slots": list(template.sections)},
                metadata={"site": site, "page": slug},
            ) as span:
                fragments = await self._resolver.resolve(plans, template, brand_context, previous=fragments)
                html = assemble_document(fragments, template, brand_context, canonical_url=canonical_url)
                verdict = await self._scorer.score(html, template)
                if span is not None:
                    span.update(output={"score": verdict.score, "issues": list(verdict.issues)})

            logger.info(
                "Synthesis attempt scored",
                extra={
                    "site": site,
                    "page": slug,
                    "attempt": attempt,
                    "score": verdict.score,
                    "issue_count": len(verdict.issues),
                },
            )

            if verdict.passes(self._gate.threshold):
                # A concurrent create may have landed while this one was generating.
                if await self._store.head(key) is not None:
                    raise PageAlreadyExistsError(key=key)
                version_tag = await self._store.put(key, html)
                logger.info(
                    "Page synthesized",
                    extra={"site": site, "page": slug, "score": verdict.score, "attempts": attempt},
                )
                return SynthesisResult(
                    page_name=page_name,
                    slug=slug,
                    key=key,
                    score=verdict.score,
                    version_tag=version_tag,
                    attempts=attempt,
                    fragments=tuple(fragments),
                )

            if attempt < self._gate.max_attempts:
                self._record_feedback(plans, fragments, attempt, verdict)

        if verdict is None:
            raise PipelineError(message=f"Quality gate allows no attempts for {key}")
        logger.warning(
            "Quality gate exhausted",
            extra={"site": site, "page": slug, "score": verdict.score, "attempts": self._gate.max_attempts},
        )
        raise QualityExhaustedError(
            verdict=verdict,
            attempts=self._gate.max_attempts,
            threshold=self._gate.threshold,
        )

    @staticmethod
    def _record_feedback(
        plans: Sequence[Any],
        fragments: Sequence[SectionFragment],
        attempt: int,
        verdict: QualityVerdict,
    ) -> None:
        for plan in plans:
            if not isinstance(plan.strategy, Generate):
                continue
            plan.history.append(
                AttemptFeedback(
                    attempt=attempt,
                    score=verdict.score,
                    issues=verdict.issues,
                    suggestions=verdict.suggestions,
                    previous_html=fragments[plan.index].html,
                )
            )

    async def create_site(
        self,
        *,
        business_name: str,
        industry: Optional[str] = None,
        brand_context: Optional[str] = None,
        pages: Optional[Sequence[str]] = None,
    ) -> SiteCreationResult:
        """Build every page of a new site. A failed page never cancels its siblings.

        Pages the industry ships prebuilt are copied from its template site with the business name
        swapped in; the rest are synthesized against one shared component index.
        """
        site = slugify(business_name)
        if not site:
            raise InvalidRequestError(message="Invalid business name")
        profile = get_industry(industry) if industry else None
        context = build_brand_context(business_name=business_name, industry=profile, extra=brand_context)
        requested = pages or (profile.recommended_pages if profile else ("Homepage", "About", "Contact"))
        page_names = list(dict.fromkeys(requested))

        prebuilt = {name for name in page_names if self._uses_template(profile, name)}
        index: Optional[ComponentIndex] = None
        if len(prebuilt) < len(page_names):
            index = await load_component_index(self._components)

        outcomes = await asyncio.gather(
            *(
                self._copy_template_page(site=site, page_name=name, profile=profile, business_name=business_name)
                if name in prebuilt
                else self.synthesize(site=site, page_name=name, template_key=name, brand_context=context, index=index)
                for name in page_names
            ),
            return_exceptions=True,
        )

        created: list[dict[str, Any]] = []
        failed: list[dict[str, Any]] = []
        for name, outcome in zip(page_names, outcomes):
            if isinstance(outcome, SynthesisResult):
                created.append({"pageName": name, "score": outcome.score, "versionTag": outcome.version_tag})
            elif isinstance(outcome, Exception):
                logger.warning(
                    "Site page failed",
                    extra={"site": site, "page_name": name, "reason": str(outcome)},
                )
                failure: dict[str, Any] = {"pageName": name, "error": str(outcome)}
                if isinstance(outcome, QualityExhaustedError):
                    failure["score"] = outcome.verdict.score
                failed.append(failure)
            else:
                raise outcome

        return SiteCreationResult(site=site, pages=created, failures=failed)

    def _uses_template(self, profile: Optional[IndustryProfile], page_name: str) -> bool:
        return self._templates is not None and self._templates.covers(profile, page_slug(page_name))

    async def _copy_template_page(
        self,
        *,
        site: str,
        page_name: str,
        profile: Optional[IndustryProfile],
        business_name: str,
    ) -> SynthesisResult:
        if self._templates is None or profile is None:
            raise PipelineError(message=f"No industry template for {page_name}")
        slug = page_slug(page_name)
        key = artifact_key(site, slug)
        if await self._store.head(key) is not None:
            raise PageAlreadyExistsError(key=key)

        html = await self._templates.fetch_page(profile, slug, business_name=business_name)
        version_tag = await self._store.put(key, html)
        logger.info(
            "Page copied from industry template",
            extra={"site": site, "page": slug, "industry": profile.key},
        )
        return SynthesisResult(
            page_name=page_name,
            slug=slug,
            key=key,
            score=PREBUILT_PAGE_SCORE,
            version_tag=version_tag,
            attempts=0,
        )
