from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import anthropic
from anthropic import AsyncAnthropic

from pagebuilder.config import settings
from pagebuilder.errors import PipelineError
from pagebuilder.observability import start_langfuse_generation

logger = logging.getLogger(__name__)


class LLMClientConfigError(Exception):
    pass


class GenerativeServiceError(PipelineError):
    error_code = "upstream_unavailable"
    status_code = 502


class GenerativeServiceTimeout(GenerativeServiceError):
    error_code = "upstream_timeout"
    status_code = 504


class MalformedGenerationError(GenerativeServiceError):
    error_code = "malformed_upstream_payload"


class ModelTier(str, Enum):
    CHEAP = "cheap"
    EXPENSIVE = "expensive"
    EXTRACT = "extract"


@dataclass(frozen=True)
class ToolSpec:
    """A tool the model is forced to call; its input is the structured payload we want back."""

    name: str
    description: str
    input_schema: dict[str, Any] = field(default_factory=dict)

    def as_param(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


@dataclass
class LLMGenerationParams:
    tier: ModelTier
    max_tokens: int = 4096
    system: Optional[str] = None
    temperature: Optional[float] = None


class GenerativeTextClient:
    """
    Async wrapper around the Anthropic Messages API.

    Model selection is by tier (cheap / expensive / extract) so callers never hard-code model ids.
    Requests are never retried here: the SDK's own retries are disabled and a timeout is a hard
    failure. Retry policy lives with the quality gate, which owns the attempt budget.
    """

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[AsyncAnthropic] = None,
    ) -> None:
        self._api_key = api_key or settings.ANTHROPIC_API_KEY
        self._base_url = base_url or settings.ANTHROPIC_BASE_URL
        self._timeout = float(timeout or settings.LLM_REQUEST_TIMEOUT_SECONDS)
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(self._api_key)

    def model_for_tier(self, tier: ModelTier) -> str:
        if tier is ModelTier.EXPENSIVE:
            return settings.LLM_MODEL_EXPENSIVE
        if tier is ModelTier.EXTRACT:
            return settings.LLM_MODEL_EXTRACT
        return settings.LLM_MODEL_CHEAP

    def _get_client(self) -> AsyncAnthropic:
        if self._client is None:
            if not self._api_key:
                raise LLMClientConfigError("ANTHROPIC_API_KEY not configured")
            kwargs: dict[str, Any] = {
                "api_key": self._api_key,
                "timeout": self._timeout,
                "max_retries": 0,
            }
            if self._base_url:
                kwargs["base_url"] = self._base_url
            self._client = AsyncAnthropic(**kwargs)
        return self._client

    async def generate_text(self, prompt: str, params: LLMGenerationParams) -> str:
        model = self.model_for_tier(params.tier)
        request: dict[str, Any] = {
            "model": model,
            "max_tokens": params.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if params.system:
            request["system"] = params.system
        if params.temperature is not None:
            request["temperature"] = params.temperature

        with start_langfuse_generation(
            name=f"pagebuilder.{params.tier.value}.text",
            model=model,
            input=prompt,
            model_parameters={"max_tokens": params.max_tokens},
        ) as generation:
            response = await self._create(request)
            text = "".join(
                block.text for block in response.content if getattr(block, "type", None) == "text"
            ).strip()
            if generation is not None:
                generation.update(output=text)

        if not text:
            raise MalformedGenerationError(message=f"Generative service returned no text for model {model}")
        return text

    async def call_tool(self, prompt: str, params: LLMGenerationParams, *, tool: ToolSpec) -> dict[str, Any]:
        """Force a single tool call and return its input payload."""
        model = self.model_for_tier(params.tier)
        request: dict[str, Any] = {
            "model": model,
            "max_tokens": params.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "tools": [tool.as_param()],
            "tool_choice": {"type": "tool", "name": tool.name},
        }
        if params.system:
            request["system"] = params.system

        with start_langfuse_generation(
            name=f"pagebuilder.{params.tier.value}.{tool.name}",
            model=model,
            input=prompt,
            model_parameters={"max_tokens": params.max_tokens, "tool": tool.name},
        ) as generation:
            response = await self._create(request)
            payload = None
            for block in response.content:
                if getattr(block, "type", None) == "tool_use" and getattr(block, "name", None) == tool.name:
                    payload = block.input
                    break
            if generation is not None:
                generation.update(output=payload)

        if not isinstance(payload, dict):
            raise MalformedGenerationError(
                message=f"Generative service did not return a {tool.name} tool call (model={model})"
            )
        return payload

    async def _create(self, request: dict[str, Any]) -> Any:
        client = self._get_client()
        model = request["model"]
        try:
            return await client.messages.create(**request)
        except anthropic.APITimeoutError as exc:
            logger.warning("Generative service timed out", extra={"model": model, "timeout": self._timeout})
            raise GenerativeServiceTimeout(
                message=f"Generative service timed out after {self._timeout:.0f}s (model={model})"
            ) from exc
        except anthropic.APIStatusError as exc:
            logger.warning(
                "Generative service returned an error status",
                extra={"model": model, "status_code": exc.status_code},
            )
            raise GenerativeServiceError(
                message=f"Generative service error {exc.status_code}: {exc.message}"
            ) from exc
        except anthropic.APIConnectionError as exc:
            logger.warning("Generative service unreachable", extra={"model": model})
            raise GenerativeServiceError(message=f"Generative service unreachable: {exc}") from exc
