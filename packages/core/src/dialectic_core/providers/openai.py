from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from dialectic_core.providers.base import BaseProvider, Completion, TokenUsage
from dialectic_core.providers.pricing import calculate_cost

if TYPE_CHECKING:
    from dialectic_core.consensus import ReviewRequest


class OpenAIProvider(BaseProvider):
    MODEL = "gpt-4o"
    TEMPERATURE = 0.0
    name = "openai"

    def __init__(self, api_key: str, model: str | None = None):
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. " "Install it with: pip install 'dialectic[openai]'"
            )
        super().__init__(model)
        self.client = _OpenAI(api_key=api_key)

    def _call_api(self, request: ReviewRequest) -> Completion:
        # No explicit cache markers: OpenAI caches long shared prefixes on its own,
        # so the cacheable segments are simply sent first.
        system = "\n\n".join(s.text for s in request.system_segments)
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": request.task},
            ],
            temperature=self.TEMPERATURE,
            max_tokens=request.max_tokens,
            response_format={"type": "json_object"},
        )
        text = response.choices[0].message.content or ""

        raw = response.usage
        details = getattr(raw, "prompt_tokens_details", None)
        cached = (getattr(details, "cached_tokens", None) or 0) if details else 0
        # prompt_tokens includes the cached prefix
        usage = TokenUsage(
            input_tokens=(raw.prompt_tokens - cached) if raw else 0,
            output_tokens=raw.completion_tokens if raw else 0,
            cache_read_tokens=cached,
        )
        return Completion(text=text.strip(), usage=replace(usage, cost_usd=calculate_cost(usage, self.model)))
