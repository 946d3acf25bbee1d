from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from dialectic_core.providers.base import BaseProvider, Completion, TokenUsage
from dialectic_core.providers.pricing import calculate_cost

if TYPE_CHECKING:
    from dialectic_core.consensus import ReviewRequest


class AnthropicProvider(BaseProvider):
    MODEL = "claude-sonnet-4-20250514"
    TEMPERATURE = 0.0
    name = "anthropic"

    def __init__(self, api_key: str, model: str | None = None):
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. "
                "Install it with: pip install 'dialectic[anthropic]'"
            )
        super().__init__(model)
        self.client = Anthropic(api_key=api_key)

    @staticmethod
    def _system_blocks(request: ReviewRequest) -> list[dict]:
        blocks = []
        for segment in request.system_segments:
            block = {"type": "text", "text": segment.text}
            if segment.cacheable:
                block["cache_control"] = {"type": "ephemeral"}
            blocks.append(block)
        return blocks

    def _call_api(self, request: ReviewRequest) -> Completion:
        # Imported inside the method because the anthropic package is optional;
        # __init__ already validated it is installed before we reach here.
        from anthropic.types import TextBlock

        response = self.client.messages.create(
            model=self.model,
            system=self._system_blocks(request),
            messages=[{"role": "user", "content": request.task}],
            temperature=self.TEMPERATURE,
            max_tokens=request.max_tokens,
        )
        text = "".join(block.text for block in response.content if isinstance(block, TextBlock)).strip()

        raw = response.usage
        usage = TokenUsage(
            input_tokens=raw.input_tokens,
            output_tokens=raw.output_tokens,
            cache_read_tokens=getattr(raw, "cache_read_input_tokens", None) or 0,
            cache_creation_tokens=getattr(raw, "cache_creation_input_tokens", None) or 0,
        )
        return Completion(text=text, usage=replace(usage, cost_usd=calculate_cost(usage, self.model)))
