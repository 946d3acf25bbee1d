"""Base completion provider implementing the Template Method pattern.

All providers share the same call algorithm:
    complete() → _call_with_retry() → _call_api()   ← only this differs per provider

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return a Completion

Retry policy lives here. Rate limits, server errors and errors without an
HTTP status (connection failures, timeouts) are retried with exponential
backoff; anything else fails immediately. Either way a call that never
succeeded raises CompletionError, it never returns an empty result.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from dialectic_core.errors import CompletionError

if TYPE_CHECKING:
    from dialectic_core.consensus import ReviewRequest

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class TokenUsage:
    input_tokens: int
    output_tokens: int
    cache_read_tokens: int = 0
    cache_creation_tokens: int = 0
    cost_usd: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True)
class Completion:
    text: str
    usage: TokenUsage


def status_code_of(error: Exception) -> int | None:
    code = getattr(error, "status_code", None)
    return code if isinstance(code, int) else None


def is_retryable(error: Exception) -> bool:
    code = status_code_of(error)
    return code is None or code in RETRYABLE_STATUS_CODES


class BaseProvider(ABC):
    MAX_RETRIES: int = _MAX_RETRIES
    MODEL: str = ""
    name: str = "provider"

    def __init__(self, model: str | None = None):
        self.model = model or self.MODEL

    def complete(self, request: ReviewRequest) -> Completion:
        """Send one review request and return the model's text and usage."""
        logger.info(
            "Sending request to %s (%s), max %d output tokens", self.__class__.__name__, self.model, request.max_tokens
        )
        completion = self._call_with_retry(request)
        logger.info(
            "Tokens used: %d in + %d out (cache read %d, cache write %d), cost $%.4f",
            completion.usage.input_tokens,
            completion.usage.output_tokens,
            completion.usage.cache_read_tokens,
            completion.usage.cache_creation_tokens,
            completion.usage.cost_usd,
        )
        return completion

    @abstractmethod
    def _call_api(self, request: ReviewRequest) -> Completion:
        """Make a single API call. Raise on failure; retries happen above."""

    def _call_with_retry(self, request: ReviewRequest) -> Completion:
        for attempt in range(self.MAX_RETRIES):
            try:
                return self._call_api(request)
            except Exception as e:
                code = status_code_of(e)
                if not is_retryable(e):
                    logger.error("%s API error %s is not retryable: %s", self.__class__.__name__, code, e)
                    raise CompletionError(f"{self.name} API error: {e}", provider=self.name, status_code=code) from e
                if attempt == self.MAX_RETRIES - 1:
                    logger.error(
                        "%s API failed after %d attempts: %s",
                        self.__class__.__name__,
                        self.MAX_RETRIES,
                        e,
                    )
                    raise CompletionError(
                        f"{self.name} API failed after {self.MAX_RETRIES} attempts: {e}",
                        provider=self.name,
                        status_code=code,
                    ) from e
                delay = 2**attempt
                logger.warning(
                    "%s API error (attempt %d/%d): %s. Retrying in %ds...",
                    self.__class__.__name__,
                    attempt + 1,
                    self.MAX_RETRIES,
                    e,
                    delay,
                )
                time.sleep(delay)
        raise CompletionError(f"{self.name} API was never called", provider=self.name)
