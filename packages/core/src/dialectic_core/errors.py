"""Exceptions raised by dialectic_core.

Only two failure kinds ever leave the core: invalid configuration and a
completion-service call that could not be completed. Everything else (rule
misses, unparseable model output, oversized changes) resolves to a value.
"""

from __future__ import annotations


class ConfigError(ValueError):
    """Raised when configuration data is malformed.

    Subclasses ValueError so callers that already guard configuration parsing
    with ``except ValueError`` keep working.
    """

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class CompletionError(RuntimeError):
    """Raised when the completion service call fails for good.

    The original SDK exception is chained as ``__cause__``. A failed call is
    never equivalent to "no issues found", so this always propagates to the
    caller.
    """

    def __init__(self, message: str, provider: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
