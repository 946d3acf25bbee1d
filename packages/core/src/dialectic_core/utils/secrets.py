"""Detection and redaction of credentials in diff text."""

from __future__ import annotations

import re

REDACTED = "[REDACTED]"

SECRET_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    (
        "credential assignment",
        re.compile(
            r"""['"]?[A-Za-z_]*(?:API_KEY|SECRET|TOKEN|PASSWORD|PRIVATE_KEY)['"]?\s*[:=]\s*['"][^'"]+['"]""",
            re.IGNORECASE,
        ),
    ),
    ("private key", re.compile(r"-----BEGIN (?:RSA |DSA |EC |OPENSSH |PGP )?PRIVATE KEY-----")),
    ("AWS access key", re.compile(r"AKIA[0-9A-Z]{16}")),
    ("quoted secret", re.compile(r"""(?:password|secret|token)\s*[:=]\s*['"][^'"\s]{8,}['"]""", re.IGNORECASE)),
)


def _preview(match: str) -> str:
    return match[:30] + "..."


def find_secrets(text: str) -> list[tuple[str, str]]:
    """Return ``(kind, preview)`` for every likely secret in ``text``.

    Previews are cut to 30 characters so the value itself is never logged.
    """
    found = []
    for kind, pattern in SECRET_PATTERNS:
        for match in pattern.finditer(text):
            found.append((kind, _preview(match.group(0))))
    return found


def redact_secrets(text: str) -> tuple[str, int]:
    """Replace every likely secret with a marker. Returns the text and the number of replacements."""
    total = 0
    for _, pattern in SECRET_PATTERNS:
        text, count = pattern.subn(REDACTED, text)
        total += count
    return text, total
