"""Ordered, immutable collections of false-positive patterns."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping

from dialectic_core.errors import ConfigError
from dialectic_core.models import FalsePositivePattern

logger = logging.getLogger(__name__)

DEFAULT_SEVERITY = "medium"


class PatternCatalog:
    """An ordered set of FalsePositivePattern entries.

    Catalogs are never mutated in place: ``without`` and ``extended`` return
    new catalogs, so the built-in catalog can be shared by every review.
    Order matters because the matcher stops at the first matching pattern.
    """

    def __init__(self, patterns: Iterable[FalsePositivePattern] = ()):
        self._patterns = tuple(patterns)

    def __iter__(self) -> Iterator[FalsePositivePattern]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __bool__(self) -> bool:
        return bool(self._patterns)

    def __repr__(self) -> str:
        return f"PatternCatalog({len(self._patterns)} patterns)"

    def without(self, ids: Iterable[str]) -> PatternCatalog:
        drop = set(ids)
        if not drop:
            return self
        return PatternCatalog(p for p in self._patterns if p.id not in drop)

    def extended(self, patterns: Iterable[FalsePositivePattern]) -> PatternCatalog:
        return PatternCatalog(self._patterns + tuple(patterns))

    def deduplicated(self) -> PatternCatalog:
        """Drop repeated ids, keeping the first occurrence."""
        seen: set[str] = set()
        kept = []
        for p in self._patterns:
            if p.id in seen:
                logger.debug("Dropping duplicate false-positive pattern %s", p.id)
                continue
            seen.add(p.id)
            kept.append(p)
        return PatternCatalog(kept)

    def by_category(self, category: str) -> list[FalsePositivePattern]:
        return [p for p in self._patterns if p.category == category]

    def get(self, pattern_id: str) -> FalsePositivePattern | None:
        return next((p for p in self._patterns if p.id == pattern_id), None)

    def ids(self) -> list[str]:
        return [p.id for p in self._patterns]

    def stats(self) -> dict:
        by_category: dict[str, int] = {}
        by_severity: dict[str, int] = {}
        for p in self._patterns:
            by_category[p.category] = by_category.get(p.category, 0) + 1
            severity = p.severity or DEFAULT_SEVERITY
            by_severity[severity] = by_severity.get(severity, 0) + 1
        return {"total": len(self._patterns), "by_category": by_category, "by_severity": by_severity}


def pattern_from_dict(data: Mapping) -> FalsePositivePattern:
    """Build a pattern from configuration data.

    ``id``, ``category`` and ``explanation`` are required. ``indicators`` and
    ``context_markers`` are lists of strings, ``content_pattern`` is a regular
    expression source string.
    """
    if not isinstance(data, Mapping):
        raise ConfigError("Each false-positive pattern must be a mapping", key="false_positive_patterns")

    missing = [k for k in ("id", "category", "explanation") if not data.get(k)]
    if missing:
        raise ConfigError(
            f"False-positive pattern {data.get('id', '<unnamed>')!r} is missing {', '.join(missing)}",
            key="false_positive_patterns",
        )

    content_pattern = None
    if data.get("content_pattern"):
        try:
            content_pattern = re.compile(data["content_pattern"])
        except re.error as e:
            raise ConfigError(
                f"Invalid content_pattern for false-positive pattern {data['id']!r}: {e}",
                key="false_positive_patterns",
            ) from e

    markers = data.get("context_markers")
    return FalsePositivePattern(
        id=str(data["id"]),
        category=str(data["category"]),
        explanation=str(data["explanation"]),
        indicators=tuple(str(i) for i in data.get("indicators") or ()),
        content_pattern=content_pattern,
        context_markers=tuple(str(m) for m in markers) if markers else None,
        severity=data.get("severity"),
    )


def build_effective_catalog(
    builtin: PatternCatalog,
    framework_patterns: Iterable[FalsePositivePattern] = (),
    project_patterns: Iterable[FalsePositivePattern] = (),
    disabled_ids: Iterable[str] = (),
    framework_overrides: Mapping | None = None,
) -> PatternCatalog:
    """Assemble the catalog used for one review.

    Order: enabled built-ins, framework patterns, framework-specific custom
    patterns from configuration, then project patterns. Framework-specific
    disabled ids apply to everything assembled before them.
    """
    catalog = builtin.without(disabled_ids).extended(framework_patterns)

    overrides = framework_overrides or {}
    if overrides.get("disabled_builtin_patterns"):
        catalog = catalog.without(overrides["disabled_builtin_patterns"])
    if overrides.get("custom_patterns"):
        catalog = catalog.extended(pattern_from_dict(p) for p in overrides["custom_patterns"])

    catalog = catalog.extended(project_patterns).deduplicated()
    logger.debug("Effective false-positive catalog: %d pattern(s)", len(catalog))
    return catalog
