from __future__ import annotations

import logging
from collections.abc import Sequence

from dialectic_core.frameworks import FrameworkProfile, detect_affected_areas, is_critical_module
from dialectic_core.models import ChangedFile, ContextFlags, DetectedFramework, ReviewContext
from dialectic_core.utils.code import is_config_file, is_schema_file, is_test_file

logger = logging.getLogger(__name__)


def analyze_changes(
    files: Sequence[ChangedFile],
    framework: DetectedFramework,
    profile: FrameworkProfile,
) -> ReviewContext:
    """Derive risk flags, affected areas and total diff size for a change set."""
    paths = [f.path for f in files]
    flags = ContextFlags(
        critical_module=any(is_critical_module(p, profile) for p in paths),
        # An empty change is never config-only.
        config_only=bool(paths) and all(is_config_file(p) for p in paths),
        test_changed=any(is_test_file(p) for p in paths),
        schema_changed=any(is_schema_file(p) for p in paths),
    )
    context = ReviewContext(
        framework=framework,
        affected_areas=detect_affected_areas(paths, profile),
        flags=flags,
        diff_size=sum(len(f.content.encode("utf-8")) for f in files),
    )
    logger.info(
        "Analyzed %d file(s): %d bytes, critical=%s, config_only=%s, areas=%s",
        len(paths),
        context.diff_size,
        flags.critical_module,
        flags.config_only,
        ", ".join(context.affected_areas) or "none",
    )
    return context
