"""Tests for change-set analysis."""

from dialectic_core.analyzer import analyze_changes
from dialectic_core.frameworks import NESTJS, VANILLA
from dialectic_core.models import ChangedFile, DetectedFramework

FRAMEWORK = DetectedFramework(name="nestjs", version="10.0.0")


def _files(*paths, content="+x"):
    return [ChangedFile(path=p, content=content) for p in paths]


class TestAnalyzeChanges:
    def test_config_only(self):
        context = analyze_changes(_files("package.json", "tsconfig.json", "README.md"), FRAMEWORK, NESTJS)
        assert context.flags.config_only is True
        assert context.flags.critical_module is False

    def test_mixed_change_is_not_config_only(self):
        context = analyze_changes(_files("package.json", "src/main.ts"), FRAMEWORK, NESTJS)
        assert context.flags.config_only is False

    def test_empty_change_is_not_config_only(self):
        context = analyze_changes([], FRAMEWORK, NESTJS)
        assert context.flags.config_only is False
        assert context.diff_size == 0

    def test_critical_and_test_flags(self):
        context = analyze_changes(_files("src/auth/auth.service.ts", "src/auth/auth.service.spec.ts"), FRAMEWORK, NESTJS)
        assert context.flags.critical_module is True
        assert context.flags.test_changed is True
        assert context.flags.schema_changed is False

    def test_schema_flag(self):
        context = analyze_changes(_files("src/users/user.entity.ts"), FRAMEWORK, NESTJS)
        assert context.flags.schema_changed is True

    def test_diff_size_counts_utf8_bytes(self):
        context = analyze_changes(_files("a.ts", "b.ts", content="é"), FRAMEWORK, VANILLA)
        assert context.diff_size == 4

    def test_keeps_framework_and_areas(self):
        context = analyze_changes(_files("src/users/users.controller.ts"), FRAMEWORK, NESTJS)
        assert context.framework is FRAMEWORK
        assert context.affected_areas == ["HTTP Layer"]
