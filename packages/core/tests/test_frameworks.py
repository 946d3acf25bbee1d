"""Tests for framework profiles and detection."""

import pytest

from dialectic_core.frameworks import (
    COMMON_PATTERNS,
    NESTJS,
    PROFILES,
    VANILLA,
    detect_affected_areas,
    detect_framework,
    get_profile,
    is_critical_module,
)
from dialectic_core.prioritizer import FilePrioritizer


class TestGetProfile:
    def test_known_profile(self):
        assert get_profile("nestjs") is NESTJS

    def test_case_insensitive(self):
        assert get_profile("NestJS") is NESTJS

    @pytest.mark.parametrize("name", ["angular", "", None])
    def test_unknown_falls_back_to_vanilla(self, name):
        assert get_profile(name) is VANILLA

    def test_every_profile_has_guidance(self):
        for profile in PROFILES.values():
            assert profile.guidance
            assert profile.instructions

    def test_patterns_include_common_entries(self):
        for profile in PROFILES.values():
            assert profile.patterns[-len(COMMON_PATTERNS) :] == COMMON_PATTERNS


class TestDetectFramework:
    def test_nestjs(self):
        result = detect_framework({"dependencies": {"@nestjs/core": "^10.2.0", "express": "^4"}})
        assert result.name == "nestjs"
        assert result.version == "10.2.0"
        assert result.confidence == "high"

    def test_next_wins_over_react(self):
        result = detect_framework({"dependencies": {"react": "18.2.0", "next": "~14.1.0"}})
        assert result.name == "nextjs"
        assert result.version == "14.1.0"

    def test_react_from_dev_dependencies(self):
        assert detect_framework({"devDependencies": {"react": ">=18"}}).name == "react"

    def test_express_is_medium_confidence(self):
        result = detect_framework({"dependencies": {"express": "4.18.2"}})
        assert (result.name, result.confidence) == ("express", "medium")

    @pytest.mark.parametrize("package_json", [None, {}, {"dependencies": {"lodash": "4"}}])
    def test_default_is_vanilla(self, package_json):
        result = detect_framework(package_json)
        assert (result.name, result.confidence, result.version) == ("vanilla", "high", None)


class TestCriticalModules:
    @pytest.mark.parametrize("path", ["src/auth/jwt.ts", "billing/invoice.ts", "src/security/csp.ts"])
    def test_security_directories_always_critical(self, path):
        assert is_critical_module(path, VANILLA) is True

    def test_framework_critical_paths(self):
        assert is_critical_module("src/roles.guard.ts", NESTJS) is True
        assert is_critical_module("src/users/auth.service.ts", NESTJS) is True

    def test_regular_file_is_not_critical(self):
        assert is_critical_module("src/users/users.service.ts", NESTJS) is False


class TestAffectedAreas:
    def test_common_then_tests_then_framework(self):
        paths = ["src/users/users.controller.ts", "src/auth/auth.service.ts", "src/users/users.service.spec.ts"]
        assert detect_affected_areas(paths, NESTJS) == ["Auth", "Tests", "HTTP Layer", "Business Logic"]

    def test_no_areas(self):
        assert detect_affected_areas(["README.md"], VANILLA) == []

    def test_areas_are_unique(self):
        areas = detect_affected_areas(["src/api/users.ts", "app/api/route.ts"], PROFILES["nextjs"])
        assert len(areas) == len(set(areas))


class TestProfilePriorityRules:
    def test_nestjs_module_rule_leads(self):
        prioritizer = FilePrioritizer(leading_rules=NESTJS.priority_rules)
        assert prioritizer.assign("src/app.module.ts") == ("normal", "Module definition")

    def test_builtins_still_apply(self):
        prioritizer = FilePrioritizer(leading_rules=NESTJS.priority_rules)
        assert prioritizer.assign("README.md")[0] == "low"
