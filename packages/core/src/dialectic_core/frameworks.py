"""Framework profiles: review guidance, priority rules and patterns per framework.

Each supported framework is a plain FrameworkProfile record in the PROFILES
table. Unknown framework tags fall back to the ``vanilla`` profile.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from dialectic_core.models import DetectedFramework, FalsePositivePattern, PriorityRule
from dialectic_core.utils.code import is_test_file

logger = logging.getLogger(__name__)

DEFAULT_FRAMEWORK = "vanilla"

SECURITY_DIRS = re.compile(r"(?:^|/)(?:auth|security|payments|billing)/")

# (area label, path regex) pairs checked for every framework.
COMMON_AREA_RULES: tuple[tuple[str, re.Pattern], ...] = (
    ("Auth", re.compile(r"(?:^|/)auth/")),
    ("Payments", re.compile(r"(?:^|/)(?:payments|billing)/")),
    ("Security", re.compile(r"(?:^|/)security/")),
    ("API", re.compile(r"(?:^|/)api/")),
)
TESTS_AREA = "Tests"

# Shared by every profile; appended after the framework's own patterns.
COMMON_PATTERNS: tuple[FalsePositivePattern, ...] = (
    FalsePositivePattern(
        id="console-log-intentional",
        category="logging",
        explanation="Console.log in development/debug code may be intentional",
        indicators=("console.log should be removed", "use proper logging"),
    ),
    FalsePositivePattern(
        id="any-type-intentional",
        category="validation",
        explanation="Some 'any' types are intentional for flexibility",
        indicators=("avoid using any", "use proper type"),
    ),
)


@dataclass(frozen=True)
class FrameworkProfile:
    """Everything framework-specific that a review needs.

    ``instructions`` is the long best-practice block, ``guidance`` the short
    summary given to the model. ``priority_rules`` run before the built-in
    prioritizer rules.
    """

    name: str
    label: str
    instructions: str
    guidance: str
    false_positive_patterns: tuple[FalsePositivePattern, ...] = ()
    priority_rules: tuple[PriorityRule, ...] = ()
    critical_path_patterns: tuple[re.Pattern, ...] = ()
    area_rules: tuple[tuple[str, re.Pattern], ...] = ()

    @property
    def patterns(self) -> tuple[FalsePositivePattern, ...]:
        return self.false_positive_patterns + COMMON_PATTERNS


def _rule(pattern: str, tier: str, reason: str) -> PriorityRule:
    return PriorityRule(re.compile(pattern), tier, reason)


def _area(label: str, pattern: str) -> tuple[str, re.Pattern]:
    return label, re.compile(pattern)


NESTJS = FrameworkProfile(
    name="nestjs",
    label="NestJS",
    instructions="""\
FRAMEWORK: NestJS
BEST_PRACTICES:
  dependency_injection:
    - use_constructor_injection: true
    - avoid_property_injection: true
  error_handling:
    - use_exception_filters: true
    - throw_http_exceptions: true
  validation:
    - use_class_validator_dtos: true
  architecture:
    - avoid_circular_dependencies: true
    - single_responsibility_modules: true
  guards_and_interceptors:
    - guards_for_authorization: true
    - interceptors_for_transformation: true
COMMON_FALSE_POSITIVES:
  - "throw new Error" is acceptable with AllExceptionsFilter
  - "new" keyword is intentional for DTOs and entities
  - Logger dependency injection is project pattern
  - "@Inject()" for custom providers is correct
  - circular dependency warnings may be false positive with forwardRef""",
    guidance="""\
**NestJS Best Practices**:
- Dependency Injection: Use constructor injection
- Guards vs Interceptors: Guards for auth, Interceptors for transformation
- Exception Filters: Custom filters for consistent error responses
- DTOs: Use class-validator for validation
- Modules: Avoid circular dependencies""",
    false_positive_patterns=(
        FalsePositivePattern(
            id="nestjs-circular-dependency",
            category="dependency-injection",
            explanation="forwardRef() handles intentional circular dependencies",
            indicators=("circular dependency detected", "module import cycle"),
        ),
        FalsePositivePattern(
            id="nestjs-decorator-return",
            category="validation",
            explanation="Decorators don't need explicit return in many cases",
            indicators=("decorator should return", "missing return statement in decorator"),
        ),
    ),
    priority_rules=(
        _rule(r"\.(?:controller|guard|middleware)\.ts$", "critical", "HTTP security layer"),
        _rule(r"\.(?:service|repository)\.ts$", "high", "Business logic"),
        _rule(r"\.entity\.ts$", "high", "Database schema"),
        _rule(r"\.interceptor\.ts$", "high", "Request/Response transformation"),
        _rule(r"\.(?:dto|pipe)\.ts$", "normal", "Data transfer/validation"),
        _rule(r"\.module\.ts$", "normal", "Module definition"),
    ),
    critical_path_patterns=(
        re.compile(r"\.(?:guard|middleware)\.ts$"),
        re.compile(r"auth\.(?:controller|service)\.ts$"),
    ),
    area_rules=(
        _area("HTTP Layer", r"\.(?:controller|guard|interceptor)\.ts$"),
        _area("Business Logic", r"\.(?:service|repository)\.ts$"),
        _area("Database Schema", r"\.entity\.ts"),
        _area("Module Structure", r"\.module\.ts"),
        _area("Data Transfer", r"\.dto\.ts"),
        _area("Validation Pipes", r"\.pipe\.ts"),
    ),
)

NEXTJS = FrameworkProfile(
    name="nextjs",
    label="Next.js",
    instructions="""\
FRAMEWORK: Next.js
BEST_PRACTICES:
  components:
    - prefer_server_components: true
    - mark_client_components_explicitly: true
  data_fetching:
    - use_async_server_components: true
    - avoid_useeffect_for_data: true
    - use_server_actions_for_mutations: true
  api_routes:
    - validate_all_input: true
    - use_proper_http_status_codes: true
  optimization:
    - use_next_image: true
    - use_dynamic_imports_for_heavy_components: true
  routing:
    - use_app_router_conventions: true
    - proper_loading_and_error_boundaries: true
COMMON_FALSE_POSITIVES:
  - async Server Components without useEffect is correct
  - "use client" directive is intentional marking
  - default export for pages is required convention
  - Server Actions (use server) are intentional""",
    guidance="""\
**Next.js Best Practices**:
- Server Components: Prefer Server Components by default
- Data Fetching: Use async Server Components, not useEffect
- API Routes: Validate input, use proper HTTP status codes
- Metadata: Use generateMetadata for SEO
- Image: Always use next/image for optimization""",
    false_positive_patterns=(
        FalsePositivePattern(
            id="nextjs-server-component-async",
            category="validation",
            explanation="Async Server Components are the recommended pattern in Next.js 13+",
            indicators=("await in component body", "should use useEffect for data fetching"),
        ),
        FalsePositivePattern(
            id="nextjs-server-action",
            category="validation",
            explanation="'use server' directive for Server Actions is correct",
            indicators=("use server is unknown", "invalid directive"),
        ),
        FalsePositivePattern(
            id="nextjs-image-component",
            category="performance",
            explanation="next/image is the optimized way to handle images",
            indicators=("should use native img", "next/image is overkill"),
        ),
    ),
    priority_rules=(
        _rule(r"(?:^|/)api/.*\.(?:ts|js)$", "critical", "API endpoint"),
        _rule(r"route\.(?:ts|js)$", "critical", "Route handler"),
        _rule(r"(?:^|/)auth/.*\.(?:tsx?|jsx?)$", "critical", "Auth logic"),
        _rule(r"middleware\.(?:ts|js)$", "critical", "Middleware"),
        _rule(r"page\.(?:tsx|ts|jsx|js)$", "high", "Page component"),
        _rule(r"layout\.(?:tsx|ts|jsx|js)$", "high", "Layout component"),
        _rule(r"\.action\.(?:ts|js)$", "high", "Server Action"),
        _rule(r"(?:^|/)components/.*\.(?:tsx|jsx)$", "normal", "Component"),
    ),
    critical_path_patterns=(
        re.compile(r"(?:^|/)api/"),
        re.compile(r"route\.(?:ts|js)$"),
        re.compile(r"middleware\.(?:ts|js)$"),
    ),
    area_rules=(
        _area("API Routes", r"(?:^|/)api/|/route\."),
        _area("Pages", r"page\.tsx?"),
        _area("Layouts", r"layout\.tsx?"),
        _area("Components", r"(?:^|/)components/"),
        _area("Loading/Error States", r"(?:loading|error)\.tsx"),
        _area("Middleware", r"middleware\.ts"),
        _area("Server Actions", r"(?:^|/)actions/|\.action\.ts"),
    ),
)

REACT = FrameworkProfile(
    name="react",
    label="React",
    instructions="""\
FRAMEWORK: React
BEST_PRACTICES:
  hooks:
    - follow_rules_of_hooks: true
    - include_all_dependencies: true
    - cleanup_effects: true
  performance:
    - use_memo_appropriately: true
    - use_callback_for_child_optimization: true
    - use_virtualization_for_long_lists: true
  state:
    - colocate_state: true
    - avoid_prop_drilling_with_context: true
  lists:
    - stable_unique_keys: true
    - avoid_index_as_key_for_dynamic_lists: true
COMMON_FALSE_POSITIVES:
  - intentional dependency omissions with eslint-disable
  - memo usage is performance optimization
  - empty dependency array for mount-only effects is correct
  - index as key is acceptable for static lists""",
    guidance="""\
**React Best Practices**:
- Hooks: Follow Rules of Hooks
- useEffect: Include all dependencies, cleanup when needed
- Performance: Use memo/useMemo/useCallback appropriately
- State: Keep state close to where it's used
- Keys: Use stable, unique keys in lists""",
    false_positive_patterns=(
        FalsePositivePattern(
            id="react-use-callback",
            category="validation",
            explanation="useCallback prevents unnecessary re-renders of child components",
            indicators=("useCallback is unnecessary", "inline function is fine"),
        ),
        FalsePositivePattern(
            id="react-eslint-disable-deps",
            category="validation",
            explanation="eslint-disable for exhaustive-deps may be intentional",
            indicators=("fix dependency array",),
        ),
    ),
    priority_rules=(
        _rule(r"(?:^|/)hooks/.*\.(?:ts|tsx|js|jsx)$", "high", "Custom hook"),
        _rule(r"\.hook\.(?:ts|tsx|js|jsx)$", "high", "Custom hook"),
        _rule(r"(?:^|/)(?:store|redux|zustand)/", "high", "State management"),
        _rule(r"(?:^|/)context/.*\.(?:ts|tsx|js|jsx)$", "high", "React Context"),
        _rule(r"(?:^|/)components/.*\.(?:tsx|jsx)$", "normal", "React component"),
        _rule(r"(?:^|/)pages/.*\.(?:tsx|jsx)$", "normal", "Page component"),
    ),
    critical_path_patterns=(
        re.compile(r"AuthContext"),
        re.compile(r"useAuth"),
    ),
    area_rules=(
        _area("Components", r"(?:^|/)components/"),
        _area("Hooks", r"(?:^|/)hooks/|\.hook\."),
        _area("State Management", r"(?:^|/)(?:store|redux|zustand)/"),
        _area("Context", r"(?:^|/)context/|\.context\."),
        _area("Utilities", r"(?:^|/)(?:utils|helpers)/"),
        _area("API/Services", r"(?:^|/)(?:services|api)/"),
    ),
)

EXPRESS = FrameworkProfile(
    name="express",
    label="Express",
    instructions="""\
FRAMEWORK: Express
BEST_PRACTICES:
  middleware:
    - correct_order: true
    - error_handlers_last: true
    - use_next_properly: true
  async_handling:
    - use_async_await_with_try_catch: true
    - wrap_async_handlers: true
  validation:
    - validate_all_user_input: true
    - use_validation_libraries: [joi, zod, express-validator]
  security:
    - use_helmet: true
    - implement_rate_limiting: true
  error_handling:
    - centralized_error_handler: true
    - dont_expose_stack_traces: true
COMMON_FALSE_POSITIVES:
  - middleware order is intentional architecture
  - custom error handler is standard pattern
  - next() call pattern is correct
  - response.json() without explicit return is valid""",
    guidance="""\
**Express Best Practices**:
- Middleware: Order matters, error handlers last
- Error Handling: Use async/await with try-catch or error middleware
- Validation: Validate all user input
- Security: Use helmet, rate limiting
- Routing: Use Router for modular routes""",
    false_positive_patterns=(
        FalsePositivePattern(
            id="express-next-call",
            category="validation",
            explanation="next() call pattern for middleware chaining is correct",
            indicators=("next() called unnecessarily", "should not call next"),
        ),
    ),
    priority_rules=(
        _rule(r"auth\.middleware\.(?:ts|js)$", "critical", "Auth middleware"),
        _rule(r"(?:^|/)routes/.*\.(?:ts|js)$", "high", "Route definitions"),
        _rule(r"\.routes?\.(?:ts|js)$", "high", "Route file"),
        _rule(r"(?:^|/)services/.*\.(?:ts|js)$", "high", "Service layer"),
        _rule(r"(?:^|/)models/.*\.(?:ts|js)$", "normal", "Data model"),
        _rule(r"(?:^|/)validators/.*\.(?:ts|js)$", "normal", "Validator"),
    ),
    critical_path_patterns=(
        re.compile(r"auth\.middleware"),
        re.compile(r"security\.middleware"),
        re.compile(r"rate[-_]?limit"),
    ),
    area_rules=(
        _area("Routes", r"(?:^|/)routes/|\.routes\."),
        _area("Middleware", r"(?:^|/)middleware/|\.middleware\."),
        _area("Controllers", r"(?:^|/)controllers/|\.controller\."),
        _area("Services", r"(?:^|/)services/|\.service\."),
        _area("Models", r"(?:^|/)models/|\.model\."),
        _area("Validators", r"(?:^|/)validators/|\.validator\."),
    ),
)

VANILLA = FrameworkProfile(
    name="vanilla",
    label="TypeScript/JavaScript",
    instructions="""\
FRAMEWORK: TypeScript/JavaScript
BEST_PRACTICES:
  types:
    - avoid_any: true
    - use_type_guards: true
  async:
    - handle_promise_rejections: true
    - use_async_await_over_then: true
  errors:
    - throw_typed_errors: true
    - include_error_context: true
  null_safety:
    - check_null_undefined: true
    - use_optional_chaining: true
  code_quality:
    - single_responsibility: true
    - avoid_deep_nesting: true
COMMON_FALSE_POSITIVES:
  - Intentional any for third-party library compatibility
  - Type assertions for known safe operations
  - Empty catch blocks with explicit comments
  - Console statements in CLI tools are acceptable""",
    guidance="""\
**TypeScript/JavaScript Best Practices**:
- Type Safety: Avoid 'any', use proper types
- Async/Await: Handle promise rejections
- Error Handling: Throw typed errors
- Null Safety: Check for null/undefined""",
    false_positive_patterns=(
        FalsePositivePattern(
            id="ts-empty-catch",
            category="error-handling",
            explanation="Empty catch blocks with comments may be intentional",
            indicators=("empty catch block", "swallowing errors"),
        ),
    ),
    priority_rules=(
        _rule(r"(?:^|/)(?:core|lib)/.*\.(?:ts|js)$", "high", "Core library code"),
        _rule(r"\.d\.ts$", "high", "Type definitions"),
        _rule(r"(?:^|/)(?:utils|helpers)/.*\.(?:ts|js)$", "normal", "Utility functions"),
        _rule(r"(?:^|/)(?:scripts|bin)/.*\.(?:ts|js)$", "normal", "Script file"),
    ),
    critical_path_patterns=(re.compile(r"\.(?:guard|middleware)\.(?:ts|js)$"),),
    area_rules=(
        _area("Utilities", r"(?:^|/)(?:utils|helpers)/"),
        _area("Core Library", r"(?:^|/)(?:lib|core)/"),
        _area("Type Definitions", r"(?:^|/)types/|\.d\.ts"),
        _area("Configuration", r"(?:^|/)config/|\.config\."),
        _area("Scripts", r"(?:^|/)(?:scripts|bin)/"),
    ),
)

PROFILES: dict[str, FrameworkProfile] = {p.name: p for p in (NESTJS, NEXTJS, REACT, EXPRESS, VANILLA)}


def get_profile(name: str | None) -> FrameworkProfile:
    profile = PROFILES.get((name or "").lower())
    if profile is None:
        if name:
            logger.debug("No profile for framework %r, using %s", name, DEFAULT_FRAMEWORK)
        return PROFILES[DEFAULT_FRAMEWORK]
    return profile


def is_critical_module(path: str, profile: FrameworkProfile) -> bool:
    if SECURITY_DIRS.search(path):
        return True
    return any(p.search(path) for p in profile.critical_path_patterns)


def detect_affected_areas(paths: Iterable[str], profile: FrameworkProfile) -> list[str]:
    paths = list(paths)
    areas: list[str] = []
    for label, pattern in COMMON_AREA_RULES:
        if any(pattern.search(p) for p in paths):
            areas.append(label)
    if any(is_test_file(p) for p in paths):
        areas.append(TESTS_AREA)
    for label, pattern in profile.area_rules:
        if label not in areas and any(pattern.search(p) for p in paths):
            areas.append(label)
    return areas


def _dependency_version(package_json: Mapping, name: str) -> str | None:
    for section in ("dependencies", "devDependencies"):
        deps = package_json.get(section) or {}
        if deps.get(name):
            return re.sub(r"^[\^~>=<]+", "", str(deps[name]))
    return None


# Checked in order; Next.js must win over plain React.
_DETECTION_ORDER = (
    ("@nestjs/core", "nestjs", "high"),
    ("next", "nextjs", "high"),
    ("react", "react", "high"),
    ("express", "express", "medium"),
)


def detect_framework(package_json: Mapping | None) -> DetectedFramework:
    """Pick a framework from the dependency names in a parsed package.json."""
    package_json = package_json or {}
    for dependency, name, confidence in _DETECTION_ORDER:
        version = _dependency_version(package_json, dependency)
        if version is not None:
            logger.info("Detected framework: %s %s", PROFILES[name].label, version or "unknown")
            return DetectedFramework(name=name, confidence=confidence, version=version or None)
    logger.info("No specific framework detected, using %s", DEFAULT_FRAMEWORK)
    return DetectedFramework(name=DEFAULT_FRAMEWORK, confidence="high")
