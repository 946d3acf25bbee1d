"""Built-in false-positive catalog.

Each entry describes a class of issue the model tends to over-report in
TypeScript/JavaScript projects. Indicators are matched case-insensitively
against the issue's title, description and suggestion.
"""

from __future__ import annotations

import re

from dialectic_core.false_positive.catalog import PatternCatalog
from dialectic_core.models import FalsePositivePattern as P

BUILTIN_PATTERNS = PatternCatalog(
    [
        # --- SQL injection & database ---
        P(
            id="prisma-tagged-template-safe",
            category="sql-injection",
            content_pattern=re.compile(r"\$executeRaw`.*\$\{.*\}`"),
            explanation="Prisma tagged template literals auto-escape all ${} values, preventing SQL injection",
            severity="critical",
            indicators=(
                "SQL Injection in Prisma $executeRaw",
                "parameter binding bypass",
                "constant directly inserted",
                "unsafe raw query",
            ),
        ),
        P(
            id="prisma-queryraw-safe",
            category="sql-injection",
            content_pattern=re.compile(r"\$queryRaw`.*\$\{.*\}`"),
            explanation="Prisma $queryRaw with tagged template is parameterized and safe",
            severity="critical",
            indicators=("SQL injection in queryRaw", "unparameterized query"),
        ),
        P(
            id="typeorm-query-builder",
            category="sql-injection",
            explanation="TypeORM QueryBuilder with parameters (:param) is safe from SQL injection",
            indicators=("SQL injection in QueryBuilder", "unsanitized input in query"),
        ),
        P(
            id="knex-parameterized",
            category="sql-injection",
            explanation="Knex.js with ? placeholders or object syntax is parameterized",
            indicators=("SQL injection in Knex query", "raw SQL vulnerability"),
        ),
        # --- Error handling ---
        P(
            id="nestjs-throw-error-with-filter",
            category="error-handling",
            explanation=(
                "AllExceptionsFilter in NestJS converts all errors to proper HTTP responses "
                "without exposing internals"
            ),
            context_markers=("AllExceptionsFilter", "common/filters"),
            severity="high",
            indicators=(
                "throw new Error should be InternalServerErrorException",
                "DB error exposure risk",
                "internal error leaked to client",
            ),
        ),
        P(
            id="express-error-middleware",
            category="error-handling",
            explanation="Express error middleware with 4 parameters handles errors centrally",
            indicators=("unhandled error in route", "error not caught", "missing error handling"),
        ),
        P(
            id="async-error-wrapper",
            category="error-handling",
            explanation="Async error wrapper utilities (express-async-handler, catchAsync) handle promise rejections",
            indicators=("unhandled promise rejection", "missing try-catch in async", "promise rejection not handled"),
        ),
        P(
            id="intentional-throw",
            category="error-handling",
            explanation="Throwing errors in validation or business logic is intentional control flow",
            indicators=("should not throw here", "use return instead of throw"),
        ),
        # --- Dependency injection ---
        P(
            id="nestjs-constructor-di",
            category="dependency-injection",
            explanation="NestJS manages DI lifecycle; 'new' keyword is intentional for DTOs, entities, and value objects",
            indicators=(
                "should use dependency injection instead of new",
                "tight coupling with new keyword",
                "manual instantiation anti-pattern",
            ),
        ),
        P(
            id="nestjs-inject-decorator",
            category="dependency-injection",
            explanation="@Inject() for custom providers and tokens is correct NestJS pattern",
            indicators=("use constructor injection", "@Inject is unnecessary"),
        ),
        P(
            id="inversify-inject",
            category="dependency-injection",
            explanation="InversifyJS @inject decorators are standard DI pattern",
            indicators=("avoid decorator injection", "use constructor params"),
        ),
        # --- Logging ---
        P(
            id="nestjs-logger-pattern",
            category="logging",
            explanation="Logger with constructor name (new Logger(ClassName.name)) is standard NestJS pattern",
            indicators=(
                "Logger should not use DI",
                "new Logger(ClassName.name) is anti-pattern",
                "should inject Logger",
            ),
        ),
        P(
            id="console-in-cli",
            category="logging",
            explanation="console.log in CLI tools and scripts is acceptable and intentional",
            indicators=(
                "remove console.log",
                "use proper logger instead of console",
                "console statement should be removed",
            ),
        ),
        P(
            id="debug-logging",
            category="logging",
            explanation="Debug logging statements may be intentional for development",
            indicators=("debug log should be removed", "verbose logging unnecessary"),
        ),
        # --- Authentication & security ---
        P(
            id="jwt-secret-env",
            category="authentication",
            explanation="JWT secrets loaded from environment variables are secure",
            indicators=("hardcoded JWT secret", "secret should not be in code"),
        ),
        P(
            id="bcrypt-rounds",
            category="authentication",
            explanation="bcrypt with 10-12 rounds is industry standard",
            indicators=("insufficient hash rounds", "weak password hashing"),
        ),
        P(
            id="auth-decorator",
            category="authentication",
            explanation="Custom auth decorators (@Auth, @Public) are valid patterns",
            indicators=("missing authentication check", "unprotected endpoint"),
        ),
        # --- Validation ---
        P(
            id="class-validator-dto",
            category="validation",
            explanation="class-validator decorators on DTOs handle input validation",
            indicators=("missing input validation", "unvalidated user input", "should validate input"),
        ),
        P(
            id="zod-schema",
            category="validation",
            explanation="Zod schemas provide runtime type validation",
            indicators=("type not validated at runtime", "missing validation"),
        ),
        P(
            id="joi-schema",
            category="validation",
            explanation="Joi schemas validate input data",
            indicators=("input not validated", "missing schema validation"),
        ),
        # --- TypeScript ---
        P(
            id="ts-any-intentional",
            category="validation",
            explanation="Some 'any' types are intentional for third-party lib compatibility or dynamic data",
            indicators=("should not use any", "replace any with proper type", "any is dangerous", "avoid using any"),
        ),
        P(
            id="ts-type-assertion",
            category="validation",
            explanation="Type assertions (as X) may be intentional for known-safe type narrowing",
            indicators=("avoid type assertions", "type assertion is unsafe", "use type guard instead"),
        ),
        P(
            id="ts-non-null-assertion",
            category="validation",
            explanation="Non-null assertion (!) may be valid when nullability is guaranteed by prior checks",
            indicators=("avoid non-null assertion", "! operator is dangerous", "use optional chaining"),
        ),
        P(
            id="ts-empty-interface",
            category="validation",
            explanation="Empty interfaces may be intentional for future extension or type branding",
            indicators=("empty interface", "interface has no members"),
        ),
        # --- React ---
        P(
            id="react-empty-deps",
            category="validation",
            explanation="Empty dependency array [] is correct for mount-only effects",
            indicators=("missing dependencies in useEffect", "empty dependency array", "exhaustive deps warning"),
        ),
        P(
            id="react-memo-optimization",
            category="performance",
            explanation="React.memo is a valid performance optimization pattern",
            indicators=("unnecessary memo", "premature optimization", "memo is not needed"),
        ),
        P(
            id="react-index-key-static",
            category="validation",
            explanation="Index as key is acceptable for static, non-reorderable lists",
            indicators=("don't use index as key", "index key is anti-pattern"),
        ),
        P(
            id="react-eslint-disable",
            category="validation",
            explanation="eslint-disable comments for hooks deps may be intentional",
            indicators=("remove eslint-disable", "fix the underlying issue"),
        ),
        # --- Next.js ---
        P(
            id="nextjs-server-component",
            category="validation",
            explanation="Async Server Components without useEffect are the correct Next.js 13+ pattern",
            indicators=(
                "async component without useEffect",
                "should use useEffect for data",
                "missing loading state",
            ),
        ),
        P(
            id="nextjs-use-client",
            category="validation",
            explanation="'use client' directive marks intentional client components",
            indicators=("use client unnecessary", "should be server component"),
        ),
        P(
            id="nextjs-default-export",
            category="validation",
            explanation="Default exports for pages/layouts are required Next.js convention",
            indicators=("prefer named exports", "default export anti-pattern"),
        ),
        # --- Express ---
        P(
            id="express-middleware-order",
            category="validation",
            explanation="Middleware order is intentional architecture decision",
            indicators=("middleware order wrong", "reorder middleware", "incorrect placement"),
        ),
        P(
            id="express-error-handler-params",
            category="error-handling",
            explanation="Error handler with 4 params (err, req, res, next) is Express convention",
            indicators=("unused next parameter", "unused error parameter"),
        ),
        P(
            id="express-res-json-return",
            category="validation",
            explanation="res.json() without explicit return is valid when it's the last statement",
            indicators=("missing return before res", "should return res.json"),
        ),
    ]
)
