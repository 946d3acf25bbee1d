import fnmatch
import math

NON_CODE_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".svg",
    ".ico",
    ".webp",
    ".bmp",
    ".pdf",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    ".otf",
    ".mp4",
    ".mp3",
    ".wav",
    ".ogg",
    ".zip",
    ".tar",
    ".gz",
    ".rar",
    ".7z",
    ".lock",  # e.g. package-lock.json, Pipfile.lock
    ".lockb",
}

# Paths that must never be sent to the completion service: secrets, lock files,
# build output, vendored dependencies and generated code.
DEFAULT_EXCLUDES = [
    ".env",
    ".env.*",
    "secrets/",
    "*.pem",
    "*.key",
    "*.p12",
    "*.pfx",
    "id_rsa*",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "*.min.js",
    "*.min.css",
    "*.bundle.js",
    "dist/",
    "build/",
    ".next/",
    ".nuxt/",
    "node_modules/",
    "*.generated.ts",
    "*.generated.js",
    "generated/",
    "__generated__/",
    ".DS_Store",
    "Thumbs.db",
]

CONFIG_EXTENSIONS = (".json", ".yaml", ".yml", ".toml", ".ini", ".cfg", ".md", ".rst", ".txt")
CONFIG_NAMES = (
    "package.json",
    "tsconfig.json",
    "nest-cli.json",
    "jest.config",
    "vite.config",
    "next.config",
    ".eslintrc",
    ".prettierrc",
)


def is_code_file(file_name: str) -> bool:
    return not any(file_name.lower().endswith(ext) for ext in NON_CODE_EXTENSIONS)


def is_test_file(file_name: str) -> bool:
    path = "/" + file_name
    name = file_name.rsplit("/", 1)[-1]
    return (
        ".test." in name
        or ".spec." in name
        or "/__tests__/" in path
        or "/tests/" in path
        or (name.startswith("test_") and name.endswith(".py"))
        or name.endswith(("_test.py", "_test.go"))
    )


def is_schema_file(file_name: str) -> bool:
    return (
        ".entity." in file_name
        or ".schema." in file_name
        or ".model." in file_name
        or "/migrations/" in "/" + file_name
    )


def is_config_file(file_name: str) -> bool:
    return file_name.endswith(CONFIG_EXTENSIONS) or any(name in file_name for name in CONFIG_NAMES)


def is_excluded(filename: str, patterns: list[str]) -> bool:
    """Return True if filename matches any exclude pattern.

    Supports:
    - fnmatch globs on the full path: "src/generated/*.py"
    - fnmatch globs on the basename: "*.lock", "*.min.js"
    - Directory names/prefixes: "migrations/", "tests" (matches any file within that tree)
    """
    for pattern in patterns:
        if fnmatch.fnmatch(filename, pattern):
            return True
        # Basename match: "*.lock" matches "path/to/yarn.lock"
        if fnmatch.fnmatch(filename.rsplit("/", 1)[-1], pattern):
            return True
        # Directory prefix: "migrations" or "migrations/" matches "app/migrations/0001.py"
        prefix = pattern.rstrip("/") + "/"
        if filename.startswith(prefix) or ("/" + prefix) in filename:
            return True
    return False


def estimate_tokens(text: str) -> int:
    """Rough token count: one token per four characters, rounded up."""
    return math.ceil(len(text) / 4)
