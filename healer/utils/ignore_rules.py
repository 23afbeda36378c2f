"""
Ignore Rules
============
Rules for ignoring generated files, dependencies, and non-source artifacts.

Ignored patterns:
    - node_modules/
    - .git/
    - dist/ / build/ / coverage/
    - .next/ / out/
    - backup directories written by the healer itself

These rules prevent the fix agent from rewriting generated or third-party
code. Diagnostics in ignored files are still counted: the total must match
what the type checker reports.
"""
_IGNORE_PATTERNS: list[str] = [
    "node_modules",
    ".git",
    "dist",
    "build",
    "coverage",
    ".next",
    "out",
    ".error-fix-backups",
]

_SOURCE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mts", ".cts")


def should_ignore(file_path: str, extra_patterns: tuple[str, ...] = ()) -> bool:
    """Return True if the file path is in an ignored directory."""
    normalized = file_path.replace("\\", "/")
    for pattern in (*_IGNORE_PATTERNS, *extra_patterns):
        pattern = pattern.strip("/")
        if f"/{pattern}/" in f"/{normalized}/":
            return True
    return False


def is_source_file(file_path: str) -> bool:
    """Return True for TypeScript / JavaScript sources a strategy may rewrite."""
    return file_path.endswith(_SOURCE_EXTENSIONS) and not file_path.endswith(".d.ts")
