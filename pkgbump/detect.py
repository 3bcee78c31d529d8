"""Ecosystem detection for dependency manifests."""

import re

PYTHON_MANIFESTS = ("requirements.txt", "pyproject.toml", "Pipfile", "setup.cfg")
NODE_MANIFESTS = ("package.json",)


def identify(content: str, filename: str | None = None) -> str:
    """Detect ecosystem from content and filename hints.

    Only node manifests can be checked; other ecosystems are detected so they
    can be rejected with a clear message.

    Args:
        content: The manifest file content
        filename: Optional filename for additional context

    Returns:
        Detected ecosystem: 'node', 'python', or 'unknown'
    """
    # Filename-based detection (takes precedence)
    if filename:
        if filename.endswith(NODE_MANIFESTS):
            return "node"
        if filename.endswith(PYTHON_MANIFESTS):
            return "python"

    stripped = content.lstrip("\ufeff \t\r\n")

    # package.json is the only JSON manifest we know
    if stripped.startswith("{"):
        return "node"

    python_patterns = [
        r"^[a-zA-Z0-9\-_.]+\s*(?:\[.*?\])?\s*(?:==|>=|<=|~=|!=)",  # package>=1.0.0
        r"^\[(?:project|tool\.poetry)\]",  # pyproject.toml tables
    ]

    for pattern in python_patterns:
        if re.search(pattern, stripped, re.MULTILINE):
            return "python"

    return "unknown"
