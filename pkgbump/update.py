"""Minimal-diff manifest rewriting and atomic writes."""

import difflib
import json
import logging
import os
import tempfile
from pathlib import Path

from .errors import ManifestError, WriteError
from .models import Manifest, ResolutionResult

logger = logging.getLogger(__name__)


def update_manifest_content(manifest: Manifest, results: list[ResolutionResult]) -> str:
    """Apply resolved updates to the raw manifest text.

    Only the string tokens holding outdated ranges are replaced; key order,
    whitespace and every unrelated field stay byte-for-byte identical.

    Args:
        manifest: The parsed original manifest
        results: Resolution results; only those with a change are applied

    Returns:
        The updated manifest text
    """
    replacements = []
    for result in results:
        if not result.has_change:
            continue
        span = result.entry.span
        if span is None:
            raise ManifestError(
                f"No location recorded for {result.entry.name} in {result.entry.group.manifest_key}"
            )
        replacements.append((span, json.dumps(result.new_spec, ensure_ascii=False)))

    content = manifest.raw
    # Right to left so earlier offsets stay valid
    for (start, end), token in sorted(replacements, reverse=True):
        content = content[:start] + token + content[end:]

    return content


def format_diff(original: str, updated: str, path: str) -> str:
    """Format a unified diff between two manifest versions."""
    lines = difflib.unified_diff(
        original.splitlines(keepends=True),
        updated.splitlines(keepends=True),
        fromfile=path,
        tofile=path,
    )
    return "".join(lines)


def write_manifest_atomic(path: str | Path, content: str) -> None:
    """Replace a file's contents atomically.

    The content goes to a temporary file in the same directory, which is
    then renamed over the target, so readers see either the old or the new
    file and never a partial one.

    Raises:
        WriteError: If the file cannot be written or replaced
    """
    target = Path(path)
    tmp_name = None
    try:
        mode = target.stat().st_mode & 0o7777 if target.exists() else None
        with tempfile.NamedTemporaryFile(
            "wb",
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(content.encode("utf-8"))
            tmp.flush()
            os.fsync(tmp.fileno())
        if mode is not None:
            os.chmod(tmp_name, mode)
        os.replace(tmp_name, target)
    except OSError as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise WriteError(f"Cannot write {target}: {e}") from e

    logger.info("Wrote %s", target)
