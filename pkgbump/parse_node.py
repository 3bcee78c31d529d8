"""Node.js package.json parsing."""

import json
import re
from json.decoder import scanstring
from pathlib import Path

from .errors import ManifestError
from .models import GROUP_KEYS, DependencyGroup, Manifest, ManifestEntry

WHITESPACE = re.compile(r"[ \t\n\r]*")

GROUPS_BY_KEY = {key: group for group, key in GROUP_KEYS.items()}

BOM = "\ufeff"


def classify_source(spec: str) -> str:
    """Classify where a dependency comes from, based on its range text."""
    stripped = spec.strip()
    if stripped.startswith("npm:"):
        return "alias"
    if stripped.startswith("workspace:"):
        return "workspace"
    if stripped.startswith(("file:", "link:", "./", "../", "~/", "/")):
        return "path"
    if stripped.startswith(("git+", "git://", "github:", "gitlab:", "bitbucket:", "gist:")):
        return "vcs"
    if stripped.startswith(("http://", "https://")):
        return "url"
    # GitHub shorthand: user/repo or user/repo#ref
    if re.match(r"^[\w.-]+/[\w.-]+(#.*)?$", stripped):
        return "vcs"
    return "registry"


class PackageJsonScanner:
    """Locate dependency range tokens in package.json text.

    json.loads validates the document first; the scanner then walks the
    top-level object by hand to record where each range string starts and
    ends, which json.loads cannot report.
    """

    def __init__(self, content: str):
        self.content = content
        self.decoder = json.JSONDecoder()

    def _skip(self, idx: int) -> int:
        return WHITESPACE.match(self.content, idx).end()

    def _expect(self, idx: int, char: str) -> int:
        idx = self._skip(idx)
        if self.content[idx:idx + 1] != char:
            raise ManifestError(f"Expected {char!r} at offset {idx}")
        return idx + 1

    def _value_end(self, idx: int) -> int:
        _, end = self.decoder.raw_decode(self.content, idx)
        return end

    def _scan_object(self, idx: int, on_member) -> int:
        """Walk the object at idx; on_member(key, value_start) returns the value end."""
        idx = self._expect(idx, "{")
        idx = self._skip(idx)
        if self.content[idx:idx + 1] == "}":
            return idx + 1

        while True:
            idx = self._expect(idx, '"')
            key, idx = scanstring(self.content, idx)
            idx = self._expect(idx, ":")
            idx = self._skip(on_member(key, self._skip(idx)))
            if self.content[idx:idx + 1] != ",":
                return self._expect(idx, "}")
            idx += 1

    def scan(self, start: int = 0) -> dict[tuple[DependencyGroup, str], tuple[int, int]]:
        """Map (group, name) to the span of its range string token."""
        spans: dict[tuple[DependencyGroup, str], tuple[int, int]] = {}

        def record(group: DependencyGroup, name: str, value_start: int) -> int:
            value_end = self._value_end(value_start)
            if self.content[value_start] == '"':
                # Later duplicates win, matching json.loads
                spans[(group, name)] = (value_start, value_end)
            return value_end

        def top_level(key: str, value_start: int) -> int:
            group = GROUPS_BY_KEY.get(key)
            if group is None or self.content[value_start] != "{":
                return self._value_end(value_start)
            return self._scan_object(value_start, lambda name, idx: record(group, name, idx))

        self._scan_object(start, top_level)
        return spans


def parse_package_json(content: str) -> Manifest:
    """Parse package.json content into Manifest.

    Args:
        content: The package.json file content

    Returns:
        Parsed Manifest object

    Raises:
        ManifestError: If the content is not a package.json-shaped JSON object
    """
    start = 1 if content.startswith(BOM) else 0

    try:
        data = json.loads(content[start:])
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError("Manifest must be a JSON object")

    spans = PackageJsonScanner(content).scan(start)

    entries: list[ManifestEntry] = []
    for group, key in GROUP_KEYS.items():
        deps = data.get(key)
        if deps is None:
            continue
        if not isinstance(deps, dict):
            raise ManifestError(f"'{key}' must be an object mapping names to ranges")

        for name, spec in deps.items():
            if not isinstance(spec, str):
                raise ManifestError(f"Range for '{name}' in '{key}' must be a string")
            entries.append(
                ManifestEntry(
                    name=name,
                    spec=spec,
                    group=group,
                    source_type=classify_source(spec),
                    span=spans.get((group, name)),
                )
            )

    return Manifest(ecosystem="node", raw=content, entries=entries, data=data)


def read_manifest(path: str | Path) -> Manifest:
    """Read and parse a package.json file.

    Raises:
        ManifestError: If the file cannot be read or parsed
    """
    path_obj = Path(path)
    try:
        # Bytes, so CRLF line endings survive a rewrite
        content = path_obj.read_bytes().decode("utf-8")
    except FileNotFoundError as e:
        raise ManifestError(f"File {path} not found") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Cannot read {path}: {e}") from e

    return parse_package_json(content)
