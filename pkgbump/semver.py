"""Semantic versions and npm-style version ranges.

Supported range expressions:
- any: "*", "x", "X", "latest" and the empty string
- exact versions: "1.2.3", "=1.2.3", "v1.2.3"
- caret ranges: "^1.2.3", "^1.2", "^1" (same major, or same minor below 1.0.0)
- tilde ranges: "~1.2.3", "~1.2", "~1" (same major.minor, or same major)
- x-ranges: "1.x", "1.2.*", "1", "1.2"

Comparator sets (">=1.0.0 <2.0.0"), unions ("||") and hyphen ranges are
rejected with InvalidRange instead of being guessed at.
"""

import re
from dataclasses import dataclass
from enum import Enum
from functools import total_ordering

from .errors import InvalidRange, InvalidVersion

_NUM = r"0|[1-9][0-9]*"
_IDENTS = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"

VERSION_RE = re.compile(
    rf"v?(?P<major>{_NUM})\.(?P<minor>{_NUM})\.(?P<patch>{_NUM})"
    rf"(?:-(?P<prerelease>{_IDENTS}))?"
    rf"(?:\+(?P<build>{_IDENTS}))?"
)

PARTIAL_RE = re.compile(
    rf"(?P<v>v?)(?P<major>{_NUM})"
    rf"(?:\.(?P<minor>{_NUM})"
    rf"(?:\.(?P<patch>{_NUM})"
    rf"(?:-(?P<prerelease>{_IDENTS}))?"
    rf"(?:\+(?P<build>{_IDENTS}))?)?)?"
    r"(?P<wildcard>(?:\.[xX*])*)"
)

ANY_RE = re.compile(r"[xX*](?:\.[xX*]){0,2}")

# Longest operators first so "~>" is not read as "~"
OPERATORS = ("^", "~>", "~", "=")


def _split_identifiers(text: str | None, original: str, numeric_check: bool) -> tuple[str, ...]:
    if not text:
        return ()
    identifiers = tuple(text.split("."))
    if numeric_check:
        for identifier in identifiers:
            if identifier.isdigit() and len(identifier) > 1 and identifier.startswith("0"):
                raise InvalidVersion(original)
    return identifiers


@total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """An immutable semantic version.

    Build metadata is kept for display but never takes part in equality,
    ordering or hashing.
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    @property
    def release(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def _key(self) -> tuple:
        if not self.prerelease:
            return (*self.release, 1, ())
        identifiers = tuple(
            (0, int(part), "") if part.isdigit() else (1, 0, part)
            for part in self.prerelease
        )
        return (*self.release, 0, identifiers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def format(self, build: bool = True) -> str:
        """Render the version, optionally without build metadata."""
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if build and self.build:
            text += "+" + ".".join(self.build)
        return text

    def __str__(self) -> str:
        return self.format()


def parse(text: str) -> Version:
    """Parse a semantic version string.

    Args:
        text: Version text; a single leading "v" is allowed

    Returns:
        Parsed Version

    Raises:
        InvalidVersion: If the text does not follow the semver grammar
    """
    match = VERSION_RE.fullmatch(text)
    if not match:
        raise InvalidVersion(text)

    return Version(
        major=int(match.group("major")),
        minor=int(match.group("minor")),
        patch=int(match.group("patch")),
        prerelease=_split_identifiers(match.group("prerelease"), text, numeric_check=True),
        build=_split_identifiers(match.group("build"), text, numeric_check=False),
    )


def compare(a: Version, b: Version) -> int:
    """Return -1, 0 or 1 as a orders before, equal to or after b."""
    return (a > b) - (a < b)


class RangeKind(str, Enum):
    """The shape of a range expression, preserved across updates."""

    ANY = "any"
    EXACT = "exact"
    CARET = "caret"
    TILDE = "tilde"
    XRANGE = "xrange"


@dataclass(frozen=True)
class Range:
    """A parsed version range.

    `prefix` holds the operator spelling (and an optional "v"), `precision`
    the number of numeric components written, and `wildcard` any trailing
    ".x" components, so that bump() can write the same shape back.
    """

    kind: RangeKind
    text: str
    version: Version | None = None
    prefix: str = ""
    precision: int = 3
    wildcard: str = ""

    @property
    def targets_prerelease(self) -> bool:
        return self.version is not None and self.version.is_prerelease

    def _upper_bound(self) -> Version | None:
        base = self.version
        if self.kind is RangeKind.CARET:
            if base.major > 0 or self.precision == 1:
                return Version(base.major + 1, 0, 0)
            return Version(0, base.minor + 1, 0)
        if self.kind in (RangeKind.TILDE, RangeKind.XRANGE):
            if self.precision == 1:
                return Version(base.major + 1, 0, 0)
            return Version(base.major, base.minor + 1, 0)
        return None

    def contains(self, version: Version) -> bool:
        """Check whether a version satisfies this range."""
        if self.kind is RangeKind.ANY:
            return True

        # Prereleases only match a range pinned to the same release triple
        if version.is_prerelease and not (
            self.targets_prerelease and self.version.release == version.release
        ):
            return False

        if self.kind is RangeKind.EXACT:
            return version == self.version

        upper = self._upper_bound()
        return self.version <= version < upper

    def bump(self, latest: Version) -> str:
        """Build range text of the same kind and shape targeting latest."""
        if self.kind is RangeKind.ANY:
            return self.text

        if self.precision == 3:
            body = latest.format(build=False)
        elif self.precision == 2:
            body = f"{latest.major}.{latest.minor}"
        else:
            body = f"{latest.major}"

        return f"{self.prefix}{body}{self.wildcard}"

    def __str__(self) -> str:
        return self.text


def parse_range(text: str) -> Range:
    """Parse a range expression into a Range.

    Args:
        text: The declared range, e.g. "^1.2.3"

    Returns:
        Parsed Range

    Raises:
        InvalidRange: If the expression uses unsupported syntax
    """
    stripped = text.strip()
    if stripped in ("", "latest") or ANY_RE.fullmatch(stripped):
        return Range(kind=RangeKind.ANY, text=text)

    operator = next((op for op in OPERATORS if stripped.startswith(op)), "")
    match = PARTIAL_RE.fullmatch(stripped[len(operator):])
    if not match:
        raise InvalidRange(text)

    components = [match.group(name) for name in ("major", "minor", "patch")]
    precision = sum(1 for part in components if part is not None)
    wildcard = match.group("wildcard")
    if wildcard and precision + wildcard.count(".") > 3:
        raise InvalidRange(text)

    try:
        version = Version(
            major=int(components[0]),
            minor=int(components[1] or 0),
            patch=int(components[2] or 0),
            prerelease=_split_identifiers(match.group("prerelease"), text, numeric_check=True),
            build=_split_identifiers(match.group("build"), text, numeric_check=False),
        )
    except InvalidVersion as e:
        raise InvalidRange(text) from e

    if operator == "^":
        kind = RangeKind.CARET
    elif operator in ("~", "~>"):
        kind = RangeKind.TILDE
    elif precision == 3:
        kind = RangeKind.EXACT
    else:
        kind = RangeKind.XRANGE

    return Range(
        kind=kind,
        text=text,
        version=version,
        prefix=operator + match.group("v"),
        precision=precision,
        wildcard=wildcard,
    )


def semver_delta(old: Version | None, new: Version) -> str:
    """Classify the jump from old to new.

    Returns:
        "major", "minor", "patch", "prerelease", "none" or "unknown"
    """
    if old is None:
        return "unknown"
    if new <= old:
        return "none"
    if new.major != old.major:
        return "major"
    if new.minor != old.minor:
        return "minor"
    if new.patch != old.patch:
        return "patch"
    return "prerelease"
