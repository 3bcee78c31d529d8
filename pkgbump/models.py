"""Core data models for pkgbump."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .semver import Version


class DependencyGroup(str, Enum):
    """Dependency groups of a package.json, in report order."""

    NORMAL = "normal"
    DEV = "dev"
    PEER = "peer"
    OPTIONAL = "optional"

    @property
    def manifest_key(self) -> str:
        return GROUP_KEYS[self]

    @property
    def order(self) -> int:
        return list(DependencyGroup).index(self)


GROUP_KEYS = {
    DependencyGroup.NORMAL: "dependencies",
    DependencyGroup.DEV: "devDependencies",
    DependencyGroup.PEER: "peerDependencies",
    DependencyGroup.OPTIONAL: "optionalDependencies",
}


class Status(str, Enum):
    """Outcome of resolving one dependency."""

    UP_TO_DATE = "up-to-date"
    UPDATE_AVAILABLE = "update-available"
    UNRESOLVED = "unresolved"


class UnresolvedReason(str, Enum):
    """Why a dependency could not be resolved."""

    NOT_FOUND = "not-found"
    NO_VERSIONS = "no-versions"
    PARSE_ERROR = "parse-error"
    NETWORK = "network"
    RATE_LIMITED = "rate-limited"
    UNSUPPORTED_SOURCE = "unsupported-source"


@dataclass(frozen=True)
class ManifestEntry:
    """A single dependency declaration in a manifest file."""

    name: str
    spec: str
    group: DependencyGroup = DependencyGroup.NORMAL
    source_type: str = "registry"  # registry, vcs, path, url, alias, workspace
    span: tuple[int, int] | None = None  # offsets of the JSON string token in Manifest.raw

    @property
    def key(self) -> tuple[int, str]:
        return (self.group.order, self.name)


@dataclass
class Manifest:
    """A parsed dependency manifest."""

    ecosystem: str  # node
    raw: str
    entries: list[ManifestEntry]
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ResolutionResult:
    """Decision reached for one dependency in one run."""

    entry: ManifestEntry
    status: Status
    latest_version: Version | None = None
    satisfied: bool = False
    new_spec: str | None = None
    reason: UnresolvedReason | None = None
    detail: str = ""
    semver_delta: str = "unknown"  # major, minor, patch, prerelease, none, unknown

    @property
    def has_change(self) -> bool:
        return self.status is Status.UPDATE_AVAILABLE and self.new_spec is not None

    def describe(self) -> str:
        """Short status text used by the reports."""
        if self.status is Status.UPDATE_AVAILABLE:
            return f"{self.status.value} ({self.new_spec})"
        if self.status is Status.UNRESOLVED:
            return f"{self.status.value} ({self.reason.value})"
        return self.status.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.entry.name,
            "group": self.entry.group.value,
            "declared": self.entry.spec,
            "latest": str(self.latest_version) if self.latest_version else None,
            "status": self.status.value,
            "satisfied": self.satisfied,
            "new_spec": self.new_spec,
            "reason": self.reason.value if self.reason else None,
            "detail": self.detail,
            "semver_delta": self.semver_delta,
        }


@dataclass
class UpdateReport:
    """Report of the decisions made for a manifest."""

    filename: str
    original_content: str
    updated_content: str
    diff: str
    changes: list[ResolutionResult]
    notes: list[str] = field(default_factory=list)
    written: bool = False

    @property
    def updates(self) -> list[ResolutionResult]:
        return [result for result in self.changes if result.has_change]

    @property
    def unresolved(self) -> list[ResolutionResult]:
        return [result for result in self.changes if result.status is Status.UNRESOLVED]

    @property
    def has_changes(self) -> bool:
        return self.updated_content != self.original_content
