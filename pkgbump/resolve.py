"""Dependency version resolution against a registry."""

import asyncio
import logging

from .errors import (
    FetchError,
    PackageNotFoundError,
    RateLimitedError,
    VersionParseError,
)
from .models import ManifestEntry, ResolutionResult, Status, UnresolvedReason
from .registry import RegistryClient
from .semver import Range, Version, parse_range, semver_delta

logger = logging.getLogger(__name__)


def select_latest(versions: list[Version], declared: Range) -> Version | None:
    """Pick the newest eligible version.

    Prereleases are only eligible when the declared range already targets
    one; a stable consumer is never moved onto a prerelease.

    Args:
        versions: Published versions in any order
        declared: The range the manifest declares

    Returns:
        The maximum eligible version, or None if there is none
    """
    if declared.targets_prerelease:
        eligible = versions
    else:
        eligible = [version for version in versions if not version.is_prerelease]
    return max(eligible, default=None)


class Resolver:
    """Resolves manifest entries to update decisions."""

    def __init__(self, client: RegistryClient, max_concurrency: int = 6):
        """Initialize resolver.

        Args:
            client: Registry client used to list package versions
            max_concurrency: Maximum concurrent registry requests
        """
        self.client = client
        self.max_concurrency = max_concurrency
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def resolve_entry(self, entry: ManifestEntry) -> ResolutionResult:
        """Resolve a single manifest entry.

        Failures specific to this entry are reported as an unresolved
        result rather than raised, so one bad dependency never blocks the
        others.

        Args:
            entry: Manifest entry to resolve

        Returns:
            Resolution result for the entry
        """
        if entry.source_type != "registry":
            return _unresolved(
                entry,
                UnresolvedReason.UNSUPPORTED_SOURCE,
                f"{entry.source_type} dependencies are not checked against the registry",
            )

        try:
            declared = parse_range(entry.spec)
        except VersionParseError as e:
            return _unresolved(entry, UnresolvedReason.PARSE_ERROR, str(e))

        try:
            async with self._semaphore:
                versions = await self.client.fetch_versions(entry.name)
        except PackageNotFoundError as e:
            return _unresolved(entry, UnresolvedReason.NOT_FOUND, str(e))
        except RateLimitedError as e:
            return _unresolved(entry, UnresolvedReason.RATE_LIMITED, str(e))
        except FetchError as e:
            return _unresolved(entry, UnresolvedReason.NETWORK, str(e))
        except VersionParseError as e:
            return _unresolved(entry, UnresolvedReason.PARSE_ERROR, str(e))

        latest = select_latest(versions, declared)
        if latest is None:
            return _unresolved(
                entry, UnresolvedReason.NO_VERSIONS, f"No eligible versions found for {entry.name}"
            )

        satisfied = declared.contains(latest)
        new_spec = None if satisfied else declared.bump(latest)
        status = Status.UP_TO_DATE if satisfied else Status.UPDATE_AVAILABLE

        logger.debug("%s %s: latest %s, %s", entry.name, entry.spec, latest, status.value)

        return ResolutionResult(
            entry=entry,
            status=status,
            latest_version=latest,
            satisfied=satisfied,
            new_spec=new_spec,
            semver_delta=semver_delta(declared.version, latest),
        )

    async def resolve_entries(self, entries: list[ManifestEntry]) -> list[ResolutionResult]:
        """Resolve multiple entries concurrently.

        Args:
            entries: List of manifest entries to resolve

        Returns:
            Resolution results sorted by group, then name
        """
        tasks = [self.resolve_entry(entry) for entry in entries]
        results = await asyncio.gather(*tasks)
        return sorted(results, key=lambda result: result.entry.key)


def _unresolved(entry: ManifestEntry, reason: UnresolvedReason, detail: str) -> ResolutionResult:
    logger.debug("%s unresolved: %s", entry.name, detail)
    return ResolutionResult(
        entry=entry,
        status=Status.UNRESOLVED,
        reason=reason,
        detail=detail,
    )
