"""End-to-end check of a manifest: read, resolve, rewrite."""

import logging
from pathlib import Path

from .config import Settings, get_settings
from .models import Manifest, UpdateReport
from .parse_node import read_manifest
from .registry import NpmRegistryClient, RegistryClient
from .resolve import Resolver
from .update import format_diff, update_manifest_content, write_manifest_atomic

logger = logging.getLogger(__name__)


async def check_manifest(manifest: Manifest, resolver: Resolver, filename: str) -> UpdateReport:
    """Resolve every entry of a manifest and build the report.

    Nothing is written; the report carries the updated content.
    """
    results = await resolver.resolve_entries(manifest.entries)
    updated_content = update_manifest_content(manifest, results)

    notes = []
    unresolved = [result for result in results if result.reason is not None]
    if unresolved:
        notes.append(f"{len(unresolved)} dependencies could not be resolved and were skipped")

    return UpdateReport(
        filename=filename,
        original_content=manifest.raw,
        updated_content=updated_content,
        diff=format_diff(manifest.raw, updated_content, filename),
        changes=results,
        notes=notes,
    )


async def run_check(
    path: str | Path,
    settings: Settings | None = None,
    update: bool = False,
    client: RegistryClient | None = None,
) -> UpdateReport:
    """Check a manifest file and optionally rewrite it.

    The manifest is read once up front and, in update mode, written at most
    once at the end.

    Args:
        path: Path to package.json
        settings: Registry and concurrency settings
        update: Rewrite the manifest in place when something changed
        client: Registry client; an npm client is built from settings if omitted

    Returns:
        The update report

    Raises:
        ManifestError: If the manifest cannot be read or parsed
        WriteError: If update mode cannot replace the manifest
    """
    settings = settings or get_settings()
    manifest = read_manifest(path)
    logger.info("Checking %d dependencies in %s", len(manifest.entries), path)

    client = client or NpmRegistryClient.from_settings(settings)
    resolver = Resolver(client, max_concurrency=settings.max_concurrency)
    report = await check_manifest(manifest, resolver, str(path))

    if update and report.has_changes:
        write_manifest_atomic(path, report.updated_content)
        report.written = True

    return report
