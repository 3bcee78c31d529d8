"""Pytest configuration and fixtures."""

import asyncio

import pytest

from pkgbump.errors import PackageNotFoundError
from pkgbump.semver import parse


class FakeRegistry:
    """In-memory registry client.

    Each package maps to a list of version strings or to an exception
    instance that fetch_versions raises.
    """

    def __init__(self, packages, delay: float = 0.0):
        self.packages = packages
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_versions(self, package_name):
        self.calls.append(package_name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

        outcome = self.packages.get(package_name)
        if outcome is None:
            raise PackageNotFoundError(package_name)
        if isinstance(outcome, Exception):
            raise outcome
        return [parse(version) for version in outcome]


@pytest.fixture
def fake_registry():
    """Factory for in-memory registry clients."""
    return FakeRegistry


@pytest.fixture
def sample_package_json():
    """Sample package.json content for testing."""
    return """{
  "name": "test-project",
  "version": "1.0.0",
  "scripts": {
    "test": "jest"
  },
  "dependencies": {
    "leftpad": "^1.2.0",
    "lodash": "~4.17.0"
  },
  "devDependencies": {
    "jest": "^29.0.0"
  }
}
"""


@pytest.fixture
def sample_registry(fake_registry):
    """Registry state matching sample_package_json."""
    return fake_registry({
        "leftpad": ["1.2.0", "1.3.0", "2.0.0"],
        "lodash": ["4.17.0", "4.17.21"],
        "jest": ["29.0.0", "29.7.0", "30.0.0-alpha.1"],
    })


@pytest.fixture
def temp_manifest_file(tmp_path, sample_package_json):
    """Create a temporary package.json for testing."""
    manifest = tmp_path / "package.json"
    manifest.write_bytes(sample_package_json.encode("utf-8"))
    return manifest
