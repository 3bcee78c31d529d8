"""npm registry access."""

import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Awaitable, Callable, Protocol
from urllib.parse import quote

import httpx

from .config import DEFAULT_REGISTRY_URL, Settings
from .errors import FetchError, NetworkError, PackageNotFoundError, RateLimitedError
from .semver import Version, parse

logger = logging.getLogger(__name__)

# Abbreviated metadata is a fraction of the size of the full packument
ACCEPT_HEADER = "application/vnd.npm.install-v1+json; q=1.0, application/json; q=0.8, */*"
USER_AGENT = "pkgbump"


class RegistryClient(Protocol):
    """Anything that can list the published versions of a package."""

    async def fetch_versions(self, package_name: str) -> list[Version]:
        ...


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy for transient registry failures."""

    max_retries: int = 3
    base_delay_s: float = 0.5
    backoff_factor: float = 2.0
    max_delay_s: float = 30.0
    jitter: bool = True

    def delay(self, attempt: int) -> float:
        """Compute the delay before retry number attempt (0-based)."""
        delay = min(self.base_delay_s * (self.backoff_factor ** attempt), self.max_delay_s)
        if self.jitter:
            delay *= 0.5 + random.random()  # noqa: S311
        return delay


def _retry_after(response: httpx.Response) -> float | None:
    """Read a Retry-After header given either in seconds or as an HTTP date."""
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


class NpmRegistryClient:
    """Registry client for the npm registry protocol.

    A fresh httpx.AsyncClient is opened per request, so one instance can be
    shared by any number of concurrent resolver tasks.
    """

    def __init__(
        self,
        registry_url: str = DEFAULT_REGISTRY_URL,
        timeout: float = 10.0,
        retry: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the client.

        Args:
            registry_url: Base URL of the registry
            timeout: Upper bound in seconds for a single request attempt
            retry: Retry policy for network errors and rate limiting
            transport: Optional httpx transport, mainly for tests
            sleep: Coroutine used to wait between retries
        """
        self.registry_url = registry_url.rstrip("/")
        self.timeout = timeout
        self.retry = retry or RetryConfig()
        self._transport = transport
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "NpmRegistryClient":
        return cls(
            registry_url=settings.registry_url,
            timeout=settings.timeout,
            retry=RetryConfig(
                max_retries=settings.max_retries,
                base_delay_s=settings.retry_base_delay,
            ),
            **kwargs,
        )

    def package_url(self, package_name: str) -> str:
        # Scoped packages keep the "@" but escape the slash: @scope%2Fname
        return f"{self.registry_url}/{quote(package_name, safe='@')}"

    async def fetch_versions(self, package_name: str) -> list[Version]:
        """Fetch every published version of a package.

        Args:
            package_name: Name of the package

        Returns:
            Parsed versions, in registry order

        Raises:
            PackageNotFoundError: If the registry does not know the package
            NetworkError: If the registry stayed unreachable after retries
            RateLimitedError: If the registry kept rate limiting after retries
            InvalidVersion: If the registry lists a malformed version
        """
        metadata = await self._fetch_with_retry(package_name)

        versions = metadata.get("versions")
        if not isinstance(versions, dict):
            raise NetworkError(package_name, f"Malformed registry response for {package_name}")

        return [parse(version) for version in versions]

    async def _fetch_with_retry(self, package_name: str) -> dict:
        attempts = 0
        while True:
            try:
                return await self._fetch_package_metadata(package_name)
            except (NetworkError, RateLimitedError) as e:
                attempts += 1
                if attempts > self.retry.max_retries:
                    raise

                delay = self.retry.delay(attempts - 1)
                if isinstance(e, RateLimitedError) and e.retry_after is not None:
                    delay = min(e.retry_after, self.retry.max_delay_s)

                logger.warning(
                    "%s (attempt %d/%d), retrying in %.1fs",
                    e, attempts, self.retry.max_retries, delay,
                )
                await self._sleep(delay)

    async def _fetch_package_metadata(self, package_name: str) -> dict:
        """Fetch package metadata with a single request."""
        url = self.package_url(package_name)
        headers = {"Accept": ACCEPT_HEADER, "User-Agent": USER_AGENT}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                headers=headers,
                follow_redirects=True,
            ) as client:
                response = await asyncio.wait_for(client.get(url), self.timeout)
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            raise NetworkError(package_name, f"Timeout fetching metadata for {package_name}") from e
        except httpx.TransportError as e:
            raise NetworkError(package_name, f"Network error fetching {package_name}: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkError(package_name, f"Bad response fetching {package_name}: {e}") from e

        logger.debug("GET %s -> %d", url, response.status_code)

        if response.status_code == 404:
            raise PackageNotFoundError(package_name)
        if response.status_code == 429:
            raise RateLimitedError(package_name, _retry_after(response))
        if response.status_code >= 500:
            raise NetworkError(
                package_name, f"HTTP {response.status_code} fetching {package_name}"
            )
        if response.is_error:
            raise FetchError(package_name, f"HTTP {response.status_code} fetching {package_name}")

        try:
            metadata = response.json()
        except ValueError as e:
            raise NetworkError(package_name, f"Invalid JSON from registry for {package_name}") from e

        if not isinstance(metadata, dict):
            raise NetworkError(package_name, f"Malformed registry response for {package_name}")
        return metadata
