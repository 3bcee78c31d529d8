"""Exception hierarchy for pkgbump."""


class PkgbumpError(Exception):
    """Base class for every error raised by pkgbump."""


class ManifestError(PkgbumpError):
    """The manifest could not be read or is structurally malformed."""


class VersionParseError(PkgbumpError):
    """A version or range string could not be parsed."""

    def __init__(self, text: str, message: str):
        self.text = text
        super().__init__(f"{message}: {text!r}")


class InvalidVersion(VersionParseError):
    """Text does not match the semantic version grammar."""

    def __init__(self, text: str):
        super().__init__(text, "Invalid version")


class InvalidRange(VersionParseError):
    """Text is not a supported version range expression."""

    def __init__(self, text: str):
        super().__init__(text, "Invalid range")


class FetchError(PkgbumpError):
    """Fetching package metadata from the registry failed."""

    def __init__(self, package_name: str, message: str):
        self.package_name = package_name
        super().__init__(message)


class PackageNotFoundError(FetchError):
    """The registry does not know the package."""

    def __init__(self, package_name: str):
        super().__init__(package_name, f"Package {package_name} not found")


class NetworkError(FetchError):
    """Timeout, connection failure or server error while fetching."""


class RateLimitedError(FetchError):
    """The registry answered 429 Too Many Requests."""

    def __init__(self, package_name: str, retry_after: float | None = None):
        self.retry_after = retry_after
        super().__init__(package_name, f"Rate limited while fetching {package_name}")


class WriteError(PkgbumpError):
    """The updated manifest could not be written atomically."""
