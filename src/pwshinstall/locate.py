"""Release asset selection for the detected system."""

import dataclasses
import logging
import re

import beartype

import pwshinstall.errors
import pwshinstall.github

CHECKSUM_MARKER = "hashes.sha256"
UNKNOWN_VERSION = "unknown"

_VERSION_RE = re.compile(r"(?<=v)[0-9]+\.[0-9]+\.[0-9]+")

# RPM file names use the machine spelling of the architecture.
_RPM_ARCHES = {"amd64": "x86_64", "arm64": "aarch64"}

logger = logging.getLogger(__name__)


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class LocatedAsset:
    """Download selected for this system."""

    name: str
    url: str
    version: str
    """Semantic version parsed from the URL, or 'unknown'."""


@beartype.beartype
def build_asset_pattern(package_format: str, arch: str) -> str:
    """Build the filename regex for a package format and architecture tag."""
    if package_format == "deb":
        return rf"^powershell_[0-9].*{re.escape(arch)}\.deb$"
    if package_format == "rpm":
        rpm_arch = _RPM_ARCHES.get(arch, arch)
        return rf"^powershell-[0-9].*{re.escape(rpm_arch)}\.rpm$"
    raise pwshinstall.errors.InstallerError(
        message=f"Unsupported package format: {package_format}",
    )


@beartype.beartype
def get_newest_stable(
    releases: tuple[pwshinstall.github.Release, ...],
) -> pwshinstall.github.Release | None:
    """Return the most recently published non-prerelease release."""
    stable = [
        release
        for release in releases
        if not release.prerelease
        and not release.draft
        and release.published_at is not None
    ]
    if not stable:
        return None
    stable.sort(key=lambda release: release.published_at or "", reverse=True)
    return stable[0]


@beartype.beartype
def select_asset(
    releases: tuple[pwshinstall.github.Release, ...], pattern: str
) -> pwshinstall.github.ReleaseAsset:
    """Select the first matching asset of the newest stable release.

    Older releases are never considered, even if the newest one has no match.
    """
    release = get_newest_stable(releases)
    if release is None:
        raise pwshinstall.errors.AssetNotFoundError(
            message="No stable PowerShell release found",
            hint=f"Pattern used: {pattern}",
            pattern=pattern,
        )

    regex = re.compile(pattern)
    for asset in release.assets:
        if CHECKSUM_MARKER in asset.name:
            continue
        if regex.search(asset.name):
            return asset

    names = ", ".join(asset.name for asset in release.assets) or "(none)"
    logger.debug("Assets in %s: %s", release.tag, names)
    raise pwshinstall.errors.AssetNotFoundError(
        message=f"No asset in release {release.tag} matches this system",
        hint=f"Pattern used: {pattern}",
        pattern=pattern,
    )


@beartype.beartype
def parse_version(url: str) -> str:
    """Extract a semantic version following a 'v' from a download URL."""
    match = _VERSION_RE.search(url)
    if match is None:
        return UNKNOWN_VERSION
    return match.group(0)


@beartype.beartype
def locate_asset(
    client: pwshinstall.github.GitHubClient,
    repo: str,
    package_format: str,
    arch: str,
) -> LocatedAsset:
    """Find the PowerShell package download for this system."""
    pattern = build_asset_pattern(package_format, arch)
    logger.debug("Pattern used: %s", pattern)
    releases = client.list_releases(repo)
    try:
        asset = select_asset(releases, pattern)
    except pwshinstall.errors.AssetNotFoundError as err:
        raise pwshinstall.errors.AssetNotFoundError(
            message=f"Failed to find PowerShell package ({package_format}, {arch}): "
            f"{err.message}",
            hint=err.hint,
            pattern=pattern,
        ) from None
    return LocatedAsset(name=asset.name, url=asset.url, version=parse_version(asset.url))
