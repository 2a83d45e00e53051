"""GitHub API client for fetching releases and downloading assets."""

import dataclasses
import logging
import pathlib
import typing as tp

import beartype
import requests

import pwshinstall.errors

_API_BASE = "https://api.github.com"

logger = logging.getLogger(__name__)


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class ReleaseAsset:
    """Release asset metadata."""

    name: str
    url: str


@beartype.beartype
@dataclasses.dataclass(frozen=True)
class Release:
    """GitHub release metadata."""

    tag: str
    prerelease: bool
    draft: bool
    published_at: str | None
    """ISO 8601 UTC timestamp, or None for unpublished drafts."""
    assets: tuple[ReleaseAsset, ...]


class GitHubClient:
    """Minimal GitHub API client. Requests are not retried."""

    def __init__(self, token: str | None, timeout: float = 30.0) -> None:
        self._token = token
        self._timeout = timeout
        self._session = requests.Session()

    @beartype.beartype
    def list_releases(self, repo: str, per_page: int = 100) -> tuple[Release, ...]:
        """Fetch the first page of releases for owner/repo, newest first."""
        owner, name = _split_repo(repo)
        url = f"{_API_BASE}/repos/{owner}/{name}/releases"
        data = self._request_json(url, params={"per_page": str(per_page)})
        if not isinstance(data, list):
            raise pwshinstall.errors.ReleaseApiError(
                message=f"Unexpected response from GitHub for {repo} releases",
            )

        releases = []
        for item in data:
            if not isinstance(item, dict):
                continue
            release = _parse_release(tp.cast(dict[str, object], item))
            if release is not None:
                releases.append(release)
        logger.debug("Fetched %d releases for %s", len(releases), repo)
        return tuple(releases)

    @beartype.beartype
    def download_asset(self, url: str, dest_fpath: pathlib.Path) -> None:
        """Download a release asset to dest_fpath."""
        headers = {"Accept": "application/octet-stream"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            response = self._session.get(
                url, headers=headers, timeout=self._timeout, stream=True
            )
        except requests.RequestException as err:
            raise pwshinstall.errors.DownloadError(
                message=f"Download failed: {err}",
            ) from None

        with response:
            if response.status_code >= 400:
                raise pwshinstall.errors.DownloadError(
                    message=f"Download failed ({response.status_code}) for {url}",
                )

            try:
                dest_fpath.parent.mkdir(parents=True, exist_ok=True)
                with dest_fpath.open("wb") as fd:
                    for chunk in response.iter_content(chunk_size=1024 * 1024):
                        if not chunk:
                            continue
                        fd.write(chunk)
            except (requests.RequestException, OSError) as err:
                raise pwshinstall.errors.DownloadError(
                    message=f"Download failed writing {dest_fpath}: {err}",
                ) from None

    @beartype.beartype
    def _request_json(
        self, url: str, params: dict[str, str] | None = None
    ) -> dict[str, object] | list[object]:
        """GET JSON and translate GitHub errors."""
        headers = {"Accept": "application/vnd.github+json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            response = self._session.get(
                url, headers=headers, params=params, timeout=self._timeout
            )
        except requests.RequestException as err:
            raise pwshinstall.errors.ReleaseApiError(
                message=f"Network error contacting GitHub: {err}",
            ) from None

        if response.status_code in {401, 403}:
            if self._token:
                raise pwshinstall.errors.ReleaseApiError(
                    message="GitHub authentication failed.",
                    hint="Check your GITHUB_TOKEN. If invalid or expired, create a new one.",
                )
            raise pwshinstall.errors.ReleaseApiError(
                message="GitHub API rate limit exceeded.",
                hint="Set GITHUB_TOKEN to increase the limit.",
            )

        if response.status_code >= 400:
            raise pwshinstall.errors.ReleaseApiError(
                message=f"GitHub API error ({response.status_code}) for {url}",
            )

        try:
            return response.json()
        except ValueError as err:
            raise pwshinstall.errors.ReleaseApiError(
                message=f"Invalid JSON response from GitHub: {err}",
            ) from None


@beartype.beartype
def _parse_release(data: dict[str, object]) -> Release | None:
    """Parse release JSON into a Release, or None if it is malformed."""
    tag = data.get("tag_name")
    assets_data = data.get("assets")
    if not isinstance(tag, str) or not isinstance(assets_data, list):
        return None

    published_at = data.get("published_at")
    if not isinstance(published_at, str):
        published_at = None

    assets = []
    for asset in assets_data:
        if not isinstance(asset, dict):
            continue
        asset_data = tp.cast(dict[str, object], asset)
        name = asset_data.get("name")
        url = asset_data.get("browser_download_url")
        if not isinstance(name, str) or not isinstance(url, str):
            continue
        assets.append(ReleaseAsset(name=name, url=url))

    return Release(
        tag=tag,
        prerelease=data.get("prerelease") is True,
        draft=data.get("draft") is True,
        published_at=published_at,
        assets=tuple(assets),
    )


@beartype.beartype
def _split_repo(repo: str) -> tuple[str, str]:
    """Split owner/repo string."""
    owner, _, name = repo.partition("/")
    if not owner or not name:
        raise pwshinstall.errors.InstallerError(
            message=f"Invalid repo '{repo}'",
            hint="Expected format 'owner/repo'.",
        )
    return owner, name
