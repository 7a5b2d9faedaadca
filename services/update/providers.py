"""Release source implementations."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import shutil
from http import HTTPStatus
from pathlib import Path
from typing import Any, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from services.update.constants import (
    API_BASE_URL,
    CHANGELOG_FILENAME,
    GITHUB_REPO,
    LOCAL_RELEASE_METADATA,
    USER_AGENT,
)
from services.update.models import NetworkFailure, ReleaseAsset, ReleaseDescriptor


_LOGGER = logging.getLogger(__name__)


class ReleaseSource(Protocol):
    """Protocol describing where releases, changelogs and artifacts come from."""

    def fetch_latest_release(self) -> ReleaseDescriptor:
        """Return the newest published release.

        Raises :class:`NetworkFailure`; a missing release is reported with
        ``status_code == HTTPStatus.NOT_FOUND``.
        """

    def fetch_changelog(self, tag: str) -> str:
        """Return the raw changelog text as published at ``tag``."""

    def download_asset(self, asset: ReleaseAsset, destination: Path) -> Path:
        """Store ``asset`` at ``destination`` and return that path."""


class GitHubReleaseSource:
    """Fetch releases from the GitHub REST API."""

    def __init__(
        self,
        repository: str = GITHUB_REPO,
        *,
        api_base_url: str = API_BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        self._repository = repository.strip("/")
        self._api_base_url = api_base_url.rstrip("/")
        self._timeout = timeout

    @property
    def repository(self) -> str:
        return self._repository

    def fetch_latest_release(self) -> ReleaseDescriptor:
        payload = self._request_json(f"/repos/{self._repository}/releases/latest")
        return parse_release_payload(payload)

    def fetch_changelog(self, tag: str) -> str:
        path = f"/repos/{self._repository}/contents/{CHANGELOG_FILENAME}?ref={quote(tag, safe='')}"
        payload = self._request_json(path)
        if not isinstance(payload, dict) or payload.get("encoding") != "base64":
            raise NetworkFailure(f"Unable to decode {CHANGELOG_FILENAME} content from GitHub API")
        try:
            return base64.b64decode(str(payload.get("content", ""))).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise NetworkFailure(f"Unable to decode {CHANGELOG_FILENAME} content: {exc}") from exc

    def download_asset(self, asset: ReleaseAsset, destination: Path) -> Path:
        url = f"{self._api_base_url}/repos/{self._repository}/releases/assets/{asset.id}"
        _LOGGER.info("Downloading %s from %s", asset.name, url)
        request = Request(url, headers=self._headers("application/octet-stream"))
        try:
            with urlopen(request, timeout=self._timeout) as response, destination.open("wb") as target:  # nosec - HTTPS
                shutil.copyfileobj(response, target)
        except HTTPError as exc:
            raise NetworkFailure(
                f"GitHub API error (status {exc.code}) when downloading {asset.name}", status_code=exc.code
            ) from exc
        except (OSError, URLError) as exc:
            raise NetworkFailure(f"Failed to download {asset.name}: {exc}") from exc
        _LOGGER.debug("Downloaded %s to %s", asset.name, destination)
        return destination

    def _request_json(self, path: str) -> Any:
        url = f"{self._api_base_url}{path}"
        _LOGGER.debug("GET %s", url)
        request = Request(url, headers=self._headers("application/vnd.github.v3+json"))
        try:
            with urlopen(request, timeout=self._timeout) as response:  # nosec - GitHub API over HTTPS
                return json.load(response)
        except HTTPError as exc:
            raise NetworkFailure(
                f"GitHub API error (status {exc.code}) when calling 'GET {url}'", status_code=exc.code
            ) from exc
        except json.JSONDecodeError as exc:
            raise NetworkFailure(f"GitHub API returned invalid JSON for 'GET {url}': {exc}") from exc
        except (OSError, URLError) as exc:
            raise NetworkFailure(f"Failed to reach GitHub API at {url}: {exc}") from exc

    def _headers(self, accept: str) -> dict[str, str]:
        return {"Accept": accept, "User-Agent": USER_AGENT}


class LocalFolderReleaseSource:
    """Serve a release from a local directory.

    The directory holds ``release.json`` (``{"tag": ..., "assets": [...]}``),
    an optional ``CHANGELOG.md`` and the artifact files named by the assets.
    """

    def __init__(self, folder: Path) -> None:
        self._folder = Path(folder)

    def fetch_latest_release(self) -> ReleaseDescriptor:
        metadata_path = self._folder / LOCAL_RELEASE_METADATA
        if not metadata_path.exists():
            _LOGGER.debug("Local release metadata missing: %s", metadata_path)
            raise NetworkFailure(
                f"No release metadata found at {metadata_path}", status_code=HTTPStatus.NOT_FOUND
            )
        try:
            data = json.loads(metadata_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise NetworkFailure(f"Failed to read local release metadata: {exc}") from exc
        return parse_release_payload(data)

    def fetch_changelog(self, tag: str) -> str:
        path = self._folder / CHANGELOG_FILENAME
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise NetworkFailure(
                f"No changelog found at {path}", status_code=HTTPStatus.NOT_FOUND
            ) from exc
        except OSError as exc:
            raise NetworkFailure(f"Failed to read local changelog: {exc}") from exc

    def download_asset(self, asset: ReleaseAsset, destination: Path) -> Path:
        source = self._folder / asset.name
        _LOGGER.info("Copying %s from local source %s", asset.name, source)
        try:
            shutil.copyfile(source, destination)
        except OSError as exc:
            raise NetworkFailure(f"Failed to copy local artifact {source}: {exc}") from exc
        return destination


def parse_release_payload(payload: Any) -> ReleaseDescriptor:
    """Build a :class:`ReleaseDescriptor` from a GitHub-style release mapping."""

    if not isinstance(payload, dict):
        raise NetworkFailure("Release metadata is not a JSON object")
    tag = str(payload.get("tag_name") or payload.get("tag") or "").strip()
    if not tag:
        raise NetworkFailure("Release metadata is missing a tag name")

    assets: list[ReleaseAsset] = []
    for raw in payload.get("assets") or []:
        if not isinstance(raw, dict):
            continue
        name = str(raw.get("name") or "").strip()
        if not name:
            continue
        digest = raw.get("digest")
        assets.append(
            ReleaseAsset(
                id=raw.get("id", name),
                name=name,
                digest=str(digest) if digest not in (None, "") else None,
            )
        )
    _LOGGER.debug("Release %s lists assets: %s", tag, ", ".join(asset.name for asset in assets))
    return ReleaseDescriptor(tag=tag, assets=tuple(assets))


__all__ = [
    "GitHubReleaseSource",
    "LocalFolderReleaseSource",
    "ReleaseSource",
    "parse_release_payload",
]
