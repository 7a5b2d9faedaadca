"""Utilities for locating, acquiring and validating the release executable."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from services.update.constants import ARTIFACT_NAME, ARTIFACT_PREFIX, ARTIFACT_SUFFIX
from services.update.hashing import calculate_sha256, parse_sha256_digest
from services.update.models import ArtifactNotFound, ChecksumMismatch, ReleaseAsset, ReleaseDescriptor
from services.update.providers import ReleaseSource


_LOGGER = logging.getLogger(__name__)

_STAGING_PREFIX = "stud-update-"

__all__ = ["obtain_release_artifact", "resolve_artifact", "verify_artifact_digest"]


def resolve_artifact(
    release: ReleaseDescriptor,
    *,
    name: str = ARTIFACT_NAME,
    prefix: str = ARTIFACT_PREFIX,
    suffix: str = ARTIFACT_SUFFIX,
) -> ReleaseAsset:
    """Return the asset of ``release`` that holds the executable.

    An exact ``name`` match wins; otherwise the first asset named
    ``<prefix>...<suffix>`` is used.
    """

    for asset in release.assets:
        if asset.name == name:
            return asset
    for asset in release.assets:
        if asset.name.startswith(prefix) and asset.name.endswith(suffix):
            _LOGGER.debug("Using versioned artifact %s for release %s", asset.name, release.tag)
            return asset
    raise ArtifactNotFound(release.asset_names)


def obtain_release_artifact(
    source: ReleaseSource,
    asset: ReleaseAsset,
    *,
    directory: Path | None = None,
) -> Path:
    """Download ``asset`` into a fresh temporary directory and return its path.

    When ``directory`` is given the temporary directory is created inside it
    (on the same filesystem as the installed executable), falling back to the
    system temp dir when that is not possible.
    """

    target_dir = _staging_dir(directory)
    target_path = target_dir / asset.name
    _LOGGER.info("Fetching release artifact %s", asset.name)
    try:
        source.download_asset(asset, target_path)
    except Exception:
        shutil.rmtree(target_dir, ignore_errors=True)
        raise
    _LOGGER.debug("Release artifact stored at %s", target_path)
    return target_path


def _staging_dir(directory: Path | None) -> Path:
    if directory is not None:
        try:
            return Path(tempfile.mkdtemp(prefix=_STAGING_PREFIX, dir=directory))
        except OSError as exc:
            _LOGGER.debug("Cannot stage download in %s (%s); using the system temp dir", directory, exc)
    return Path(tempfile.mkdtemp(prefix=_STAGING_PREFIX))


def verify_artifact_digest(path: Path, asset: ReleaseAsset) -> bool:
    """Check ``path`` against the digest published for ``asset``.

    Returns ``False`` when the release publishes no digest at all.  A digest
    that is not a valid ``sha256`` value, or that differs from the content,
    raises :class:`ChecksumMismatch`.
    """

    if asset.digest is None:
        _LOGGER.warning("Release asset %s has no digest; skipping verification", asset.name)
        return False
    actual = calculate_sha256(path)
    expected = parse_sha256_digest(asset.digest)
    if expected is None:
        _LOGGER.error("Release asset %s has an unusable digest %r", asset.name, asset.digest)
        raise ChecksumMismatch(asset.digest, actual)
    if actual.lower() != expected:
        raise ChecksumMismatch(expected, actual)
    _LOGGER.info("Verified release artifact %s", asset.name)
    return True
