"""Hashing helpers for artifact verification."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path

_SHA256_HEX = re.compile(r"[0-9a-f]{64}")


def calculate_sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as source:
        for chunk in iter(lambda: source.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


def parse_sha256_digest(digest: str | None) -> str | None:
    """Return the hex value of a ``sha256:<hex>`` (or bare hex) digest.

    Digests using another algorithm or malformed values yield ``None``.
    """

    if not isinstance(digest, str):
        return None
    value = digest.strip()
    if ":" in value:
        algorithm, value = value.split(":", 1)
        if algorithm.strip().lower() != "sha256":
            return None
    value = value.strip().lower()
    if not _SHA256_HEX.fullmatch(value):
        return None
    return value
