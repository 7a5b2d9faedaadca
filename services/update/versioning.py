"""Helpers for comparing release versions."""

from __future__ import annotations

from packaging.version import InvalidVersion, Version


__all__ = [
    "compare_versions",
    "is_version_newer",
    "strip_version_prefix",
]


def strip_version_prefix(version: str) -> str:
    """Return ``version`` without surrounding whitespace or a leading ``v``."""

    text = version.strip()
    if text[:1] in {"v", "V"}:
        return text[1:]
    return text


def compare_versions(current_version: str, candidate: str) -> int:
    """Compare ``candidate`` against ``current_version``.

    Returns ``1`` when ``candidate`` is newer, ``-1`` when it is older and ``0``
    when the versions are equivalent.  Tags may carry a leading ``v``.  Strings
    that are not valid PEP 440 versions are compared token by token.
    """

    current = strip_version_prefix(current_version)
    other = strip_version_prefix(candidate)
    if other == current:
        return 0

    try:
        candidate_version = Version(other)
        current_version_parsed = Version(current)
    except InvalidVersion:
        return _fallback_compare(current, other)

    if candidate_version == current_version_parsed:
        return 0
    if candidate_version > current_version_parsed:
        return 1
    return -1


def is_version_newer(current_version: str, candidate: str) -> bool:
    """Return ``True`` if ``candidate`` is newer than ``current_version``."""

    return compare_versions(current_version, candidate) > 0


def _fallback_compare(current_version: str, candidate: str) -> int:
    def tokenize(version: str) -> list[tuple[int, object]]:
        tokens: list[tuple[int, object]] = []
        for raw in version.replace("-", ".").replace("+", ".").split("."):
            if not raw:
                continue
            if raw.isdigit():
                tokens.append((0, int(raw)))
            else:
                tokens.append((1, raw.lower()))
        return tokens

    current_tokens = tokenize(current_version)
    candidate_tokens = tokenize(candidate)
    length = max(len(current_tokens), len(candidate_tokens))
    for index in range(length):
        current_token = current_tokens[index] if index < len(current_tokens) else (0, 0)
        candidate_token = candidate_tokens[index] if index < len(candidate_tokens) else (0, 0)
        if candidate_token != current_token:
            return 1 if candidate_token > current_token else -1
    return 0
