"""Extract the changelog entries that separate two released versions."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from services.update.versioning import compare_versions, strip_version_prefix

_LOGGER = logging.getLogger(__name__)

__all__ = [
    "BREAKING_CATEGORY",
    "ChangelogDiff",
    "ChangelogEntry",
    "diff_changelog",
    "format_changelog",
    "section_title",
]

BREAKING_CATEGORY = "breaking"
UNCATEGORISED = "other"

_VERSION_HEADER = re.compile(r"^##(?!#)\s+\[?[vV]?(?P<version>\d+(?:\.\d+)*[0-9A-Za-z.+-]*)\]?")
_SUBSECTION = re.compile(r"^###(?!#)\s+(?P<title>\w+)")
_BULLET = re.compile(r"^\s*[-*+]\s+(?P<text>.*\S)\s*$")
_BREAKING_TAG = re.compile(
    r"^(?:\*\*breaking(?:\s+change)?\*\*:?|\[breaking(?:\s+change)?\]:?|breaking(?:\s+change)?:)\s*",
    re.IGNORECASE,
)
_OBJECT_VERB = r"`?[A-Za-z][\w-]*:[A-Za-z][\w-]*`?"
_RENAME_VERB = re.compile(r"\b(?:renam|chang)\w*", re.IGNORECASE)
_RENAME_TARGET = re.compile(rf"{_OBJECT_VERB}\s+(?:\S+\s+){{0,3}}?to\s+{_OBJECT_VERB}", re.IGNORECASE)

_SECTION_TITLES = {
    "added": "### Added",
    "changed": "### Changed",
    "deprecated": "### Deprecated",
    "removed": "### Removed",
    "fixed": "### Fixed",
    BREAKING_CATEGORY: "### Breaking",
    "security": "### Security",
}


@dataclass(frozen=True)
class ChangelogEntry:
    category: str
    text: str
    breaking: bool = False


@dataclass
class ChangelogDiff:
    """Changelog entries between the installed and the latest version."""

    sections: dict[str, list[ChangelogEntry]] = field(default_factory=dict)
    breaking: list[ChangelogEntry] = field(default_factory=list)

    @property
    def has_breaking(self) -> bool:
        return bool(self.breaking)

    @property
    def is_empty(self) -> bool:
        return not self.breaking and not any(self.sections.values())


def diff_changelog(text: object, current_version: object, latest_version: object) -> ChangelogDiff:
    """Return the entries for versions in ``(current_version, latest_version]``.

    The changelog is read newest-first; scanning stops at the first version
    header that is not newer than ``current_version``.  Malformed input
    produces an empty diff.
    """

    if not isinstance(text, str) or not isinstance(current_version, str) or not isinstance(latest_version, str):
        _LOGGER.debug("Ignoring changelog with unexpected input types")
        return ChangelogDiff()
    try:
        return _scan(text, strip_version_prefix(current_version), strip_version_prefix(latest_version))
    except Exception:  # parsing never raises
        _LOGGER.debug("Unable to parse changelog text", exc_info=True)
        return ChangelogDiff()


def _scan(text: str, current: str, latest: str) -> ChangelogDiff:
    diff = ChangelogDiff()
    in_window = False
    category: str | None = None

    for line in text.splitlines():
        header = _VERSION_HEADER.match(line)
        if header is not None:
            version = header.group("version")
            if compare_versions(current, version) <= 0:
                break
            in_window = compare_versions(latest, version) <= 0
            category = None
            continue

        if not in_window:
            continue

        subsection = _SUBSECTION.match(line)
        if subsection is not None:
            category = subsection.group("title").lower()
            continue

        bullet = _BULLET.match(line)
        if bullet is None:
            continue

        _record(diff, category or UNCATEGORISED, bullet.group("text"))

    return diff


def _record(diff: ChangelogDiff, category: str, raw_text: str) -> None:
    tagged = _BREAKING_TAG.match(raw_text)
    text = raw_text[tagged.end():].strip() if tagged else raw_text.strip()
    if not text:
        return
    if category == BREAKING_CATEGORY or tagged is not None or _looks_like_rename(text):
        diff.breaking.append(ChangelogEntry(category=category, text=text, breaking=True))
        return
    diff.sections.setdefault(category, []).append(ChangelogEntry(category=category, text=text))


def _looks_like_rename(text: str) -> bool:
    return _RENAME_VERB.search(text) is not None and _RENAME_TARGET.search(text) is not None


def section_title(category: str) -> str:
    """Return the display heading for a changelog category."""

    key = category.lower()
    return _SECTION_TITLES.get(key, f"### {key.capitalize()}")


def format_changelog(diff: ChangelogDiff) -> list[str]:
    """Render ``diff`` as display lines with breaking changes first."""

    lines: list[str] = []
    if diff.breaking:
        lines.append(section_title(BREAKING_CATEGORY))
        lines.extend(f"- {entry.text}" for entry in diff.breaking)
    for category, entries in diff.sections.items():
        if not entries:
            continue
        if lines:
            lines.append("")
        lines.append(section_title(category))
        lines.extend(f"- {entry.text}" for entry in entries)
    return lines
