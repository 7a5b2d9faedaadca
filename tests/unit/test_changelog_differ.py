from __future__ import annotations

import pytest

from services.update.changelog import diff_changelog, format_changelog, section_title
from tests.unit.update_service_test_utils import SAMPLE_CHANGELOG


def _texts(entries) -> list[str]:
    return [entry.text for entry in entries]


def test_diff_stops_at_installed_version() -> None:
    diff = diff_changelog(SAMPLE_CHANGELOG, "1.0.4", "1.2.0")

    assert _texts(diff.sections["added"]) == ["Add `items:search` command"]
    assert _texts(diff.sections["fixed"]) == ["Fix crash when config is empty"]
    assert "Old fix that is already installed" not in [
        entry.text for entries in diff.sections.values() for entry in entries
    ]


def test_diff_skips_versions_newer_than_latest() -> None:
    diff = diff_changelog(SAMPLE_CHANGELOG, "1.0.4", "1.1.0")

    assert "added" not in diff.sections
    assert _texts(diff.sections["fixed"]) == ["Fix crash when config is empty"]
    assert _texts(diff.breaking) == ["Rename `issues:search` to `items:search`"]


def test_breaking_entries_are_not_duplicated_into_sections() -> None:
    diff = diff_changelog(SAMPLE_CHANGELOG, "1.0.4", "1.2.0")

    assert diff.has_breaking
    assert _texts(diff.breaking) == [
        "Drop support for PHP 8.1",
        "Rename `issues:search` to `items:search`",
    ]
    assert "breaking" not in diff.sections
    assert "changed" not in diff.sections
    assert all(entry.breaking for entry in diff.breaking)


@pytest.mark.parametrize(
    "bullet",
    [
        "- [BREAKING] Remove the legacy config loader",
        "- BREAKING: Remove the legacy config loader",
        "- **Breaking** Remove the legacy config loader",
    ],
)
def test_explicit_breaking_markers_are_stripped(bullet: str) -> None:
    text = f"## [2.0.0]\n\n### Removed\n{bullet}\n\n## [1.0.0]\n"

    diff = diff_changelog(text, "1.0.0", "2.0.0")

    assert _texts(diff.breaking) == ["Remove the legacy config loader"]
    assert diff.breaking[0].category == "removed"
    assert "removed" not in diff.sections


def test_headers_accept_v_prefix_and_missing_brackets() -> None:
    text = "## v1.3.0\n- Faster startup\n\n## 1.2.0\n- Older entry\n"

    diff = diff_changelog(text, "v1.2.0", "v1.3.0")

    assert _texts(diff.sections["other"]) == ["Faster startup"]


def test_all_bullet_markers_are_recognised() -> None:
    text = "## [1.1.0]\n### Added\n- dash\n* star\n+ plus\n## [1.0.0]\n"

    diff = diff_changelog(text, "1.0.0", "1.1.0")

    assert _texts(diff.sections["added"]) == ["dash", "star", "plus"]


def test_same_versions_produce_empty_diff() -> None:
    diff = diff_changelog(SAMPLE_CHANGELOG, "1.2.0", "1.2.0")

    assert diff.is_empty
    assert format_changelog(diff) == []


@pytest.mark.parametrize(
    "text, current, latest",
    [
        (None, "1.0.0", "1.1.0"),
        (b"## [1.1.0]\n- bytes", "1.0.0", "1.1.0"),
        ("## [1.1.0]\n- entry", None, "1.1.0"),
        ("", "1.0.0", "1.1.0"),
        ("no headers at all\n- stray bullet", "1.0.0", "1.1.0"),
    ],
)
def test_malformed_input_yields_empty_diff(text, current, latest) -> None:
    diff = diff_changelog(text, current, latest)

    assert diff.is_empty


def test_format_changelog_lists_breaking_changes_first() -> None:
    diff = diff_changelog(SAMPLE_CHANGELOG, "1.0.4", "1.2.0")

    lines = format_changelog(diff)

    assert lines[0] == "### Breaking"
    assert lines[1] == "- Drop support for PHP 8.1"
    assert "### Added" in lines
    assert lines.index("### Added") > lines.index("- Rename `issues:search` to `items:search`")


def test_section_title_capitalises_unknown_categories() -> None:
    assert section_title("fixed") == "### Fixed"
    assert section_title("SECURITY") == "### Security"
    assert section_title("custom") == "### Custom"
