from __future__ import annotations

import pytest

from services.update.versioning import compare_versions, is_version_newer, strip_version_prefix


@pytest.mark.parametrize(
    "current, candidate, expected",
    [
        ("1.0.4", "1.0.4", 0),
        ("1.0.4", "v1.0.4", 0),
        ("1.0.4", "1.1.0", 1),
        ("v1.10.0", "1.9.9", -1),
        ("1.2.0", "1.2.0rc1", -1),
        ("1.0", "1.0.0", 0),
    ],
)
def test_compare_versions(current: str, candidate: str, expected: int) -> None:
    assert compare_versions(current, candidate) == expected


def test_development_and_free_form_versions() -> None:
    assert compare_versions("1.0.0-dev", "1.0.0-dev") == 0
    assert compare_versions("0.0.0-dev", "1.0.4") == 1
    assert compare_versions("build-7", "build-12") == 1


def test_up_to_date_when_latest_equals_installed() -> None:
    assert not is_version_newer("1.0.4", "v1.0.4")
    assert is_version_newer("1.0.4", "v1.1.0")


def test_strip_version_prefix() -> None:
    assert strip_version_prefix(" v2.0.0 ") == "2.0.0"
    assert strip_version_prefix("V2.0.0") == "2.0.0"
    assert strip_version_prefix("2.0.0") == "2.0.0"
