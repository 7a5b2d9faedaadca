from __future__ import annotations

import logging
from pathlib import Path

import pytest

from app.config import (
    ConfigState,
    ConfigStore,
    global_config_path,
    parse_migration_version,
    project_config_path,
)


def test_missing_file_loads_empty_state(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "config.yml")

    state = store.load()

    assert not store.exists()
    assert state.values == {}
    assert state.migration_version == 0


def test_save_creates_parent_directories_and_keeps_key_order(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "nested" / "config.yml")
    state = ConfigState({"LANGUAGE": "en", "JIRA_URL": "https://jira.example.com"})
    state.advance_to(202501150000001)

    store.save(state)

    text = store.path.read_text(encoding="utf-8")
    assert text.splitlines() == [
        "LANGUAGE: en",
        "JIRA_URL: https://jira.example.com",
        "migration_version: '202501150000001'",
    ]
    assert store.load().values == state.values


@pytest.mark.parametrize(
    "content",
    [
        "LANGUAGE: [unclosed\n",
        "- just\n- a list\n",
    ],
)
def test_unusable_yaml_loads_empty_state(tmp_path: Path, content: str, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "config.yml"
    path.write_text(content, encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="app.config"):
        state = ConfigStore(path).load()

    assert state.values == {}
    assert str(path) in caplog.text


def test_empty_file_loads_empty_state(tmp_path: Path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("", encoding="utf-8")

    assert ConfigStore(path).load().values == {}


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, 0),
        ("", 0),
        ("0", 0),
        (" 202501150000001 ", 202501150000001),
        (202501150000001, 202501150000001),
        (-5, 0),
        (True, 0),
        ("not-a-number", 0),
    ],
)
def test_parse_migration_version(value, expected: int) -> None:
    assert parse_migration_version(value) == expected


def test_copy_is_independent() -> None:
    state = ConfigState({"KEY": "value"})

    clone = state.copy()
    clone.values["KEY"] = "changed"

    assert state.values["KEY"] == "value"


def test_config_paths(tmp_path: Path) -> None:
    assert global_config_path(tmp_path) == tmp_path / ".config" / "stud" / "config.yml"
    assert project_config_path(tmp_path / ".git") == tmp_path / ".git" / "stud.config"
