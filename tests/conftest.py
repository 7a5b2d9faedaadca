from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_path() -> None:
    """Guarantee the repository root is discoverable for absolute imports."""

    root = Path(__file__).resolve().parent.parent
    root_str = str(root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)

    tests_dir = root / "tests"
    tests_str = str(tests_dir)
    if tests_str not in sys.path:
        sys.path.insert(1, tests_str)


_ensure_project_root_on_path()


@pytest.fixture(autouse=True)
def _isolated_storage_env(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory):
    """Route config, cache and log writes to temporary locations during tests."""

    root = tmp_path_factory.mktemp("stud_home")
    monkeypatch.setenv("STUD_CONFIG_DIR", str(root / "config"))
    monkeypatch.setenv("STUD_CACHE_DIR", str(root / "cache"))
    monkeypatch.setenv("STUD_LOG_DIR", str(root / "logs"))
    monkeypatch.delenv("STUD_LOG_FILE", raising=False)
    monkeypatch.delenv("STUD_BINARY_PATH", raising=False)
    monkeypatch.delenv("STUD_UPDATE_LOCAL_DIR", raising=False)
    monkeypatch.delenv("STUD_UPDATE_REPOSITORY", raising=False)
    yield root
