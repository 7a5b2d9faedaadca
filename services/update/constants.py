"""Constants shared across the update service modules."""

from __future__ import annotations

GITHUB_REPO = "studapp/stud-cli"
API_BASE_URL = "https://api.github.com"
USER_AGENT = "stud-cli"

ARTIFACT_NAME = "stud.phar"
ARTIFACT_PREFIX = "stud-"
ARTIFACT_SUFFIX = ".phar"

CHANGELOG_FILENAME = "CHANGELOG.md"
LOCAL_RELEASE_METADATA = "release.json"

BACKUP_SUFFIX = ".bak"
EXECUTABLE_MODE = 0o755

VERSION_CHECK_CACHE_FILENAME = "last_update_check.json"
VERSION_CHECK_TTL_SECONDS = 24 * 60 * 60

LOCAL_RELEASE_ENV = "STUD_UPDATE_LOCAL_DIR"
REPOSITORY_ENV = "STUD_UPDATE_REPOSITORY"
