"""Split the legacy ``GIT_TOKEN``/``GIT_PROVIDER`` pair into provider-specific keys."""

from __future__ import annotations

from services.migrations.base import ConfigValues, Migration, MigrationScope

_PROVIDER_TOKEN_KEYS = {
    "github": "GITHUB_TOKEN",
    "gitlab": "GITLAB_TOKEN",
}


class GitTokenFormatMigration(Migration):
    id = 202501150000001
    description = "Migrate Git token configuration from GIT_TOKEN/GIT_PROVIDER to GITHUB_TOKEN/GITLAB_TOKEN format"
    scope = MigrationScope.GLOBAL
    prerequisite = False

    def up(self, config: ConfigValues) -> ConfigValues:
        migrated = dict(config)
        token = migrated.get("GIT_TOKEN")
        if not isinstance(token, str) or not token.strip():
            return migrated

        token_key = _PROVIDER_TOKEN_KEYS.get(migrated.get("GIT_PROVIDER"))
        if token_key is None:
            # Without a provider the token is left for the user to reconfigure.
            return migrated

        existing = migrated.get(token_key)
        if not isinstance(existing, str) or not existing.strip():
            migrated[token_key] = token.strip()
        migrated.pop("GIT_TOKEN", None)
        migrated.pop("GIT_PROVIDER", None)
        return migrated

    def down(self, config: ConfigValues) -> ConfigValues:
        """Best-effort revert; the GitHub token wins when both are present."""

        reverted = dict(config)
        if "GIT_TOKEN" in reverted:
            return reverted
        for provider, token_key in _PROVIDER_TOKEN_KEYS.items():
            if reverted.get(token_key) is not None:
                reverted["GIT_TOKEN"] = reverted.pop(token_key)
                reverted["GIT_PROVIDER"] = provider
                break
        return reverted


__all__ = ["GitTokenFormatMigration"]
