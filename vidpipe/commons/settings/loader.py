"""Layered settings loading: JSON files, then environment overrides."""

import json
import os
from pathlib import Path
from typing import Any

from vidpipe.commons.settings.models import Settings


class SettingsLoader:
    """Loads and merges configuration from multiple sources.

    Configuration precedence (highest to lowest):
    1. Environment variables (VIDPIPE__SECTION__KEY)
    2. Environment-specific config (appsettings.{env}.json)
    3. Base config (appsettings.json)
    4. Model defaults
    """

    ENV_PREFIX = "VIDPIPE__"

    def __init__(
        self,
        config_dir: Path | None = None,
        environment: str | None = None,
    ) -> None:
        """Initialize the settings loader.

        Args:
            config_dir: Directory containing the appsettings files.
                       Defaults to 'config' in the current working directory.
            environment: Environment name (dev, staging, prod).
                        Defaults to VIDPIPE__APP__ENVIRONMENT or 'dev'.
        """
        self.config_dir = config_dir or Path("config")
        self.environment = environment or os.getenv(
            f"{self.ENV_PREFIX}APP__ENVIRONMENT", "dev"
        )

    def load(self) -> Settings:
        """Resolve all sources into a Settings instance."""
        config = self._read_json("appsettings.json")
        config = self._deep_merge(
            config, self._read_json(f"appsettings.{self.environment}.json")
        )
        config = self._deep_merge(config, self._env_overrides())
        return Settings(**config)

    def _env_overrides(self) -> dict[str, Any]:
        """Collect VIDPIPE__ variables into a nested dict.

        VIDPIPE__QUEUE__VISIBILITY_TIMEOUT_SECONDS=30 becomes
        {"queue": {"visibility_timeout_seconds": 30}}.
        """
        result: dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(self.ENV_PREFIX):
                continue

            *parents, leaf = key[len(self.ENV_PREFIX) :].lower().split("__")
            node = result
            for part in parents:
                node = node.setdefault(part, {})
            node[leaf] = self._coerce(value)

        return result

    @staticmethod
    def _coerce(value: str) -> Any:
        """Best-effort conversion of an environment string."""
        lowered = value.lower()
        if lowered in ("true", "false"):
            return lowered == "true"

        for cast in (int, float):
            try:
                return cast(value)
            except ValueError:
                continue

        if value.startswith(("[", "{")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _read_json(self, filename: str) -> dict[str, Any]:
        path = self.config_dir / filename
        if not path.exists():
            return {}
        with path.open(encoding="utf-8") as f:
            return dict(json.load(f))

    def _deep_merge(
        self,
        base: dict[str, Any],
        override: dict[str, Any],
    ) -> dict[str, Any]:
        """Recursively merge override into a copy of base."""
        merged = base.copy()
        for key, value in override.items():
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged[key] = self._deep_merge(current, value)
            else:
                merged[key] = value
        return merged


class _SettingsHolder:
    instance: Settings | None = None


def get_settings(
    config_dir: Path | None = None,
    environment: str | None = None,
    *,
    reload: bool = False,
) -> Settings:
    """Get or create the process-wide settings instance.

    Args:
        config_dir: Optional config directory override.
        environment: Optional environment override.
        reload: Force a reload from files and environment.

    Returns:
        Settings instance.
    """
    if _SettingsHolder.instance is None or reload:
        loader = SettingsLoader(config_dir=config_dir, environment=environment)
        _SettingsHolder.instance = loader.load()
    return _SettingsHolder.instance


def reset_settings() -> None:
    """Drop the cached settings instance. Used by tests."""
    _SettingsHolder.instance = None
