"""Application configuration, merged from YAML files and the environment."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from ..errors import ConfigError

# Pick up INTERNMATCH_* variables from a local .env
load_dotenv()

ENV_PREFIX = "INTERNMATCH_"
ENV_SELECTOR = f"{ENV_PREFIX}ENV"
# Separates nesting levels in environment overrides; single underscores stay in key names
ENV_NESTING = "__"
DEFAULT_ENVIRONMENT = "development"

# Settings that must be non-negative integers when present
_COUNT_SETTINGS = (
    ("recommendations", "default_limit"),
    ("recommendations", "max_pool_size"),
)


class ConfigLoader:
    """Load and merge configuration from several layers.

    Later layers override earlier ones:
    1. ``config/default.yaml``
    2. ``config/environments/{INTERNMATCH_ENV}.yaml`` (default: development)
    3. Overrides passed to :meth:`load`
    4. ``INTERNMATCH_<SECTION>__<KEY>`` environment variables
    """

    def __init__(self, config_dir: Path | str | None = None):
        """Initialize config loader.

        Args:
            config_dir: Configuration directory (defaults to the ``config/``
                directory shipped inside the package)
        """
        if config_dir is None:
            config_dir = Path(__file__).resolve().parents[2] / "config"
        self.config_dir = Path(config_dir)

    def load(self, overrides: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Load configuration with full hierarchy.

        Args:
            overrides: Configuration provided programmatically

        Returns:
            Merged configuration dictionary

        Raises:
            ConfigError: If a config file is not valid YAML or a setting has
                the wrong type
        """
        environment = os.getenv(ENV_SELECTOR, DEFAULT_ENVIRONMENT)
        layers = [
            self._load_yaml(self.config_dir / "default.yaml"),
            self._load_yaml(self.config_dir / "environments" / f"{environment}.yaml"),
            dict(overrides or {}),
            env_overrides(os.environ),
        ]

        config: dict[str, Any] = {}
        for layer in layers:
            config = deep_merge(config, layer)

        _check_counts(config)
        return config

    def resolve_path(self, value: str | Path) -> Path:
        """Resolve a path from config relative to the config directory."""
        path = Path(value)
        if path.is_absolute():
            return path
        return self.config_dir / path

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        """Parse one YAML layer; a missing or empty file is an empty layer."""
        if not path.is_file():
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return content


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``, recursing into mappings."""
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value
    return result


def env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Build a nested override mapping from ``INTERNMATCH_*`` variables.

    Example: ``INTERNMATCH_RECOMMENDATIONS__DEFAULT_LIMIT=5`` becomes
    ``{"recommendations": {"default_limit": 5}}``.

    A variable is ignored when it would need to nest below a key another
    variable already set to a scalar.
    """
    overrides: dict[str, Any] = {}
    for name in sorted(environ):
        if not name.startswith(ENV_PREFIX) or name == ENV_SELECTOR:
            continue
        path = name[len(ENV_PREFIX):].lower().split(ENV_NESTING)
        if not all(path):
            continue

        node = overrides
        for key in path[:-1]:
            node = node.setdefault(key, {})
            if not isinstance(node, dict):
                break
        else:
            node[path[-1]] = convert_value(environ[name])
    return overrides


def convert_value(value: str) -> Any:
    """Convert an environment string to bool, int or float where it parses."""
    lowered = value.strip().lower()
    if lowered in ("true", "yes"):
        return True
    if lowered in ("false", "no"):
        return False

    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            continue
    return value


def _check_counts(config: Mapping[str, Any]) -> None:
    for section, key in _COUNT_SETTINGS:
        value = (config.get(section) or {}).get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigError(f"{section}.{key} must be a non-negative integer, got {value!r}")


# Global config loader instance
_config_loader: ConfigLoader | None = None


def get_config_loader() -> ConfigLoader:
    """Get the process-wide loader for the packaged ``config/`` directory."""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader


def load_config(overrides: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Load configuration (convenience function).

    Args:
        overrides: Configuration provided programmatically

    Returns:
        Merged configuration dictionary
    """
    return get_config_loader().load(overrides=overrides)
