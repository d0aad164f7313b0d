"""Configuration management for docsort.

The YAML file at ``~/.docsort/config.yaml`` holds user overrides. The effective
configuration stacks it between the built-in defaults, ``DOCSORT__``
environment variables and command-line flags.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import DocsortConfig
from .resolver import ENV_PREFIX, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.docsort/config.yaml")
_HEADER = (
    "# docsort configuration\n"
    "# classification.categories maps category keys to folders below the destination.\n"
    "# Heuristic patterns are case-insensitive regular expressions; the first match wins.\n"
    "# Any key can be overridden with DOCSORT__SECTION__KEY environment variables.\n"
)


class ConfigManager:
    """Read, validate and update the docsort configuration file."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = os.environ if env is None else env

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    @property
    def log_dir(self) -> Path:
        """Return the directory that receives rotating log files."""
        return self._config_path.parent / "logs"

    def ensure_exists(self) -> Path:
        """Write the default configuration when no file is present yet."""
        if not self._config_path.exists():
            self._write(_HEADER + _dump(DocsortConfig().model_dump(mode="python")))
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
    ) -> DocsortConfig:
        """Return the effective configuration, creating the file on first use.

        Args:
            cli_overrides: Dotted keys collected from command-line flags.
            include_env: Whether ``DOCSORT__`` environment variables apply.

        Returns:
            DocsortConfig: Validated configuration for one run.

        Raises:
            ConfigError: If the file cannot be parsed or any layer is invalid.
        """

        self.ensure_exists()
        return resolve_with_precedence(
            defaults=DocsortConfig(),
            file_overrides=self.read_overrides(),
            environ=self._env if include_env else None,
            cli_overrides=cli_overrides,
            file_label=str(self._config_path),
        )

    def read_text(self) -> str:
        """Return the configuration file contents."""
        self.ensure_exists()
        return self._config_path.read_text(encoding="utf-8")

    def read_overrides(self) -> dict[str, Any]:
        """Return the mapping stored in the configuration file."""
        if not self._config_path.exists():
            return {}
        return self._parse(self._config_path.read_text(encoding="utf-8"))

    def set_value(self, key: str, value: Any) -> tuple[str, str]:
        """Store ``value`` at the dotted ``key`` and return the file text before and after.

        The file is left untouched when the updated configuration does not validate.

        Raises:
            ConfigError: If the key is empty, collides with a scalar, or the value is invalid.
        """

        segments = [segment.strip() for segment in key.split(".") if segment.strip()]
        if not segments:
            raise ConfigError("Configuration keys are dotted paths such as 'llm.temperature'.")

        before = self.read_text()
        data = self._parse(before)
        node = data
        for depth, segment in enumerate(segments[:-1], start=1):
            child = node.setdefault(segment, {})
            if not isinstance(child, dict):
                raise ConfigError(f"{'.'.join(segments[:depth])} is not a section.")
            node = child
        node[segments[-1]] = value
        self._validate(data)

        after = _HEADER + _dump(data)
        if after != before:
            self._write(after)
        return before, after

    def replace_text(self, text: str) -> None:
        """Validate edited YAML and store it as written, comments included.

        Raises:
            ConfigError: If the text does not parse or does not validate.
        """

        self._validate(self._parse(text))
        self._write(text)

    def _parse(self, text: str) -> dict[str, Any]:
        try:
            raw = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"{self._config_path} is not valid YAML: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"{self._config_path} must contain a mapping at the top level.")
        return raw

    def _validate(self, data: Mapping[str, Any]) -> None:
        resolve_with_precedence(
            defaults=DocsortConfig(),
            file_overrides=data,
            file_label=str(self._config_path),
        )

    def _write(self, text: str) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._config_path.write_text(text, encoding="utf-8")


def _dump(data: Mapping[str, Any]) -> str:
    return yaml.safe_dump(dict(data), sort_keys=False, allow_unicode=True)


__all__ = [
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "DocsortConfig",
    "ENV_PREFIX",
    "resolve_with_precedence",
]
