"""Layer configuration sources on top of the built-in defaults.

Each layer (file, ``DOCSORT__`` environment variables, command-line flags) is
merged and validated in turn, so an error message can name the layer and the
key that introduced the bad value.
"""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import DocsortConfig

ENV_PREFIX = "DOCSORT__"

# Environment values at these paths must parse to the given YAML collection.
_COLLECTION_PATHS: dict[tuple[str, ...], type] = {
    ("classification", "categories"): dict,
    ("classification", "heuristics"): list,
    ("processing", "supported_extensions"): list,
}
# An override replaces these mappings instead of merging into them.
_REPLACED_PATHS = {("classification", "categories")}


@dataclass(frozen=True)
class _Layer:
    name: str
    values: dict[str, Any]
    origins: dict[tuple[str, ...], str] = field(default_factory=dict)

    def describe(self, loc: tuple[str, ...]) -> str:
        for size in range(len(loc), 0, -1):
            origin = self.origins.get(loc[:size])
            if origin is not None:
                return origin
        nested = sorted(origin for path, origin in self.origins.items() if path[: len(loc)] == loc)
        if nested:
            return ", ".join(nested)
        return ".".join(loc) or "<root>"


def resolve_with_precedence(
    *,
    defaults: DocsortConfig,
    file_overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
    file_label: str = "configuration file",
) -> DocsortConfig:
    """Return the configuration for defaults < file < environment < CLI.

    Args:
        defaults: Baseline configuration.
        file_overrides: Mapping read from the YAML file.
        environ: Process environment; only ``DOCSORT__`` variables are used.
        cli_overrides: Dotted keys collected from command-line flags.
        file_label: Name used for the file layer in error messages.

    Returns:
        DocsortConfig: Validated, frozen configuration.

    Raises:
        ConfigError: If a layer is malformed or leaves the configuration invalid.
    """

    layers: list[_Layer] = []
    if file_overrides:
        layers.append(_Layer(file_label, _nest(file_overrides, file_label)))
    if environ:
        env_layer = _env_layer(environ)
        if env_layer.values:
            layers.append(env_layer)
    if cli_overrides:
        layers.append(_Layer("command-line options", _nest(cli_overrides, "command-line options")))

    config = defaults
    merged = defaults.model_dump(mode="python")
    for layer in layers:
        merged = _merge(merged, layer.values)
        try:
            config = DocsortConfig.model_validate(merged)
        except ValidationError as exc:
            raise ConfigError(_explain(exc, layer)) from exc
    return config


def _env_layer(environ: Mapping[str, str]) -> _Layer:
    values: dict[str, Any] = {}
    origins: dict[tuple[str, ...], str] = {}
    for key, raw in sorted(environ.items()):
        if not key.startswith(ENV_PREFIX):
            continue
        path = tuple(part.lower() for part in key[len(ENV_PREFIX) :].split("__") if part)
        if not path:
            continue
        expected = _COLLECTION_PATHS.get(path)
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            if expected is not None:
                raise ConfigError(f"{key} is not valid YAML: {exc}") from exc
            value = raw
        if expected is dict and not isinstance(value, dict):
            raise ConfigError(
                f"{key} must be a YAML mapping of category to folder, "
                f"for example '{{Werk: 4. Werk}}'; got {type(value).__name__}."
            )
        if expected is list and not isinstance(value, list):
            raise ConfigError(f"{key} must be a YAML list; got {type(value).__name__}.")
        _assign(values, list(path), value, label=key)
        origins[path] = key
    return _Layer("environment", values, origins)


def _nest(source: Mapping[str, Any], label: str) -> dict[str, Any]:
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{label} must contain a mapping.")
    nested: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{label} has a non-string key: {key!r}.")
        _assign(nested, key.split("."), value, label=f"{label} key {key}")
    return nested


def _assign(target: dict[str, Any], path: list[str], value: Any, *, label: str) -> None:
    node = target
    for depth, segment in enumerate(path[:-1], start=1):
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigError(f"{label} conflicts with the value at {'.'.join(path[:depth])}.")
        node = child
    node[path[-1]] = deepcopy(dict(value)) if isinstance(value, MappingABC) else value


def _merge(
    base: Mapping[str, Any], overrides: Mapping[str, Any], path: tuple[str, ...] = ()
) -> dict[str, Any]:
    merged = deepcopy(dict(base))
    for key, value in overrides.items():
        here = (*path, key)
        current = merged.get(key)
        if (
            here not in _REPLACED_PATHS
            and isinstance(value, MappingABC)
            and isinstance(current, MappingABC)
        ):
            merged[key] = _merge(current, value, here)
        else:
            merged[key] = deepcopy(value)
    return merged


def _explain(exc: ValidationError, layer: _Layer) -> str:
    problems = []
    for error in exc.errors():
        loc = tuple(str(part) for part in error["loc"])
        problems.append(f"{layer.describe(loc)}: {error['msg']}")
    return f"Invalid configuration from {layer.name}: " + "; ".join(problems)


__all__ = ["ENV_PREFIX", "resolve_with_precedence"]
