#!/usr/bin/env python3
"""Layered configuration for symshare.

Each layer is a nested dictionary under the ``symshare`` section. Lookups
walk the layers from highest to lowest precedence:

    RUNTIME      values set programmatically
    ARGUMENTS    command-line options
    ENVIRONMENT  SYMSHARE_<SECTION>_<KEY> variables, and PORT
    FILE         the YAML file given with --config
    DEFAULTS     DEFAULT_CONFIG

Example:
    >>> config = ConfigManager("symshare.yaml")
    >>> config.get(ConfigKey.PATHS_READ)
    '/tmp/wdav_symlinks/read'
"""

import copy
import os
import threading
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

import yaml

from symshare.core.constants import DEFAULT_CONFIG, ConfigKey, ErrorCode
from symshare.core.validators import ValidationError, validate_config

ENV_PREFIX = "SYMSHARE_"

# Variables honoured outside the SYMSHARE_ namespace
ENV_ALIASES = {
    "PORT": ConfigKey.ADMIN_PORT,
}


class ConfigSource(IntEnum):
    """Configuration layers; a higher value wins."""

    DEFAULTS = 1
    FILE = 2
    ENVIRONMENT = 3
    ARGUMENTS = 4
    RUNTIME = 5


class ConfigError(Exception):
    """Configuration could not be loaded or is invalid."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


def env_key(name: str) -> Optional[str]:
    """Dotted config key addressed by environment variable ``name``, if any.

    ``SYMSHARE_PATHS_PRIMARY`` addresses ``symshare.paths.primary``; only the
    first underscore after the prefix separates section from key.
    """
    if name in ENV_ALIASES:
        return ENV_ALIASES[name]
    if not name.startswith(ENV_PREFIX):
        return None

    section, _, key = name[len(ENV_PREFIX):].lower().partition("_")
    if not section or not key:
        return None
    return f"{ConfigKey.ROOT}.{section}.{key}"


def coerce_env_value(raw: str) -> Any:
    """Interpret an environment string as bool, int, float or plain text."""
    lowered = raw.lower()
    if lowered in ("true", "yes"):
        return True
    if lowered in ("false", "no"):
        return False

    for convert in (int, float):
        try:
            return convert(raw)
        except ValueError:
            continue
    return raw


def _lookup(tree: Mapping[str, Any], key: str) -> Any:
    node: Any = tree
    for part in key.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return None
        node = node[part]
    return node


def _assign(tree: Dict[str, Any], key: str, value: Any) -> None:
    *parents, leaf = key.split(".")
    for part in parents:
        child = tree.get(part)
        if not isinstance(child, dict):
            child = tree[part] = {}
        tree = child
    tree[leaf] = value


def _merged(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if isinstance(result.get(key), Mapping) and isinstance(value, Mapping):
            result[key] = _merged(result[key], value)
        else:
            result[key] = value
    return result


class ConfigManager:
    """Thread-safe stack of configuration layers.

    Values are addressed by dotted key (``symshare.paths.read``). A value
    of None in a layer counts as unset, so lower layers show through.
    """

    def __init__(self, config_file: Optional[str] = None, load_environment: bool = True):
        """
        Args:
            config_file: YAML file loaded as the FILE layer
            load_environment: Whether to read the process environment
        """
        self._lock = threading.RLock()
        self._layers: Dict[ConfigSource, Dict[str, Any]] = {
            ConfigSource.DEFAULTS: copy.deepcopy(DEFAULT_CONFIG),
        }

        if config_file:
            self.load_file(config_file)
        if load_environment:
            self.load_environment(os.environ)

    def _by_precedence(self, highest_first: bool = True) -> Iterator[Tuple[ConfigSource, Dict[str, Any]]]:
        for source in sorted(self._layers, reverse=highest_first):
            yield source, self._layers[source]

    def load_file(self, file_path: str, source: ConfigSource = ConfigSource.FILE) -> None:
        """Load a YAML mapping into ``source``.

        Raises:
            ConfigError: NOT_FOUND for a missing file, INVALID_INPUT for bad
                YAML or a non-mapping document, PERMISSION_DENIED when the
                file cannot be read
        """
        path = Path(file_path).expanduser()
        if not path.is_file():
            raise ConfigError(f"Config file not found: {file_path}", ErrorCode.NOT_FOUND)

        try:
            data = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML parse error in {file_path}: {e}", ErrorCode.INVALID_INPUT)
        except OSError as e:
            raise ConfigError(f"Cannot read config {file_path}: {e}", ErrorCode.PERMISSION_DENIED)

        if not isinstance(data, dict):
            raise ConfigError(
                f"Config file {file_path} must hold a mapping, got {type(data).__name__}",
                ErrorCode.INVALID_INPUT,
            )
        self.load_dict(data, source)

    def load_dict(self, data: Mapping[str, Any], source: ConfigSource = ConfigSource.RUNTIME) -> None:
        """Replace the ``source`` layer with a copy of ``data``."""
        with self._lock:
            self._layers[source] = copy.deepcopy(dict(data))

    def load_environment(self, environ: Mapping[str, str]) -> None:
        """Build the ENVIRONMENT layer from ``environ``."""
        layer: Dict[str, Any] = {}
        for name, raw in environ.items():
            key = env_key(name)
            if key is not None:
                _assign(layer, key, coerce_env_value(raw))

        with self._lock:
            if layer:
                self._layers[ConfigSource.ENVIRONMENT] = layer
            else:
                self._layers.pop(ConfigSource.ENVIRONMENT, None)

    def get(self, key: str, default: Any = None) -> Any:
        """Value of ``key`` from the highest layer that sets it."""
        with self._lock:
            for _, layer in self._by_precedence():
                value = _lookup(layer, key)
                if value is not None:
                    return value
        return default

    def source_of(self, key: str) -> Optional[ConfigSource]:
        """Layer that ``get(key)`` would answer from (None if unset)."""
        with self._lock:
            for source, layer in self._by_precedence():
                if _lookup(layer, key) is not None:
                    return source
        return None

    def set(self, key: str, value: Any, source: ConfigSource = ConfigSource.RUNTIME) -> None:
        with self._lock:
            _assign(self._layers.setdefault(source, {}), key, value)

    def get_all(self) -> Dict[str, Any]:
        """All layers merged, highest precedence last."""
        with self._lock:
            merged: Dict[str, Any] = {}
            for _, layer in self._by_precedence(highest_first=False):
                merged = _merged(merged, layer)
            return copy.deepcopy(merged)

    def validate(self) -> bool:
        """Validate the merged configuration.

        Raises:
            ConfigError: Wrapping the ValidationError that was found
        """
        try:
            return validate_config(self.get_all())
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}", e.error_code)

    def directory_roots(self) -> Dict[str, str]:
        """The primary, read-grant and write-grant directory roots."""
        return {
            "primary": self.get(ConfigKey.PATHS_PRIMARY),
            "read": self.get(ConfigKey.PATHS_READ),
            "write": self.get(ConfigKey.PATHS_WRITE),
        }

    def clear(self, source: Optional[ConfigSource] = None) -> None:
        """Drop one layer, or every layer but the defaults."""
        with self._lock:
            doomed = [source] if source else list(self._layers)
            for s in doomed:
                if s != ConfigSource.DEFAULTS:
                    self._layers.pop(s, None)
