# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Layered configuration for PyWeave applications.

Layers, lowest first: framework defaults, a YAML or TOML file, profile
overlays next to it, programmatic overrides. ``PYWEAVE_*`` environment
variables win over every layer at lookup time.
"""

from __future__ import annotations

import dataclasses
import importlib.resources
import os
import re
import tomllib
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from typing import Any, BinaryIO, TypeVar, get_type_hints

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

from pyweave.kernel.exceptions import ConfigurationException

T = TypeVar("T")

DEFAULTS_SOURCE = "pyweave-defaults.yaml (framework defaults)"
OVERRIDES_SOURCE = "overrides"

_PREFIX_ATTR = "__pyweave_config_prefix__"

# ${NAME} or ${NAME:fallback}; NAME is an environment variable.
_ENV_PLACEHOLDER = re.compile(r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::(?P<fallback>[^}]*))?\}")

_LOADERS: dict[str, Callable[[BinaryIO], Any]] = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".toml": tomllib.load,
}

_COERCIONS: dict[Any, Callable[[str], Any]] = {
    int: int,
    float: float,
    bool: lambda raw: raw.strip().lower() in ("true", "1", "yes", "on"),
}


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Declare the configuration section a dataclass or pydantic model binds to::

        @config_properties(prefix="pyweave.demo")
        class DemoProperties(BaseModel):
            order_delay: float = Field(default=1.0, alias="order-delay", ge=0)
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _PREFIX_ATTR, prefix)
        return cls

    return decorator


def env_key_for(key: str) -> str:
    """``pyweave.demo.order-delay`` -> ``PYWEAVE_DEMO_ORDER_DELAY``."""
    return "PYWEAVE_" + re.sub(r"[.-]", "_", key.removeprefix("pyweave.")).upper()


def merge_tree(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return *base* with *override* merged in; nested mappings merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_tree(current, value)
        else:
            merged[key] = value
    return merged


def read_document(path: Path) -> dict[str, Any]:
    """Parse a ``.yaml``, ``.yml`` or ``.toml`` file into a mapping."""
    loader = _LOADERS.get(path.suffix.lower())
    if loader is None:
        raise ConfigurationException(
            f"Unsupported configuration format '{path.suffix}' for {path}",
            context={"path": str(path)},
        )
    try:
        with path.open("rb") as stream:
            data = loader(stream)
    except (yaml.YAMLError, tomllib.TOMLDecodeError) as exc:
        raise ConfigurationException(f"Cannot parse {path}: {exc}", context={"path": str(path)}) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationException(f"{path} must hold a mapping at the top level", context={"path": str(path)})
    return data


def _framework_defaults() -> dict[str, Any]:
    resource = importlib.resources.files("pyweave.resources") / "pyweave-defaults.yaml"
    return yaml.safe_load(resource.read_text(encoding="utf-8")) or {}


def _profile_overlays(path: Path, profiles: Iterable[str]) -> Iterator[tuple[str, Path]]:
    for profile in profiles:
        overlay = path.with_name(f"{path.stem}-{profile}{path.suffix}")
        if overlay.exists():
            yield profile, overlay


def _coerce(field_name: str, value: Any, expected: Any) -> Any:
    convert = _COERCIONS.get(expected) if isinstance(value, str) else None
    if convert is None:
        return value
    try:
        return convert(value)
    except ValueError as exc:
        raise ConfigurationException(
            f"Cannot convert '{value}' for field '{field_name}'", context={"field": field_name}
        ) from exc


class Config:
    """Read-only view over merged configuration data.

    Keys use dot notation (``pyweave.demo.order-delay``). Every transforming
    operation returns a new instance and records where its data came from in
    :attr:`loaded_sources`.
    """

    def __init__(self, data: dict[str, Any] | None = None, sources: Iterable[str] = ()) -> None:
        self._data: dict[str, Any] = data or {}
        self._sources: list[str] = list(sources)

    @property
    def loaded_sources(self) -> list[str]:
        """Sources merged into this configuration, lowest priority first."""
        return list(self._sources)

    @classmethod
    def defaults(cls) -> Config:
        return cls(_framework_defaults(), [DEFAULTS_SOURCE])

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        active_profiles: Iterable[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load *path* over the framework defaults.

        A missing file leaves the defaults in place. Profile overlays named
        ``{stem}-{profile}{suffix}`` beside *path* are merged in the given
        order, so later profiles win.
        """
        config = cls.defaults() if load_defaults else cls()
        path = Path(path)
        if not path.exists():
            return config

        config = config._merged(read_document(path), str(path))
        for profile, overlay in _profile_overlays(path, active_profiles or ()):
            config = config._merged(read_document(overlay), f"{overlay} (profile: {profile})")
        return config

    def with_overrides(self, overrides: dict[str, Any]) -> Config:
        """Return a copy with *overrides* merged on top."""
        return self._merged(overrides, OVERRIDES_SOURCE)

    def _merged(self, data: dict[str, Any], source: str) -> Config:
        return Config(merge_tree(self._data, data), [*self._sources, source])

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value at *key*, or *default* when it is absent.

        The matching ``PYWEAVE_*`` environment variable wins when set.
        ``${ENV_VAR}`` and ``${ENV_VAR:fallback}`` placeholders in string
        values are expanded from the environment.

        Raises:
            ConfigurationException: A placeholder without fallback names an
                unset variable.
        """
        env_value = os.environ.get(env_key_for(key))
        if env_value is not None:
            return env_value

        value = self._lookup(key)
        if value is None:
            return default
        return self._expand(value) if isinstance(value, str) else value

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Mapping stored under *prefix*; empty when absent or not a mapping."""
        section = self._lookup(prefix)
        return section if isinstance(section, dict) else {}

    def bind(self, config_cls: type[T]) -> T:
        """Build a ``@config_properties`` pydantic model or dataclass from its section.

        Scalar entries go through :meth:`get`, so environment overrides and
        placeholders apply per field.
        """
        prefix = getattr(config_cls, _PREFIX_ATTR, None)
        if prefix is None:
            raise ConfigurationException(f"{config_cls.__name__} is not decorated with @config_properties")

        section = {
            key: value if isinstance(value, dict) else self.get(f"{prefix}.{key}")
            for key, value in self.get_section(prefix).items()
        }

        if issubclass(config_cls, BaseModel):
            try:
                return config_cls.model_validate(section)  # type: ignore[return-value]
            except ValidationError as exc:
                raise ConfigurationException(
                    f"Configuration validation failed for '{config_cls.__name__}' (prefix='{prefix}'):\n{exc}",
                    context={"prefix": prefix},
                ) from exc

        if not dataclasses.is_dataclass(config_cls):
            raise ConfigurationException(f"{config_cls.__name__} must be a dataclass or a pydantic model")

        hints = get_type_hints(config_cls)
        values = {
            field.name: _coerce(field.name, section[field.name], hints.get(field.name))
            for field in dataclasses.fields(config_cls)
            if field.name in section
        }
        return config_cls(**values)

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    @staticmethod
    def _expand(value: str) -> str:
        def substitute(match: re.Match[str]) -> str:
            resolved = os.environ.get(match.group("name"), match.group("fallback"))
            if resolved is None:
                raise ConfigurationException(
                    f"Cannot resolve placeholder '{match.group(0)}': environment variable is not set",
                    context={"placeholder": match.group("name")},
                )
            return resolved

        return _ENV_PLACEHOLDER.sub(substitute, value)
