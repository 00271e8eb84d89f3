"""Helpers for locating and loading settings mappings from TOML, JSON or YAML."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Sequence

import json
import os
import tomllib

import yaml


ConfigLoader = Callable[[Any], Mapping[str, Any]]

SETTINGS_ENV_VAR = "FLECTBUILD_CONFIG"
SETTINGS_STEM = "flectbuild"


FILE_LOADERS: Dict[str, ConfigLoader] = {
    ".toml": lambda stream: tomllib.load(stream),
    ".json": lambda stream: json.load(stream),
    ".yaml": lambda stream: yaml.safe_load(stream),
    ".yml": lambda stream: yaml.safe_load(stream),
}
"""Mapping of file suffixes to loader callables, in lookup order."""


def load_config_file(path: Path) -> Mapping[str, Any]:
    """Load and decode a configuration mapping from ``path``."""

    suffix = path.suffix.lower()
    loader = FILE_LOADERS.get(suffix)
    if loader is None:
        supported = ", ".join(sorted(FILE_LOADERS)) or "<none>"
        raise ValueError(
            f"Unsupported configuration file extension: {suffix}. Supported: {supported}"
        )

    mode = "rb" if suffix == ".toml" else "r"
    kwargs: Dict[str, Any] = {}
    if mode == "r":
        kwargs["encoding"] = "utf-8"

    with path.open(mode, **kwargs) as handle:
        data = loader(handle)

    # An empty YAML document decodes to None.
    if data is None and suffix in {".yaml", ".yml"}:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"Configuration file '{path}' must contain a mapping at the root")

    return data


def locate_settings_file(
    workspace: Path,
    *,
    explicit: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Path | None:
    """Return the settings file to use for ``workspace``, if any.

    An explicit path wins over ``FLECTBUILD_CONFIG``, which wins over a
    ``flectbuild.<suffix>`` file found in the workspace. Explicitly named
    files must exist.
    """

    environment = os.environ if env is None else env
    candidate = explicit
    if candidate is None:
        env_value = environment.get(SETTINGS_ENV_VAR, "").strip()
        if env_value:
            candidate = Path(env_value)

    if candidate is not None:
        path = candidate if candidate.is_absolute() else workspace / candidate
        if not path.is_file():
            raise FileNotFoundError(f"Settings file not found: {path}")
        return path

    found: Sequence[Path] = [
        workspace / f"{SETTINGS_STEM}{suffix}"
        for suffix in FILE_LOADERS
        if (workspace / f"{SETTINGS_STEM}{suffix}").is_file()
    ]
    if len(found) > 1:
        names = ", ".join(path.name for path in found)
        raise ValueError(
            f"Multiple settings files found in '{workspace}': {names}. "
            "Only one format per configuration entry is allowed."
        )
    return found[0] if found else None


__all__ = [
    "ConfigLoader",
    "FILE_LOADERS",
    "SETTINGS_ENV_VAR",
    "load_config_file",
    "locate_settings_file",
]
