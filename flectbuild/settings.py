"""Settings file parsing for flectbuild."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from .config_loader import load_config_file, locate_settings_file
from .config_writer import DEFAULT_CONFIG_NAME
from .descriptor import DEFAULT_OS_TAG
from .errors import SettingsError
from .layout import DEFAULT_PRODUCT
from .toolchains import DEFAULT_TOOLCHAIN, ToolchainDefinition, ToolchainRegistry

_SECTIONS = {
    "install": {"prefix", "run_tests"},
    "build": {"make", "config_file", "product", "os", "toolchain"},
    "toolchains": None,
}


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, Mapping):
        raise SettingsError(f"Section '{name}' must be a mapping")
    allowed = _SECTIONS[name]
    if allowed is not None:
        unknown = {str(key) for key in value.keys() if str(key) not in allowed}
        if unknown:
            raise SettingsError(f"Section '{name}' contains unknown keys: {', '.join(sorted(unknown))}")
    return value


def _string(section: Mapping[str, Any], key: str, default: str | None, *, label: str) -> str | None:
    value = section.get(key)
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise SettingsError(f"'{label}.{key}' must be a non-empty string")
    return value.strip()


@dataclass(slots=True)
class Settings:
    prefix: str | None = None
    run_tests: bool = False
    make: str = "make"
    config_file: str = DEFAULT_CONFIG_NAME
    product: str = DEFAULT_PRODUCT
    os_tag: str = DEFAULT_OS_TAG
    toolchain: str = DEFAULT_TOOLCHAIN
    toolchains: ToolchainRegistry = field(default_factory=ToolchainRegistry.with_builtins)
    source: Path | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, source: Path | None = None) -> "Settings":
        unknown = {str(key) for key in data.keys() if str(key) not in _SECTIONS}
        if unknown:
            raise SettingsError(f"Settings contain unknown sections: {', '.join(sorted(unknown))}")

        install = _section(data, "install")
        build = _section(data, "build")
        toolchain_section = _section(data, "toolchains")

        run_tests = install.get("run_tests", False)
        if not isinstance(run_tests, bool):
            raise SettingsError("'install.run_tests' must be a boolean")

        registry = ToolchainRegistry.with_builtins()
        try:
            registry.merge_from_mapping(toolchain_section)
        except (TypeError, ValueError) as exc:
            raise SettingsError(str(exc)) from exc

        settings = cls(
            prefix=_string(install, "prefix", None, label="install"),
            run_tests=run_tests,
            make=_string(build, "make", "make", label="build"),
            config_file=_string(build, "config_file", DEFAULT_CONFIG_NAME, label="build"),
            product=_string(build, "product", DEFAULT_PRODUCT, label="build"),
            os_tag=_string(build, "os", DEFAULT_OS_TAG, label="build"),
            toolchain=_string(build, "toolchain", DEFAULT_TOOLCHAIN, label="build"),
            toolchains=registry,
            source=source,
        )
        settings.selected_toolchain()
        return settings

    def selected_toolchain(self, name: str | None = None) -> ToolchainDefinition:
        try:
            return self.toolchains.get(name or self.toolchain)
        except KeyError as exc:
            raise SettingsError(exc.args[0]) from exc


def load_settings(
    workspace: Path,
    *,
    explicit: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings for ``workspace``; defaults apply when no file exists."""

    try:
        path = locate_settings_file(workspace, explicit=explicit, env=env)
        if path is None:
            return Settings()
        data = load_config_file(path)
    except (OSError, ValueError, TypeError, yaml.YAMLError) as exc:
        raise SettingsError(str(exc)) from exc
    return Settings.from_mapping(data, source=path)


__all__ = ["Settings", "load_settings"]
