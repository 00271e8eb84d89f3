"""Toolchain identity definitions and registry utilities."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Mapping

DEFAULT_TOOLCHAIN = "clang"


@dataclass(frozen=True, slots=True)
class ToolchainDefinition:
    """A compiler and linker pair together with the driver types make expects."""

    name: str
    cc: str
    cc_type: str
    ld: str
    ld_type: str
    ld_args: str = ""
    description: str | None = None

    _ALLOWED_KEYS = frozenset({"description", "cc", "cc_type", "ld", "ld_type", "ld_args"})
    _REQUIRED_KEYS = ("cc", "cc_type", "ld", "ld_type")

    @classmethod
    def from_mapping(
        cls,
        name: str,
        data: Mapping[str, Any],
        *,
        base: "ToolchainDefinition | None" = None,
    ) -> "ToolchainDefinition":
        if not isinstance(data, Mapping):
            raise TypeError(f"Toolchain '{name}' definition must be a mapping")

        unknown = {str(key) for key in data.keys() if str(key) not in cls._ALLOWED_KEYS}
        if unknown:
            joined = ", ".join(sorted(unknown))
            raise ValueError(f"Toolchain '{name}' contains unknown keys: {joined}")

        values = {str(key): str(value).strip() for key, value in data.items() if value is not None}
        multiline = sorted(key for key, value in values.items() if "\n" in value or "\r" in value)
        if multiline:
            raise ValueError(f"Toolchain '{name}' values must be single-line: {', '.join(multiline)}")

        merged = {key: getattr(base, key) for key in cls._ALLOWED_KEYS} if base is not None else {}
        merged.update(values)
        missing = sorted(key for key in cls._REQUIRED_KEYS if not merged.get(key))
        if missing:
            raise ValueError(f"Toolchain '{name}' must define: {', '.join(missing)}")
        if base is not None:
            return replace(base, **values)
        return cls(name=name, **values)


def _build_builtin_definitions() -> Dict[str, ToolchainDefinition]:
    raw: Dict[str, Mapping[str, Any]] = {
        "clang": {
            "description": "LLVM Clang driver with the system linker",
            "cc": "clang",
            "cc_type": "gcc",
            "ld": "ld",
            "ld_type": "ld",
        },
        "gcc": {
            "description": "GNU Compiler Collection with the system linker",
            "cc": "gcc",
            "cc_type": "gcc",
            "ld": "ld",
            "ld_type": "ld",
        },
    }
    return {name: ToolchainDefinition.from_mapping(name, data) for name, data in raw.items()}


class ToolchainRegistry:
    def __init__(self, definitions: Mapping[str, ToolchainDefinition] | None = None) -> None:
        self._definitions: Dict[str, ToolchainDefinition] = dict(definitions or {})

    @classmethod
    def with_builtins(cls) -> "ToolchainRegistry":
        return cls(_build_builtin_definitions())

    def merge_from_mapping(self, mapping: Mapping[str, Any]) -> None:
        """Add or partially override toolchains from a ``[toolchains]`` section."""

        for raw_name, raw_value in mapping.items():
            name = str(raw_name).strip().lower()
            if not name:
                continue
            self._definitions[name] = ToolchainDefinition.from_mapping(
                name,
                raw_value,
                base=self._definitions.get(name),
            )

    def get(self, name: str) -> ToolchainDefinition:
        definition = self._definitions.get(name.strip().lower())
        if definition is None:
            available = ", ".join(sorted(self.available())) or "<none>"
            raise KeyError(f"Unknown toolchain '{name}'. Available toolchains: {available}")
        return definition

    def default(self) -> ToolchainDefinition:
        return self.get(DEFAULT_TOOLCHAIN)

    def available(self) -> Iterable[str]:
        return self._definitions.keys()


BUILTIN_TOOLCHAINS = _build_builtin_definitions()

__all__ = ["BUILTIN_TOOLCHAINS", "DEFAULT_TOOLCHAIN", "ToolchainDefinition", "ToolchainRegistry"]
