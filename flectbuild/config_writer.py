"""Serialization of the resolved build into make's conditional-assignment form."""
from __future__ import annotations

from pathlib import Path
from typing import List, Tuple
import os

from .descriptor import BuildDescriptor
from .errors import WriteFailure
from .layout import InstallLayout

DEFAULT_CONFIG_NAME = "config.mak"

CONFIG_KEYS: Tuple[str, ...] = (
    "FLECT_ARCH",
    "FLECT_OS",
    "FLECT_ABI",
    "FLECT_FPABI",
    "FLECT_CROSS",
    "FLECT_CC",
    "FLECT_CC_TYPE",
    "FLECT_CC_ARGS",
    "FLECT_LD",
    "FLECT_LD_TYPE",
    "FLECT_LD_ARGS",
    "FLECT_PREFIX",
    "FLECT_BIN_DIR",
    "FLECT_LIB_DIR",
    "FLECT_ST_LIB_DIR",
    "FLECT_SH_LIB_DIR",
)

_KEY_WIDTH = max(len(key) for key in CONFIG_KEYS)


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def config_values(descriptor: BuildDescriptor, layout: InstallLayout) -> List[Tuple[str, str]]:
    """Return the ``(key, value)`` pairs in artifact order."""

    values = (
        descriptor.arch,
        descriptor.os_tag,
        descriptor.abi_tag,
        descriptor.fp_abi_tag,
        descriptor.cross,
        descriptor.compiler,
        descriptor.compiler_type,
        descriptor.compiler_args,
        descriptor.linker,
        descriptor.linker_type,
        descriptor.linker_args,
        layout.prefix,
        layout.bin_dir,
        layout.lib_dir,
        layout.static_lib_dir,
        layout.shared_lib_dir,
    )
    return [(key, _format_value(value)) for key, value in zip(CONFIG_KEYS, values, strict=True)]


def render(descriptor: BuildDescriptor, layout: InstallLayout) -> str:
    """Render the artifact text.

    Every line uses ``?=`` so a variable already set in the environment or on
    the make command line keeps its value.
    """

    lines = [
        f"export {key:<{_KEY_WIDTH}} ?= {value}".rstrip()
        for key, value in config_values(descriptor, layout)
    ]
    return "\n".join(lines) + "\n"


def write(descriptor: BuildDescriptor, layout: InstallLayout, dest_path: str | os.PathLike[str]) -> Path:
    """Create or truncate ``dest_path`` with the rendered artifact."""

    path = Path(dest_path)
    parent = path.parent
    if not parent.is_dir():
        raise WriteFailure(path, f"directory '{parent}' does not exist")

    for key, value in config_values(descriptor, layout):
        if "\n" in value or "\r" in value:
            raise WriteFailure(path, f"value for {key} contains a line break")

    content = render(descriptor, layout)
    try:
        with path.open("w", encoding="utf-8", newline="\n") as handle:
            handle.write(content)
    except OSError as exc:
        raise WriteFailure(path, exc.strerror or str(exc)) from exc
    return path


__all__ = ["CONFIG_KEYS", "DEFAULT_CONFIG_NAME", "config_values", "render", "write"]
