"""Install directory layout derived from the install prefix."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

from .errors import InvalidPrefix

DEFAULT_PRODUCT = "flect"


@dataclass(frozen=True, slots=True)
class InstallLayout:
    prefix: Path
    bin_dir: Path
    lib_dir: Path
    static_lib_dir: Path
    shared_lib_dir: Path

    def to_mapping(self) -> dict[str, str]:
        return {
            "prefix": str(self.prefix),
            "bin_dir": str(self.bin_dir),
            "lib_dir": str(self.lib_dir),
            "static_lib_dir": str(self.static_lib_dir),
            "shared_lib_dir": str(self.shared_lib_dir),
        }


def resolve_layout(prefix: str | os.PathLike[str], *, product: str = DEFAULT_PRODUCT) -> InstallLayout:
    """Derive every install directory from ``prefix``.

    Raises :class:`InvalidPrefix` when ``prefix`` is empty, relative or spans
    more than one line.
    """

    text = os.fspath(prefix).strip()
    if not text:
        raise InvalidPrefix(prefix)
    if "\n" in text or "\r" in text:
        raise InvalidPrefix(prefix, "install prefix must not contain line breaks")
    root = Path(text)
    if not root.is_absolute():
        raise InvalidPrefix(prefix)
    if not product or "/" in product or os.sep in product:
        raise InvalidPrefix(prefix, f"invalid product directory name {product!r}")

    lib_dir = root / "lib" / product
    return InstallLayout(
        prefix=root,
        bin_dir=root / "bin",
        lib_dir=lib_dir,
        static_lib_dir=lib_dir / "static",
        shared_lib_dir=lib_dir / "shared",
    )


__all__ = ["DEFAULT_PRODUCT", "InstallLayout", "resolve_layout"]
