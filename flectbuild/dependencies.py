"""Upstream tools the external build expects to find on the host."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence
import shutil


@dataclass(frozen=True, slots=True)
class Dependency:
    name: str
    executable: str
    kind: str

    @property
    def label(self) -> str:
        return f"{self.name} ({self.kind})"


UPSTREAM_DEPENDENCIES: Sequence[Dependency] = (
    Dependency(name="elixir", executable="elixir", kind="build"),
    Dependency(name="erlang", executable="erl", kind="runtime"),
)


def missing_dependencies(
    dependencies: Iterable[Dependency] = UPSTREAM_DEPENDENCIES,
    *,
    which: Callable[[str], str | None] | None = None,
) -> List[Dependency]:
    """Return the dependencies whose executable is not on ``PATH``."""

    lookup = which or shutil.which
    return [dependency for dependency in dependencies if lookup(dependency.executable) is None]


__all__ = ["Dependency", "UPSTREAM_DEPENDENCIES", "missing_dependencies"]
