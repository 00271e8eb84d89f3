"""Execution of external build-system commands with optional dry-run support."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence
import shlex
import subprocess


@dataclass
class CommandResult:
    """Represents the outcome of an executed command."""

    command: Sequence[str]
    returncode: int

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Abstract command runner interface.

    Runners never raise on a non-zero exit status; callers inspect
    :attr:`CommandResult.returncode` and decide how to fail. A command that
    cannot be started at all surfaces as :class:`OSError`.
    """

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        note: str | None = None,
    ) -> CommandResult:
        raise NotImplementedError

    def format_command(self, command: Sequence[str]) -> str:
        return " ".join(shlex.quote(part) for part in command)


class SubprocessCommandRunner(CommandRunner):
    """Runs commands via :mod:`subprocess`, inheriting stdout, stderr and the environment.

    The call blocks until the child exits; there is no timeout.
    """

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        note: str | None = None,
    ) -> CommandResult:
        process = subprocess.run(list(command), cwd=str(cwd) if cwd else None, check=False)
        return CommandResult(command=list(command), returncode=process.returncode)


@dataclass(slots=True)
class RecordedCommand:
    command: List[str]
    cwd: str | None
    note: str | None = None


class RecordingCommandRunner(CommandRunner):
    """Command runner that records commands instead of executing them."""

    def __init__(self) -> None:
        self.commands: List[RecordedCommand] = []

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        note: str | None = None,
    ) -> CommandResult:
        self.commands.append(RecordedCommand(command=list(command), cwd=str(cwd) if cwd else None, note=note))
        return CommandResult(command=list(command), returncode=0)

    def iter_formatted(self, *, workspace: Path | None = None) -> Iterable[str]:
        default_cwd = str(workspace) if workspace else None
        for record in self.commands:
            parts: List[str] = ["[dry-run]"]
            if record.note:
                parts.append(record.note)
            cwd = record.cwd or default_cwd
            if cwd:
                parts.append(f"(cwd={cwd})")
            parts.append(self.format_command(record.command))
            yield " ".join(parts)


__all__ = [
    "CommandResult",
    "CommandRunner",
    "RecordedCommand",
    "RecordingCommandRunner",
    "SubprocessCommandRunner",
]
