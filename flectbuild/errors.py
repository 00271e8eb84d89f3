"""Error types raised while configuring and driving a Flect build."""
from __future__ import annotations

from pathlib import Path


class FlectBuildError(RuntimeError):
    """Base class for every fatal error raised by flectbuild."""


class SettingsError(FlectBuildError):
    """Raised when a settings file contains invalid content."""


class InvalidPrefix(FlectBuildError):
    """Raised when the install prefix is empty or not an absolute path."""

    def __init__(self, prefix: object, reason: str | None = None) -> None:
        detail = reason or "install prefix must be a non-empty absolute path"
        super().__init__(f"Invalid install prefix {str(prefix)!r}: {detail}")
        self.prefix = prefix


class WriteFailure(FlectBuildError):
    """Raised when the configuration artifact cannot be written."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot write configuration to '{path}': {reason}")
        self.path = path
        self.reason = reason


class ConfigurationMissing(FlectBuildError):
    """Raised when a phase is requested before any configuration was written."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Configuration file '{path}' does not exist; run configure or install first")
        self.path = path


class PhaseFailure(FlectBuildError):
    """Raised when an external build-system phase exits non-zero or cannot be started."""

    def __init__(self, phase: str, exit_code: int, reason: str | None = None) -> None:
        detail = reason or f"failed with exit code {exit_code}"
        super().__init__(f"Phase '{phase}' {detail}")
        self.phase = phase
        self.exit_code = exit_code


__all__ = [
    "ConfigurationMissing",
    "FlectBuildError",
    "InvalidPrefix",
    "PhaseFailure",
    "SettingsError",
    "WriteFailure",
]
