"""Configure, install and test the Flect toolchain through its make build."""
from __future__ import annotations

from .config_writer import render, write
from .descriptor import BuildDescriptor, resolve
from .errors import (
    ConfigurationMissing,
    FlectBuildError,
    InvalidPrefix,
    PhaseFailure,
    SettingsError,
    WriteFailure,
)
from .host import PlatformDetector, PlatformProfile, detect_platform
from .layout import InstallLayout, resolve_layout
from .orchestrator import BuildOrchestrator, OrchestratorState, RunReport

__version__ = "0.1.0"

__all__ = [
    "BuildDescriptor",
    "BuildOrchestrator",
    "ConfigurationMissing",
    "FlectBuildError",
    "InstallLayout",
    "InvalidPrefix",
    "OrchestratorState",
    "PhaseFailure",
    "PlatformDetector",
    "PlatformProfile",
    "RunReport",
    "SettingsError",
    "WriteFailure",
    "detect_platform",
    "render",
    "resolve",
    "resolve_layout",
    "write",
]
