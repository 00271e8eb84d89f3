"""Build orchestration: configure, then drive make through install and test."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, List, Sequence
import os

from . import config_writer
from .command_runner import CommandRunner
from .console import Console
from .descriptor import BuildDescriptor, resolve
from .errors import ConfigurationMissing, PhaseFailure
from .host import PlatformDetector, PlatformProfile
from .layout import InstallLayout, resolve_layout
from .settings import Settings

INSTALL_PHASE = "install"
TEST_PHASE = "test"
TEST_JOBS = 1
# Shell status for a command that could not be found or executed.
SPAWN_FAILURE_EXIT_CODE = 127


class OrchestratorState(str, Enum):
    IDLE = "idle"
    CONFIGURING = "configuring"
    INSTALLING = "installing"
    TESTING = "testing"
    DONE = "done"
    SUCCESS = "success"
    FAILURE = "failure"


_TRANSITIONS: Dict[OrchestratorState, FrozenSet[OrchestratorState]] = {
    OrchestratorState.IDLE: frozenset(
        {OrchestratorState.CONFIGURING, OrchestratorState.TESTING, OrchestratorState.FAILURE}
    ),
    OrchestratorState.CONFIGURING: frozenset({OrchestratorState.INSTALLING, OrchestratorState.FAILURE}),
    OrchestratorState.INSTALLING: frozenset(
        {OrchestratorState.TESTING, OrchestratorState.DONE, OrchestratorState.FAILURE}
    ),
    OrchestratorState.TESTING: frozenset({OrchestratorState.DONE, OrchestratorState.FAILURE}),
    OrchestratorState.DONE: frozenset({OrchestratorState.SUCCESS}),
    OrchestratorState.SUCCESS: frozenset(),
    OrchestratorState.FAILURE: frozenset(),
}


@dataclass(slots=True)
class Configuration:
    profile: PlatformProfile
    descriptor: BuildDescriptor
    layout: InstallLayout
    path: Path


@dataclass(slots=True)
class PhaseResult:
    phase: str
    command: List[str]
    exit_code: int


@dataclass(slots=True)
class RunReport:
    state: OrchestratorState
    configuration: Configuration | None = None
    phases: List[PhaseResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is OrchestratorState.SUCCESS


class BuildOrchestrator:
    """Sequential state machine around the external build system.

    Every step runs to completion before the next one starts. The first
    failure moves the machine to ``FAILURE`` and is re-raised; nothing is
    retried and files already written are left in place.
    """

    def __init__(
        self,
        *,
        command_runner: CommandRunner,
        workspace: Path,
        settings: Settings | None = None,
        console: Console | None = None,
        detector: PlatformDetector | None = None,
    ) -> None:
        self._command_runner = command_runner
        self._workspace = workspace
        self._settings = settings or Settings()
        self._console = console or Console("none")
        self._detector = detector or PlatformDetector(console=self._console)
        self.state = OrchestratorState.IDLE
        self.history: List[OrchestratorState] = [OrchestratorState.IDLE]
        self.configuration: Configuration | None = None
        self.phases: List[PhaseResult] = []

    @property
    def config_path(self) -> Path:
        return self._workspace / self._settings.config_file

    def _transition(self, target: OrchestratorState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid orchestrator transition: {self.state.value} -> {target.value}")
        self._console.debug(f"State {self.state.value} -> {target.value}")
        self.state = target
        self.history.append(target)

    def _fail(self) -> None:
        if self.state is not OrchestratorState.FAILURE:
            self._transition(OrchestratorState.FAILURE)

    def _report(self) -> RunReport:
        return RunReport(state=self.state, configuration=self.configuration, phases=list(self.phases))

    def configure(
        self,
        prefix: str | os.PathLike[str],
        *,
        toolchain: str | None = None,
        os_tag: str | None = None,
    ) -> Configuration:
        self._transition(OrchestratorState.CONFIGURING)
        self._console.step("Configuring the build...")
        try:
            chain = self._settings.selected_toolchain(toolchain)
            profile = self._detector.detect()
            descriptor = resolve(profile, toolchain=chain, os_tag=os_tag or self._settings.os_tag)
            layout = resolve_layout(prefix, product=self._settings.product)
            path = config_writer.write(descriptor, layout, self.config_path)
        except Exception:
            self._fail()
            raise

        self._console.debug(f"Resolved {descriptor.abi_tag}/{descriptor.fp_abi_tag} for {profile.machine or 'unknown'}")
        self._console.info(f"Wrote {path}")
        self.configuration = Configuration(profile=profile, descriptor=descriptor, layout=layout, path=path)
        return self.configuration

    def _run_phase(self, phase: str, command: Sequence[str]) -> PhaseResult:
        try:
            result = self._command_runner.run(command, cwd=self._workspace, note=phase)
        except OSError as exc:
            self.phases.append(PhaseResult(phase=phase, command=list(command), exit_code=SPAWN_FAILURE_EXIT_CODE))
            self._fail()
            reason = f"could not start '{command[0]}': {exc.strerror or exc}"
            raise PhaseFailure(phase, SPAWN_FAILURE_EXIT_CODE, reason) from exc
        outcome = PhaseResult(phase=phase, command=list(command), exit_code=result.returncode)
        self.phases.append(outcome)
        if result.returncode != 0:
            self._fail()
            raise PhaseFailure(phase, result.returncode)
        return outcome

    def install(self) -> PhaseResult:
        self._transition(OrchestratorState.INSTALLING)
        self._console.step("Building and installing...")
        return self._run_phase(INSTALL_PHASE, [self._settings.make, INSTALL_PHASE])

    def test(self) -> PhaseResult:
        if self.state is OrchestratorState.IDLE and not self.config_path.is_file():
            self._fail()
            raise ConfigurationMissing(self.config_path)
        self._transition(OrchestratorState.TESTING)
        self._console.step("Running test suite...")
        return self._run_phase(TEST_PHASE, [self._settings.make, TEST_PHASE, "-j", str(TEST_JOBS)])

    def finish(self) -> RunReport:
        self._transition(OrchestratorState.DONE)
        self._transition(OrchestratorState.SUCCESS)
        return self._report()

    def run(
        self,
        prefix: str | os.PathLike[str],
        *,
        run_tests: bool = False,
        toolchain: str | None = None,
        os_tag: str | None = None,
    ) -> RunReport:
        """Configure, install and optionally test, stopping at the first failure."""

        self.configure(prefix, toolchain=toolchain, os_tag=os_tag)
        self.install()
        if run_tests:
            self.test()
        return self.finish()

    def run_test_suite(self) -> RunReport:
        """Run only the test phase against an existing configuration."""

        self.test()
        return self.finish()


__all__ = [
    "BuildOrchestrator",
    "Configuration",
    "INSTALL_PHASE",
    "OrchestratorState",
    "PhaseResult",
    "RunReport",
    "SPAWN_FAILURE_EXIT_CODE",
    "TEST_JOBS",
    "TEST_PHASE",
]
