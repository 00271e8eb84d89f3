"""Host introspection producing the platform profile a build is resolved from."""
from __future__ import annotations

from dataclasses import dataclass
import platform

from .console import Console

_WIDE_MACHINES = frozenset({"x86_64", "amd64", "x64", "em64t", "arm64", "aarch64", "ppc64", "ppc64le", "s390x"})
_NARROW_MACHINES = frozenset({"i386", "i486", "i586", "i686", "x86", "i86pc", "armv7l", "armv6l", "ppc"})


@dataclass(frozen=True, slots=True)
class PlatformProfile:
    prefers_64_bit: bool
    os_family: str = ""
    machine: str = ""
    ambiguous: bool = False

    def to_mapping(self) -> dict[str, object]:
        return {
            "prefers_64_bit": self.prefers_64_bit,
            "os_family": self.os_family,
            "machine": self.machine,
            "ambiguous": self.ambiguous,
        }


class PlatformDetector:
    """Reads the host word-width preference and OS family.

    Only a recognised 64-bit machine name counts as a wide signal. Unknown
    or missing machine names fall back to the 32-bit assumption and mark the
    profile ambiguous instead of failing.
    """

    def __init__(
        self,
        *,
        machine: str | None = None,
        system: str | None = None,
        console: Console | None = None,
    ) -> None:
        self._machine = machine
        self._system = system
        self._console = console

    def detect(self) -> PlatformProfile:
        raw_machine = self._machine if self._machine is not None else platform.machine()
        raw_system = self._system if self._system is not None else platform.system()
        machine = raw_machine.strip().lower()
        os_family = raw_system.strip().lower()

        if machine in _WIDE_MACHINES:
            return PlatformProfile(prefers_64_bit=True, os_family=os_family, machine=machine)
        if machine in _NARROW_MACHINES:
            return PlatformProfile(prefers_64_bit=False, os_family=os_family, machine=machine)

        if self._console is not None:
            self._console.debug(
                f"No word-width signal for machine '{raw_machine}'; assuming 32-bit"
            )
        return PlatformProfile(prefers_64_bit=False, os_family=os_family, machine=machine, ambiguous=True)


def detect_platform(console: Console | None = None) -> PlatformProfile:
    return PlatformDetector(console=console).detect()


__all__ = ["PlatformDetector", "PlatformProfile", "detect_platform"]
