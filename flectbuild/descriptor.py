"""Mapping from a platform profile to the toolchain and ABI descriptor."""
from __future__ import annotations

from dataclasses import dataclass

from .host import PlatformProfile
from .toolchains import BUILTIN_TOOLCHAINS, DEFAULT_TOOLCHAIN, ToolchainDefinition

ARCH = "x86"
DEFAULT_OS_TAG = "darwin"


@dataclass(frozen=True, slots=True)
class _WordWidthPolicy:
    word_width: int
    abi_tag: str
    fp_abi_tag: str
    compiler_args: str


# The ABI and float ABI are chosen together; no other pairing is valid.
_NARROW = _WordWidthPolicy(word_width=32, abi_tag="x86-sysv32", fp_abi_tag="x86-x87", compiler_args="-m32")
_WIDE = _WordWidthPolicy(word_width=64, abi_tag="x86-sysv64", fp_abi_tag="x86-sse", compiler_args="")


@dataclass(frozen=True, slots=True)
class BuildDescriptor:
    """Resolved architecture, ABI and toolchain parameters for one build."""

    arch: str
    os_tag: str
    abi_tag: str
    fp_abi_tag: str
    cross: bool
    word_width: int
    compiler: str
    compiler_type: str
    compiler_args: str
    linker: str
    linker_type: str
    linker_args: str

    def to_mapping(self) -> dict[str, object]:
        return {
            "arch": self.arch,
            "os": self.os_tag,
            "abi": self.abi_tag,
            "fp_abi": self.fp_abi_tag,
            "cross": self.cross,
            "word_width": self.word_width,
            "compiler": self.compiler,
            "compiler_type": self.compiler_type,
            "compiler_args": self.compiler_args,
            "linker": self.linker,
            "linker_type": self.linker_type,
            "linker_args": self.linker_args,
        }


def resolve(
    profile: PlatformProfile,
    *,
    toolchain: ToolchainDefinition | None = None,
    os_tag: str = DEFAULT_OS_TAG,
) -> BuildDescriptor:
    """Resolve ``profile`` into a :class:`BuildDescriptor`.

    The word-width preference is the only input that changes the ABI pair and
    compiler flags. The OS tag and toolchain identity pass through unchanged.
    """

    policy = _WIDE if profile.prefers_64_bit else _NARROW
    chain = toolchain or BUILTIN_TOOLCHAINS[DEFAULT_TOOLCHAIN]
    return BuildDescriptor(
        arch=ARCH,
        os_tag=os_tag,
        abi_tag=policy.abi_tag,
        fp_abi_tag=policy.fp_abi_tag,
        cross=False,
        word_width=policy.word_width,
        compiler=chain.cc,
        compiler_type=chain.cc_type,
        compiler_args=policy.compiler_args,
        linker=chain.ld,
        linker_type=chain.ld_type,
        linker_args=chain.ld_args,
    )


__all__ = ["ARCH", "BuildDescriptor", "DEFAULT_OS_TAG", "resolve"]
