"""Command line interface for flectbuild."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable
import json
import sys

from .command_runner import RecordingCommandRunner, SubprocessCommandRunner
from .console import Console
from .dependencies import missing_dependencies
from .descriptor import resolve
from .errors import FlectBuildError, InvalidPrefix, PhaseFailure, SettingsError
from .host import PlatformDetector
from .layout import resolve_layout
from .orchestrator import BuildOrchestrator, RunReport
from .settings import Settings, load_settings


def _make_runner(dry_run: bool) -> SubprocessCommandRunner | RecordingCommandRunner:
    return RecordingCommandRunner() if dry_run else SubprocessCommandRunner()


def _make_console(args: Namespace) -> Console:
    if getattr(args, "verbose", False):
        return Console("debug")
    if getattr(args, "quiet", False):
        return Console("error")
    return Console("info")


def _emit_dry_run_output(runner: RecordingCommandRunner, console: Console, *, workspace: Path) -> None:
    for line in runner.iter_formatted(workspace=workspace):
        console.dry(line)


def _require_prefix(args: Namespace, settings: Settings) -> str:
    prefix = getattr(args, "prefix", None) or settings.prefix
    if not prefix:
        raise InvalidPrefix("", "no install prefix given; use --prefix or set install.prefix")
    return prefix


def _exit_code(exc: FlectBuildError) -> int:
    if isinstance(exc, PhaseFailure):
        return exc.exit_code if exc.exit_code > 0 else 1
    if isinstance(exc, (InvalidPrefix, SettingsError)):
        return 2
    return 1


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="flectbuild", description="Configure, install and test Flect with make")
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Settings file (defaults to $FLECTBUILD_CONFIG or ./flectbuild.toml)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Enable debug output")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only print errors")
    subparsers = parser.add_subparsers(dest="command", required=True)

    configure_parser = subparsers.add_parser("configure", help="Write config.mak without building")
    install_parser = subparsers.add_parser("install", help="Configure, then run 'make install'")
    describe_parser = subparsers.add_parser("describe", help="Show the resolved platform and layout")
    for sub in (configure_parser, install_parser, describe_parser):
        sub.add_argument("--prefix", help="Absolute install prefix")
        sub.add_argument("--os", dest="os_tag", help="Override the target OS tag")
        sub.add_argument("-T", "--toolchain", help="Toolchain to select")

    install_parser.add_argument("--test", action="store_true", help="Run the test suite after installing")
    install_parser.add_argument("-n", "--dry-run", action="store_true", help="Print make commands without running them")

    test_parser = subparsers.add_parser("test", help="Run 'make test -j 1' against an existing config.mak")
    test_parser.add_argument("-n", "--dry-run", action="store_true", help="Print make commands without running them")

    describe_parser.add_argument("--json", action="store_true", help="Emit JSON")

    subparsers.add_parser("check", help="Report missing upstream build and runtime dependencies")

    return parser.parse_args(list(argv))


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    workspace = Path.cwd()
    console = _make_console(args)

    handlers = {
        "configure": _handle_configure,
        "install": _handle_install,
        "test": _handle_test,
        "describe": _handle_describe,
        "check": _handle_check,
    }
    handler = handlers.get(args.command)
    if handler is None:
        raise ValueError(f"Unknown command: {args.command}")

    try:
        settings = load_settings(workspace, explicit=args.config)
        return handler(args, workspace, settings, console)
    except FlectBuildError as exc:
        console.error(str(exc))
        return _exit_code(exc)


def _handle_configure(args: Namespace, workspace: Path, settings: Settings, console: Console) -> int:
    orchestrator = BuildOrchestrator(
        command_runner=SubprocessCommandRunner(),
        workspace=workspace,
        settings=settings,
        console=console,
    )
    orchestrator.configure(_require_prefix(args, settings), toolchain=args.toolchain, os_tag=args.os_tag)
    return 0


def _finish_run(
    report: RunReport,
    runner: SubprocessCommandRunner | RecordingCommandRunner,
    console: Console,
    workspace: Path,
) -> int:
    if isinstance(runner, RecordingCommandRunner):
        _emit_dry_run_output(runner, console, workspace=workspace)
    phases = ", ".join(phase.phase for phase in report.phases) or "none"
    console.info(f"Completed phases: {phases}")
    return 0


def _handle_install(args: Namespace, workspace: Path, settings: Settings, console: Console) -> int:
    runner = _make_runner(args.dry_run)
    orchestrator = BuildOrchestrator(
        command_runner=runner,
        workspace=workspace,
        settings=settings,
        console=console,
    )
    report = orchestrator.run(
        _require_prefix(args, settings),
        run_tests=args.test or settings.run_tests,
        toolchain=args.toolchain,
        os_tag=args.os_tag,
    )
    return _finish_run(report, runner, console, workspace)


def _handle_test(args: Namespace, workspace: Path, settings: Settings, console: Console) -> int:
    runner = _make_runner(args.dry_run)
    orchestrator = BuildOrchestrator(
        command_runner=runner,
        workspace=workspace,
        settings=settings,
        console=console,
    )
    return _finish_run(orchestrator.run_test_suite(), runner, console, workspace)


def _handle_describe(args: Namespace, workspace: Path, settings: Settings, console: Console) -> int:
    profile = PlatformDetector(console=console).detect()
    descriptor = resolve(
        profile,
        toolchain=settings.selected_toolchain(args.toolchain),
        os_tag=args.os_tag or settings.os_tag,
    )
    data: dict[str, dict[str, object]] = {
        "platform": profile.to_mapping(),
        "descriptor": descriptor.to_mapping(),
    }
    prefix = args.prefix or settings.prefix
    if prefix:
        data["layout"] = resolve_layout(prefix, product=settings.product).to_mapping()

    if args.json:
        print(json.dumps(data, indent=2, sort_keys=True))
        return 0

    for section, values in data.items():
        print(f"{section}:")
        for key, value in values.items():
            print(f"  {key}: {value}")
    return 0


def _handle_check(args: Namespace, workspace: Path, settings: Settings, console: Console) -> int:
    missing = missing_dependencies()
    if not missing:
        console.info("All upstream dependencies found")
        return 0
    for dependency in missing:
        console.error(f"Missing {dependency.label}: '{dependency.executable}' not found on PATH")
    return 1


__all__ = ["main"]
