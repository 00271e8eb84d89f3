from __future__ import annotations

from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
import io
import json
import os
import subprocess
import tempfile
import textwrap
import unittest
from unittest.mock import patch

from flectbuild import cli


class CommandLineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.workspace = Path(self.temp_dir.name).resolve()
        self._previous_cwd = os.getcwd()
        os.chdir(self.workspace)
        self._env = patch.dict(os.environ, {}, clear=False)
        self._env.start()
        os.environ.pop("FLECTBUILD_CONFIG", None)
        self._machine = patch("flectbuild.host.platform.machine", return_value="x86_64")
        self._machine.start()

    def tearDown(self) -> None:
        self._machine.stop()
        self._env.stop()
        os.chdir(self._previous_cwd)
        self.temp_dir.cleanup()

    def _run(self, *argv: str) -> tuple[int, str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = cli.main(list(argv))
        return code, stdout.getvalue(), stderr.getvalue()

    def test_configure_writes_artifact_only(self) -> None:
        with patch("flectbuild.command_runner.subprocess.run") as mock_run:
            code, output, _ = self._run("configure", "--prefix", "/opt/flect")
        self.assertEqual(code, 0)
        mock_run.assert_not_called()
        self.assertIn("==> Configuring the build...", output)
        text = (self.workspace / "config.mak").read_text(encoding="utf-8")
        self.assertIn("export FLECT_ABI        ?= x86-sysv64\n", text)

    def test_install_dry_run_prints_make_commands(self) -> None:
        code, output, _ = self._run("install", "--prefix", "/opt/flect", "--test", "--dry-run")
        self.assertEqual(code, 0)
        self.assertIn(f"[dry-run] install (cwd={self.workspace}) make install", output)
        self.assertIn(f"[dry-run] test (cwd={self.workspace}) make test -j 1", output)
        self.assertIn("Completed phases: install, test", output)
        self.assertTrue((self.workspace / "config.mak").is_file())

    def test_install_failure_exits_with_phase_status(self) -> None:
        completed = subprocess.CompletedProcess(args=["make", "install"], returncode=2)
        with patch("flectbuild.command_runner.subprocess.run", return_value=completed) as mock_run:
            code, _, errors = self._run("install", "--prefix", "/opt/flect", "--test")
        self.assertEqual(code, 2)
        mock_run.assert_called_once()
        self.assertEqual(mock_run.call_args.args[0], ["make", "install"])
        self.assertEqual(mock_run.call_args.kwargs["cwd"], str(self.workspace))
        self.assertIn("Phase 'install' failed with exit code 2", errors)

    def test_missing_make_is_reported_as_phase_failure(self) -> None:
        missing = FileNotFoundError(2, "No such file or directory", "make")
        with patch("flectbuild.command_runner.subprocess.run", side_effect=missing):
            code, _, errors = self._run("install", "--prefix", "/opt/flect")
        self.assertEqual(code, 127)
        self.assertIn("[ERROR] Phase 'install' could not start 'make': No such file or directory", errors)

    def test_install_uses_settings_file(self) -> None:
        (self.workspace / "flectbuild.toml").write_text(
            textwrap.dedent(
                """
                [install]
                prefix = "/usr/local/flect"
                run_tests = true

                [build]
                make = "gmake"
                """
            )
        )
        completed = subprocess.CompletedProcess(args=[], returncode=0)
        with patch("flectbuild.command_runner.subprocess.run", return_value=completed) as mock_run:
            code, _, _ = self._run("-q", "install")
        self.assertEqual(code, 0)
        commands = [call.args[0] for call in mock_run.call_args_list]
        self.assertEqual(commands, [["gmake", "install"], ["gmake", "test", "-j", "1"]])
        text = (self.workspace / "config.mak").read_text(encoding="utf-8")
        self.assertIn("/usr/local/flect/lib/flect/shared", text)

    def test_missing_prefix_is_a_usage_error(self) -> None:
        code, _, errors = self._run("install")
        self.assertEqual(code, 2)
        self.assertIn("no install prefix given", errors)
        self.assertFalse((self.workspace / "config.mak").exists())

    def test_relative_prefix_is_rejected(self) -> None:
        code, _, errors = self._run("configure", "--prefix", "opt/flect")
        self.assertEqual(code, 2)
        self.assertIn("Invalid install prefix", errors)

    def test_test_command_requires_configuration(self) -> None:
        code, _, errors = self._run("test", "--dry-run")
        self.assertEqual(code, 1)
        self.assertIn("does not exist", errors)

    def test_test_command_runs_serial_tests(self) -> None:
        self._run("configure", "--prefix", "/opt/flect")
        code, output, _ = self._run("test", "-n")
        self.assertEqual(code, 0)
        self.assertIn("make test -j 1", output)
        self.assertNotIn("make install", output)

    def test_describe_json(self) -> None:
        code, output, _ = self._run("describe", "--prefix", "/opt/flect", "--json")
        self.assertEqual(code, 0)
        data = json.loads(output)
        self.assertTrue(data["platform"]["prefers_64_bit"])
        self.assertEqual(data["descriptor"]["abi"], "x86-sysv64")
        self.assertEqual(data["layout"]["lib_dir"], "/opt/flect/lib/flect")
        self.assertFalse((self.workspace / "config.mak").exists())

    def test_describe_text_without_prefix_omits_layout(self) -> None:
        code, output, _ = self._run("describe", "--toolchain", "gcc")
        self.assertEqual(code, 0)
        self.assertIn("descriptor:", output)
        self.assertIn("  compiler: gcc", output)
        self.assertNotIn("layout:", output)

    def test_invalid_settings_file_is_reported(self) -> None:
        (self.workspace / "flectbuild.toml").write_text("[install]\nprefx = '/opt'\n")
        code, _, errors = self._run("describe")
        self.assertEqual(code, 2)
        self.assertIn("unknown keys", errors)

    def test_check_reports_missing_dependencies(self) -> None:
        with patch("flectbuild.dependencies.shutil.which", side_effect=lambda name: None if name == "erl" else f"/usr/bin/{name}"):
            code, _, errors = self._run("check")
        self.assertEqual(code, 1)
        self.assertIn("Missing erlang (runtime)", errors)
        self.assertNotIn("elixir", errors)

    def test_check_passes_when_everything_is_present(self) -> None:
        with patch("flectbuild.dependencies.shutil.which", return_value="/usr/bin/tool"):
            code, output, _ = self._run("check")
        self.assertEqual(code, 0)
        self.assertIn("All upstream dependencies found", output)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
