from __future__ import annotations

from pathlib import Path
import re
import tempfile
import textwrap
import unittest

from flectbuild import config_writer
from flectbuild.config_writer import CONFIG_KEYS
from flectbuild.descriptor import resolve
from flectbuild.errors import WriteFailure
from flectbuild.host import PlatformProfile
from flectbuild.layout import resolve_layout

_LINE = re.compile(r"^export (?P<key>[A-Z_]+) +\?=(?: (?P<value>.*))?$")


class ConfigurationWriterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.layout = resolve_layout("/opt/flect")

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_render_wide_profile(self) -> None:
        text = config_writer.render(resolve(PlatformProfile(prefers_64_bit=True)), self.layout)
        expected = textwrap.dedent(
            """\
            export FLECT_ARCH       ?= x86
            export FLECT_OS         ?= darwin
            export FLECT_ABI        ?= x86-sysv64
            export FLECT_FPABI      ?= x86-sse
            export FLECT_CROSS      ?= false
            export FLECT_CC         ?= clang
            export FLECT_CC_TYPE    ?= gcc
            export FLECT_CC_ARGS    ?=
            export FLECT_LD         ?= ld
            export FLECT_LD_TYPE    ?= ld
            export FLECT_LD_ARGS    ?=
            export FLECT_PREFIX     ?= /opt/flect
            export FLECT_BIN_DIR    ?= /opt/flect/bin
            export FLECT_LIB_DIR    ?= /opt/flect/lib/flect
            export FLECT_ST_LIB_DIR ?= /opt/flect/lib/flect/static
            export FLECT_SH_LIB_DIR ?= /opt/flect/lib/flect/shared
            """
        )
        self.assertEqual(text, expected)

    def test_render_narrow_profile_sets_m32(self) -> None:
        text = config_writer.render(resolve(PlatformProfile(prefers_64_bit=False)), self.layout)
        self.assertIn("export FLECT_ABI        ?= x86-sysv32\n", text)
        self.assertIn("export FLECT_FPABI      ?= x86-x87\n", text)
        self.assertIn("export FLECT_CC_ARGS    ?= -m32\n", text)

    def test_written_file_has_sixteen_conditional_assignments_in_order(self) -> None:
        dest = self.root / "config.mak"
        config_writer.write(resolve(PlatformProfile(prefers_64_bit=False)), self.layout, dest)
        lines = dest.read_text(encoding="utf-8").splitlines()
        self.assertEqual(len(lines), 16)
        keys = []
        for line in lines:
            match = _LINE.match(line)
            self.assertIsNotNone(match, line)
            keys.append(match.group("key"))
        self.assertEqual(tuple(keys), CONFIG_KEYS)
        self.assertEqual(len(set(keys)), 16)

    def test_write_is_idempotent(self) -> None:
        descriptor = resolve(PlatformProfile(prefers_64_bit=True))
        dest = self.root / "config.mak"
        config_writer.write(descriptor, self.layout, dest)
        first = dest.read_bytes()
        config_writer.write(descriptor, self.layout, dest)
        self.assertEqual(dest.read_bytes(), first)

    def test_write_truncates_previous_content(self) -> None:
        dest = self.root / "config.mak"
        dest.write_text("stale\n" * 100, encoding="utf-8")
        config_writer.write(resolve(PlatformProfile(prefers_64_bit=True)), self.layout, dest)
        self.assertNotIn("stale", dest.read_text(encoding="utf-8"))

    def test_missing_parent_directory_raises_write_failure(self) -> None:
        dest = self.root / "missing" / "config.mak"
        with self.assertRaises(WriteFailure) as ctx:
            config_writer.write(resolve(PlatformProfile(prefers_64_bit=True)), self.layout, dest)
        self.assertEqual(ctx.exception.path, dest)
        self.assertFalse(dest.exists())

    def test_directory_destination_raises_write_failure(self) -> None:
        dest = self.root / "config.mak"
        dest.mkdir()
        with self.assertRaises(WriteFailure):
            config_writer.write(resolve(PlatformProfile(prefers_64_bit=True)), self.layout, dest)

    def test_multiline_value_raises_write_failure_without_touching_file(self) -> None:
        dest = self.root / "config.mak"
        descriptor = resolve(PlatformProfile(prefers_64_bit=True), os_tag="darwin\nFLECT_ABI := evil")
        with self.assertRaises(WriteFailure) as ctx:
            config_writer.write(descriptor, self.layout, dest)
        self.assertIn("FLECT_OS", str(ctx.exception))
        self.assertFalse(dest.exists())

    def test_config_values_match_keys(self) -> None:
        values = config_writer.config_values(resolve(PlatformProfile(prefers_64_bit=True)), self.layout)
        self.assertEqual([key for key, _ in values], list(CONFIG_KEYS))
        self.assertEqual(dict(values)["FLECT_CROSS"], "false")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
