from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from luaucx.compiler import COMPILER_ENV, CompileOptions, LuauCompiler
from luaucx.errors import CompileError


def _fake_compiler(root: Path, body: str) -> Path:
    script = root / "luau-compile"
    script.write_text("#!/bin/sh\n" + body + "\n", encoding="utf-8")
    os.chmod(script, 0o755)
    return script


class CompileOptionsTests(unittest.TestCase):
    def test_defaults(self):
        opts = CompileOptions()
        self.assertEqual((opts.optimization_level, opts.debug_level), (1, 1))
        self.assertEqual(opts.to_args(), ["-O1", "-g1"])

    def test_range(self):
        for lvl in (0, 1, 2):
            CompileOptions(optimization_level=lvl, debug_level=lvl)
        with self.assertRaises(ValueError):
            CompileOptions(optimization_level=3)
        with self.assertRaises(ValueError):
            CompileOptions(debug_level=-1)


@unittest.skipIf(os.name == "nt", "shell script stand-in for luau-compile")
class LuauCompilerTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)

    def test_passes_options_and_returns_stdout(self):
        args_file = self.root / "args.txt"
        exe = _fake_compiler(
            self.root,
            f'printf "%s\\n" "$@" > "{args_file}"\n'
            'cat "$4" > /dev/null\n'
            "printf '\\006BYTECODE'",
        )
        out = LuauCompiler(str(exe)).compile(b"print('hi')", CompileOptions(optimization_level=2, debug_level=0))
        self.assertEqual(out, b"\x06BYTECODE")
        args = args_file.read_text(encoding="utf-8").splitlines()
        self.assertEqual(args[:3], ["--binary", "-O2", "-g0"])
        self.assertTrue(args[3].endswith(".luau"))
        # temporary source file is cleaned up
        self.assertFalse(os.path.exists(args[3]))

    def test_error_bytecode(self):
        exe = _fake_compiler(self.root, "head -c 1 /dev/zero\nprintf ':1: Incomplete statement'")
        with self.assertRaises(CompileError) as ctx:
            LuauCompiler(str(exe)).compile(b"local =")
        self.assertIn("Incomplete statement", str(ctx.exception))

    def test_nonzero_exit(self):
        exe = _fake_compiler(self.root, "echo 'syntax error' >&2\nexit 1")
        with self.assertRaises(CompileError) as ctx:
            LuauCompiler(str(exe)).compile(b"x")
        self.assertIn("syntax error", str(ctx.exception))

    def test_empty_output(self):
        exe = _fake_compiler(self.root, "exit 0")
        with self.assertRaises(CompileError):
            LuauCompiler(str(exe)).compile(b"x")

    def test_missing_executable(self):
        with self.assertRaises(CompileError):
            LuauCompiler(str(self.root / "nope")).compile(b"x")

    def test_environment_override(self):
        exe = _fake_compiler(self.root, "printf '\\006OK'")
        with mock.patch.dict(os.environ, {COMPILER_ENV: str(exe)}):
            self.assertEqual(LuauCompiler().executable, str(exe))
            self.assertEqual(LuauCompiler().compile(b"x"), b"\x06OK")


if __name__ == "__main__":
    unittest.main()
