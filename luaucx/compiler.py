from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from typing import List, Optional

from .errors import CompileError


COMPILER_ENV = "LUAUCX_LUAU_COMPILE"
DEFAULT_COMPILER = "luau-compile"


@dataclass(frozen=True)
class CompileOptions:
    optimization_level: int = 1
    debug_level: int = 1

    def __post_init__(self):
        if not 0 <= self.optimization_level <= 2:
            raise ValueError(f"optimization level must be between 0 and 2 (got {self.optimization_level})")
        if not 0 <= self.debug_level <= 2:
            raise ValueError(f"debug level must be between 0 and 2 (got {self.debug_level})")

    def to_args(self) -> List[str]:
        return [f"-O{self.optimization_level}", f"-g{self.debug_level}"]


class LuauCompiler:
    """Compile Luau source to bytecode with the ``luau-compile`` tool.

    The executable is taken from the constructor, then the
    ``LUAUCX_LUAU_COMPILE`` environment variable, then ``PATH``.
    """

    def __init__(self, executable: Optional[str] = None):
        self.executable = executable or os.environ.get(COMPILER_ENV) or DEFAULT_COMPILER

    def _resolve(self) -> str:
        found = shutil.which(self.executable)
        if found is None:
            raise CompileError(f"Luau compiler not found: {self.executable}")
        return found

    def compile(self, source: bytes, options: CompileOptions = CompileOptions()) -> bytes:
        exe = self._resolve()
        fd, src_path = tempfile.mkstemp(prefix="luaucx-", suffix=".luau")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(source)
            proc = subprocess.run(
                [exe, "--binary", *options.to_args(), src_path],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        finally:
            os.unlink(src_path)

        if proc.returncode != 0:
            msg = proc.stderr.decode("utf-8", "replace").strip() or f"exit status {proc.returncode}"
            raise CompileError(f"luau-compile failed: {msg}")
        bytecode = proc.stdout
        if not bytecode:
            raise CompileError("luau-compile produced no output")
        # Luau encodes compile errors as version byte 0 followed by the message
        if bytecode[0] == 0:
            raise CompileError(bytecode[1:].decode("utf-8", "replace").strip() or "compilation failed")
        return bytecode
