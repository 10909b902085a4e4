"""
Emitter Driver

Renders a program and hands the text to the system toolchain.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from typing import List, Optional, Union

from asmir.codegen import CodeGenerator
from asmir.dialects import Dialect
from asmir.ir import Program


logger = logging.getLogger(__name__)


@dataclass
class EmitResult:
    """Result of emission"""
    success: bool
    output_file: Optional[str] = None
    errors: List[str] = None
    warnings: List[str] = None
    assembly: Optional[str] = None

    def __post_init__(self):
        if self.errors is None:
            self.errors = []
        if self.warnings is None:
            self.warnings = []


class Emitter:
    """Renders IR programs and optionally assembles/links them"""

    def __init__(self, dialect: Union[Dialect, str] = Dialect.ATT):
        self.dialect = Dialect.parse(dialect)

        # Toolchain defaults.
        self.assembler = os.environ.get("ASMIR_AS", "as")
        self.nasm = os.environ.get("ASMIR_NASM", "nasm")
        self.linker = os.environ.get("ASMIR_LD", "ld")

    def emit(self, program: Program, output_file: Optional[str] = None) -> EmitResult:
        """Render `program` and write the result.

        If output_file endswith:
        - .s / .asm : write assembly text
        - .o : assemble with the system toolchain
        - otherwise: assemble and link to an ELF executable
        - None: only render; the text is in `EmitResult.assembly`
        """
        try:
            assembly = self.get_assembly(program)
        except Exception as e:
            return EmitResult(success=False, errors=[f"Rendering failed: {e}"])

        if output_file:
            out = output_file
            ext = os.path.splitext(out)[1]

            if ext in (".s", ".asm", ".S"):
                try:
                    with open(out, "w") as f:
                        f.write(assembly)
                except IOError as e:
                    return EmitResult(success=False, errors=[f"Failed to write output file: {e}"])
                logger.info("wrote %s", out)

            elif ext == ".o":
                with tempfile.TemporaryDirectory() as td:
                    s_path = os.path.join(td, "out" + self.dialect.syntax.source_suffix)
                    try:
                        with open(s_path, "w") as f:
                            f.write(assembly)
                        self._run(self._assemble_cmd(s_path, out), "assemble")
                    except (IOError, RuntimeError, subprocess.CalledProcessError) as e:
                        return EmitResult(success=False, errors=[f"Assembling failed: {self._describe(e)}"])

            else:
                with tempfile.TemporaryDirectory() as td:
                    s_path = os.path.join(td, "out" + self.dialect.syntax.source_suffix)
                    o_path = os.path.join(td, "out.o")
                    try:
                        with open(s_path, "w") as f:
                            f.write(assembly)
                        self._run(self._assemble_cmd(s_path, o_path), "assemble")
                    except (IOError, RuntimeError, subprocess.CalledProcessError) as e:
                        return EmitResult(success=False, errors=[f"Assembling failed: {self._describe(e)}"])
                    try:
                        self._run(self._link_cmd(o_path, out), "link")
                    except (IOError, RuntimeError, subprocess.CalledProcessError) as e:
                        return EmitResult(success=False, errors=[f"Linking failed: {self._describe(e)}"])

        return EmitResult(success=True, output_file=output_file, assembly=assembly)

    def get_assembly(self, program: Program) -> str:
        """Generate assembly text from IR"""
        generator = CodeGenerator(self.dialect)
        return generator.generate(program)

    def _assemble_cmd(self, s_path: str, o_path: str) -> List[str]:
        if self.dialect is Dialect.INTEL:
            tool = self._require(self.nasm)
            return [tool, "-f", "elf64", "-o", o_path, s_path]
        tool = self._require(self.assembler)
        return [tool, "--64", "-o", o_path, s_path]

    def _link_cmd(self, o_path: str, out_path: str) -> List[str]:
        # Programs define their own `_start`; no C runtime is linked.
        tool = self._require(self.linker)
        return [tool, "-e", "_start", "-o", out_path, o_path]

    def _require(self, tool: str) -> str:
        path = shutil.which(tool)
        if not path:
            raise RuntimeError(f"{tool} not found on PATH")
        return path

    def _run(self, cmd: List[str], what: str) -> None:
        logger.debug("%s: %s", what, " ".join(cmd))
        p = subprocess.run(cmd, check=False, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
        if p.returncode != 0:
            msg = p.stderr.strip() or p.stdout.strip() or "(no output)"
            raise subprocess.CalledProcessError(p.returncode, cmd, output=p.stdout, stderr=msg)

    @staticmethod
    def _describe(e: Exception) -> str:
        detail = getattr(e, "stderr", None)
        if detail:
            return f"{e}\n{detail}"
        return str(e)
