"""asmir.codegen

Text emitter: turns an `asmir.ir.Program` into assembler source.

Output layout (both dialects):

- one global declaration per export, then a blank line
- each section: header line, then one line per expression
- labels are indented one tab, instructions and data two tabs
- raw text is copied verbatim; blocks are flattened in order
- sections are separated by a blank line

All syntax choices (prefixes, operand order, directive spelling, memory
operand form, counted-length idiom) come from `asmir.dialects.SYNTAX`.
Rendering reads the tree and never modifies it, so rendering the same program
twice yields identical text.
"""

from __future__ import annotations

import logging
from typing import List, Union

from asmir.dialects import Dialect, DialectSyntax
from asmir.ir import (
    Block,
    ByteData,
    CountedBytes,
    Expression,
    FloatData,
    Instruction,
    IntData,
    Label,
    Program,
    Raw,
    Section,
    UIntData,
    USizeData,
)
from asmir.operands import (
    Bytes,
    DataReference,
    GeneralPurpose,
    I64,
    IRError,
    Operand,
    SpecialRegister,
    SymbolValue,
    U64,
    USize,
)
from asmir.symbols import GlobalExport


logger = logging.getLogger(__name__)

LABEL_INDENT = "\t"
STATEMENT_INDENT = "\t\t"


def format_bytes(data: bytes) -> str:
    """`0x00, 0xFF` style list, in input order."""
    return ", ".join(f"0x{b:02X}" for b in data)


def format_float(value: float) -> str:
    # NASM needs a decimal point to read a literal as floating point
    text = repr(float(value))
    if "." in text:
        return text
    mant, sep, exp = text.partition("e")
    return f"{mant}.0{sep}{exp}"


class CodeGenerator:
    """Generates assembler text for one dialect"""

    def __init__(self, dialect: Union[Dialect, str] = Dialect.ATT):
        self.dialect = Dialect.parse(dialect)
        self.syntax: DialectSyntax = self.dialect.syntax
        self.assembly_lines: List[str] = []

    def generate(self, program: Program) -> str:
        """Generate assembly text for a whole program"""
        self.assembly_lines = []
        logger.debug(
            "rendering %d export(s), %d section(s) as %s",
            len(program.exports), len(program.sections), self.dialect.value,
        )

        for g in program.exports:
            self._emit(self.render_export(g))

        for i, sec in enumerate(program.sections):
            if i > 0 or program.exports:
                self._emit("")
            self._emit_section(sec)

        if not self.assembly_lines:
            return ""
        return "\n".join(self.assembly_lines) + "\n"

    def generate_section(self, sec: Section) -> str:
        self.assembly_lines = []
        self._emit_section(sec)
        return "\n".join(self.assembly_lines) + "\n"

    # -----------------
    # Structure
    # -----------------

    def render_export(self, g: GlobalExport) -> str:
        return f"{self.syntax.global_} {g.symbol.name}"

    def _emit_section(self, sec: Section) -> None:
        self._emit(f"{self.syntax.section} .{sec.name}")
        for expr in sec.body:
            self._emit_expr(expr)

    def _emit_expr(self, expr: Expression) -> None:
        if isinstance(expr, Block):
            for child in expr.body:
                self._emit_expr(child)
            return
        if isinstance(expr, CountedBytes):
            for child in expr.lower(self.dialect):
                self._emit_expr(child)
            return
        if isinstance(expr, Label):
            self._emit(f"{LABEL_INDENT}{expr.symbol.name}:")
            return
        if isinstance(expr, Raw):
            self._emit(expr.text)
            return
        if isinstance(expr, Instruction):
            self._emit(STATEMENT_INDENT + self.render_instruction(expr))
            return
        self._emit(STATEMENT_INDENT + self.render_data(expr))

    # -----------------
    # Instructions
    # -----------------

    def render_instruction(self, ins: Instruction) -> str:
        ops = list(ins.operands)
        if not ops:
            return ins.mnemonic
        if self.syntax.reverse_operands:
            ops.reverse()
        return ins.mnemonic + "\t" + ", ".join(self.render_operand(op) for op in ops)

    def render_operand(self, op: Operand) -> str:
        if isinstance(op, (GeneralPurpose, SpecialRegister)):
            return self.render_register(op)
        if isinstance(op, (U64, I64, USize)):
            return f"{self.syntax.immediate_prefix}{op.value}"
        if isinstance(op, SymbolValue):
            return op.symbol.name
        if isinstance(op, Bytes):
            return format_bytes(op.data)
        if isinstance(op, DataReference):
            return self.render_memory(op)
        raise IRError(f"cannot render operand: {op!r}")

    def render_register(self, reg: Union[GeneralPurpose, SpecialRegister]) -> str:
        return self.syntax.register_prefix + reg.reg_name

    def render_memory(self, ref: DataReference) -> str:
        if self.syntax.bracket_memory:
            return self._intel_memory(ref)
        return self._att_memory(ref)

    def _offset_expr(self, ref: DataReference) -> str:
        # symbol and displacement as one assemble-time expression
        sym = ref.symbol.name if ref.symbol is not None else ""
        disp = ref.displacement
        if not sym:
            return str(disp) if disp else ""
        if disp > 0:
            return f"{sym}+{disp}"
        if disp < 0:
            return f"{sym}-{-disp}"
        return sym

    def _att_memory(self, ref: DataReference) -> str:
        # SYM+disp(%base,%index,scale)
        off = self._offset_expr(ref)
        if ref.base is None and ref.index is None:
            return off
        parts = [self.render_register(ref.base) if ref.base is not None else ""]
        if ref.index is not None:
            parts.append(self.render_register(ref.index))
            parts.append(str(ref.scale))
        return f"{off}({','.join(parts)})"

    def _intel_memory(self, ref: DataReference) -> str:
        # [rel SYM+disp] or [base + index*scale + SYM+disp]
        off = self._offset_expr(ref)
        if ref.rip_relative:
            return f"[rel {off}]" if off else "[rel 0]"
        terms: List[str] = []
        if ref.base is not None:
            terms.append(self.render_register(ref.base))
        if ref.index is not None:
            idx = self.render_register(ref.index)
            terms.append(f"{idx}*{ref.scale}" if ref.scale != 1 else idx)
        text = " + ".join(terms)
        if not off:
            return f"[{text}]"
        if not text:
            return f"[{off}]"
        if off.startswith("-"):
            return f"[{text} - {off[1:]}]"
        return f"[{text} + {off}]"

    # -----------------
    # Data
    # -----------------

    def render_data(self, data: Expression) -> str:
        if isinstance(data, (IntData, UIntData, USizeData)):
            return f"{self.syntax.word} {data.value}"
        if isinstance(data, FloatData):
            return f"{self.syntax.double} {format_float(data.value)}"
        if isinstance(data, ByteData):
            return f"{self.syntax.byte} {format_bytes(data.data)}"
        raise IRError(f"cannot render expression: {data!r}")

    def _emit(self, line: str) -> None:
        self.assembly_lines.append(line)


def render(program: Program, dialect: Union[Dialect, str] = Dialect.ATT) -> str:
    """Render `program` as assembler source in `dialect`."""
    return CodeGenerator(dialect).generate(program)
