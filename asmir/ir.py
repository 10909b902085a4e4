"""asmir.ir

Intermediate Representation (IR) for x86-64 assembly programs.

A program is a tree of frozen records:

- `Program`: global exports followed by sections
- `Section`: a name plus an ordered tuple of expressions
- expressions: `Instruction`, data directives, `Label`, `Block`, `Raw` and
  `CountedBytes`

Sequences are stored as tuples so a tree cannot change once built. Operand
order inside an `Instruction` is not positional: the destination and the
sources are kept apart and the code generator orders them for the dialect.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple, Union

from asmir.dialects import Dialect
from asmir.operands import (
    I64_MAX,
    I64_MIN,
    IRError,
    U64_MAX,
    USIZE_MAX,
    Operand,
    check_int,
    is_operand,
    to_bytes,
)
from asmir.symbols import GlobalExport, Symbol, derived, explicit


# one optional prefix (`rep`, `lock`) followed by the opcode
_MNEMONIC_RE = re.compile(r"^(?:[A-Za-z]+ )?[A-Za-z][A-Za-z0-9_.]*$")
_SECTION_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.\-]*$")

# Prefix of the logical name that carries a counted sequence's length.
LENGTH_PREFIX = "S_"


# ============== Instructions ==============

@dataclass(frozen=True)
class Instruction:
    """An opcode with its operand roles.

    `dst` is the written operand (if any); `src` holds the read operands in
    Intel order. `Instruction("mov", dst=rax, src=I64(60))` is `mov rax, 60`
    in Intel syntax and `mov $60, %rax` in AT&T syntax.
    """
    mnemonic: str
    dst: Optional[Operand] = None
    src: Tuple[Operand, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.mnemonic, str) or not _MNEMONIC_RE.match(self.mnemonic):
            raise IRError(f"invalid mnemonic: {self.mnemonic!r}")
        src = self.src
        if is_operand(src):
            src = (src,)
        src = tuple(src)
        for op in src:
            if not is_operand(op):
                raise IRError(f"{self.mnemonic}: not an operand: {op!r}")
        if self.dst is not None and not is_operand(self.dst):
            raise IRError(f"{self.mnemonic}: not an operand: {self.dst!r}")
        object.__setattr__(self, "src", src)

    @property
    def operands(self) -> Tuple[Operand, ...]:
        """Operands in destination-first (Intel) order."""
        if self.dst is None:
            return self.src
        return (self.dst,) + self.src


def ins(mnemonic: str, *operands: Operand) -> Instruction:
    """Build an instruction from operands listed destination first."""
    if not operands:
        return Instruction(mnemonic)
    return Instruction(mnemonic, dst=operands[0], src=tuple(operands[1:]))


# ============== Data directives ==============

@dataclass(frozen=True)
class IntData:
    value: int

    def __post_init__(self) -> None:
        check_int(self.value, I64_MIN, I64_MAX, "i64 data")


@dataclass(frozen=True)
class UIntData:
    value: int

    def __post_init__(self) -> None:
        check_int(self.value, 0, U64_MAX, "u64 data")


@dataclass(frozen=True)
class USizeData:
    value: int

    def __post_init__(self) -> None:
        check_int(self.value, 0, USIZE_MAX, "usize data")


@dataclass(frozen=True)
class FloatData:
    value: float

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise IRError(f"float data must be a number, got {type(self.value).__name__}: {self.value!r}")
        if not math.isfinite(self.value):
            raise IRError(f"float data must be finite: {self.value}")


@dataclass(frozen=True)
class ByteData:
    data: bytes

    def __post_init__(self) -> None:
        data = to_bytes(self.data)
        if not data:
            raise IRError("byte data cannot be empty")
        object.__setattr__(self, "data", data)


DataDirective = Union[IntData, UIntData, USizeData, FloatData, ByteData]


# ============== Program structure ==============

@dataclass(frozen=True)
class Label:
    symbol: Symbol


@dataclass(frozen=True)
class Raw:
    """Text emitted verbatim, for anything the IR cannot express."""
    text: str


@dataclass(frozen=True)
class Block:
    """Groups expressions; has no effect other than ordering."""
    body: Tuple["Expression", ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "body", _expressions(self.body, "block"))


@dataclass(frozen=True)
class CountedBytes:
    """A byte sequence together with a symbol that evaluates to its length.

    How the length is defined depends on the dialect (see `lower`), but the
    length symbol is always used the same way: as `SymbolValue(length)`.
    """
    start: Symbol
    length: Symbol
    data: bytes

    def __post_init__(self) -> None:
        data = to_bytes(self.data)
        if not data:
            raise IRError("counted byte sequence cannot be empty")
        object.__setattr__(self, "data", data)

    def lower(self, dialect: Union[Dialect, str]) -> Tuple["Expression", ...]:
        d = Dialect.parse(dialect)
        head = (Label(self.start), ByteData(self.data))
        if d.syntax.equ_length:
            return head + (Raw(f"\t{self.length.name} equ $ - {self.start.name}"),)
        return head + (Label(self.length), USizeData(len(self.data)))


Expression = Union[Instruction, IntData, UIntData, USizeData, FloatData, ByteData,
                   Label, Raw, Block, CountedBytes]

EXPRESSION_TYPES = (Instruction, IntData, UIntData, USizeData, FloatData, ByteData,
                    Label, Raw, Block, CountedBytes)


def _expressions(items: Iterable[object], where: str) -> Tuple[Expression, ...]:
    out = tuple(items)
    for e in out:
        if not isinstance(e, EXPRESSION_TYPES):
            raise IRError(f"{where}: not an expression: {e!r}")
    return out


@dataclass(frozen=True)
class Section:
    name: str
    body: Tuple[Expression, ...] = ()

    def __post_init__(self) -> None:
        name = self.name.lstrip(".") if isinstance(self.name, str) else self.name
        if not isinstance(name, str) or not _SECTION_RE.match(name):
            raise IRError(f"invalid section name: {self.name!r}")
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "body", _expressions(self.body, f"section .{name}"))


@dataclass(frozen=True)
class Program:
    exports: Tuple[GlobalExport, ...] = ()
    sections: Tuple[Section, ...] = ()

    def __post_init__(self) -> None:
        exports = tuple(self.exports)
        sections = tuple(self.sections)
        for g in exports:
            if not isinstance(g, GlobalExport):
                raise IRError(f"not a global export: {g!r}")
        for s in sections:
            if not isinstance(s, Section):
                raise IRError(f"not a section: {s!r}")
        object.__setattr__(self, "exports", exports)
        object.__setattr__(self, "sections", sections)


# ============== Helpers ==============

def label(name: str) -> Label:
    return Label(explicit(name))


def export(name: str) -> GlobalExport:
    return GlobalExport(explicit(name))


def length_of(name: str) -> Symbol:
    """Symbol holding the length of the counted sequence named `name`."""
    return derived(LENGTH_PREFIX + name)


def define_counted_bytes(name: str, data: Union[bytes, str, Sequence[int]]) -> CountedBytes:
    """Define a byte sequence at `derived(name)` with its length at `length_of(name)`."""
    return CountedBytes(derived(name), length_of(name), to_bytes(data))


def section(name: str, *body: Expression) -> Section:
    return Section(name, tuple(body))
