"""asmir.operands

x86-64 operand model: registers, immediates and memory references.

Every operand is a frozen dataclass (or enum member), so an operand can be
shared between instructions and compared by value. Values are checked when the
operand is built; rendering never has to reject anything.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from asmir.symbols import Symbol


U64_MAX = (1 << 64) - 1
I64_MIN = -(1 << 63)
I64_MAX = (1 << 63) - 1
# x86-64 is LP64: usize is 64 bits wide.
USIZE_BITS = 64
USIZE_MAX = (1 << USIZE_BITS) - 1
# Displacements are encoded as signed 32-bit values.
DISP_MIN = -(1 << 31)
DISP_MAX = (1 << 31) - 1


class IRError(ValueError):
    """Malformed IR node"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def check_int(value, lo: int, hi: int, what: str) -> None:
    """Raise IRError unless `value` is an int (not a bool) in [lo, hi]."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise IRError(f"{what} must be an integer, got {type(value).__name__}: {value!r}")
    if not lo <= value <= hi:
        raise IRError(f"{what} out of range: {value}")


# ============== Registers ==============

# Hardware encoding order, one row per width.
_GP_NAMES = {
    64: ["rax", "rcx", "rdx", "rbx", "rsp", "rbp", "rsi", "rdi"] + [f"r{n}" for n in range(8, 16)],
    32: ["eax", "ecx", "edx", "ebx", "esp", "ebp", "esi", "edi"] + [f"r{n}d" for n in range(8, 16)],
    16: ["ax", "cx", "dx", "bx", "sp", "bp", "si", "di"] + [f"r{n}w" for n in range(8, 16)],
    8: ["al", "cl", "dl", "bl", "spl", "bpl", "sil", "dil"] + [f"r{n}b" for n in range(8, 16)],
}


@dataclass(frozen=True)
class GeneralPurpose:
    """General-purpose register by encoding index (0..15) and width in bits."""
    index: int
    width: int = 64

    def __post_init__(self) -> None:
        if self.width not in _GP_NAMES:
            raise IRError(f"unsupported register width: {self.width}")
        check_int(self.index, 0, 15, "general-purpose register index")

    @property
    def reg_name(self) -> str:
        return _GP_NAMES[self.width][self.index]


class SpecialRegister(enum.Enum):
    RAX = "rax"
    RBX = "rbx"
    RCX = "rcx"
    RDX = "rdx"
    RSI = "rsi"
    RDI = "rdi"
    RIP = "rip"

    @property
    def reg_name(self) -> str:
        return self.value


Register = Union[GeneralPurpose, SpecialRegister]


def register(name: str) -> Register:
    """Look up a register by its assembler name (`rax`, `r9d`, `rip`, ...).

    Names that have a SpecialRegister member resolve to it, so `register("rax")`
    is `SpecialRegister.RAX`, not `GeneralPurpose(0)`. The two render the same
    but compare unequal; use `same_register()` to compare by hardware register.
    """
    n = name.strip().lower().lstrip("%")
    for sr in SpecialRegister:
        if sr.value == n:
            return sr
    for width, names in _GP_NAMES.items():
        if n in names:
            return GeneralPurpose(names.index(n), width)
    raise IRError(f"unknown register: {name!r}")


def same_register(a: Register, b: Register) -> bool:
    """True when `a` and `b` name the same hardware register at the same width."""
    return a.reg_name == b.reg_name


# ============== Immediates ==============

@dataclass(frozen=True)
class U64:
    value: int

    def __post_init__(self) -> None:
        check_int(self.value, 0, U64_MAX, "u64 immediate")


@dataclass(frozen=True)
class I64:
    value: int

    def __post_init__(self) -> None:
        check_int(self.value, I64_MIN, I64_MAX, "i64 immediate")


@dataclass(frozen=True)
class USize:
    value: int

    def __post_init__(self) -> None:
        check_int(self.value, 0, USIZE_MAX, "usize immediate")


@dataclass(frozen=True)
class SymbolValue:
    """A symbol used as a number (an assembler constant, not an address)."""
    symbol: Symbol


@dataclass(frozen=True)
class Bytes:
    """A fixed byte sequence."""
    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", to_bytes(self.data))
        if not self.data:
            raise IRError("byte immediate cannot be empty")


Immediate = Union[U64, I64, USize, SymbolValue, Bytes]


def to_bytes(data: Union[bytes, bytearray, str, Sequence[int]]) -> bytes:
    """Normalize a byte payload; str is encoded as UTF-8."""
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode("utf-8")
    try:
        return bytes(data)
    except (TypeError, ValueError) as e:
        raise IRError(f"invalid byte sequence: {e}")


# ============== Memory ==============

_SCALES = (1, 2, 4, 8)


@dataclass(frozen=True)
class DataReference:
    """Memory operand: [base + index*scale + symbol + displacement].

    The default base is RIP, which gives the position-independent
    `sym(%rip)` / `[rel sym]` form used for static data. The displacement is
    kept on the reference and never folded into the symbol.
    """
    symbol: Optional[Symbol] = None
    base: Optional[Register] = SpecialRegister.RIP
    displacement: int = 0
    index: Optional[Register] = None
    scale: int = 1

    def __post_init__(self) -> None:
        if self.symbol is None and self.base is None:
            raise IRError("memory reference needs a symbol or a base register")
        check_int(self.displacement, DISP_MIN, DISP_MAX, "displacement")
        if self.scale not in _SCALES:
            raise IRError(f"invalid scale factor: {self.scale}")
        if self.index is None and self.scale != 1:
            raise IRError("scale factor given without an index register")
        if self.index is not None:
            if self.base is SpecialRegister.RIP:
                raise IRError("rip-relative references cannot use an index register")
            if self.index is SpecialRegister.RIP:
                raise IRError("rip cannot be used as an index register")
            if isinstance(self.index, GeneralPurpose) and self.index.index == 4:
                raise IRError("rsp cannot be used as an index register")
        for r in (self.base, self.index):
            if isinstance(r, GeneralPurpose) and r.width not in (32, 64):
                raise IRError(f"address registers must be 32 or 64 bits wide: {r.reg_name}")

    @property
    def rip_relative(self) -> bool:
        return self.base is SpecialRegister.RIP


def rip_ref(symbol: Symbol, displacement: int = 0) -> DataReference:
    return DataReference(symbol=symbol, base=SpecialRegister.RIP, displacement=displacement)


Operand = Union[GeneralPurpose, SpecialRegister, U64, I64, USize, SymbolValue, Bytes, DataReference]

OPERAND_TYPES = (GeneralPurpose, SpecialRegister, U64, I64, USize, SymbolValue, Bytes, DataReference)


def is_operand(value: object) -> bool:
    return isinstance(value, OPERAND_TYPES)
