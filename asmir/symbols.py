"""asmir.symbols

Assembler symbol naming.

Two kinds of symbols exist:

- *explicit* symbols carry a programmer-chosen name (`_start`, `main`) which is
  emitted verbatim after a legality check;
- *derived* symbols are computed from an arbitrary logical name by hashing it,
  so two call sites that ask for the same logical name always agree on the
  emitted label without sharing a symbol table.

The names produced here must be legal in both GNU as and NASM, so the accepted
alphabet is the intersection of the two.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from typing import Dict, List, Optional


DERIVED_PREFIX = "L_"

# 8-byte digest -> 16 hex digits
_DIGEST_SIZE = 8

# A leading `.` is a local label in NASM, so it is not accepted.
_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.$]*$")

# Register names and NASM keywords cannot be used as labels in Intel syntax.
_RESERVED = frozenset(
    ["rip", "eip", "ip"]
    + ["rax", "rcx", "rdx", "rbx", "rsp", "rbp", "rsi", "rdi"]
    + ["eax", "ecx", "edx", "ebx", "esp", "ebp", "esi", "edi"]
    + ["ax", "cx", "dx", "bx", "sp", "bp", "si", "di"]
    + ["al", "cl", "dl", "bl", "spl", "bpl", "sil", "dil", "ah", "ch", "dh", "bh"]
    + [f"r{n}{suffix}" for n in range(8, 16) for suffix in ("", "d", "w", "b")]
    + ["cs", "ds", "es", "fs", "gs", "ss"]
    + [f"{kind}{n}" for kind in ("xmm", "ymm", "zmm") for n in range(32)]
    + [f"st{n}" for n in range(8)] + [f"mm{n}" for n in range(8)] + [f"k{n}" for n in range(8)]
    + [f"cr{n}" for n in range(16)] + [f"dr{n}" for n in range(16)]
    + ["st", "rel", "abs", "nosplit", "strict", "near", "far", "short", "ptr"]
    + ["byte", "word", "dword", "qword", "tword", "oword", "yword", "zword"]
    + ["equ", "times", "seg", "wrt"]
    + ["db", "dw", "dd", "dq", "dt", "do", "dy", "dz"]
    + ["resb", "resw", "resd", "resq", "rest", "reso", "resy", "resz"]
    + ["section", "segment", "global", "extern", "common", "default", "bits", "align", "incbin"]
)


class SymbolError(ValueError):
    """Invalid symbol name or symbol collision"""
    def __init__(self, message: str, name: Optional[str] = None):
        self.message = message
        self.name = name
        if name is not None:
            super().__init__(f"{message}: {name!r}")
        else:
            super().__init__(message)


@dataclass(frozen=True)
class Symbol:
    """An assembler-legal identifier."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class GlobalExport:
    """A symbol made visible to the linker (`.global` / `global`)."""
    symbol: Symbol


def explicit(name: str) -> Symbol:
    """Return a symbol whose text is exactly `name`.

    Raises SymbolError when `name` is not usable as a label in both dialects.
    """
    if not isinstance(name, str) or not name:
        raise SymbolError("empty symbol name")
    if not _IDENT_RE.match(name):
        raise SymbolError("illegal character in symbol name", name)
    if name.lower() in _RESERVED:
        raise SymbolError("symbol name collides with a register or assembler keyword", name)
    return Symbol(name)


def _digest(logical: str) -> str:
    h = hashlib.blake2b(logical.encode("utf-8"), digest_size=_DIGEST_SIZE)
    return h.hexdigest()


def derived(logical: str) -> Symbol:
    """Return the content-addressed symbol for `logical`.

    The result is `L_` followed by 16 lowercase hex digits. Any string is
    accepted, and the same input always yields the same symbol.
    """
    return Symbol(DERIVED_PREFIX + _digest(logical))


class SymbolTable:
    """Optional registry that detects collisions between derived symbols.

    `derived()` trusts the 64-bit hash space. Callers that want a hard
    guarantee route their names through a table instead and get a
    SymbolError when two logical names map to one symbol.
    """

    def __init__(self):
        self._by_symbol: Dict[str, str] = {}
        self._order: List[Symbol] = []

    def derive(self, logical: str) -> Symbol:
        sym = derived(logical)
        prev = self._by_symbol.get(sym.name)
        if prev is None:
            self._by_symbol[sym.name] = logical
            self._order.append(sym)
        elif prev != logical:
            raise SymbolError(
                f"derived symbol collision between {prev!r} and {logical!r}",
                sym.name,
            )
        return sym

    def logical_name(self, sym: Symbol) -> Optional[str]:
        return self._by_symbol.get(sym.name)

    def symbols(self) -> List[Symbol]:
        return list(self._order)

    def __contains__(self, logical: object) -> bool:
        return isinstance(logical, str) and self._by_symbol.get(derived(logical).name) == logical

    def __len__(self) -> int:
        return len(self._order)
