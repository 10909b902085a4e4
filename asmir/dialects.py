"""asmir.dialects

The two textual syntaxes the emitter knows about, and every spelling that
differs between them. The code generator reads all syntax decisions from a
`DialectSyntax` record; nothing dialect-specific is hardcoded elsewhere.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, Union


class Dialect(enum.Enum):
    ATT = "att"      # GNU as
    INTEL = "intel"  # NASM

    @classmethod
    def parse(cls, value: Union[str, "Dialect"]) -> "Dialect":
        if isinstance(value, Dialect):
            return value
        key = str(value).strip().lower()
        d = _ALIASES.get(key)
        if d is None:
            choices = ", ".join(sorted(_ALIASES))
            raise ValueError(f"unknown dialect {value!r} (expected one of: {choices})")
        return d

    @property
    def syntax(self) -> "DialectSyntax":
        return SYNTAX[self]


_ALIASES: Dict[str, Dialect] = {
    "att": Dialect.ATT,
    "gas": Dialect.ATT,
    "gnu": Dialect.ATT,
    "intel": Dialect.INTEL,
    "nasm": Dialect.INTEL,
}


@dataclass(frozen=True)
class DialectSyntax:
    register_prefix: str
    immediate_prefix: str
    # True: source operands first, destination last
    reverse_operands: bool
    section: str
    global_: str
    word: str
    byte: str
    double: str
    # `[base + disp]` memory operands instead of `disp(base)`
    bracket_memory: bool
    # assemble-time length constant (`equ $ - start`) instead of a stored word
    equ_length: bool
    # conventional source file suffix
    source_suffix: str


SYNTAX: Dict[Dialect, DialectSyntax] = {
    Dialect.ATT: DialectSyntax(
        register_prefix="%",
        immediate_prefix="$",
        reverse_operands=True,
        section=".section",
        global_=".global",
        word=".quad",
        byte=".byte",
        double=".double",
        bracket_memory=False,
        equ_length=False,
        source_suffix=".s",
    ),
    Dialect.INTEL: DialectSyntax(
        register_prefix="",
        immediate_prefix="",
        reverse_operands=False,
        section="section",
        global_="global",
        word="dq",
        byte="db",
        double="dq",
        bracket_memory=True,
        equ_length=True,
        source_suffix=".asm",
    ),
}
