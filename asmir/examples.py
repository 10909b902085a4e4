"""asmir.examples

Fixed example programs, built with the IR API and looked up by name from the
command line.
"""

from __future__ import annotations

from typing import Callable, Dict, List

from asmir.ir import (
    Program,
    define_counted_bytes,
    export,
    ins,
    label,
    length_of,
    section,
)
from asmir.operands import I64, SpecialRegister, SymbolValue, rip_ref
from asmir.symbols import derived


# Linux x86-64 syscall numbers
SYS_WRITE = 1
SYS_EXIT = 60
STDOUT = 1


def hello_world(message: str = "Hello, world!\n") -> Program:
    """write(1, message, len(message)); exit(0)"""
    rax = SpecialRegister.RAX
    rdi = SpecialRegister.RDI
    rsi = SpecialRegister.RSI
    rdx = SpecialRegister.RDX

    text = section(
        "text",
        label("_start"),
        ins("mov", rax, I64(SYS_WRITE)),
        ins("mov", rdi, I64(STDOUT)),
        ins("lea", rsi, rip_ref(derived("helloWorldStr"))),
        ins("mov", rdx, SymbolValue(length_of("helloWorldStr"))),
        ins("syscall"),
        ins("mov", rax, I64(SYS_EXIT)),
        ins("xor", rdi, rdi),
        ins("syscall"),
    )
    data = section(
        "data",
        define_counted_bytes("helloWorldStr", message),
    )
    return Program(exports=(export("_start"),), sections=(text, data))


PROGRAMS: Dict[str, Callable[[], Program]] = {
    "hello": hello_world,
}


def program_names() -> List[str]:
    return sorted(PROGRAMS)


def build(name: str) -> Program:
    try:
        factory = PROGRAMS[name]
    except KeyError:
        raise KeyError(f"unknown program {name!r} (available: {', '.join(program_names())})")
    return factory()
