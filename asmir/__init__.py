"""
asmir - x86-64 Assembly IR and Emitter

A typed intermediate representation for x86-64 assembly programs and a
text emitter for the GNU (AT&T) and NASM (Intel) dialects.
"""

__version__ = "0.1.0"
__author__ = "asmir Contributors"
__license__ = "MIT"

from .symbols import Symbol, GlobalExport, SymbolTable, SymbolError, explicit, derived
from .operands import IRError
from .dialects import Dialect
from .ir import Program, Section, Instruction, define_counted_bytes, length_of
from .codegen import CodeGenerator, render
from .driver import Emitter, EmitResult

__all__ = [
    'Symbol',
    'GlobalExport',
    'SymbolTable',
    'SymbolError',
    'explicit',
    'derived',
    'IRError',
    'Dialect',
    'Program',
    'Section',
    'Instruction',
    'define_counted_bytes',
    'length_of',
    'CodeGenerator',
    'render',
    'Emitter',
    'EmitResult',
]
