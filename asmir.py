#!/usr/bin/env python3
"""asmir - top-level CLI wrapper

Compatible with Python 3.8+.

Usage examples:
  ./asmir.py                       # hello program, AT&T syntax, to stdout
  ./asmir.py hello --dialect intel
  ./asmir.py hello -o hello.s
  ./asmir.py hello --dialect nasm -o hello
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from asmir.dialects import Dialect
from asmir.driver import Emitter
from asmir.examples import build, program_names


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    ap = argparse.ArgumentParser(prog="asmir", description="x86-64 assembly emitter")
    ap.add_argument("program", nargs="?", default="hello", choices=program_names(),
                    help="Example program to emit")
    ap.add_argument("--dialect", default="att",
                    help="Output syntax: att (GNU as) or intel (NASM)")
    ap.add_argument("-o", dest="output", required=False,
                    help="Output: .s/.asm, .o, or executable; stdout if omitted")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log toolchain activity")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        dialect = Dialect.parse(args.dialect)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    try:
        program = build(args.program)
    except (KeyError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    result = Emitter(dialect).emit(program, args.output)
    if not result.success:
        for e in result.errors:
            print("Error:", e)
        return 1

    if args.output:
        print("Done:", args.output)
    else:
        sys.stdout.write(result.assembly)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
