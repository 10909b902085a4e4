import re

import pytest

from asmir import symbols
from asmir.symbols import (
    GlobalExport,
    Symbol,
    SymbolError,
    SymbolTable,
    derived,
    explicit,
)


def test_explicit_is_verbatim():
    assert explicit("_start").name == "_start"
    assert str(explicit("main.loop")) == "main.loop"


@pytest.mark.parametrize("bad", [
    "", "1abc", "has space", "a-b", "x:y", ".x", ".L0",
    "rax", "R8D", "rip", "fs", "cs", "xmm0", "YMM3", "st0", "mm0", "cr0", "dr7", "k1",
    "rel", "byte", "qword", "equ", "db", "dq", "section", "global", "times",
])
def test_explicit_rejects_illegal_names(bad):
    with pytest.raises(SymbolError):
        explicit(bad)


def test_symbol_error_carries_message_and_name():
    with pytest.raises(SymbolError) as ei:
        explicit("a b")
    assert ei.value.name == "a b"
    assert "illegal character" in ei.value.message
    assert isinstance(ei.value, ValueError)


def test_derived_is_deterministic():
    assert derived("helloWorldStr") == derived("helloWorldStr")
    assert derived("helloWorldStr").name == derived("helloWorldStr").name


def test_derived_known_values():
    # BLAKE2b with an 8-byte digest; fixed across processes and runs.
    assert derived("").name == "L_e4a6a0577479b2b4"
    assert derived("helloWorldStr").name == "L_7ffcec7bca95789e"


def test_derived_shape():
    for name in ["", "x", "helloWorldStr", "with spaces and ünïcode", "a" * 1000]:
        s = derived(name).name
        assert re.fullmatch(r"L_[0-9a-f]{16}", s), s


def test_derived_distinct_names_differ():
    names = [f"str{i}" for i in range(500)] + ["S_helloWorldStr", "helloWorldStr"]
    syms = {derived(n).name for n in names}
    assert len(syms) == len(names)


def test_derived_symbol_is_legal_explicit_name():
    # A derived name must survive the explicit() legality check.
    s = derived("anything")
    assert explicit(s.name) == s


def test_global_export_wraps_symbol():
    g = GlobalExport(explicit("_start"))
    assert g.symbol == Symbol("_start")


class TestSymbolTable:

    def test_derive_matches_pure_function(self):
        t = SymbolTable()
        assert t.derive("msg") == derived("msg")
        assert t.derive("msg") == derived("msg")
        assert len(t) == 1
        assert "msg" in t
        assert "other" not in t

    def test_insertion_order(self):
        t = SymbolTable()
        for n in ["b", "a", "c", "a"]:
            t.derive(n)
        assert t.symbols() == [derived("b"), derived("a"), derived("c")]
        assert t.logical_name(derived("c")) == "c"

    def test_collision_detected(self, monkeypatch):
        monkeypatch.setattr(symbols, "_digest", lambda logical: "0" * 16)
        t = SymbolTable()
        t.derive("first")
        with pytest.raises(SymbolError) as ei:
            t.derive("second")
        assert "first" in str(ei.value) and "second" in str(ei.value)
