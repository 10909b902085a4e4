"""Section / program layout and data directive rendering."""

import pytest

from asmir.codegen import CodeGenerator, format_float, render
from asmir.dialects import Dialect
from asmir.ir import (
    Block,
    ByteData,
    FloatData,
    IntData,
    Program,
    Raw,
    Section,
    UIntData,
    USizeData,
    export,
    ins,
    label,
    section,
)
from asmir.operands import I64, IRError, SpecialRegister


def test_section_with_single_label_att():
    sec = section("text", label("_start"))
    assert CodeGenerator(Dialect.ATT).generate_section(sec) == ".section .text\n\t_start:\n"
    assert render(Program(sections=(sec,)), Dialect.ATT) == ".section .text\n\t_start:\n"


def test_section_with_single_label_intel():
    sec = section("text", label("_start"))
    assert render(Program(sections=(sec,)), Dialect.INTEL) == "section .text\n\t_start:\n"


def test_empty_section_and_empty_program():
    assert render(Program(sections=(Section("bss"),))) == ".section .bss\n"
    assert render(Program()) == ""


def test_leading_dot_in_section_name_is_dropped():
    assert Section(".data").name == "data"


@pytest.mark.parametrize("name", ["", "has space", "1text", "."])
def test_invalid_section_name(name):
    with pytest.raises(IRError):
        Section(name)


def test_indentation_levels():
    sec = section("text", label("f"), ins("ret"), IntData(1))
    out = render(Program(sections=(sec,)))
    assert out.splitlines() == [".section .text", "\tf:", "\t\tret", "\t\t.quad 1"]


def test_exports_come_first_in_order():
    p = Program(
        exports=(export("_start"), export("helper")),
        sections=(section("text", label("_start")), section("data")),
    )
    assert render(p, Dialect.ATT) == (
        ".global _start\n"
        ".global helper\n"
        "\n"
        ".section .text\n"
        "\t_start:\n"
        "\n"
        ".section .data\n"
    )
    assert render(p, "intel").startswith("global _start\nglobal helper\n\nsection .text\n")


def test_block_flattens_in_order():
    blk = Block((label("a"), Block((ins("nop"), Raw("# raw"))), ins("ret")))
    out = render(Program(sections=(section("text", blk),)))
    assert out == ".section .text\n\ta:\n\t\tnop\n# raw\n\t\tret\n"


def test_raw_is_verbatim():
    sec = section("text", Raw("  .p2align 4,,15"))
    assert render(Program(sections=(sec,))).splitlines()[1] == "  .p2align 4,,15"


def test_section_rejects_non_expressions():
    with pytest.raises(IRError):
        Section("text", ("mov rax, 1",))
    with pytest.raises(IRError):
        Block((I64(1),))
    with pytest.raises(IRError):
        Program(sections=("text",))


def test_body_is_frozen_tuple():
    body = [label("x")]
    sec = Section("text", body)
    body.append(ins("nop"))
    assert sec.body == (label("x"),)


class TestDataDirectives:

    @pytest.mark.parametrize("data", [IntData(-3), UIntData(3), USizeData(3)])
    def test_scalars_use_word_directive(self, data):
        g = CodeGenerator(Dialect.ATT).render_data(data)
        assert g.startswith(".quad ")
        assert CodeGenerator(Dialect.INTEL).render_data(data).startswith("dq ")

    def test_scalar_values(self):
        att = CodeGenerator("att")
        assert att.render_data(IntData(-3)) == ".quad -3"
        assert att.render_data(UIntData(2**64 - 1)) == ".quad 18446744073709551615"

    def test_bytes(self):
        d = ByteData(bytes([0x00, 0xFF]))
        assert CodeGenerator("att").render_data(d) == ".byte 0x00, 0xFF"
        assert CodeGenerator("intel").render_data(d) == "db 0x00, 0xFF"

    def test_float(self):
        assert CodeGenerator("att").render_data(FloatData(1.5)) == ".double 1.5"
        assert CodeGenerator("intel").render_data(FloatData(2.0)) == "dq 2.0"
        assert format_float(1e20) == "1.0e+20"
        with pytest.raises(IRError):
            FloatData(float("nan"))

    def test_ranges(self):
        with pytest.raises(IRError):
            IntData(2**63)
        with pytest.raises(IRError):
            UIntData(-1)
        with pytest.raises(IRError):
            ByteData(b"")

    @pytest.mark.parametrize("ctor,value", [
        (IntData, 2.5), (UIntData, "5"), (USizeData, True), (IntData, None), (FloatData, "1.0"),
    ])
    def test_non_numeric_values_rejected(self, ctor, value):
        with pytest.raises(IRError):
            ctor(value)


def test_rendering_is_idempotent():
    p = Program(
        exports=(export("_start"),),
        sections=(section("text", label("_start"), ins("mov", SpecialRegister.RAX, I64(60)), ins("syscall")),),
    )
    gen = CodeGenerator(Dialect.ATT)
    first = gen.generate(p)
    second = gen.generate(p)
    assert first == second == render(p, Dialect.ATT)
