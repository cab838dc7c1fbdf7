import pytest

from bytecode import OpCode
from compiler import FUNCTIONS, compile_block, compile_expression, numbered_statements, split_statements
from errors import CompileError, ParseError


def opcodes(program):
    return [op for op, _ in program.instructions]


def test_simple_expression_bytecode():
    bc = compile_expression("2 + 3 * 4")
    assert bc.instructions == [
        (OpCode.PUSH, 2.0),
        (OpCode.PUSH, 3.0),
        (OpCode.PUSH, 4.0),
        (OpCode.MUL, None),
        (OpCode.ADD, None),
        (OpCode.HALT, None),
    ]


def test_assignment_registers_right_side_first():
    bc = compile_expression("x = y + 1")
    assert list(bc.variables) == ["y", "x"]
    assert bc.instructions == [
        (OpCode.LOAD, 0),
        (OpCode.PUSH, 1.0),
        (OpCode.ADD, None),
        (OpCode.STORE, 1),
        (OpCode.HALT, None),
    ]


def test_variable_table_deduplicates():
    bc = compile_block("a = a + b; b = a * a")
    assert list(bc.variables) == ["a", "b"]
    loads = [arg for op, arg in bc.instructions if op == OpCode.LOAD]
    assert loads == [0, 1, 0, 0]


def test_block_shares_one_program_and_one_halt():
    bc = compile_block("q1 = 1\nq2 = 2; q3 = 3")
    assert opcodes(bc).count(OpCode.HALT) == 1
    assert opcodes(bc)[-1] == OpCode.HALT
    assert list(bc.variables) == ["q1", "q2", "q3"]


def test_unary_ops():
    assert opcodes(compile_expression("-x")) == [OpCode.LOAD, OpCode.NEG, OpCode.HALT]
    assert opcodes(compile_expression("+x")) == [OpCode.LOAD, OpCode.HALT]


def test_logical_and_comparison_opcodes():
    ops = opcodes(compile_expression("a < 1 && b >= 2 || c != 3"))
    assert ops == [
        OpCode.LOAD, OpCode.PUSH, OpCode.CMP_LT,
        OpCode.LOAD, OpCode.PUSH, OpCode.CMP_GE,
        OpCode.AND,
        OpCode.LOAD, OpCode.PUSH, OpCode.CMP_NE,
        OpCode.OR,
        OpCode.HALT,
    ]


@pytest.mark.parametrize("name", sorted(FUNCTIONS))
def test_every_function_maps_to_its_opcode(name):
    opcode, arity = FUNCTIONS[name]
    args = ", ".join(["1"] * arity)
    bc = compile_expression(f"{name}({args})")
    assert opcodes(bc) == [OpCode.PUSH] * arity + [opcode, OpCode.HALT]


def test_function_arguments_pushed_left_to_right():
    bc = compile_expression("atan2(1, 0)")
    assert bc.instructions[:3] == [(OpCode.PUSH, 1.0), (OpCode.PUSH, 0.0), (OpCode.ATAN2, None)]


def test_unknown_function():
    with pytest.raises(CompileError, match="Unknown function: floor"):
        compile_expression("floor(3.7)")


def test_wrong_arity():
    with pytest.raises(CompileError, match=r"sin\(\) expects 1 argument, got 2"):
        compile_expression("sin(1, 2)")
    with pytest.raises(CompileError, match=r"if\(\) expects 3 arguments, got 2"):
        compile_expression("if(1, 2)")


def test_compile_error_is_a_parse_error():
    assert issubclass(CompileError, ParseError)


def test_block_stops_at_first_bad_statement():
    with pytest.raises(ParseError):
        compile_block("zoom = 1.5; rot = (1 +; wave_r = 0")


def test_split_statements():
    code = "  a = 1 ; b = 2\n\n;; c = 3  \r\n d = 4;"
    assert split_statements(code) == ["a = 1", "b = 2", "c = 3", "d = 4"]


def test_empty_block_is_just_halt():
    bc = compile_block("  ;\n ; ")
    assert bc.instructions == [(OpCode.HALT, None)]
    assert len(bc.variables) == 0


def test_reserved_opcodes_never_emitted():
    bc = compile_block("q1 = if(above(bass, 0.5), q1 + 1, q1); zoom = max(zoom, 1) || 0")
    assert OpCode.JUMP not in opcodes(bc)
    assert OpCode.JUMP_IF_FALSE not in opcodes(bc)


def test_disassemble_names_variables():
    text = compile_expression("zoom = 1").disassemble()
    assert "STORE" in text and "(zoom)" in text
    assert text.splitlines()[-1].endswith("HALT")


def test_chained_assignment_stores_inner_target_first():
    bc = compile_expression("q1 = q2 = 3")
    assert list(bc.variables) == ["q2", "q1"]
    assert bc.instructions == [
        (OpCode.PUSH, 3.0),
        (OpCode.STORE, 0),
        (OpCode.STORE, 1),
        (OpCode.HALT, None),
    ]


def test_numbered_statements_positions():
    code = "  a = 1 ; b = 2\n\n;; c = 3  \r\n d = 4;"
    assert list(numbered_statements(code)) == [
        (1, 3, "a = 1"),
        (1, 11, "b = 2"),
        (3, 4, "c = 3"),
        (4, 2, "d = 4"),
    ]


def test_block_errors_point_into_the_block():
    with pytest.raises(ParseError) as exc:
        compile_block("zoom = 1; rot = (1 +")
    assert (exc.value.line, exc.value.column) == (1, 21)
    with pytest.raises(CompileError) as exc:
        compile_block("zoom = 1\n\nq1 = floor(2)")
    assert exc.value.line == 3


def test_debug_lines_follow_source_lines():
    bc = compile_block("zoom = 1\nq1 = 2 + 3")
    assert bc.debug == [{"line": 1}] * 2 + [{"line": 2}] * 4 + [None]
    assert bc.debug_at(4) == {"line": 2}
    assert bc.debug_at(99) is None


def test_long_operator_chain_compiles():
    bc = compile_expression(" + ".join(["1"] * 5000))
    assert opcodes(bc).count(OpCode.ADD) == 4999
    assert opcodes(bc)[:3] == [OpCode.PUSH, OpCode.PUSH, OpCode.ADD]


def test_variable_table_lookup():
    bc = compile_block("zoom = bass * 2; q1 = zoom")
    table = bc.variables
    assert table.index_of("bass") == 0
    assert table.index_of("zoom") == 1
    assert table.index_of("q1") == 2
    assert table.index_of("rot") is None
    assert "zoom" in table
    assert "rot" not in table
