from ast_nodes import Statement, Assign, Number, Var, Binary, Negate, Call
from bytecode import BytecodeProgram, OpCode
from errors import CompileError
from lexer import Lexer
from parser import Parser

# name -> (opcode, argument count); arguments are pushed left to right
FUNCTIONS = {
    "sin": (OpCode.SIN, 1),
    "cos": (OpCode.COS, 1),
    "tan": (OpCode.TAN, 1),
    "asin": (OpCode.ASIN, 1),
    "acos": (OpCode.ACOS, 1),
    "atan": (OpCode.ATAN, 1),
    "sqrt": (OpCode.SQRT, 1),
    "abs": (OpCode.ABS, 1),
    "sqr": (OpCode.SQR, 1),
    "exp": (OpCode.EXP, 1),
    "log": (OpCode.LOG, 1),
    "log10": (OpCode.LOG10, 1),
    "sign": (OpCode.SIGN, 1),
    "rand": (OpCode.RAND, 1),
    "atan2": (OpCode.ATAN2, 2),
    "pow": (OpCode.POW, 2),
    "min": (OpCode.MIN, 2),
    "max": (OpCode.MAX, 2),
    "equal": (OpCode.EQUAL, 2),
    "above": (OpCode.ABOVE, 2),
    "below": (OpCode.BELOW, 2),
    "if": (OpCode.IF, 3),
}

BINARY_OPCODES = {
    "+": OpCode.ADD,
    "-": OpCode.SUB,
    "*": OpCode.MUL,
    "/": OpCode.DIV,
    "%": OpCode.MOD,
    "==": OpCode.CMP_EQ,
    "!=": OpCode.CMP_NE,
    "<": OpCode.CMP_LT,
    ">": OpCode.CMP_GT,
    "<=": OpCode.CMP_LE,
    ">=": OpCode.CMP_GE,
    "&&": OpCode.AND,
    "||": OpCode.OR,
}


class Compiler:
    """Emits bytecode for parsed statements.

    Several statements can be compiled into the same program: the
    variable table and instruction list keep growing until ``finish()``
    appends the terminating HALT.
    """

    def __init__(self, program: BytecodeProgram | None = None):
        self.bc = program if program is not None else BytecodeProgram()

    def emit(self, opcode, arg=None, node=None):
        line = getattr(node, "line", None)
        return self.bc.emit(opcode, arg, debug=None if line is None else {"line": line})

    def compile(self, node):
        if not isinstance(node, Statement):
            raise CompileError("Compiler expects a Statement node at the top")
        self.compile_stmt(node.body)
        return self.bc

    def finish(self):
        self.emit(OpCode.HALT)
        return self.bc

    # -------- statements --------
    def compile_stmt(self, node):
        if isinstance(node, Assign):
            # value first, so names read on the right are registered before the target
            self.compile_stmt(node.value)
            idx = self.bc.add_variable(node.name)
            self.emit(OpCode.STORE, idx, node)
            return
        self.compile_expr(node)

    # -------- expressions --------
    def compile_expr(self, node):
        if isinstance(node, Number):
            self.emit(OpCode.PUSH, node.value, node)
            return

        if isinstance(node, Var):
            idx = self.bc.add_variable(node.name)
            self.emit(OpCode.LOAD, idx, node)
            return

        if isinstance(node, Binary):
            # a + b + c + ... nests to the left; walk that spine without recursing
            chain = []
            while isinstance(node, Binary):
                chain.append(node)
                node = node.left
            self.compile_expr(node)
            for binary in reversed(chain):
                self.compile_expr(binary.right)
                self.emit(self.binary_op_to_opcode(binary.op), node=binary)
            return

        if isinstance(node, Negate):
            self.compile_expr(node.expr)
            self.emit(OpCode.NEG, node=node)
            return

        if isinstance(node, Call):
            self.compile_call(node)
            return

        raise CompileError(f"Unknown expression node: {node.__class__.__name__}")

    def compile_call(self, node):
        entry = FUNCTIONS.get(node.name)
        if entry is None:
            raise CompileError(f"Unknown function: {node.name}", node.line)
        opcode, arity = entry
        if len(node.args) != arity:
            plural = "argument" if arity == 1 else "arguments"
            raise CompileError(
                f"{node.name}() expects {arity} {plural}, got {len(node.args)}", node.line
            )
        for arg in node.args:
            self.compile_expr(arg)
        self.emit(opcode, node=node)

    def binary_op_to_opcode(self, op):
        if op not in BINARY_OPCODES:
            raise CompileError(f"Unknown operator: {op}")
        return BINARY_OPCODES[op]


def numbered_statements(code):
    """Yield (line, column, fragment) for every non-blank statement in a block.

    Newlines split first, then ';' within each line. Positions are 1-based
    and point at the first character of the stripped fragment.
    """
    for line_no, line in enumerate(code.split("\n"), start=1):
        offset = 0
        for fragment in line.split(";"):
            stripped = fragment.strip(" \t\r\n")
            if stripped:
                lead = len(fragment) - len(fragment.lstrip(" \t\r\n"))
                yield line_no, offset + lead + 1, stripped
            offset += len(fragment) + 1


def split_statements(code):
    return [fragment for _, _, fragment in numbered_statements(code)]


def compile_expression(source):
    compiler = Compiler()
    compiler.compile(Parser(Lexer(source)).parse())
    return compiler.finish()


def compile_block(code):
    compiler = Compiler()
    for line, column, stmt in numbered_statements(code):
        compiler.compile(Parser(Lexer(stmt, line, column)).parse())
    return compiler.finish()
