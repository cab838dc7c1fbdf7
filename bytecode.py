from enum import IntEnum


class OpCode(IntEnum):
    # stack / variables
    PUSH = 1            # PUSH value
    LOAD = 2            # LOAD var_index
    STORE = 3           # STORE var_index (leaves the value on the stack)

    # arithmetic
    ADD = 10
    SUB = 11
    MUL = 12
    DIV = 13            # x / 0 -> 0
    MOD = 14            # x % 0 -> 0
    NEG = 15

    # math functions
    SIN = 20
    COS = 21
    TAN = 22
    ASIN = 23
    ACOS = 24
    ATAN = 25
    ATAN2 = 26
    SQRT = 27
    ABS = 28
    SQR = 29
    POW = 30
    EXP = 31
    LOG = 32
    LOG10 = 33

    # utility functions
    MIN = 40
    MAX = 41
    SIGN = 42
    RAND = 43
    IF = 44
    EQUAL = 45
    ABOVE = 46
    BELOW = 47

    # comparison
    CMP_EQ = 50
    CMP_NE = 51
    CMP_LT = 52
    CMP_GT = 53
    CMP_LE = 54
    CMP_GE = 55

    # logical (both sides always evaluated)
    AND = 60
    OR = 61

    # control; JUMP and JUMP_IF_FALSE are reserved, the compiler never emits them
    JUMP = 70
    JUMP_IF_FALSE = 71
    HALT = 72


class VariableTable:
    """Append-only name -> index table; index is order of first use."""

    def __init__(self):
        self.names = []
        self._index = {}

    def add(self, name):
        idx = self._index.get(name)
        if idx is None:
            idx = len(self.names)
            self.names.append(name)
            self._index[name] = idx
        return idx

    def index_of(self, name):
        return self._index.get(name)

    def __getitem__(self, idx):
        return self.names[idx]

    def __len__(self):
        return len(self.names)

    def __iter__(self):
        return iter(self.names)

    def __contains__(self, name):
        return name in self._index

    def clear(self):
        self.names.clear()
        self._index.clear()


class BytecodeProgram:
    def __init__(self):
        self.instructions = []        # list of (OpCode, arg)
        self.debug = []               # {"line": int} per instruction, aligned with instructions
        self.variables = VariableTable()

    def add_variable(self, name):
        return self.variables.add(name)

    def emit(self, opcode, arg=None, debug=None):
        # returns instruction index
        self.instructions.append((opcode, arg))
        self.debug.append(debug)
        return len(self.instructions) - 1

    def debug_at(self, ip):
        if ip is None or ip < 0 or ip >= len(self.debug):
            return None
        return self.debug[ip]

    def clear(self):
        self.instructions.clear()
        self.debug.clear()
        self.variables.clear()

    def is_empty(self):
        return not self.instructions

    def __len__(self):
        return len(self.instructions)

    def disassemble(self):
        lines = []
        for i, (opcode, arg) in enumerate(self.instructions):
            if opcode in (OpCode.LOAD, OpCode.STORE):
                lines.append(f"{i:04d}  {opcode.name:<14}{arg}  ({self.variables[arg]})")
            elif arg is not None:
                lines.append(f"{i:04d}  {opcode.name:<14}{arg!r}")
            else:
                lines.append(f"{i:04d}  {opcode.name}")
        return "\n".join(lines)
