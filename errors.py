class MilkdropError(Exception):
    pass


class ParseError(MilkdropError):
    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        if line is not None and column is not None:
            message = f"{message} at line {line}, col {column}"
        elif line is not None:
            message = f"{message} at line {line}"
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column


class CompileError(ParseError):
    # raised by the compiler for things the grammar accepts (unknown function, bad arity)
    pass


class MilkdropRuntimeError(MilkdropError):
    def __init__(self, message: str, ip: int | None = None, opcode=None, line: int | None = None):
        super().__init__(message)
        self.message = message
        self.ip = ip
        self.opcode = opcode
        self.line = line

    def format(self, indent: str = "") -> str:
        lines = [f"{indent}Runtime error: {self.message}"]
        if self.ip is not None:
            where = f"ip={self.ip:04d}"
            if self.opcode is not None:
                where += f" ({getattr(self.opcode, 'name', self.opcode)})"
            if self.line is not None:
                where += f" at line {self.line}"
            lines.append(f"{indent}  {where}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format()


class StackUnderflow(MilkdropRuntimeError):
    def __init__(self, ip: int | None = None, opcode=None):
        super().__init__("Stack underflow", ip=ip, opcode=opcode)
