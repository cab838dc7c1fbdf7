import math
import random

from bytecode import OpCode
from errors import MilkdropRuntimeError, StackUnderflow

INF = float("inf")
NAN = float("nan")


def ieee(fn):
    # math raises on domain errors and overflow; equations get nan/inf instead
    def wrapped(*args):
        try:
            return fn(*args)
        except OverflowError:
            return INF
        except ValueError:
            return NAN

    wrapped.__name__ = fn.__name__
    return wrapped


def _log(v):
    v = abs(v)
    if v == 0.0:
        return -INF
    return math.log(v)


def _log10(v):
    v = abs(v)
    if v == 0.0:
        return -INF
    return math.log10(v)


def _pow(base, exponent):
    try:
        return math.pow(base, exponent)
    except OverflowError:
        if base < 0 and exponent == int(exponent) and int(exponent) % 2 == 1:
            return -INF
        return INF
    except ValueError:
        # 0 ** negative -> inf, negative ** fraction -> nan
        if base == 0.0:
            return INF
        return NAN


_fmod = ieee(math.fmod)

UNARY_MATH = {
    OpCode.SIN: ieee(math.sin),
    OpCode.COS: ieee(math.cos),
    OpCode.TAN: ieee(math.tan),
    OpCode.ASIN: ieee(math.asin),
    OpCode.ACOS: ieee(math.acos),
    OpCode.ATAN: math.atan,
    OpCode.SQRT: lambda v: math.sqrt(abs(v)),
    OpCode.ABS: abs,
    OpCode.SQR: lambda v: v * v,
    OpCode.EXP: ieee(math.exp),
    OpCode.LOG: _log,
    OpCode.LOG10: _log10,
}

CMP_OPCODES = (
    OpCode.CMP_EQ, OpCode.CMP_NE, OpCode.CMP_LT, OpCode.CMP_GT, OpCode.CMP_LE, OpCode.CMP_GE,
    OpCode.EQUAL, OpCode.ABOVE, OpCode.BELOW,
)


class VM:
    """Stack machine that runs a compiled equation program.

    One VM owns one operand stack and is not reentrant: a caller running
    equations from more than one thread must serialize ``execute`` calls.
    The random source used by ``rand()`` is injected so runs can be
    reproduced; by default each VM gets its own unseeded generator.
    """

    def __init__(self, rng=None):
        self.rng = rng if rng is not None else random.Random()
        self.stack = []
        self.ip = 0
        self.opcode = None
        self.running = False
        self.trace_enabled = False

    def seed(self, value):
        self.rng.seed(value)

    def pop(self):
        if not self.stack:
            raise StackUnderflow(ip=self.ip, opcode=self.opcode)
        return self.stack.pop()

    def _result(self):
        return self.stack[-1] if self.stack else 0.0

    def execute(self, program, context) -> float:
        instructions = program.instructions
        names = program.variables.names
        stack = self.stack
        push = stack.append
        pop = self.pop

        stack.clear()
        self.running = True
        try:
            ip = 0
            end = len(instructions)
            while ip < end:
                opcode, arg = instructions[ip]
                self.ip = ip
                self.opcode = opcode
                ip += 1

                if self.trace_enabled:
                    shown = "" if arg is None else f" {arg!r}"
                    print(f"TRACE ip={self.ip:04d} {opcode.name}{shown} stack={len(stack)}")

                if opcode == OpCode.PUSH:
                    push(arg)
                    continue

                if opcode == OpCode.LOAD:
                    push(context.get(names[arg]))
                    continue

                if opcode == OpCode.STORE:
                    value = pop()
                    context.set(names[arg], value)
                    push(value)
                    continue

                if opcode in UNARY_MATH:
                    push(UNARY_MATH[opcode](pop()))
                    continue

                if opcode in (OpCode.ADD, OpCode.SUB, OpCode.MUL, OpCode.DIV, OpCode.MOD):
                    b = pop()
                    a = pop()
                    if opcode == OpCode.ADD:
                        push(a + b)
                    elif opcode == OpCode.SUB:
                        push(a - b)
                    elif opcode == OpCode.MUL:
                        push(a * b)
                    elif b == 0.0:
                        # x / 0 and x % 0 saturate to zero
                        push(0.0)
                    elif opcode == OpCode.DIV:
                        push(a / b)
                    else:
                        push(_fmod(a, b))
                    continue

                if opcode == OpCode.NEG:
                    push(-pop())
                    continue

                if opcode in CMP_OPCODES:
                    b = pop()
                    a = pop()
                    if opcode in (OpCode.CMP_EQ, OpCode.EQUAL):
                        result = a == b
                    elif opcode == OpCode.CMP_NE:
                        result = a != b
                    elif opcode in (OpCode.CMP_LT, OpCode.BELOW):
                        result = a < b
                    elif opcode in (OpCode.CMP_GT, OpCode.ABOVE):
                        result = a > b
                    elif opcode == OpCode.CMP_LE:
                        result = a <= b
                    else:
                        result = a >= b
                    push(1.0 if result else 0.0)
                    continue

                if opcode == OpCode.AND:
                    b = pop()
                    a = pop()
                    push(1.0 if (a != 0.0 and b != 0.0) else 0.0)
                    continue

                if opcode == OpCode.OR:
                    b = pop()
                    a = pop()
                    push(1.0 if (a != 0.0 or b != 0.0) else 0.0)
                    continue

                if opcode == OpCode.ATAN2:
                    x = pop()
                    y = pop()
                    push(math.atan2(y, x))
                    continue

                if opcode == OpCode.POW:
                    exponent = pop()
                    base = pop()
                    push(_pow(base, exponent))
                    continue

                if opcode in (OpCode.MIN, OpCode.MAX):
                    b = pop()
                    a = pop()
                    if opcode == OpCode.MIN:
                        push(b if b < a else a)
                    else:
                        push(b if a < b else a)
                    continue

                if opcode == OpCode.SIGN:
                    v = pop()
                    push(1.0 if v > 0.0 else (-1.0 if v < 0.0 else 0.0))
                    continue

                if opcode == OpCode.RAND:
                    upper = pop()
                    push(self.rng.random() * upper)
                    continue

                if opcode == OpCode.IF:
                    false_val = pop()
                    true_val = pop()
                    condition = pop()
                    push(true_val if condition != 0.0 else false_val)
                    continue

                if opcode == OpCode.HALT:
                    return self._result()

                if opcode in (OpCode.JUMP, OpCode.JUMP_IF_FALSE):
                    raise MilkdropRuntimeError(
                        f"Reserved opcode {opcode.name} is not executable", ip=self.ip, opcode=opcode
                    )

                raise MilkdropRuntimeError(f"Unknown opcode: {opcode!r}", ip=self.ip, opcode=opcode)

            return self._result()
        except MilkdropRuntimeError as e:
            if e.line is None:
                e.line = (program.debug_at(e.ip) or {}).get("line")
            raise
        finally:
            self.running = False
