from bytecode import BytecodeProgram
from compiler import compile_block, compile_expression
from errors import MilkdropError
from vm import VM


class MilkdropEval:
    """Compile-once, run-every-frame wrapper around the compiler and VM.

    ``compile`` and ``compile_block`` return False instead of raising and
    keep the message in ``last_error``. A failed compile leaves the
    evaluator empty, so ``execute`` keeps working and returns 0.0.

    Runtime faults (stack underflow on corrupted bytecode) are not
    swallowed: they propagate out of ``execute``.
    """

    def __init__(self, rng=None):
        self.vm = VM(rng=rng)
        self._program = BytecodeProgram()
        self._last_error = ""

    @property
    def program(self):
        return self._program

    @property
    def last_error(self):
        return self._last_error

    def clear(self):
        self._program = BytecodeProgram()
        self._last_error = ""

    def compile(self, expression) -> bool:
        return self._install(compile_expression, expression)

    def compile_block(self, code) -> bool:
        return self._install(compile_block, code)

    def _install(self, compile_fn, source):
        self.clear()
        try:
            self._program = compile_fn(source)
        except MilkdropError as e:
            self._last_error = f"Compilation error: {e}"
            return False
        return True

    def execute(self, context) -> float:
        if self._program.is_empty():
            return 0.0
        return self.vm.execute(self._program, context)
