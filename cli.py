import random
import sys
import traceback

import colorama

from ast_nodes import Assign, Binary, Call, Negate, Number, Statement, Var
from compiler import Compiler, numbered_statements, split_statements
from context import ExecutionContext
from errors import MilkdropError
from evaluator import MilkdropEval
from lexer import Lexer, tokenize
from parser import Parser

_colorama_inited = False


def _ensure_colorama():
    global _colorama_inited
    if _colorama_inited:
        return
    _colorama_inited = True
    colorama.just_fix_windows_console()


def print_error(message):
    _ensure_colorama()
    print(f"{colorama.Fore.RED}{message}{colorama.Style.RESET_ALL}")


def node_label(node):
    if isinstance(node, Assign):
        return f"Assign {node.name}"
    if isinstance(node, Number):
        return f"Number {format_value(node.value)}"
    if isinstance(node, Var):
        return f"Var {node.name}"
    if isinstance(node, Binary):
        return f"Binary {node.op}"
    if isinstance(node, Call):
        return f"Call {node.name}/{len(node.args)}"
    return node.__class__.__name__


def node_children(node):
    if isinstance(node, Statement):
        return [node.body]
    if isinstance(node, Assign):
        return [node.value]
    if isinstance(node, Binary):
        return [node.left, node.right]
    if isinstance(node, Negate):
        return [node.expr]
    if isinstance(node, Call):
        return node.args
    return []


# indented AST dump, one node per line
def format_tree(node, indent=0):
    lines = [f"{'  ' * indent}{node_label(node)}"]
    for child in node_children(node):
        lines.append(format_tree(child, indent + 1))
    return "\n".join(lines)


def format_value(value):
    return f"{value:.6g}"


def read_source(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def cmd_tokens(path):
    try:
        code = read_source(path)
    except OSError as e:
        print_error(f"Read error: {e}")
        sys.exit(1)
    for stmt in split_statements(code):
        print(" ".join(repr(tok) for tok in tokenize(stmt)))


def cmd_parse(path):
    try:
        code = read_source(path)
        trees = [Parser(Lexer(stmt, line, col)).parse() for line, col, stmt in numbered_statements(code)]
    except (OSError, MilkdropError) as e:
        print_error(f"Parse error: {e}")
        sys.exit(1)

    for tree in trees:
        print(format_tree(tree))


def cmd_build(path):
    try:
        code = read_source(path)
        compiler = Compiler()
        for line, col, stmt in numbered_statements(code):
            compiler.compile(Parser(Lexer(stmt, line, col)).parse())
        bc = compiler.finish()
    except (OSError, MilkdropError) as e:
        print_error(f"Build error: {e}")
        sys.exit(1)

    print("VARIABLES:")
    for i, name in enumerate(bc.variables):
        print(f"  [{i}] {name}")

    print("\nINSTRUCTIONS:")
    print(bc.disassemble())


def cmd_run(path, frames=1, fps=60.0, seed=None, audio=None, trace=False, debug=False):
    rng = random.Random(seed)
    try:
        code = read_source(path)
        evaluator = MilkdropEval(rng=rng)
        if not evaluator.compile_block(code):
            print_error(evaluator.last_error)
            sys.exit(1)

        ctx = ExecutionContext(fps=fps, **(audio or {}))
        evaluator.vm.trace_enabled = trace
        for n in range(frames):
            ctx.frame = float(n)
            ctx.time = n / fps
            result = evaluator.execute(ctx)
            fields = " ".join(f"{k}={format_value(v)}" for k, v in ctx.changed().items()
                              if k not in ("frame", "time", "fps"))
            print(f"frame {n}: {format_value(result)}  {fields}".rstrip())
    except (OSError, MilkdropError) as e:
        if debug:
            traceback.print_exc()
        else:
            print_error(str(e))
        sys.exit(1)


def cmd_repl(seed=None, debug: bool = False):
    # one context lives across lines, so assignments persist
    ctx = ExecutionContext()
    evaluator = MilkdropEval(rng=random.Random(seed))

    print("Milkdrop equation REPL. Type :q to quit, :vars to list variables.")

    while True:
        try:
            line = input("milk> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break

        stripped = line.strip()
        if stripped in (":q", ":quit", "quit", "exit"):
            break
        if not stripped:
            continue
        if stripped == ":vars":
            for name, value in ctx.changed().items():
                print(f"  {name} = {format_value(value)}")
            continue
        if stripped == ":reset":
            ctx.reset()
            continue

        if not evaluator.compile_block(line):
            print_error(evaluator.last_error)
            continue
        try:
            print(format_value(evaluator.execute(ctx)))
        except MilkdropError as e:
            if debug:
                traceback.print_exc()
            else:
                print_error(str(e))


def _take_option(args, name, convert, default):
    if name not in args:
        return default
    i = args.index(name)
    if i + 1 >= len(args):
        print(f"{name} expects a value")
        sys.exit(1)
    try:
        value = convert(args[i + 1])
    except ValueError:
        print(f"{name} expects a number, got {args[i + 1]}")
        sys.exit(1)
    del args[i : i + 2]
    return value


def usage():
    print("Usage:")
    print("  python cli.py tokens <file>")
    print("  python cli.py parse <file>")
    print("  python cli.py build <file>")
    print("  python cli.py run <file> [--frames N] [--fps N] [--seed N] [--bass V] [--mid V] [--treb V] [--trace]")
    print("  python cli.py repl [--seed N]")
    print("  (optional) --debug to show Python traceback")
    sys.exit(1)


def main(argv=None):
    args = list(sys.argv[1:] if argv is None else argv)

    debug = False
    if "--debug" in args:
        debug = True
        args.remove("--debug")

    trace = False
    if "--trace" in args:
        trace = True
        args.remove("--trace")

    frames = _take_option(args, "--frames", int, 1)
    fps = _take_option(args, "--fps", float, 60.0)
    seed = _take_option(args, "--seed", int, None)
    if fps <= 0:
        print("--fps must be positive")
        sys.exit(1)
    audio = {}
    for name in ("bass", "mid", "treb"):
        value = _take_option(args, f"--{name}", float, None)
        if value is not None:
            audio[name] = value
            audio[f"{name}_att"] = value

    if not args:
        usage()

    cmd = args[0]

    if cmd == "repl":
        if len(args) != 1:
            usage()
        cmd_repl(seed=seed, debug=debug)
        return

    if len(args) != 2:
        usage()

    path = args[1]

    if cmd == "tokens":
        cmd_tokens(path)
    elif cmd == "parse":
        cmd_parse(path)
    elif cmd == "build":
        cmd_build(path)
    elif cmd == "run":
        cmd_run(path, frames=frames, fps=fps, seed=seed, audio=audio, trace=trace, debug=debug)
    else:
        print(f"Unknown command: {cmd}")
        sys.exit(1)


if __name__ == "__main__":
    main()
