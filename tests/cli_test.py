import os
import subprocess
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
CLI = os.path.join(ROOT, "cli.py")


def run_cli(*args, inp=None):
    proc = subprocess.run(
        [sys.executable, CLI, *args],
        input=inp,
        text=True,
        capture_output=True,
        cwd=ROOT,
        timeout=10,
    )
    return proc


def run_repl_with_input(inp: str) -> str:
    proc = run_cli("repl", "--seed", "1", inp=inp)

    # REPL should exit cleanly after :q
    if proc.returncode != 0:
        raise AssertionError(f"REPL exited with code {proc.returncode}\nSTDOUT:\n{proc.stdout}\nSTDERR:\n{proc.stderr}")

    return proc.stdout


def write_preset(tmp_path, code):
    path = tmp_path / "preset.milk"
    path.write_text(code, encoding="utf-8")
    return str(path)


def test_auto_print_expression():
    out = run_repl_with_input("1 + 2\n:q\n")
    assert "3" in out


def test_persistent_state_expression():
    out = run_repl_with_input("q1 = 2\nq1 + 5\n:vars\n:q\n")
    assert "7" in out
    assert "q1 = 2" in out


def test_repl_reports_errors_and_keeps_going():
    out = run_repl_with_input("1 < 2 < 3\n2 * 4\n:q\n")
    assert "Compilation error" in out
    assert "8" in out


def test_build_prints_variables_and_instructions(tmp_path):
    path = write_preset(tmp_path, "zoom = zoom + 0.1")
    proc = run_cli("build", path)
    assert proc.returncode == 0, proc.stdout + proc.stderr
    assert "[0] zoom" in proc.stdout
    assert "STORE" in proc.stdout
    assert "HALT" in proc.stdout


def test_parse_and_tokens(tmp_path):
    path = write_preset(tmp_path, "q1 = -bass")
    proc = run_cli("parse", path)
    assert proc.returncode == 0
    assert proc.stdout.splitlines() == [
        "Statement",
        "  Assign q1",
        "    Negate",
        "      Var bass",
    ]
    proc = run_cli("tokens", path)
    assert proc.returncode == 0
    assert "IDENT(q1) ASSIGN MINUS IDENT(bass) END" in proc.stdout


def test_run_frames(tmp_path):
    path = write_preset(tmp_path, "q1 = q1 + bass*0.1\nzoom = 1 + q1")
    proc = run_cli("run", path, "--frames", "3", "--bass", "1")
    assert proc.returncode == 0, proc.stdout + proc.stderr
    lines = proc.stdout.splitlines()
    assert len(lines) == 3
    assert lines[0].startswith("frame 0: 1.1")
    assert lines[2].startswith("frame 2: 1.3")
    assert "q1=0.3" in lines[2]


def test_build_error_exits_nonzero(tmp_path):
    path = write_preset(tmp_path, "zoom = floor(1)")
    proc = run_cli("build", path)
    assert proc.returncode == 1
    assert "Unknown function: floor" in proc.stdout


def test_usage_without_arguments():
    proc = run_cli()
    assert proc.returncode == 1
    assert "Usage:" in proc.stdout


def test_parse_prints_numbers_and_calls(tmp_path):
    path = write_preset(tmp_path, "zoom = max(0.50, 1)")
    proc = run_cli("parse", path)
    assert proc.returncode == 0, proc.stdout + proc.stderr
    assert "Call max/2" in proc.stdout
    assert "Number 0.5" in proc.stdout


def test_build_error_reports_source_line(tmp_path):
    path = write_preset(tmp_path, "zoom = 1\n\nrot = rot + (1")
    proc = run_cli("build", path)
    assert proc.returncode == 1
    assert "at line 3" in proc.stdout
