import io
import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from luac_annotate import cli, versions

PROJECT_ROOT = Path(__file__).resolve().parents[1]
PAD = " " * 24


def test_annotates_file_to_stdout(hello51_path, capsys):
    assert cli.main(["--lua51", str(hello51_path)]) == 0

    out = capsys.readouterr().out
    assert f'{PAD}-> 0<?msg> -1<"hi">\n' in out
    assert f"{PAD}-> 2 0<^msg>\n" in out
    assert out.startswith("\nmain <hello.lua:0,0>")


def test_reads_stdin_when_no_path(hello51_text, monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO(hello51_text))

    assert cli.main([]) == 0

    assert f"{PAD}-- R(A) := Gbl[Kst(Bx)]\n" in capsys.readouterr().out


def test_output_file(hello51_path, tmp_path, capsys):
    target = tmp_path / "out" / "annotated.lst"

    assert cli.main([str(hello51_path), "-o", str(target), "--column", "8"]) == 0

    assert capsys.readouterr().out == ""
    text = target.read_text(encoding="utf-8")
    assert f"{' ' * 8}-> (returns nothing)" in text


def test_unknown_flag_is_fatal(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--lua99"])

    assert excinfo.value.code != 0
    assert "--lua99" in capsys.readouterr().err


def test_help_exits_successfully(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--help"])

    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    for flag in ("--lua50", "--lua51", "--lua52", "--lua53"):
        assert flag in out


def test_unreadable_input_is_fatal(tmp_path, capsys):
    missing = tmp_path / "nope.lst"

    assert cli.main([str(missing)]) == 1

    assert "nope.lst" in capsys.readouterr().err


def test_missing_opcode_resource_is_fatal(hello51_path, tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(versions, "resource_path", lambda version: tmp_path / f"lopcodes-{version}.h")

    assert cli.main([str(hello51_path)]) == 1

    assert "lopcodes-5.0.h" in capsys.readouterr().err


def test_last_version_flag_wins(capsys):
    assert cli.main(["--lua53", "--lua51", "--list-opcodes"]) == 0
    table = json.loads(capsys.readouterr().out)
    assert "GETGLOBAL" in table and "IDIV" not in table

    assert cli.main(["--lua51", "--lua53", "--list-opcodes"]) == 0
    table = json.loads(capsys.readouterr().out)
    assert "IDIV" in table and "GETGLOBAL" not in table
    assert table["LOADK"] == {
        "name": "LOADK",
        "signature": ["A", "Bx"],
        "doc": "R(A) := Kst(Bx)",
        "operand_types": ["R", "Kst", None],
    }


def test_default_lists_merged_table(capsys):
    assert cli.main(["--list-opcodes"]) == 0

    table = json.loads(capsys.readouterr().out)
    assert {"GETGLOBAL", "IDIV", "TFORPREP"} <= set(table)
    assert table["LOADNIL"]["doc"] == "R(A), R(A+1), ..., R(A+B) := nil"


def test_unknown_opcode_is_not_fatal(tmp_path, capsys):
    listing = tmp_path / "odd.lst"
    listing.write_text("main <x:0,0> (1 instruction at 0x1)\n\t1\t[1]\tWIBBLE   \t0\n", encoding="utf-8")

    assert cli.main(["--lua52", str(listing)]) == 0

    captured = capsys.readouterr()
    assert f"{PAD}!! unknown opcode WIBBLE\n" in captured.out
    assert "WIBBLE" in captured.err


def test_trace_file_records_resolution(hello51_path, tmp_path, capsys):
    trace = tmp_path / "trace.log"

    assert cli.main(["--lua51", "--trace", str(trace), str(hello51_path)]) == 0

    text = trace.read_text(encoding="utf-8")
    assert "pc 1: R(0) -> msg (uncertain)" in text
    assert 'pc 1: Kst(-1) -> "hi"' in text


def test_run_returns_unknown_opcode_count(tmp_path):
    listing = tmp_path / "odd.lst"
    listing.write_text("\t1\t[1]\tWIBBLE\n\t2\t[1]\tMOVE     \t0 1\n\t3\t[1]\tWOBBLE\n", encoding="utf-8")
    out = io.StringIO()

    assert cli.run(listing, version="5.1", stdout=out) == 2
    assert out.getvalue().count("unknown opcode") == 2


def test_main_py_shim(hello51_path, capsys):
    sys.path.insert(0, str(PROJECT_ROOT))
    try:
        import main as shim
    finally:
        sys.path.remove(str(PROJECT_ROOT))

    assert shim.main(["--lua51", str(hello51_path)]) == 0
    assert "(returns nothing)" in capsys.readouterr().out


def test_module_entry_point(hello51_path):
    proc = subprocess.run(
        [sys.executable, "-m", "luac_annotate", "--lua51", str(hello51_path)],
        cwd=PROJECT_ROOT,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        timeout=60,
    )

    assert proc.returncode == 0, proc.stderr
    assert f'{PAD}-> 0<?msg> -1<"hi">' in proc.stdout.splitlines()


RAW_LISTING = (
    b"main <caf.lua:0,0> (2 instructions, 8 bytes at 0x1)\n"
    b'\t1\t[1]\tLOADK    \t0 -1\t; "caf\xe9"\n'
    b"\t2\t[1]\tRETURN   \t0 1\n"
    b"constants (1) for 0x1:\n"
    b'\t1\t"caf\xe9"\n'
    b"locals (1) for 0x1:\n"
    b"\t0\ts\t2\t3\n"
)


def test_output_file_preserves_raw_bytes(tmp_path):
    listing = tmp_path / "raw.lst"
    listing.write_bytes(RAW_LISTING)
    target = tmp_path / "annotated.lst"

    assert cli.main(["--lua51", str(listing), "-o", str(target)]) == 0

    out_lines = target.read_bytes().splitlines()
    for line in RAW_LISTING.splitlines():
        assert line in out_lines
    assert PAD.encode() + b'-> 0<?s> -1<"caf\xe9">' in out_lines


def test_piped_raw_bytes_round_trip():
    proc = subprocess.run(
        [sys.executable, "-m", "luac_annotate", "--lua51"],
        cwd=PROJECT_ROOT,
        input=RAW_LISTING,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=dict(os.environ, PYTHONIOENCODING="utf-8:strict"),
        timeout=60,
    )

    assert proc.returncode == 0, proc.stderr
    out_lines = proc.stdout.splitlines()
    for line in RAW_LISTING.splitlines():
        assert line in out_lines
    assert PAD.encode() + b'-> 0<?s> -1<"caf\xe9">' in out_lines
