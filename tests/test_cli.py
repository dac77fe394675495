import json
from pathlib import Path

from sandworm.debug_cli import run_repl
from sandworm.engine import Engine
from sandworm.io_port import BufferPort
from sandworm.loader import load_program
from sandworm.receipts import validate_receipt
from sandworm.worm_cli import main as worm_main


def _read_json(p: Path):
    return json.loads(p.read_text(encoding="utf-8"))


def _write(tmp_path: Path, name: str, text: str) -> Path:
    p = tmp_path / name
    p.write_bytes(text.encode("utf-8"))
    return p


def test_run_writes_output_and_receipt(tmp_path: Path, capsysbinary):
    prog = _write(tmp_path, "echo.worm", "@?!?!\n")
    out = tmp_path / "receipt.json"
    rc = worm_main([str(prog), "--input", "hi", "--receipt-out", str(out)])
    assert rc == 0
    assert capsysbinary.readouterr().out == b"hi"
    j = _read_json(out)
    validate_receipt(j)
    assert j["status"] == "halted"
    assert j["output"] == "hi"
    assert j["program"]["path"] == str(prog)
    assert j["program"]["hash"].startswith("sha256:")
    assert j["steps"] == []


def test_input_file_positional(tmp_path: Path):
    prog = _write(tmp_path, "dec.worm", '@?"\n')
    data = _write(tmp_path, "in.bin", "A")
    out = tmp_path / "r.json"
    rc = worm_main([str(prog), str(data), "--receipt-out", str(out)])
    assert rc == 0
    assert _read_json(out)["output"] == "65"


def test_missing_head_exits_2_with_error_receipt(tmp_path: Path):
    prog = _write(tmp_path, "headless.worm", "abc\n")
    out = tmp_path / "r.json"
    rc = worm_main([str(prog), "--input", "", "--receipt-out", str(out)])
    assert rc == 2
    j = _read_json(out)
    validate_receipt(j)
    assert j["status"] == "error"
    assert "@" in j["reason"]


def test_missing_file_exits_2(tmp_path: Path):
    rc = worm_main([str(tmp_path / "nope.worm"), "--input", ""])
    assert rc == 2


def test_step_limit_exits_1(tmp_path: Path, capsys):
    prog = _write(tmp_path, "lost.worm", "@\n")
    out = tmp_path / "r.json"
    rc = worm_main([str(prog), "--input", "", "--unbounded", "--max-steps", "25",
                    "--print-logs", "--receipt-out", str(out)])
    assert rc == 1
    j = _read_json(out)
    validate_receipt(j)
    assert j["status"] == "error"
    assert j["final"]["ticks"] == 25
    assert "[worm] error limit" in capsys.readouterr().err


def test_config_file_sets_direction(tmp_path: Path):
    prog = _write(tmp_path, "down.worm", "@\n?\n!\n")
    cfg = _write(tmp_path, "worm.json", json.dumps({"direction": "south", "trace": True}))
    out = tmp_path / "r.json"
    rc = worm_main([str(prog), "--input", "v", "--config", str(cfg), "--receipt-out", str(out)])
    assert rc == 0
    j = _read_json(out)
    assert j["output"] == "v"
    assert j["final"]["direction"] == "south"
    assert len(j["steps"]) == 3


def test_flag_overrides_config(tmp_path: Path):
    prog = _write(tmp_path, "west.worm", "!?@\n")
    cfg = _write(tmp_path, "worm.json", json.dumps({"direction": "south"}))
    out = tmp_path / "r.json"
    rc = worm_main([str(prog), "--input", "w", "--config", str(cfg), "--direction", "west",
                    "--receipt-out", str(out)])
    assert rc == 0
    assert _read_json(out)["output"] == "w"


def test_bad_config_exits_2(tmp_path: Path):
    prog = _write(tmp_path, "p.worm", "@a\n")
    cfg = _write(tmp_path, "worm.json", json.dumps({"direction": "up"}))
    assert worm_main([str(prog), "--input", "", "--config", str(cfg)]) == 2


def test_show_renders_final_state_to_stderr(tmp_path: Path, capsys):
    prog = _write(tmp_path, "p.worm", "@ab\n")
    rc = worm_main([str(prog), "--input", "", "--show"])
    assert rc == 0
    err = capsys.readouterr().err
    assert "halted (boundary)" in err
    assert "ab@" in err


def test_repl_steps_feeds_input_and_undoes():
    port = BufferPort()
    engine = Engine(load_program("@??!!"), port)
    lines = iter(["", "input xy", "step 2", "undo", "step 9", "bogus", "undo", "undo", "undo", "q", "step"])
    shown = []
    ticks = run_repl(engine, port, lambda: next(lines, None), shown.append)
    assert "unrecognised command" in shown
    assert "nothing to undo" in shown
    # after the last three undos the worm is back at the start
    assert engine.head == (0, 0)
    assert engine.state.ticks == 0
    # "step 9" stops early: only three cells are left before the bounds
    assert ticks == 1 + 2 + 3


def test_repl_stops_at_end_of_input():
    port = BufferPort("k")
    engine = Engine(load_program("@?!"), port)
    lines = iter(["step 10"])
    run_repl(engine, port, lambda: next(lines, None), lambda s: None)
    assert engine.halted
    assert bytes(port.output) == b"k"


def test_repl_undo_then_step_replays_the_same_input():
    port = BufferPort("ab")
    engine = Engine(load_program("@?!"), port)
    lines = iter(["step 2", "undo", "step 2"])
    run_repl(engine, port, lambda: next(lines, None), lambda s: None)
    assert bytes(port.output) == b"a"
    assert port.pending == b"b"
