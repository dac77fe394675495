#!/usr/bin/env python3
"""
Interactive stepper for Worm programs.

Usage:
  sandworm-debug ./Programs/echo.worm [input_file]

Commands (one per line; the state is shown before each prompt):
  <empty> | step      run one tick
  step N              run up to N ticks (stops early when the worm halts)
  input TEXT          append TEXT to the pending input
  undo                go back to the state before the last step command
  q | quit | exit     leave
"""

from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import Callable, List, Optional

from .config import DIRECTION_NAMES, EngineOptions
from .engine import Engine, RuntimeFault
from .io_port import BufferPort
from .loader import LoadError, load_program_file
from .render import render

QUIT_WORDS = {"q", "quit", "exit"}


def run_repl(
    engine: Engine,
    port: BufferPort,
    read_line: Callable[[], Optional[str]],
    write: Callable[[str], None],
) -> int:
    """Drive the engine from text commands until quit or end of input. Returns ticks executed."""
    history = []
    total = 0
    while True:
        write(render(engine, port))
        line = read_line()
        if line is None:
            break
        line = line.rstrip("\r\n")
        if line.startswith("input "):
            port.feed(line[len("input "):])
            continue
        words = line.split()
        try:
            if not words or words == ["step"]:
                history.append(engine.snapshot())
                total += engine.step_many(1)
            elif len(words) == 2 and words[0] == "step" and words[1].isdigit():
                history.append(engine.snapshot())
                total += engine.step_many(int(words[1]))
            elif words == ["undo"]:
                if history:
                    engine.restore(history.pop())
                else:
                    write("nothing to undo")
            elif len(words) == 1 and words[0] in QUIT_WORDS:
                break
            else:
                write("unrecognised command")
        except RuntimeFault as e:
            write(f"fault: {e}")
    return total


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="sandworm-debug", description="Step through a Worm program.")
    ap.add_argument("program", help="Path to a .worm source file")
    ap.add_argument("input_file", nargs="?", help="File whose bytes are queued as input")
    ap.add_argument("--direction", choices=DIRECTION_NAMES, default="east")
    args = ap.parse_args(argv)

    try:
        program = load_program_file(args.program)
        data = Path(args.input_file).read_bytes() if args.input_file else b""
    except (LoadError, OSError) as e:
        print(f"Error reading program: {e}", file=sys.stderr)
        return 2

    opts = EngineOptions(direction=args.direction)
    port = BufferPort(data, eof_value=opts.eof_value)
    engine = Engine(program, port, opts)

    def read_line() -> Optional[str]:
        try:
            return input("> ")
        except EOFError:
            return None

    run_repl(engine, port, read_line, print)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
