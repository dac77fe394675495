#!/usr/bin/env python3
"""
SandWorm CLI: run a Worm program to completion.

Usage:
  sandworm ./Programs/hello.worm [input_file] \
    [--input TEXT] [--direction east|west|north|south] [--max-steps N] [--unbounded] \
    [--config worm.json] [--trace] [--print-logs] [--print-receipt] [--receipt-out PATH] [--show]

Behavior:
- Program output bytes go to stdout as they are produced.
- Input comes from INPUT_FILE, else --input, else stdin.
- Exit codes: 0 halted, 1 runtime fault, 2 load/config error.
- A receipt (JSON) is written on success and on failure when requested.
"""

from __future__ import annotations
import argparse
import io
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import DIRECTION_NAMES, ConfigError, EngineOptions, load_config
from .engine import Engine, RuntimeFault
from .io_port import StreamPort
from .loader import LoadError, load_program_file
from .receipts import finalize_receipt, make_base_receipt, write_receipt
from .render import render


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="sandworm", description="Run a Worm program.")
    ap.add_argument("program", help="Path to a .worm source file")
    ap.add_argument("input_file", nargs="?", help="File whose bytes feed the ? instruction")
    ap.add_argument("--input", dest="input_text", default=None, help="Input text (used when no input file)")
    ap.add_argument("--direction", choices=DIRECTION_NAMES, default=None, help="Initial heading (default: east)")
    ap.add_argument("--max-steps", type=int, default=None, help="Abort after N ticks without halting")
    ap.add_argument("--unbounded", action="store_true", help="Do not halt at the program bounds")
    ap.add_argument("--config", default=None, help="JSON config file (see schemas/worm-config.schema.json)")
    ap.add_argument("--trace", action="store_true", help="Record every tick in the receipt")
    ap.add_argument("--print-logs", action="store_true", help="Print run logs to stderr")
    ap.add_argument("--print-receipt", action="store_true", help="Print receipt JSON to stdout after the run")
    ap.add_argument("--receipt-out", help="Write receipt JSON to this file")
    ap.add_argument("--show", action="store_true", help="Print the final grid and worm to stderr")
    return ap


def resolve_options(args: argparse.Namespace) -> EngineOptions:
    opts = EngineOptions()
    if args.config:
        opts = load_config(args.config, opts)
    return opts.with_overrides(
        direction=args.direction,
        max_steps=args.max_steps,
        bounded=False if args.unbounded else None,
        trace=True if args.trace else None,
    )


def _input_reader(args: argparse.Namespace):
    if args.input_file:
        return io.BytesIO(Path(args.input_file).read_bytes())
    if args.input_text is not None:
        return io.BytesIO(args.input_text.encode("utf-8"))
    return getattr(sys.stdin, "buffer", None)


def _print_logs(logs: List[Dict[str, Any]]) -> None:
    for entry in logs:
        print(f"[worm] {entry.get('level')} {entry.get('event')}: {entry.get('message')}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    path = Path(args.program)
    base = make_base_receipt(None, name=path.name, path=str(path))

    try:
        program = load_program_file(path)
        opts = resolve_options(args)
        reader = _input_reader(args)
    except (LoadError, ConfigError, OSError) as e:
        base["status"] = "error"
        base["reason"] = str(e)
        base["logs"].append({"level": "error", "event": "load", "message": str(e)})
        if args.print_logs:
            _print_logs(base["logs"])
        write_receipt(args.receipt_out, base, args.print_receipt)
        return 2

    base = make_base_receipt(program)
    writer = getattr(sys.stdout, "buffer", sys.stdout)
    port = StreamPort(reader, writer, eof_value=opts.eof_value)
    engine = Engine(program, port, opts)

    try:
        engine.run()
    except RuntimeFault as e:
        receipt = finalize_receipt(base, engine, status="error", reason=str(e))
        if args.print_logs:
            _print_logs(receipt["logs"])
        if args.show:
            print(render(engine), file=sys.stderr)
        write_receipt(args.receipt_out, receipt, args.print_receipt)
        return 1

    receipt = finalize_receipt(base, engine)
    if args.print_logs:
        _print_logs(receipt["logs"])
    if args.show:
        print(render(engine), file=sys.stderr)
    write_receipt(args.receipt_out, receipt, args.print_receipt)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
