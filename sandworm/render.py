# sandworm/render.py
# Plain-text picture of a running worm: grid window, worm overlay, stack and I/O lines.

from __future__ import annotations
from typing import List, Optional

from .grid import BLANK, Bounds

HEAD_GLYPH = "@"
BODY_GLYPH = "*"
UNPRINTABLE_GLYPH = "."


def _glyph(value: int) -> str:
    if value == BLANK:
        return " "
    if 0x21 <= value < 0x7F:
        return chr(value)
    return UNPRINTABLE_GLYPH


def _window(engine) -> Bounds:
    """Program bounds widened to include the worm and anything written outside them."""
    b = engine.program.bounds
    xs = [b.left, b.right - 1] + [x for x, _ in engine.state.body]
    ys = [b.top, b.bottom - 1] + [y for _, y in engine.state.body]
    ext = engine.grid.extent()
    if ext is not None:
        xs += [ext.left, ext.right - 1]
        ys += [ext.top, ext.bottom - 1]
    return Bounds(min(xs), min(ys), max(xs) + 1, max(ys) + 1)


def render_grid(engine, window: Optional[Bounds] = None) -> List[str]:
    w = window or _window(engine)
    head = engine.state.head
    body = set(engine.state.body[1:])
    lines = []
    for y in range(w.top, w.bottom):
        row = []
        for x in range(w.left, w.right):
            if (x, y) == head:
                row.append(HEAD_GLYPH)
            elif (x, y) in body:
                row.append(BODY_GLYPH)
            else:
                row.append(_glyph(engine.grid.read(x, y)))
        lines.append("".join(row).rstrip())
    return lines


def render(engine, port=None) -> str:
    port = port if port is not None else engine.port
    st = engine.state
    status = f"halted ({st.halt_reason})" if st.halted else "running"
    lines = [
        f"tick {st.ticks} | head {st.head} | heading {st.direction.label} | length {len(st.body)} | {status}",
    ]
    lines += render_grid(engine)
    lines.append(f"stack: {st.stack.as_list()}")
    output = getattr(port, "output", None)
    if output is not None:
        lines.append(f"output: {bytes(output).decode('utf-8', errors='replace')}")
    pending = getattr(port, "pending", None)
    if pending is not None:
        lines.append(f"input: {pending.decode('utf-8', errors='replace')}")
    return "\n".join(lines)
