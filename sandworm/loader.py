"""Program loading: source text -> initial Grid + head position.

- Each line is a row; each byte in the line is a column.
- Spaces are not stored (the grid default is already blank).
- Exactly one '@' marks where the worm starts. That cell is left blank;
  the worm occupies it.
- The source rectangle (longest line x number of lines) is kept as the
  default halt boundary.
"""

from __future__ import annotations
import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .grid import BLANK, Bounds, Coord, Grid

HEAD_MARKER = ord("@")


class LoadError(Exception):
    pass


class MissingHeadError(LoadError):
    def __init__(self, name: Optional[str] = None):
        where = f" in {name}" if name else ""
        super().__init__(f"No worm head marker '@' found{where}")


class AmbiguousHeadError(LoadError):
    def __init__(self, positions: List[Coord], name: Optional[str] = None):
        where = f" in {name}" if name else ""
        shown = ", ".join(f"({x}, {y})" for x, y in positions)
        super().__init__(f"Expected one worm head marker '@'{where}, found {len(positions)}: {shown}")
        self.positions = positions


@dataclass
class Program:
    name: str
    source: bytes
    grid: Grid
    head: Coord
    bounds: Bounds
    path: Optional[str] = None

    @property
    def hash(self) -> str:
        return "sha256:" + hashlib.sha256(self.source).hexdigest()


def _as_bytes(source: Union[str, bytes]) -> bytes:
    if isinstance(source, str):
        return source.encode("utf-8")
    return bytes(source)


def split_rows(data: bytes) -> List[bytes]:
    """Rows end at '\\n' or '\\r\\n'. A '\\r' anywhere else is an ordinary cell byte."""
    rows = data.split(b"\n")
    last = rows.pop()
    rows = [row[:-1] if row.endswith(b"\r") else row for row in rows]
    if last:
        rows.append(last)
    return rows


def parse_source(source: Union[str, bytes]) -> Tuple[Grid, List[Coord], Bounds]:
    """Split source into rows and collect every '@' position (no validation)."""
    rows = split_rows(_as_bytes(source))
    heads = [(x, y) for y, row in enumerate(rows) for x, value in enumerate(row) if value == HEAD_MARKER]
    grid = Grid.from_rows(row.replace(bytes([HEAD_MARKER]), bytes([BLANK])) for row in rows)
    width = max((len(row) for row in rows), default=0)
    return grid, heads, Bounds(0, 0, width, len(rows))


def load_program(source: Union[str, bytes], name: Optional[str] = None, *, path: Optional[str] = None) -> Program:
    grid, heads, bounds = parse_source(source)
    if not heads:
        raise MissingHeadError(name)
    if len(heads) > 1:
        raise AmbiguousHeadError(heads, name)
    return Program(
        name=name or "<string>",
        source=_as_bytes(source),
        grid=grid,
        head=heads[0],
        bounds=bounds,
        path=path,
    )


def load_program_file(path: Union[str, Path]) -> Program:
    p = Path(path)
    return load_program(p.read_bytes(), p.name, path=str(p))
