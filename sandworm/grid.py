# sandworm/grid.py
# Unbounded byte surface the worm crawls over.
# Cells never written read back as BLANK; writing BLANK drops the entry.

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple

BLANK = 0x20

Coord = Tuple[int, int]


@dataclass(frozen=True)
class Bounds:
    """Rectangle [left, right) x [top, bottom) used as the halt boundary."""
    left: int
    top: int
    right: int
    bottom: int

    def contains(self, x: int, y: int) -> bool:
        return self.left <= x < self.right and self.top <= y < self.bottom

    @property
    def width(self) -> int:
        return max(0, self.right - self.left)

    @property
    def height(self) -> int:
        return max(0, self.bottom - self.top)


class Grid:
    def __init__(self, cells: Optional[Dict[Coord, int]] = None):
        self._cells: Dict[Coord, int] = {}
        for (x, y), value in (cells or {}).items():
            self.write(x, y, value)

    @classmethod
    def from_rows(cls, rows: Iterable[bytes]) -> "Grid":
        grid = cls()
        for y, row in enumerate(rows):
            for x, value in enumerate(row):
                grid.write(x, y, value)
        return grid

    def read(self, x: int, y: int) -> int:
        return self._cells.get((x, y), BLANK)

    def write(self, x: int, y: int, value: int) -> None:
        value &= 0xFF
        if value == BLANK:
            self._cells.pop((x, y), None)
        else:
            self._cells[(x, y)] = value

    def clear(self, x: int, y: int) -> None:
        self._cells.pop((x, y), None)

    def cells(self) -> Iterator[Tuple[Coord, int]]:
        """Non-blank cells in row-major order."""
        for coord in sorted(self._cells, key=lambda c: (c[1], c[0])):
            yield coord, self._cells[coord]

    def extent(self) -> Optional[Bounds]:
        coords = [coord for coord, _ in self.cells()]
        if not coords:
            return None
        xs = [x for x, _ in coords]
        ys = [y for _, y in coords]
        return Bounds(min(xs), min(ys), max(xs) + 1, max(ys) + 1)

    def row_bytes(self, y: int, left: int, right: int) -> bytes:
        return bytes(self.read(x, y) for x in range(left, right))

    def copy(self) -> "Grid":
        clone = Grid()
        clone._cells = dict(self._cells)
        return clone

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, coord: object) -> bool:
        return coord in self._cells

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self._cells == other._cells

    def __repr__(self) -> str:
        return f"Grid({len(self._cells)} cells)"
