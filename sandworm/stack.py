# sandworm/stack.py
from __future__ import annotations
from typing import Iterable, Iterator, List, Optional


class Stack:
    """LIFO of ints. Popping or peeking an empty stack yields 0."""

    def __init__(self, values: Optional[Iterable[int]] = None):
        self._items: List[int] = list(values or [])

    def push(self, value: int) -> None:
        self._items.append(int(value))

    def pop(self) -> int:
        if not self._items:
            return 0
        return self._items.pop()

    def peek(self) -> int:
        return self._items[-1] if self._items else 0

    def duplicate(self) -> None:
        self._items.append(self.peek())

    def as_list(self) -> List[int]:
        return list(self._items)

    def copy(self) -> "Stack":
        return Stack(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[int]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Stack):
            return self._items == other._items
        if isinstance(other, list):
            return self._items == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"Stack({self._items!r})"
