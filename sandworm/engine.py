"""Worm engine: moves the worm one cell per tick and executes what it eats.

- A tick looks at the cell in front of the head, executes its byte, moves the
  head there, then rearranges the grid:
  * digit (growth): the body grows by one, nothing is deposited.
  * any other byte: the tail moves up and the eaten byte is written into the
    cell the tail just left.
  * blank: the worm moves without executing or depositing anything.
- Halt: the worm halts when its next cell is outside the program bounds
  (the loaded source rectangle). With bounds disabled only the host limits
  (max_steps / cancel) end a run.
- Receipts: logs and (when tracing) one entry per tick, like the interpreter
  receipts elsewhere in this project.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .config import EngineOptions
from .grid import BLANK, Bounds, Coord, Grid
from .io_port import BufferPort, IOPort, PortError
from .loader import Program, load_program
from .stack import Stack


class RuntimeFault(Exception):
    pass


class StepLimitExceeded(RuntimeFault):
    def __init__(self, steps: int):
        super().__init__(f"Step limit exceeded after {steps} steps without halting")
        self.steps = steps


class RunCancelled(RuntimeFault):
    def __init__(self, steps: int):
        super().__init__(f"Run cancelled by host after {steps} steps")
        self.steps = steps


class IOFault(RuntimeFault):
    pass


class Direction(Enum):
    NORTH = (0, -1)
    SOUTH = (0, 1)
    EAST = (1, 0)
    WEST = (-1, 0)

    @classmethod
    def from_name(cls, name: str) -> "Direction":
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown direction: {name!r}") from None

    @property
    def label(self) -> str:
        return self.name.lower()


ARROWS = {
    ord(">"): Direction.EAST,
    ord("<"): Direction.WEST,
    ord("^"): Direction.NORTH,
    ord("v"): Direction.SOUTH,
}

MIRRORS = {
    ord("/"): {
        Direction.NORTH: Direction.EAST,
        Direction.EAST: Direction.NORTH,
        Direction.SOUTH: Direction.WEST,
        Direction.WEST: Direction.SOUTH,
    },
    ord("\\"): {
        Direction.NORTH: Direction.WEST,
        Direction.WEST: Direction.NORTH,
        Direction.SOUTH: Direction.EAST,
        Direction.EAST: Direction.SOUTH,
    },
}

DIGIT_0 = ord("0")
DIGIT_9 = ord("9")


def is_growth(cmd: int) -> bool:
    return DIGIT_0 <= cmd <= DIGIT_9


@dataclass
class WormState:
    body: List[Coord]              # head first
    direction: Direction = Direction.EAST
    stack: Stack = field(default_factory=Stack)
    ticks: int = 0
    halted: bool = False
    halt_reason: Optional[str] = None

    @property
    def head(self) -> Coord:
        return self.body[0]

    @property
    def tail(self) -> Coord:
        return self.body[-1]

    def copy(self) -> "WormState":
        return WormState(
            body=list(self.body),
            direction=self.direction,
            stack=self.stack.copy(),
            ticks=self.ticks,
            halted=self.halted,
            halt_reason=self.halt_reason,
        )


@dataclass(frozen=True)
class StepEvent:
    tick: int
    at: Coord
    cmd: Optional[int]             # None when the tick halted
    event: str                     # "grow" | "move" | "blank" | "halt"
    direction: str
    bodyLength: int
    stackDepth: int

    def to_receipt(self) -> Dict[str, Any]:
        entry = asdict(self)
        entry["at"] = list(self.at)
        if self.cmd is not None:
            entry["char"] = chr(self.cmd) if 0x20 <= self.cmd < 0x7F else None
        return entry


@dataclass
class Snapshot:
    state: WormState
    grid: Grid
    input_index: Optional[int] = None    # BufferPort read position
    output_length: Optional[int] = None  # BufferPort bytes written


class Engine:
    def __init__(
        self,
        program: Program,
        port: Optional[IOPort] = None,
        options: Optional[EngineOptions] = None,
    ):
        self.program = program
        self.options = options or EngineOptions()
        self.port: IOPort = port if port is not None else BufferPort(eof_value=self.options.eof_value)
        self.grid = program.grid.copy()
        self.bounds: Optional[Bounds] = program.bounds if self.options.bounded else None
        self.state = WormState(body=[program.head], direction=Direction.from_name(self.options.direction))
        self.receipt: Dict[str, Any] = {"engine": "worm", "logs": [], "steps": []}

    # ---------- accessors
    @property
    def head(self) -> Coord:
        return self.state.head

    @property
    def body(self) -> List[Coord]:
        return list(self.state.body)

    @property
    def direction(self) -> Direction:
        return self.state.direction

    @property
    def stack(self) -> Stack:
        return self.state.stack

    @property
    def halted(self) -> bool:
        return self.state.halted

    @property
    def halt_reason(self) -> Optional[str]:
        return self.state.halt_reason

    def front(self) -> Coord:
        x, y = self.state.head
        dx, dy = self.state.direction.value
        return x + dx, y + dy

    def at_boundary(self) -> bool:
        return self.bounds is not None and not self.bounds.contains(*self.front())

    def log(self, level: str, event: str, message: str) -> None:
        self.receipt["logs"].append({"level": level, "event": event, "message": message})

    # ---------- snapshots
    def snapshot(self) -> Snapshot:
        snap = Snapshot(state=self.state.copy(), grid=self.grid.copy())
        if isinstance(self.port, BufferPort):
            snap.input_index = self.port.input_index
            snap.output_length = len(self.port.output)
        return snap

    def restore(self, snap: Snapshot) -> None:
        """Rewind worm and grid. A BufferPort also rewinds its input and drops later output."""
        self.state = snap.state.copy()
        self.grid = snap.grid.copy()
        if isinstance(self.port, BufferPort) and snap.input_index is not None:
            self.port.input_index = snap.input_index
            del self.port.output[snap.output_length:]

    # ---------- execution
    def execute(self, cmd: int) -> None:
        """Apply one instruction's effect on stack, direction and I/O."""
        st = self.state
        stack = st.stack

        if is_growth(cmd):
            stack.push(cmd - DIGIT_0)
        elif cmd == ord("+"):
            b = stack.pop()
            a = stack.pop()
            stack.push(a + b)
        elif cmd == ord("-"):
            b = stack.pop()
            a = stack.pop()
            stack.push(b - a)
        elif cmd == ord("~"):
            stack.push(1 if stack.pop() == 0 else 0)
        elif cmd in ARROWS:
            st.direction = ARROWS[cmd]
        elif cmd in MIRRORS:
            if stack.pop() != 0:
                st.direction = MIRRORS[cmd][st.direction]
        elif cmd == ord("?"):
            try:
                value = self.port.read_byte()
            except (PortError, OSError) as e:
                raise IOFault(f"input failed: {e}") from e
            stack.push(value)
        elif cmd == ord("="):
            stack.duplicate()
        elif cmd == ord("!"):
            value = stack.pop()
            try:
                self.port.write_byte(value % 256)
            except (PortError, OSError) as e:
                raise IOFault(f"output failed: {e}") from e
        elif cmd == ord('"'):
            value = stack.pop()
            try:
                self.port.write_decimal(value)
            except (PortError, OSError) as e:
                raise IOFault(f"output failed: {e}") from e
        elif cmd == ord("_"):
            stack.push(BLANK)
        else:
            stack.push(cmd)

    def step(self) -> StepEvent:
        st = self.state
        front = self.front()

        if st.halted:
            return self._record(front, None, "halt")
        if self.at_boundary():
            st.halted = True
            st.halt_reason = "boundary"
            self.log("info", "halt", f"worm left the program bounds at {front} after {st.ticks} ticks")
            return self._record(front, None, "halt")

        cmd = self.grid.read(*front)
        if cmd == BLANK:
            st.body.insert(0, front)
            st.body.pop()
            st.ticks += 1
            return self._record(front, cmd, "blank")

        self.execute(cmd)

        tail = st.tail
        st.body.insert(0, front)
        if is_growth(cmd):
            self.grid.clear(*front)
            kind = "grow"
        else:
            st.body.pop()
            self.grid.clear(*front)
            self.grid.write(*tail, cmd)
            kind = "move"
        st.ticks += 1
        return self._record(front, cmd, kind)

    def _record(self, at: Coord, cmd: Optional[int], kind: str) -> StepEvent:
        st = self.state
        event = StepEvent(
            tick=st.ticks,
            at=at,
            cmd=cmd,
            event=kind,
            direction=st.direction.label,
            bodyLength=len(st.body),
            stackDepth=len(st.stack),
        )
        if self.options.trace:
            self.receipt["steps"].append(event.to_receipt())
        return event

    def step_many(self, n: int) -> int:
        """Run up to n ticks, stopping early on halt. Returns ticks executed."""
        done = 0
        for _ in range(max(0, n)):
            if self.state.halted:
                break
            before = self.state.ticks
            self.step()
            done += self.state.ticks - before
        return done

    def run(
        self,
        max_steps: Optional[int] = None,
        cancel: Optional[Callable[[], bool]] = None,
    ) -> WormState:
        budget = self.options.max_steps if max_steps is None else max_steps
        start = self.state.ticks
        self.log("info", "start", f"worm at {self.head} heading {self.direction.label}")
        while not self.state.halted:
            if cancel is not None and cancel():
                fault = RunCancelled(self.state.ticks - start)
                self.log("error", "cancel", str(fault))
                raise fault
            if budget is not None and self.state.ticks - start >= budget and not self.at_boundary():
                fault = StepLimitExceeded(self.state.ticks - start)
                self.log("error", "limit", str(fault))
                raise fault
            try:
                self.step()
            except IOFault as e:
                self.log("error", "io", str(e))
                raise
        return self.state

    def summary(self) -> Dict[str, Any]:
        st = self.state
        return {
            "head": list(st.head),
            "direction": st.direction.label,
            "bodyLength": len(st.body),
            "stack": st.stack.as_list(),
            "ticks": st.ticks,
            "halted": st.halted,
            "haltReason": st.halt_reason,
        }


def run_source(
    source,
    input_data=b"",
    *,
    options: Optional[EngineOptions] = None,
    max_steps: Optional[int] = None,
):
    """Load, run to halt, and return (engine, port). Convenience for tests and scripts."""
    opts = options or EngineOptions()
    port = BufferPort(input_data, eof_value=opts.eof_value)
    engine = Engine(load_program(source), port, opts)
    engine.run(max_steps=max_steps)
    return engine, port
