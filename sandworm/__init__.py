"""SandWorm: interpreter for the self-rearranging 2D language Worm."""

from .grid import BLANK, Bounds, Grid
from .stack import Stack
from .loader import (
    LoadError, MissingHeadError, AmbiguousHeadError,
    Program, load_program, load_program_file,
)
from .io_port import IOPort, BufferPort, StreamPort, PortError
from .config import EngineOptions, ConfigError, load_config
from .engine import (
    Direction, WormState, StepEvent, Snapshot, Engine, run_source,
    RuntimeFault, StepLimitExceeded, RunCancelled, IOFault,
)

__version__ = "0.1.0"
