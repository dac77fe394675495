# tests/conftest.py
# Ensure the project root (the folder that contains 'sandworm' and 'tests') is on sys.path
# so that `from sandworm...` imports work without an install.

import sys
import pathlib

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)

if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

from sandworm.config import EngineOptions  # noqa: E402
from sandworm.engine import Engine  # noqa: E402
from sandworm.io_port import BufferPort  # noqa: E402
from sandworm.loader import load_program  # noqa: E402

PROGRAMS = ROOT / "Programs"


@pytest.fixture
def make_engine():
    """make_engine(source, input=b"", **options) -> (engine, port)"""
    def _make(source, input_data=b"", **options):
        opts = EngineOptions(**options)
        port = BufferPort(input_data, eof_value=opts.eof_value)
        return Engine(load_program(source), port, opts), port
    return _make


@pytest.fixture
def programs_dir() -> pathlib.Path:
    return PROGRAMS
