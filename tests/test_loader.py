from textwrap import dedent

import pytest

from sandworm.engine import run_source
from sandworm.grid import BLANK, Bounds, Grid
from sandworm.loader import (
    AmbiguousHeadError, LoadError, MissingHeadError,
    load_program, load_program_file, split_rows,
)


@pytest.mark.parametrize("source", ["", "abc", "12+\n  v\n", b"no head here"])
def test_missing_head_is_a_load_error(source):
    with pytest.raises(MissingHeadError) as ex:
        load_program(source)
    assert isinstance(ex.value, LoadError)


def test_two_heads_is_ambiguous():
    with pytest.raises(AmbiguousHeadError) as ex:
        load_program("@ab\n  @")
    assert isinstance(ex.value, LoadError)
    assert ex.value.positions == [(0, 0), (2, 1)]


def test_head_position_is_column_and_row():
    prog = load_program(dedent("""\
        ab
         c@
        """))
    assert prog.head == (2, 1)
    assert prog.grid.read(0, 0) == ord("a")
    assert prog.grid.read(1, 0) == ord("b")
    assert prog.grid.read(1, 1) == ord("c")
    # the head cell itself is left blank
    assert prog.grid.read(2, 1) == BLANK
    assert prog.bounds == Bounds(0, 0, 3, 2)


def test_spaces_are_not_stored_and_crlf_is_accepted():
    prog = load_program(b"a @\r\n  b")
    assert prog.head == (2, 0)
    assert (1, 0) not in prog.grid
    assert prog.grid.read(2, 1) == ord("b")
    assert len(prog.grid) == 2


def test_hash_is_sha256_of_source():
    prog = load_program("@")
    assert prog.hash == "sha256:c3641f8544d7c02f3580b07c0f9887f0c6a27ff5ab1d4a3e29caf197cfc299ae"


def test_load_program_file_records_name_and_path(tmp_path):
    p = tmp_path / "tiny.worm"
    p.write_bytes(b"@ab\n")
    prog = load_program_file(p)
    assert prog.name == "tiny.worm"
    assert prog.path == str(p)
    assert prog.source == b"@ab\n"


def test_lone_carriage_return_is_a_cell_not_a_line_break():
    prog = load_program(b"@a\rb")
    assert prog.bounds == Bounds(0, 0, 4, 1)
    assert prog.grid.read(2, 0) == 0x0D
    assert prog.grid.read(3, 0) == ord("b")
    assert run_source(b"@a\rb")[0].stack.as_list() == [97, 13, 98]


@pytest.mark.parametrize("data, rows", [
    (b"", []),
    (b"@\n", [b"@"]),
    (b"@\r\n\r\n", [b"@", b""]),
    (b"@\n\n", [b"@", b""]),
    (b"@a\r", [b"@a\r"]),
    (b"a\rb\r\nc", [b"a\rb", b"c"]),
])
def test_split_rows_breaks_only_on_newline(data, rows):
    assert split_rows(data) == rows


def test_trailing_carriage_return_without_newline_is_kept():
    prog = load_program(b"@a\r")
    assert prog.bounds.width == 3
    assert prog.grid.read(2, 0) == 0x0D


def test_loaded_grid_matches_rows_without_the_head():
    prog = load_program(b"a@\r\n b")
    assert prog.grid == Grid.from_rows([b"a", b" b"])
