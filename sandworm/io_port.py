# sandworm/io_port.py
# Byte I/O collaborators consumed by the engine.
# Contract: read_byte() -> int (eof value at end of input), write_byte(int), write_decimal(int).

from __future__ import annotations
from typing import BinaryIO, Optional, Protocol, Union


class PortError(Exception):
    """Raised by a port when the underlying stream fails."""


class IOPort(Protocol):
    def read_byte(self) -> int: ...
    def write_byte(self, value: int) -> None: ...
    def write_decimal(self, value: int) -> None: ...


class BufferPort:
    """In-memory port. Input can be appended while a run is in progress."""

    def __init__(self, data: Union[str, bytes] = b"", *, eof_value: int = 0):
        self.input = bytearray()
        self.input_index = 0
        self.output = bytearray()
        self.eof_value = eof_value
        self.feed(data)

    def feed(self, data: Union[str, bytes]) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.input.extend(data)

    def read_byte(self) -> int:
        if self.input_index >= len(self.input):
            return self.eof_value
        value = self.input[self.input_index]
        self.input_index += 1
        return value

    def write_byte(self, value: int) -> None:
        self.output.append(value & 0xFF)

    def write_decimal(self, value: int) -> None:
        self.output.extend(str(value).encode("ascii"))

    @property
    def pending(self) -> bytes:
        return bytes(self.input[self.input_index:])

    def output_text(self) -> str:
        return self.output.decode("utf-8", errors="replace")


class StreamPort:
    """Port over binary streams (e.g. sys.stdin.buffer / sys.stdout.buffer)."""

    def __init__(self, reader: Optional[BinaryIO], writer: BinaryIO, *, eof_value: int = 0):
        self.reader = reader
        self.writer = writer
        self.eof_value = eof_value
        self.written = bytearray()

    def read_byte(self) -> int:
        if self.reader is None:
            return self.eof_value
        try:
            data = self.reader.read(1)
        except OSError as e:
            raise PortError(f"read failed: {e}") from e
        if not data:
            return self.eof_value
        return data[0]

    def _write(self, data: bytes) -> None:
        try:
            self.writer.write(data)
            self.writer.flush()
        except OSError as e:
            raise PortError(f"write failed: {e}") from e
        self.written.extend(data)

    def write_byte(self, value: int) -> None:
        self._write(bytes([value & 0xFF]))

    def write_decimal(self, value: int) -> None:
        self._write(str(value).encode("ascii"))
