from __future__ import annotations

from typing import BinaryIO, Optional, Protocol


class InputDevice(Protocol):
    def read_byte(self) -> Optional[int]:
        ...


class OutputDevice(Protocol):
    def write_byte(self, value: int) -> None:
        ...


class BufferedInput:
    """Serves bytes from memory; returns None once exhausted."""

    def __init__(self, data: bytes = b"") -> None:
        self._data = bytes(data)
        self._position = 0

    def read_byte(self) -> Optional[int]:
        if self._position >= len(self._data):
            return None
        value = self._data[self._position]
        self._position += 1
        return value


class BufferedOutput:
    def __init__(self) -> None:
        self.buffer = bytearray()

    def write_byte(self, value: int) -> None:
        self.buffer.append(value)

    def getvalue(self) -> bytes:
        return bytes(self.buffer)


class StreamInput:
    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream

    def read_byte(self) -> Optional[int]:
        chunk = self.stream.read(1)
        if not chunk:
            return None
        return chunk[0]


class StreamOutput:
    def __init__(self, stream: BinaryIO, line_buffered: bool = True) -> None:
        self.stream = stream
        self.line_buffered = line_buffered

    def write_byte(self, value: int) -> None:
        self.stream.write(bytes((value,)))
        if self.line_buffered and value == 10:
            self.stream.flush()

    def flush(self) -> None:
        self.stream.flush()


__all__ = [
    "BufferedInput",
    "BufferedOutput",
    "InputDevice",
    "OutputDevice",
    "StreamInput",
    "StreamOutput",
]
