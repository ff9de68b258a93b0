from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .devices import InputDevice, OutputDevice
from .ir import (
    AddConst,
    Input,
    Loop,
    MovePointer,
    MultiplyAdd,
    NoOp,
    Operation,
    Output,
    ScanUntilZero,
    SetZero,
)

logger = logging.getLogger(__name__)

# Initial number of cells; the tape grows on demand past this.
DEFAULT_TAPE_SIZE = 30000


class TapeUnderflow(RuntimeError):
    """Raised when the pointer (or an offset from it) lands left of cell 0."""

    def __init__(self, index: int) -> None:
        self.index = index
        super().__init__("Pointer moved before start of tape (index {})".format(index))


class StepLimitExceeded(RuntimeError):
    """Raised when execution exceeds the configured step budget."""


@dataclass
class Interpreter:
    tape_size: int = DEFAULT_TAPE_SIZE
    max_steps: Optional[int] = None

    tape: bytearray = field(init=False, repr=False)
    pointer: int = field(init=False, repr=False)
    steps: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.tape = bytearray(max(1, self.tape_size))
        self.pointer = 0
        self.steps = 0

    def run(
        self,
        program: Sequence[Operation],
        input_device: InputDevice,
        output_device: OutputDevice,
    ) -> None:
        self.reset()
        self._execute(program, input_device, output_device)
        logger.debug("run finished after %d steps, pointer=%d", self.steps, self.pointer)

    def cells(self) -> bytes:
        """Tape contents up to the last nonzero cell."""
        return bytes(self.tape).rstrip(b"\x00")

    def _execute(
        self,
        ops: Sequence[Operation],
        input_device: InputDevice,
        output_device: OutputDevice,
    ) -> None:
        tape = self.tape
        for op in ops:
            self._tick()
            if isinstance(op, AddConst):
                index = self._index(op.offset)
                tape[index] = (tape[index] + op.delta) % 256
            elif isinstance(op, MovePointer):
                self.pointer += op.delta
                if self.pointer < 0:
                    raise TapeUnderflow(self.pointer)
            elif isinstance(op, SetZero):
                tape[self._index(op.offset)] = 0
            elif isinstance(op, MultiplyAdd):
                value = tape[self._index(op.src_offset)]
                # a zero source stands for a loop that never ran
                if value:
                    index = self._index(op.dst_offset)
                    tape[index] = (tape[index] + value * op.factor) % 256
            elif isinstance(op, ScanUntilZero):
                step = op.step
                while tape[self._index(0)]:
                    self.pointer += step
            elif isinstance(op, Output):
                output_device.write_byte(tape[self._index(op.offset)])
            elif isinstance(op, Input):
                value = input_device.read_byte()
                tape[self._index(op.offset)] = 0 if value is None else value
            elif isinstance(op, Loop):
                while tape[self._index(0)]:
                    self._execute(op.body, input_device, output_device)
                    self._tick()
            elif isinstance(op, NoOp):
                continue
            else:
                raise TypeError(f"Unknown operation {op!r}")

    def _index(self, offset: int) -> int:
        index = self.pointer + offset
        if index < 0:
            raise TapeUnderflow(index)
        if index >= len(self.tape):
            self._grow(index)
        return index

    def _grow(self, index: int) -> None:
        new_size = max(index + 1, len(self.tape) * 2)
        self.tape.extend(bytes(new_size - len(self.tape)))

    def _tick(self) -> None:
        self.steps += 1
        if self.max_steps is not None and self.steps > self.max_steps:
            raise StepLimitExceeded("Program exceeded allowed step count")


__all__ = [
    "DEFAULT_TAPE_SIZE",
    "Interpreter",
    "StepLimitExceeded",
    "TapeUnderflow",
]
