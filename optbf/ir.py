from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple, Union


def wrap_delta(value: int) -> int:
    """Normalize an integer to the signed 8-bit range [-128, 127] modulo 256."""
    return ((value + 128) % 256) - 128


# === IR Nodes ===


@dataclass(frozen=True)
class AddConst:
    offset: int
    delta: int


@dataclass(frozen=True)
class MovePointer:
    delta: int


@dataclass(frozen=True)
class SetZero:
    offset: int = 0


@dataclass(frozen=True)
class MultiplyAdd:
    src_offset: int
    dst_offset: int
    factor: int


@dataclass(frozen=True)
class ScanUntilZero:
    step: int


@dataclass(frozen=True)
class Output:
    offset: int = 0


@dataclass(frozen=True)
class Input:
    offset: int = 0


@dataclass(frozen=True)
class Loop:
    body: Tuple["Operation", ...] = ()


@dataclass(frozen=True)
class NoOp:
    pass


Operation = Union[
    AddConst,
    MovePointer,
    SetZero,
    MultiplyAdd,
    ScanUntilZero,
    Output,
    Input,
    Loop,
    NoOp,
]


def count_operations(ops: Iterable[Operation]) -> int:
    total = 0
    for op in ops:
        total += 1
        if isinstance(op, Loop):
            total += count_operations(op.body)
    return total


__all__ = [
    "AddConst",
    "Input",
    "Loop",
    "MovePointer",
    "MultiplyAdd",
    "NoOp",
    "Operation",
    "Output",
    "ScanUntilZero",
    "SetZero",
    "count_operations",
    "wrap_delta",
]
