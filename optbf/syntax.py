from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union


# === AST Nodes ===


@dataclass(frozen=True)
class IncPtr:
    pass


@dataclass(frozen=True)
class DecPtr:
    pass


@dataclass(frozen=True)
class IncCell:
    pass


@dataclass(frozen=True)
class DecCell:
    pass


@dataclass(frozen=True)
class Output:
    pass


@dataclass(frozen=True)
class Input:
    pass


@dataclass(frozen=True)
class Loop:
    body: Tuple["RawInstruction", ...] = ()


RawInstruction = Union[IncPtr, DecPtr, IncCell, DecCell, Output, Input, Loop]

COMMANDS = {
    ">": IncPtr(),
    "<": DecPtr(),
    "+": IncCell(),
    "-": DecCell(),
    ".": Output(),
    ",": Input(),
}


__all__ = [
    "COMMANDS",
    "DecCell",
    "DecPtr",
    "IncCell",
    "IncPtr",
    "Input",
    "Loop",
    "Output",
    "RawInstruction",
]
