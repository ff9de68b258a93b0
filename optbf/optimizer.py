from __future__ import annotations

import logging
from enum import IntEnum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from . import syntax
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
    count_operations,
    wrap_delta,
)

logger = logging.getLogger(__name__)


class OptLevel(IntEnum):
    NONE = 0
    LESS = 1
    DEFAULT = 2
    AGGRESSIVE = 3


Node = Union[syntax.RawInstruction, Operation]

_IR_TYPES = (AddConst, MovePointer, SetZero, MultiplyAdd, ScanUntilZero, Output, Input, NoOp)


def lower(program: Iterable[Node]) -> List[Operation]:
    """Translate raw instructions one-to-one into IR nodes.

    IR nodes are passed through, so an already optimized program can be fed
    back into the pipeline.
    """
    lowered: List[Operation] = []
    for node in program:
        if isinstance(node, syntax.IncPtr):
            lowered.append(MovePointer(1))
        elif isinstance(node, syntax.DecPtr):
            lowered.append(MovePointer(-1))
        elif isinstance(node, syntax.IncCell):
            lowered.append(AddConst(0, 1))
        elif isinstance(node, syntax.DecCell):
            lowered.append(AddConst(0, -1))
        elif isinstance(node, syntax.Output):
            lowered.append(Output(0))
        elif isinstance(node, syntax.Input):
            lowered.append(Input(0))
        elif isinstance(node, (syntax.Loop, Loop)):
            lowered.append(Loop(tuple(lower(node.body))))
        elif isinstance(node, _IR_TYPES):
            lowered.append(node)
        else:
            raise TypeError(f"Cannot lower node of type {type(node).__name__}")
    return lowered


# --- Pass 1: contraction ---


def _merge(prev: Operation, op: Operation) -> Optional[Operation]:
    if isinstance(prev, MovePointer) and isinstance(op, MovePointer):
        delta = prev.delta + op.delta
        return MovePointer(delta) if delta else NoOp()
    if isinstance(prev, AddConst) and isinstance(op, AddConst) and prev.offset == op.offset:
        delta = wrap_delta(prev.delta + op.delta)
        return AddConst(prev.offset, delta) if delta else NoOp()
    return None


def contract(ops: Iterable[Operation]) -> List[Operation]:
    contracted: List[Operation] = []
    for op in ops:
        if isinstance(op, AddConst):
            if wrap_delta(op.delta) == 0:
                continue
            op = AddConst(op.offset, wrap_delta(op.delta))
        elif isinstance(op, MovePointer) and op.delta == 0:
            continue
        if contracted:
            merged = _merge(contracted[-1], op)
            if merged is not None:
                contracted.pop()
                # a cancelled pair exposes the previous node to the next op
                if not isinstance(merged, NoOp):
                    contracted.append(merged)
                continue
        contracted.append(op)
    return contracted


# --- Pass 2: dead/comment-loop elimination ---


def _leaves_current_zero(op: Operation) -> bool:
    if isinstance(op, SetZero):
        return op.offset == 0
    return isinstance(op, (Loop, ScanUntilZero))


def _writes_current(op: Operation) -> bool:
    if isinstance(op, MovePointer):
        return True
    if isinstance(op, (AddConst, SetZero, Input)):
        return op.offset == 0
    if isinstance(op, MultiplyAdd):
        return op.dst_offset == 0
    return False


def eliminate_dead_loops(ops: Sequence[Operation], at_entry: bool = False) -> List[Operation]:
    """Replace loops that can never be entered with NoOp.

    A loop is dead when the current cell is known to be zero: at program entry
    before anything has been written, or right after a loop, clear or scan
    with no write to the current cell in between.
    """
    result: List[Operation] = []
    known_zero = at_entry
    for op in ops:
        if isinstance(op, Loop) and known_zero:
            result.append(NoOp())
            continue
        if _leaves_current_zero(op):
            known_zero = True
        elif _writes_current(op):
            known_zero = False
        result.append(op)
    return result


# --- Pass 3: clear loops ---


def _is_clear_body(body: Sequence[Operation]) -> bool:
    if len(body) != 1:
        return False
    op = body[0]
    return isinstance(op, AddConst) and op.offset == 0 and op.delta in (1, -1)


def reduce_clear_loops(ops: Sequence[Operation]) -> List[Operation]:
    return [SetZero(0) if isinstance(op, Loop) and _is_clear_body(op.body) else op for op in ops]


# --- Pass 4: scan loops ---


def _scan_step(body: Sequence[Operation]) -> Optional[int]:
    if len(body) == 1 and isinstance(body[0], MovePointer) and body[0].delta != 0:
        return body[0].delta
    return None


def reduce_scan_loops(ops: Sequence[Operation]) -> List[Operation]:
    result: List[Operation] = []
    for op in ops:
        step = _scan_step(op.body) if isinstance(op, Loop) else None
        result.append(ScanUntilZero(step) if step is not None else op)
    return result


# --- Pass 5: multiply/copy loops ---


def _multiply_terms(body: Sequence[Operation]) -> Optional[List[Tuple[int, int]]]:
    offset = 0
    deltas: Dict[int, int] = {}
    for op in body:
        if isinstance(op, MovePointer):
            offset += op.delta
        elif isinstance(op, AddConst):
            target = offset + op.offset
            deltas[target] = deltas.get(target, 0) + op.delta
        else:
            return None
    if offset != 0:
        return None
    counter = wrap_delta(deltas.pop(0, 0))
    if counter not in (1, -1):
        return None
    terms: List[Tuple[int, int]] = []
    for target, delta in deltas.items():
        # an incrementing counter runs 256 - v times, which negates the factor
        factor = wrap_delta(delta if counter == -1 else -delta)
        if factor:
            terms.append((target, factor))
    return terms


def reduce_multiply_loops(ops: Sequence[Operation]) -> List[Operation]:
    result: List[Operation] = []
    for op in ops:
        terms = _multiply_terms(op.body) if isinstance(op, Loop) else None
        if terms is None:
            result.append(op)
            continue
        result.extend(MultiplyAdd(0, target, factor) for target, factor in terms)
        result.append(SetZero(0))
    return result


# --- Pass 6: compaction ---


def compact(ops: Iterable[Operation]) -> List[Operation]:
    return contract(op for op in ops if not isinstance(op, NoOp))


def _optimize_block(ops: Sequence[Operation], level: OptLevel, at_entry: bool) -> List[Operation]:
    block = list(ops)
    if level >= OptLevel.LESS:
        block = contract(block)
        block = eliminate_dead_loops(block, at_entry=at_entry)
    # bodies are finished before their loop is classified
    block = [
        Loop(tuple(_optimize_block(op.body, level, at_entry=False))) if isinstance(op, Loop) else op
        for op in block
    ]
    if level >= OptLevel.DEFAULT:
        block = reduce_clear_loops(block)
        block = reduce_scan_loops(block)
    if level >= OptLevel.AGGRESSIVE:
        block = reduce_multiply_loops(block)
    if level >= OptLevel.LESS:
        block = compact(block)
    return block


def optimize(program: Iterable[Node], level: OptLevel = OptLevel.AGGRESSIVE) -> Tuple[Operation, ...]:
    level = OptLevel(level)
    lowered = lower(program)
    optimized = tuple(_optimize_block(lowered, level, at_entry=True))
    logger.debug(
        "optimized %d operations into %d at level %s",
        count_operations(lowered),
        count_operations(optimized),
        level.name,
    )
    return optimized


__all__ = [
    "OptLevel",
    "compact",
    "contract",
    "eliminate_dead_loops",
    "lower",
    "optimize",
    "reduce_clear_loops",
    "reduce_multiply_loops",
    "reduce_scan_loops",
]
