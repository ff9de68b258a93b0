from __future__ import annotations

from typing import Dict, List, Sequence

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

# Fixed tape size declared by emitted C and Rust programs.
EMIT_TAPE_SIZE = 65536


class UnsupportedTarget(ValueError):
    pass


def _index(base: str, offset: int) -> str:
    if offset > 0:
        return f"{base} + {offset}"
    if offset < 0:
        return f"{base} - {-offset}"
    return base


def _signed(value: int) -> str:
    return f"+{value}" if value >= 0 else str(value)


class EmitTemplate:
    """Per-target text for each IR node; the walk itself lives in ``emit``."""

    name = ""
    extension = ""
    indent = "    "
    base_depth = 0

    def prologue(self) -> List[str]:
        return []

    def epilogue(self) -> List[str]:
        return []

    def add_const(self, offset: int, delta: int) -> str:
        raise NotImplementedError

    def move_pointer(self, delta: int) -> str:
        raise NotImplementedError

    def set_zero(self, offset: int) -> str:
        raise NotImplementedError

    def multiply_add(self, src_offset: int, dst_offset: int, factor: int) -> str:
        raise NotImplementedError

    def scan_until_zero(self, step: int) -> str:
        raise NotImplementedError

    def output(self, offset: int) -> str:
        raise NotImplementedError

    def input(self, offset: int) -> str:
        raise NotImplementedError

    def loop_open(self) -> str:
        raise NotImplementedError

    def loop_close(self) -> str:
        return "}"


class CTemplate(EmitTemplate):
    name = "c"
    extension = ".c"
    base_depth = 1

    def prologue(self) -> List[str]:
        return [
            "#include <stdint.h>",
            "#include <stdio.h>",
            "",
            f"static uint8_t mem[{EMIT_TAPE_SIZE}];",
            "",
            "int main(void) {",
            "    size_t p = 0;",
            "",
        ]

    def epilogue(self) -> List[str]:
        return ["", "    return 0;", "}"]

    def _cell(self, offset: int) -> str:
        return f"mem[{_index('p', offset)}]"

    def add_const(self, offset: int, delta: int) -> str:
        if delta < 0:
            return f"{self._cell(offset)} -= {-delta};"
        return f"{self._cell(offset)} += {delta};"

    def move_pointer(self, delta: int) -> str:
        if delta < 0:
            return f"p -= {-delta};"
        return f"p += {delta};"

    def set_zero(self, offset: int) -> str:
        return f"{self._cell(offset)} = 0;"

    def multiply_add(self, src_offset: int, dst_offset: int, factor: int) -> str:
        dst = self._cell(dst_offset)
        src = self._cell(src_offset)
        operator = "-=" if factor < 0 else "+="
        magnitude = abs(factor)
        if magnitude == 1:
            return f"{dst} {operator} {src};"
        return f"{dst} {operator} {src} * {magnitude};"

    def scan_until_zero(self, step: int) -> str:
        return f"while ({self._cell(0)}) {{ {self.move_pointer(step)} }}"

    def output(self, offset: int) -> str:
        return f"putchar({self._cell(offset)});"

    def input(self, offset: int) -> str:
        cell = self._cell(offset)
        return f"{{ int c = getchar(); {cell} = c == EOF ? 0 : (uint8_t)c; }}"

    def loop_open(self) -> str:
        return f"while ({self._cell(0)}) {{"


class RustTemplate(EmitTemplate):
    name = "rust"
    extension = ".rs"
    base_depth = 1

    def prologue(self) -> List[str]:
        return [
            "#![allow(unused_mut, unused_variables)]",
            "",
            "use std::io::{self, Read, Write};",
            "",
            "fn main() {",
            f"    let mut mem = vec![0u8; {EMIT_TAPE_SIZE}];",
            "    let mut p: usize = 0;",
            "    let stdin = io::stdin();",
            "    let mut input = stdin.lock().bytes();",
            "    let stdout = io::stdout();",
            "    let mut out = io::BufWriter::new(stdout.lock());",
            "",
        ]

    def epilogue(self) -> List[str]:
        return ["", "    out.flush().unwrap();", "}"]

    def _cell(self, offset: int) -> str:
        return f"mem[{_index('p', offset)}]"

    def add_const(self, offset: int, delta: int) -> str:
        cell = self._cell(offset)
        if delta < 0:
            return f"{cell} = {cell}.wrapping_sub({-delta});"
        return f"{cell} = {cell}.wrapping_add({delta});"

    def move_pointer(self, delta: int) -> str:
        if delta < 0:
            return f"p -= {-delta};"
        return f"p += {delta};"

    def set_zero(self, offset: int) -> str:
        return f"{self._cell(offset)} = 0;"

    def multiply_add(self, src_offset: int, dst_offset: int, factor: int) -> str:
        dst = self._cell(dst_offset)
        src = self._cell(src_offset)
        method = "wrapping_sub" if factor < 0 else "wrapping_add"
        magnitude = abs(factor)
        if magnitude == 1:
            return f"{dst} = {dst}.{method}({src});"
        return f"{dst} = {dst}.{method}({src}.wrapping_mul({magnitude}));"

    def scan_until_zero(self, step: int) -> str:
        return f"while {self._cell(0)} != 0 {{ {self.move_pointer(step)} }}"

    def output(self, offset: int) -> str:
        return f"out.write_all(&[{self._cell(offset)}]).unwrap();"

    def input(self, offset: int) -> str:
        cell = self._cell(offset)
        return f"out.flush().unwrap(); {cell} = input.next().and_then(|b| b.ok()).unwrap_or(0);"

    def loop_open(self) -> str:
        return f"while {self._cell(0)} != 0 {{"


class IrTemplate(EmitTemplate):
    name = "ir"
    extension = ".ir"
    indent = "  "

    def add_const(self, offset: int, delta: int) -> str:
        return f"add [{offset}] {_signed(delta)}"

    def move_pointer(self, delta: int) -> str:
        return f"move {_signed(delta)}"

    def set_zero(self, offset: int) -> str:
        return f"zero [{offset}]"

    def multiply_add(self, src_offset: int, dst_offset: int, factor: int) -> str:
        return f"muladd [{dst_offset}] += [{src_offset}] * {factor}"

    def scan_until_zero(self, step: int) -> str:
        return f"scan {_signed(step)}"

    def output(self, offset: int) -> str:
        return f"out [{offset}]"

    def input(self, offset: int) -> str:
        return f"in [{offset}]"

    def loop_open(self) -> str:
        return "loop {"


TEMPLATES: Dict[str, EmitTemplate] = {
    template.name: template for template in (CTemplate(), RustTemplate(), IrTemplate())
}


def get_template(target: str) -> EmitTemplate:
    try:
        return TEMPLATES[target.lower()]
    except KeyError as exc:
        raise UnsupportedTarget(
            "Unknown emit target '{}' (expected one of: {})".format(target, ", ".join(sorted(TEMPLATES)))
        ) from exc


def emit(program: Sequence[Operation], target: str) -> str:
    template = get_template(target)
    lines = template.prologue()
    _emit_block(program, template, template.base_depth, lines)
    lines.extend(template.epilogue())
    return "\n".join(lines) + "\n"


def _emit_block(ops: Sequence[Operation], template: EmitTemplate, depth: int, lines: List[str]) -> None:
    pad = template.indent * depth
    for op in ops:
        if isinstance(op, Loop):
            lines.append(pad + template.loop_open())
            _emit_block(op.body, template, depth + 1, lines)
            lines.append(pad + template.loop_close())
        elif not isinstance(op, NoOp):
            lines.append(pad + _render(op, template))


def _render(op: Operation, template: EmitTemplate) -> str:
    if isinstance(op, AddConst):
        return template.add_const(op.offset, op.delta)
    if isinstance(op, MovePointer):
        return template.move_pointer(op.delta)
    if isinstance(op, SetZero):
        return template.set_zero(op.offset)
    if isinstance(op, MultiplyAdd):
        return template.multiply_add(op.src_offset, op.dst_offset, op.factor)
    if isinstance(op, ScanUntilZero):
        return template.scan_until_zero(op.step)
    if isinstance(op, Output):
        return template.output(op.offset)
    if isinstance(op, Input):
        return template.input(op.offset)
    raise TypeError(f"Unknown operation {op!r}")


__all__ = [
    "CTemplate",
    "EMIT_TAPE_SIZE",
    "EmitTemplate",
    "IrTemplate",
    "RustTemplate",
    "TEMPLATES",
    "UnsupportedTarget",
    "emit",
    "get_template",
]
