from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .devices import BufferedInput, BufferedOutput
from .emit import emit
from .interpreter import DEFAULT_TAPE_SIZE, Interpreter
from .ir import Operation
from .optimizer import OptLevel, optimize
from .parser import parse

logger = logging.getLogger(__name__)


@dataclass
class Compiler:
    opt_level: OptLevel = OptLevel.AGGRESSIVE
    tape_size: int = DEFAULT_TAPE_SIZE

    def compile(self, source: str) -> Tuple[Operation, ...]:
        ast = parse(source)
        program = optimize(ast, self.opt_level)
        logger.debug("compiled %d source characters into %d top-level operations", len(source), len(program))
        return program

    def emit(self, source: str, target: str) -> str:
        return emit(self.compile(source), target)

    def execute(
        self,
        program: Sequence[Operation],
        input_data: bytes = b"",
        max_steps: Optional[int] = None,
    ) -> Tuple[bytes, Interpreter]:
        interpreter = Interpreter(tape_size=self.tape_size, max_steps=max_steps)
        output = BufferedOutput()
        interpreter.run(program, BufferedInput(input_data), output)
        return output.getvalue(), interpreter

    def run(self, source: str, input_data: bytes = b"", max_steps: Optional[int] = None) -> bytes:
        output, _ = self.execute(self.compile(source), input_data, max_steps=max_steps)
        return output


__all__ = ["Compiler"]
