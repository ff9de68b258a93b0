from .compiler import Compiler
from .devices import BufferedInput, BufferedOutput, StreamInput, StreamOutput
from .emit import UnsupportedTarget, emit
from .interpreter import DEFAULT_TAPE_SIZE, Interpreter, StepLimitExceeded, TapeUnderflow
from .optimizer import OptLevel, optimize
from .parser import ParseError, UnbalancedBrackets, parse

__version__ = "0.1.0"

__all__ = [
    "BufferedInput",
    "BufferedOutput",
    "Compiler",
    "DEFAULT_TAPE_SIZE",
    "Interpreter",
    "OptLevel",
    "ParseError",
    "StepLimitExceeded",
    "StreamInput",
    "StreamOutput",
    "TapeUnderflow",
    "UnbalancedBrackets",
    "UnsupportedTarget",
    "emit",
    "optimize",
    "parse",
]
