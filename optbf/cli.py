from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .compiler import Compiler
from .devices import BufferedInput, BufferedOutput, StreamInput, StreamOutput
from .emit import TEMPLATES, emit, get_template
from .interpreter import Interpreter, StepLimitExceeded, TapeUnderflow
from .optimizer import OptLevel
from .parser import ParseError

logger = logging.getLogger(__name__)


def _read_source(path: str) -> str:
    source_path = Path(path)
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")
    return source_path.read_text(encoding="utf-8", errors="replace")


def _write_output(path: str, data: str) -> None:
    output_path = Path(path)
    output_path.write_text(data, encoding="utf-8")


def _write_bytes(data: bytes) -> None:
    stream = getattr(sys.stdout, "buffer", None)
    if stream is None:
        sys.stdout.write(data.decode("latin-1"))
        return
    sys.stdout.flush()
    stream.write(data)
    stream.flush()


def _parse_targets(value: str) -> List[str]:
    targets = [target.strip().lower() for target in value.split(",") if target.strip()]
    if not targets:
        raise argparse.ArgumentTypeError("at least one emit target is required")
    for target in targets:
        if target not in TEMPLATES:
            raise argparse.ArgumentTypeError(
                "unknown emit target '{}' (choose from {})".format(target, ", ".join(sorted(TEMPLATES)))
            )
    return targets


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="optbf", description="Optimizing Brainfuck interpreter and compiler")
    parser.add_argument("source", help="Path to Brainfuck source file")
    parser.add_argument(
        "--emit",
        type=_parse_targets,
        help="Comma separated list of outputs to emit instead of running: ir, c, rust",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Output path stem for emitted files; the target extension is appended (default: print to stdout)",
    )
    parser.add_argument(
        "-O",
        "--opt-level",
        type=int,
        choices=[level.value for level in OptLevel],
        default=OptLevel.AGGRESSIVE.value,
        help="Optimization level 0-3 (default: 3)",
    )
    parser.add_argument(
        "--input",
        help="Input string supplied to the program (default: read from stdin)",
    )
    parser.add_argument("--max-steps", type=int, help="Abort execution after this many steps")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging on stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        source_text = _read_source(args.source)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    compiler = Compiler(opt_level=OptLevel(args.opt_level))
    try:
        program = compiler.compile(source_text)
    except ParseError as exc:
        print(f"Parse error: {exc}", file=sys.stderr)
        return 1

    if args.emit:
        for target in args.emit:
            code = emit(program, target)
            if args.output:
                path = args.output + get_template(target).extension
                _write_output(path, code)
                logger.info("wrote %s", path)
            else:
                sys.stdout.write(code)
        return 0

    interpreter = Interpreter(max_steps=args.max_steps)
    try:
        if args.input is None:
            output_device = StreamOutput(sys.stdout.buffer)
            try:
                interpreter.run(program, StreamInput(sys.stdin.buffer), output_device)
            finally:
                output_device.flush()
        else:
            buffered = BufferedOutput()
            try:
                interpreter.run(program, BufferedInput(args.input.encode("utf-8")), buffered)
            finally:
                _write_bytes(buffered.getvalue())
    except (TapeUnderflow, StepLimitExceeded) as exc:
        print(f"Runtime error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
