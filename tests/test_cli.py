from pathlib import Path
import tempfile
from contextlib import redirect_stderr, redirect_stdout
import io
import unittest

from optbf import Compiler, emit
from optbf.cli import main as cli_main

HELLO_WORLD = (
    "++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]"
    ">>.>---.+++++++..+++.>>.<-.<.+++.------.--------.>>+.>++."
)


class CLITests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write_source(self, content: str, name: str = "program.bf") -> Path:
        path = self.tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    def _run(self, argv):
        out = io.StringIO()
        err = io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            exit_code = cli_main(argv)
        return exit_code, out.getvalue(), err.getvalue()

    def test_cli_runs_program_with_input(self) -> None:
        source_path = self._write_source(",[.,]")
        exit_code, out, _ = self._run([str(source_path), "--input", "hi"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(out, "hi")

    def test_cli_runs_unoptimized(self) -> None:
        source_path = self._write_source(HELLO_WORLD)
        exit_code, out, _ = self._run([str(source_path), "-O", "0", "--input", ""])
        self.assertEqual(exit_code, 0)
        self.assertEqual(out, "Hello World!\n")

    def test_cli_emits_files(self) -> None:
        source_path = self._write_source("++++[->+>++<<]>.")
        stem = self.tmp_path / "out"
        exit_code, out, _ = self._run([str(source_path), "--emit", "c,rust", "-o", str(stem)])
        self.assertEqual(exit_code, 0)
        self.assertEqual(out, "")
        program = Compiler().compile(source_path.read_text(encoding="utf-8"))
        self.assertEqual((self.tmp_path / "out.c").read_text(encoding="utf-8"), emit(program, "c"))
        self.assertEqual((self.tmp_path / "out.rs").read_text(encoding="utf-8"), emit(program, "rust"))
        self.assertFalse((self.tmp_path / "out.ir").exists())

    def test_cli_emits_ir_to_stdout(self) -> None:
        source_path = self._write_source("+[-]")
        exit_code, out, _ = self._run([str(source_path), "--emit", "ir"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(out, "add [0] +1\nzero [0]\n")

    def test_cli_rejects_unknown_target(self) -> None:
        source_path = self._write_source("+")
        err = io.StringIO()
        with redirect_stderr(err):
            with self.assertRaises(SystemExit) as ctx:
                cli_main([str(source_path), "--emit", "java"])
        self.assertEqual(ctx.exception.code, 2)
        self.assertIn("unknown emit target 'java'", err.getvalue())

    def test_cli_reports_unbalanced_brackets(self) -> None:
        source_path = self._write_source("+[")
        exit_code, _, err = self._run([str(source_path)])
        self.assertEqual(exit_code, 1)
        self.assertIn("Parse error: Unmatched '[' at position 1", err)

    def test_cli_reports_tape_underflow(self) -> None:
        source_path = self._write_source("+.<")
        exit_code, out, err = self._run([str(source_path), "--input", ""])
        self.assertEqual(exit_code, 1)
        self.assertEqual(out, "\x01")
        self.assertIn("Runtime error", err)

    def test_cli_reports_step_limit(self) -> None:
        source_path = self._write_source("+[]")
        exit_code, _, err = self._run([str(source_path), "--input", "", "--max-steps", "50"])
        self.assertEqual(exit_code, 1)
        self.assertIn("step count", err)

    def test_cli_missing_file_errors(self) -> None:
        exit_code, _, err = self._run(["does_not_exist.bf"])
        self.assertEqual(exit_code, 1)
        self.assertIn("Source file not found", err)


if __name__ == "__main__":
    unittest.main()
