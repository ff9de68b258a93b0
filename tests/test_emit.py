import unittest

from optbf import Compiler, UnsupportedTarget, emit, optimize, parse
from optbf.emit import TEMPLATES, get_template
from optbf.ir import Input, NoOp, Output


def compile_source(source):
    return optimize(parse(source))


class IrEmitterTests(unittest.TestCase):
    def test_multiply_loop_dump(self) -> None:
        self.assertEqual(
            emit(compile_source("++++[->+>++<<]"), "ir"),
            "add [0] +4\nmuladd [1] += [0] * 1\nmuladd [2] += [0] * 2\nzero [0]\n",
        )

    def test_loop_body_is_indented(self) -> None:
        self.assertEqual(
            emit(compile_source("+[.>]"), "ir"),
            "add [0] +1\nloop {\n  out [0]\n  move +1\n}\n",
        )

    def test_noop_is_not_emitted(self) -> None:
        self.assertEqual(emit([NoOp(), Output(0)], "ir"), "out [0]\n")


class CEmitterTests(unittest.TestCase):
    def test_prologue_and_epilogue(self) -> None:
        code = emit(compile_source("+."), "c")
        self.assertTrue(code.startswith("#include <stdint.h>\n#include <stdio.h>\n"))
        self.assertIn("static uint8_t mem[65536];", code)
        self.assertIn("int main(void) {", code)
        self.assertTrue(code.endswith("    return 0;\n}\n"))

    def test_operation_statements(self) -> None:
        code = emit(compile_source("++++[->+>++<<]>>[-<-->]"), "c")
        self.assertIn("    mem[p] += 4;\n", code)
        self.assertIn("    mem[p + 1] += mem[p];\n", code)
        self.assertIn("    mem[p + 2] += mem[p] * 2;\n", code)
        self.assertIn("    mem[p] = 0;\n", code)
        self.assertIn("    p += 2;\n", code)
        self.assertIn("    mem[p - 1] -= mem[p] * 2;\n", code)

    def test_loop_and_scan(self) -> None:
        code = emit(compile_source("+[.>]+[<]"), "c")
        self.assertIn("    while (mem[p]) {\n        putchar(mem[p]);\n        p += 1;\n    }\n", code)
        self.assertIn("    while (mem[p]) { p -= 1; }\n", code)

    def test_input_reads_zero_at_eof(self) -> None:
        code = emit([Input(0)], "c")
        self.assertIn("{ int c = getchar(); mem[p] = c == EOF ? 0 : (uint8_t)c; }", code)


class RustEmitterTests(unittest.TestCase):
    def test_prologue_declares_tape(self) -> None:
        code = emit(compile_source("+"), "rust")
        self.assertIn("fn main() {", code)
        self.assertIn("let mut mem = vec![0u8; 65536];", code)
        self.assertIn("let mut p: usize = 0;", code)
        self.assertTrue(code.endswith("    out.flush().unwrap();\n}\n"))

    def test_operation_statements(self) -> None:
        code = emit(compile_source("++++[->+>++<<]-.[>]"), "rust")
        self.assertIn("mem[p] = mem[p].wrapping_add(4);", code)
        self.assertIn("mem[p + 1] = mem[p + 1].wrapping_add(mem[p]);", code)
        self.assertIn("mem[p + 2] = mem[p + 2].wrapping_add(mem[p].wrapping_mul(2));", code)
        self.assertIn("mem[p] = mem[p].wrapping_sub(1);", code)
        self.assertIn("out.write_all(&[mem[p]]).unwrap();", code)
        self.assertIn("while mem[p] != 0 { p += 1; }", code)

    def test_input_statement(self) -> None:
        code = emit([Input(0)], "rust")
        self.assertIn("mem[p] = input.next().and_then(|b| b.ok()).unwrap_or(0);", code)


class EmitTargetTests(unittest.TestCase):
    def test_unknown_target(self) -> None:
        with self.assertRaises(UnsupportedTarget):
            emit([], "java")

    def test_target_lookup_is_case_insensitive(self) -> None:
        self.assertIs(get_template("C"), TEMPLATES["c"])

    def test_every_target_emits_one_line_per_operation(self) -> None:
        program = compile_source("++++[->+>++<<]>,.")
        for name, template in TEMPLATES.items():
            with self.subTest(target=name):
                code = emit(program, name)
                extra = len(template.prologue()) + len(template.epilogue())
                self.assertEqual(len(code.splitlines()), len(program) + extra)

    def test_compiler_emit_matches_emit(self) -> None:
        source = "+[->+<]"
        self.assertEqual(Compiler().emit(source, "c"), emit(compile_source(source), "c"))


if __name__ == "__main__":
    unittest.main()
