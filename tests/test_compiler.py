"""
Vivid Compiler Tests

1. Parser: line alignment, comments, tab splitting
2. Parser diagnostics: unsupported directives, missing arguments
3. Encoder: bit-exact bytecode for the sample layout
4. Compile errors: first bad line, missing layout header
5. Decompiler
"""

import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from vivid import CompileError, LineRecord, compile_layout, compile_records, decompile, parse, read_program
from vivid.compiler import PROBLEM_EMPTY_ARGUMENT, PROBLEM_NO_ARGUMENTS, PROBLEM_NO_LAYOUT, encode, problems
from vivid.directives import DIRECTIVES, Opcode

from samples import BYTECODE, LAYOUT


class TestParser(unittest.TestCase):

    def test_one_entry_per_source_line(self):
        records = parse(LAYOUT)
        self.assertEqual(len(records), len(LAYOUT.split("\n")))
        self.assertEqual(len(records), 16)

    def test_blank_and_comment_lines_are_none(self):
        records = parse(LAYOUT)
        self.assertIsNone(records[0])
        self.assertIsNone(records[2])
        self.assertIsNone(records[-1])
        self.assertEqual(sum(r is not None for r in records), 13)

    def test_record_fields(self):
        records = parse(LAYOUT)
        self.assertEqual(records[1], LineRecord(2, "layout\tvivid 1.0", "layout", ("vivid 1.0",)))
        self.assertEqual(
            records[9],
            LineRecord(10, "insert\tplaceholder\ttext with placeholder", "insert",
                       ("placeholder", "text with placeholder")),
        )
        self.assertIsNone(records[9].problem)
        self.assertEqual(records[9].opcode, Opcode.INSERT)

    def test_windows_line_endings(self):
        records = parse("layout\tvivid 1.0\r\nfollow\t//h1\r\n")
        self.assertEqual(len(records), 3)
        self.assertEqual(records[1].args, ("//h1",))
        self.assertEqual(records[1].line, "follow\t//h1")

    def test_runs_of_tabs_and_surrounding_whitespace(self):
        record = parse("   replace\t\t\t a \t\tb   ")[0]
        self.assertEqual(record.call, "replace")
        self.assertEqual(record.args, ("a", "b"))

    def test_comment_after_indentation(self):
        self.assertEqual(parse("    # not a directive"), [None])

    def test_as_dict(self):
        record = parse("glue\tx")[0]
        self.assertEqual(record.as_dict(), {
            "line_nr": 1, "line": "glue\tx", "call": "glue", "args": ("x",), "problems": (),
        })


class TestDiagnostics(unittest.TestCase):

    def test_unsupported_directive(self):
        record = parse("xdg-open\t.")[0]
        self.assertEqual(record.problem, 'unsupported directive "xdg-open"')

    def test_no_arguments(self):
        record = parse("follow //h1")[0]
        self.assertEqual(record.call, "follow //h1")
        self.assertEqual(record.args, ())
        # both checks fire; the delimiter problem is reported last
        self.assertEqual(len(record.problems), 2)
        self.assertEqual(record.problem, PROBLEM_NO_ARGUMENTS)

    def test_whitespace_only_argument(self):
        record = parse("replace\tfoo\t \tbar")[0]
        self.assertEqual(record.args, ("foo", "", "bar"))
        self.assertEqual(record.problem, PROBLEM_EMPTY_ARGUMENT)
        with self.assertRaises(CompileError) as cm:
            compile_layout("layout\tvivid 1.0\nreplace\tfoo\t \tbar")
        self.assertEqual(cm.exception.line_nr, 2)

    def test_parse_collects_all_problems(self):
        script = "layout\tvivid 1.0\nfetch\t/\nfollow\n# fine\nlabel\tok"
        bad = problems(parse(script))
        self.assertEqual([r.line_nr for r in bad], [2, 3])


class TestEncoder(unittest.TestCase):

    def test_sample_bytecode_is_bit_exact(self):
        self.assertEqual(compile_layout(LAYOUT), BYTECODE)

    def test_encode_single_record(self):
        record = parse("replace\told\tnew")[0]
        self.assertEqual(encode(record), b"\x52old\x00new\x00\x00")

    def test_utf8_arguments(self):
        bytecode = compile_layout("layout\tvivid 1.0\nglue\t→ ")
        self.assertTrue(bytecode.endswith(b"\x55" + "→".encode("utf-8") + b"\x00\x00"))

    def test_every_directive_has_an_opcode(self):
        self.assertEqual(len(DIRECTIVES), 14)
        self.assertEqual(set(DIRECTIVES.values()), set(Opcode))

    def test_compile_records_accepts_parsed_records(self):
        self.assertEqual(compile_records(parse(LAYOUT)), BYTECODE)


class TestCompileErrors(unittest.TestCase):

    def test_missing_layout(self):
        with self.assertRaises(CompileError) as cm:
            compile_layout("prompt\txdg-open")
        self.assertEqual(str(cm.exception), PROBLEM_NO_LAYOUT)
        self.assertIsNone(cm.exception.record)

    def test_layout_not_first(self):
        with self.assertRaises(CompileError) as cm:
            compile_layout("# header\n\nfollow\t//h1\nlayout\tvivid 1.0")
        self.assertEqual(str(cm.exception), "layout directive not set or not on first line")

    def test_empty_script(self):
        with self.assertRaises(CompileError):
            compile_layout("# only comments\n\n")

    def test_unsupported_directive_is_structured(self):
        with self.assertRaises(CompileError) as cm:
            compile_layout("xdg-open\t.")
        error = cm.exception
        self.assertEqual(error.line_nr, 1)
        self.assertEqual(error.line, "xdg-open\t.")
        self.assertEqual(error.call, "xdg-open")
        self.assertEqual(error.args, (".",))
        self.assertEqual(error.problem, 'unsupported directive "xdg-open"')

    def test_first_problem_wins(self):
        with self.assertRaises(CompileError) as cm:
            compile_layout("layout\tvivid 1.0\nfollow\t//a\nfetch\t/\nkeep")
        self.assertEqual(cm.exception.line_nr, 3)
        self.assertIn("Line 3", str(cm.exception))


class TestDecompiler(unittest.TestCase):

    def test_round_trip(self):
        text = decompile(read_program(BYTECODE))
        self.assertEqual(compile_layout(text), BYTECODE)

    def test_header_and_lines(self):
        text = decompile([(Opcode.FOLLOW, ("//h1",)), (Opcode.LABEL, ("title",))])
        self.assertEqual(text, "layout\tvivid 1.0\nfollow\t//h1\nlabel\ttitle")


if __name__ == "__main__":
    unittest.main()
