"""
Unit tests for the statement model and the text front end.
"""

import unittest

from blockflow.ir import BinOp, Copy, Lit, Op, Var, instr_def, instr_uses
from blockflow.parser import ErrorKind, ParseError, StatementParser


class TestStatements(unittest.TestCase):
    def test_op_defines_and_uses(self) -> None:
        stmt = Op("c", Var("a"), BinOp.ADD, Var("b"))
        self.assertEqual(stmt.defines(), "c")
        self.assertEqual(stmt.uses(), ["a", "b"])

    def test_literals_are_not_uses(self) -> None:
        self.assertEqual(Op("z", Lit(2), BinOp.MUL, Lit(3)).uses(), [])
        self.assertEqual(Op("z", Lit(2), BinOp.MUL, Var("y")).uses(), ["y"])
        self.assertEqual(Copy("x", Lit(1)).uses(), [])

    def test_duplicate_uses_kept(self) -> None:
        self.assertEqual(Op("z", Var("x"), BinOp.MUL, Var("x")).uses(), ["x", "x"])

    def test_helper_functions(self) -> None:
        stmt = Copy("y", Var("x"))
        self.assertEqual(instr_def(stmt), "y")
        self.assertEqual(instr_uses(stmt), ["x"])

    def test_str(self) -> None:
        self.assertEqual(str(Op("c", Var("a"), BinOp.SUB, Lit(1))), "c = a - 1")
        self.assertEqual(str(Copy("x", Var("y"))), "x = y")


class TestParser(unittest.TestCase):
    def setUp(self) -> None:
        self.parser = StatementParser()

    def test_parse_block_body(self) -> None:
        stmts = self.parser.parse_lines("c = a + b\nd = c - a")
        self.assertEqual(stmts, [
            Op("c", Var("a"), BinOp.ADD, Var("b")),
            Op("d", Var("c"), BinOp.SUB, Var("a")),
        ])

    def test_parse_without_spaces(self) -> None:
        self.assertEqual(self.parser.parse("i = m-1"), Op("i", Var("m"), BinOp.SUB, Lit(1)))
        self.assertEqual(self.parser.parse("t=s*i"), Op("t", Var("s"), BinOp.MUL, Var("i")))

    def test_parse_copy(self) -> None:
        self.assertEqual(self.parser.parse("x = 1"), Copy("x", Lit(1)))
        self.assertEqual(self.parser.parse("a = u1"), Copy("a", Var("u1")))

    def test_blank_lines_skipped(self) -> None:
        stmts = self.parser.parse_lines(["x = 1", "", "   ", "y = x"])
        self.assertEqual(len(stmts), 2)

    def test_invalid_operator(self) -> None:
        for text in ("x = a / b", "x = a ++ b", "x = a % 2"):
            with self.assertRaises(ParseError) as cm:
                self.parser.parse(text)
            self.assertIs(cm.exception.kind, ErrorKind.INVALID_OPERATOR)

    def test_invalid_syntax(self) -> None:
        for text in ("x + 1", "= x", "x = a +", "x = a + b + c", "x = -1", "x y = 1"):
            with self.assertRaises(ParseError) as cm:
                self.parser.parse(text)
            self.assertIs(cm.exception.kind, ErrorKind.INVALID_STATEMENT_SYNTAX)

    def test_error_reports_line(self) -> None:
        with self.assertRaises(ParseError) as cm:
            self.parser.parse_lines("x = 1\n\nx = x / 2")
        self.assertEqual(cm.exception.line, 3)
        self.assertIs(cm.exception.kind, ErrorKind.INVALID_OPERATOR)
        self.assertIn("line 3", str(cm.exception))

    def test_parse_error_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            self.parser.parse("nonsense")


if __name__ == "__main__":
    unittest.main()
