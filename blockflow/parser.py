"""Text front end: turns `dst = lhs op rhs` / `dst = src` lines into statements.

The compiled patterns live on a StatementParser instance; build one and pass
it to whatever constructs blocks (see cfg.Block.parse and cfg.load_functions).
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, List, Optional, Union

from blockflow.ir import BinOp, Copy, Lit, Op, RValue, Statement, Var


class ErrorKind(Enum):
    INVALID_STATEMENT_SYNTAX = "invalid statement syntax"
    INVALID_OPERATOR = "invalid operator"


class ParseError(ValueError):
    def __init__(self, kind: ErrorKind, text: str, line: Optional[int] = None):
        self.kind = kind
        self.text = text
        self.line = line
        where = f" (line {line})" if line is not None else ""
        super().__init__(f"{kind.value}{where}: {text!r}")


class StatementParser:
    """Parses single statements and multi-line block bodies."""

    def __init__(self):
        self.op_re = re.compile(
            r"^(?P<dst>\w+)\s*=\s*(?P<lhs>\w+)\s*(?P<op>[^\w\s]+)\s*(?P<rhs>\w+)$")
        self.copy_re = re.compile(r"^(?P<dst>\w+)\s*=\s*(?P<src>\w+)$")
        self.lit_re = re.compile(r"^[0-9]+$")

    def parse_rvalue(self, token: str) -> RValue:
        if self.lit_re.match(token):
            return Lit(int(token))
        return Var(token)

    def parse_op(self, token: str, text: str = "") -> BinOp:
        try:
            return BinOp(token)
        except ValueError:
            raise ParseError(ErrorKind.INVALID_OPERATOR, text or token) from None

    def parse(self, text: str) -> Statement:
        s = text.strip()
        m = self.op_re.match(s)
        if m:
            return Op(
                m["dst"],
                self.parse_rvalue(m["lhs"]),
                self.parse_op(m["op"], s),
                self.parse_rvalue(m["rhs"]),
            )
        m = self.copy_re.match(s)
        if m:
            return Copy(m["dst"], self.parse_rvalue(m["src"]))
        raise ParseError(ErrorKind.INVALID_STATEMENT_SYNTAX, s)

    def parse_lines(self, body: Union[str, Iterable[str]]) -> List[Statement]:
        """Parse a block body; blank lines are skipped, the first bad line aborts."""
        lines = body.splitlines() if isinstance(body, str) else list(body)
        stmts = []
        for lineno, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                stmts.append(self.parse(line))
            except ParseError as e:
                raise ParseError(e.kind, e.text, lineno) from None
        return stmts
