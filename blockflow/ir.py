"""Three-address statements: binary operations and copies over variables/literals."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union


@dataclass(frozen=True)
class Var:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Lit:
    value: int

    def __str__(self) -> str:
        return str(self.value)


RValue = Union[Var, Lit]


def rvalue_var(r: RValue) -> Optional[str]:
    """Return the variable name read by this operand, or None for a literal."""
    if isinstance(r, Var):
        return r.name
    return None


class BinOp(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Op:
    """dst = lhs op rhs"""
    dst: str
    lhs: RValue
    op: BinOp
    rhs: RValue

    def defines(self) -> str:
        return self.dst

    def uses(self) -> List[str]:
        return [v for v in (rvalue_var(self.lhs), rvalue_var(self.rhs)) if v is not None]

    def __str__(self) -> str:
        return f"{self.dst} = {self.lhs} {self.op} {self.rhs}"


@dataclass(frozen=True)
class Copy:
    """dst = src"""
    dst: str
    src: RValue

    def defines(self) -> str:
        return self.dst

    def uses(self) -> List[str]:
        v = rvalue_var(self.src)
        return [v] if v is not None else []

    def __str__(self) -> str:
        return f"{self.dst} = {self.src}"


Statement = Union[Op, Copy]


def instr_def(stmt: Statement) -> str:
    """Return the variable written by this statement."""
    return stmt.defines()


def instr_uses(stmt: Statement) -> List[str]:
    """Return list of variable names read by this statement."""
    return stmt.uses()
