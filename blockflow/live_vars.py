import argparse
import json
import sys
from typing import Tuple

from blockflow.DFA import DataFlowProblem, DFA, Direction, Fact, Strategy
from blockflow.cfg import Block, Program, read_functions
from blockflow.ir import Statement, instr_def, instr_uses
from blockflow.parser import StatementParser


class LiveVars(DataFlowProblem):
    direction = Direction.BACKWARD

    def transfer(self, fact: Fact, sid: int, stmt: Statement) -> Fact:
        return frozenset(instr_uses(stmt)) | (fact - {instr_def(stmt)})

    def block_use_def(self, block: Block) -> Tuple[Fact, Fact]:
        """
        USE[B] (variables read before any write in B) and DEF[B], so that
        IN = USE | (OUT - DEF) matches walking the block backwards.
        """
        use: Fact = frozenset()
        defs: Fact = frozenset()
        for _, stmt in reversed(list(block.stmts())):
            use = frozenset(instr_uses(stmt)) | (use - {instr_def(stmt)})
            defs = defs | {instr_def(stmt)}
        return use, defs


def run_analysis(program: Program, strategy: Strategy = Strategy.WORKLIST, **kwargs) -> DFA:
    dfa = DFA(program, LiveVars(), strategy=strategy, **kwargs)
    dfa.run()
    return dfa


def fmt_vars(fact) -> str:
    return ", ".join(sorted(fact)) or "∅"


def print_results(name: str, program: Program, dfa: DFA, show_stmts: bool = False):
    print("================================")
    print("Function", name)
    for bi, b in enumerate(program.blocks()):
        print(f"Block {bi}")
        print(f"  IN : {fmt_vars(dfa.block_in(bi))}")
        if show_stmts:
            for sid, stmt in b.stmts():
                print(f"    {sid}: {stmt}    live before: {fmt_vars(dfa.stmt_in(sid))}")
        print(f"  OUT: {fmt_vars(dfa.block_out(bi))}")


def main(argv=None):
    ap = argparse.ArgumentParser(description="Print live variables for every block of every function.")
    ap.add_argument("path", nargs="?", default="-", help="JSON program file (default: stdin)")
    ap.add_argument("--strategy", choices=[s.value for s in Strategy], default=Strategy.WORKLIST.value)
    ap.add_argument("--stmts", action="store_true", help="Also print the variables live before every statement")
    args = ap.parse_args(argv)

    try:
        funcs = read_functions(args.path, StatementParser())
    except (OSError, json.JSONDecodeError, ValueError) as e:
        raise SystemExit(f"cannot load program: {e}")

    for name, program in funcs:
        dfa = run_analysis(program, strategy=Strategy(args.strategy))
        print_results(name, program, dfa, show_stmts=args.stmts)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
