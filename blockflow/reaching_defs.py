# reaching_defs.py
import argparse
import json
import sys
from typing import Dict, FrozenSet, Tuple

from blockflow.DFA import DataFlowProblem, DFA, Direction, Fact, Strategy
from blockflow.cfg import Block, Program, read_functions
from blockflow.ir import Statement, instr_def
from blockflow.parser import StatementParser


def annotate_def_sites(program: Program) -> Dict[str, FrozenSet[int]]:
    """Map every variable to the ids of all statements that define it."""
    sites: Dict[str, set] = {}
    for sid, stmt in program.stmts():
        sites.setdefault(instr_def(stmt), set()).add(sid)
    return {v: frozenset(ids) for v, ids in sites.items()}


class ReachingDefs(DataFlowProblem):
    direction = Direction.FORWARD

    def __init__(self, program: Program):
        self.def_sites = annotate_def_sites(program)

    def gen(self, sid: int, stmt: Statement) -> Fact:
        return frozenset((sid,))

    def kill(self, sid: int, stmt: Statement) -> Fact:
        """Every other definition of the same variable, anywhere in the program."""
        return self.def_sites.get(instr_def(stmt), frozenset()) - {sid}

    def transfer(self, fact: Fact, sid: int, stmt: Statement) -> Fact:
        return (fact - self.kill(sid, stmt)) | self.gen(sid, stmt)

    def block_gen_kill(self, block: Block) -> Tuple[Fact, Fact]:
        """GEN[B], KILL[B] such that OUT = (IN - KILL) | GEN matches the statement-by-statement transfer."""
        gen: Fact = frozenset()
        kill: Fact = frozenset()
        for sid, stmt in block.stmts():
            k = self.kill(sid, stmt)
            gen = (gen - k) | self.gen(sid, stmt)
            kill = kill | k
        return gen, kill


def run_analysis(program: Program, strategy: Strategy = Strategy.WORKLIST, **kwargs) -> DFA:
    dfa = DFA(program, ReachingDefs(program), strategy=strategy, **kwargs)
    dfa.run()
    return dfa


def fmt_defs(fact, program: Program) -> str:
    if not fact:
        return "∅"
    out = []
    for sid in sorted(fact):
        stmt = program.get_stmt(sid)
        out.append(f"d{sid}({instr_def(stmt)})" if stmt is not None else f"d{sid}")
    return ", ".join(out)


def print_results(name: str, program: Program, dfa: DFA, show_stmts: bool = False):
    print("================================")
    print("Function", name)
    for bi, b in enumerate(program.blocks()):
        print(f"Block {bi}")
        print("  IN :", fmt_defs(dfa.block_in(bi), program))
        if show_stmts:
            for sid, stmt in b.stmts():
                print(f"    d{sid}: {stmt}")
                print("      after:", fmt_defs(dfa.stmt_out(sid), program))
        print("  OUT:", fmt_defs(dfa.block_out(bi), program))


def main(argv=None):
    ap = argparse.ArgumentParser(description="Print reaching definitions for every block of every function.")
    ap.add_argument("path", nargs="?", default="-", help="JSON program file (default: stdin)")
    ap.add_argument("--strategy", choices=[s.value for s in Strategy], default=Strategy.WORKLIST.value)
    ap.add_argument("--stmts", action="store_true", help="Also print the definitions reaching past every statement")
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
