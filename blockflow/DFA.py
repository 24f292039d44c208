from abc import ABC, abstractmethod
from collections import deque
from enum import Enum
from typing import Dict, FrozenSet, Hashable, Iterable, List, Optional, Sequence, Tuple

from blockflow.cfg import Program
from blockflow.ir import Statement

Fact = FrozenSet[Hashable]


class Direction(Enum):
    FORWARD = 1
    BACKWARD = 2


class Strategy(Enum):
    WORKLIST = "worklist"
    SWEEP = "sweep"


class DataFlowProblem(ABC):
    """A monotone set problem: union meet, empty set as the starting value."""

    direction: Direction

    @abstractmethod
    def transfer(self, fact: Fact, sid: int, stmt: Statement) -> Fact:
        pass

    def merge(self, facts: Iterable[Fact]) -> Fact:
        acc = self.top()
        for f in facts:
            acc = acc | f
        return acc

    def top(self) -> Fact:
        return frozenset()

    def boundary(self) -> Fact:
        """IN of blocks without predecessors (forward), OUT of blocks without successors (backward)."""
        return frozenset()


class DFA:
    def __init__(self, program: Program, problem: DataFlowProblem,
                 strategy: Strategy = Strategy.WORKLIST,
                 order: Optional[Sequence[int]] = None,
                 max_sweeps: Optional[int] = None):
        self.program = program
        self.problem = problem
        self.direction = problem.direction
        self.strategy = strategy
        self.max_sweeps = max_sweeps

        n = len(program)
        if order is None:
            order = range(n) if self.direction is Direction.FORWARD else range(n - 1, -1, -1)
        order = list(order)
        if sorted(order) != list(range(n)):
            raise ValueError(f"order must be a permutation of block indices 0..{n - 1}, got {order}")
        self.order: List[int] = order

        self.in_lattice: List[Fact] = [problem.top() for _ in range(n)]
        self.out_lattice: List[Fact] = [problem.top() for _ in range(n)]

        # keyed by global statement id
        self.inst_in_lattice: Dict[int, Fact] = {}
        self.inst_out_lattice: Dict[int, Fact] = {}

        self.sweeps = 0
        self.visits = 0
        self.converged = False
        self._solved: bool = False

    def _evaluate(self, b: int, work_in: List[Fact], work_out: List[Fact]) -> Tuple[Fact, Fact]:
        block = self.program.get_block(b)
        transfer = self.problem.transfer
        self.visits += 1

        if self.direction is Direction.FORWARD:
            preds = self.program.pred_ids(b)
            new_in = self.problem.merge(work_out[p] for p in preds) if preds else self.problem.boundary()
            cur = new_in
            for sid, stmt in block.stmts():
                self.inst_in_lattice[sid] = cur
                cur = transfer(cur, sid, stmt)
                self.inst_out_lattice[sid] = cur
            new_out = cur
        else:
            succs = self.program.succ_ids(b)
            new_out = self.problem.merge(work_in[s] for s in succs) if succs else self.problem.boundary()
            cur = new_out
            for sid, stmt in reversed(list(block.stmts())):
                self.inst_out_lattice[sid] = cur
                cur = transfer(cur, sid, stmt)
                self.inst_in_lattice[sid] = cur
            new_in = cur

        return new_in, new_out

    def _run_worklist(self, work_in: List[Fact], work_out: List[Fact]):
        work = deque(self.order)
        queued = set(self.order)
        while work:
            b = work.popleft()
            queued.discard(b)
            new_in, new_out = self._evaluate(b, work_in, work_out)

            changed = (new_in != work_in[b]) or (new_out != work_out[b])
            if changed:
                work_in[b], work_out[b] = new_in, new_out
                if self.direction is Direction.FORWARD:
                    neighbors = self.program.succ_ids(b)
                else:
                    neighbors = self.program.pred_ids(b)
                for nb in neighbors:
                    if nb not in queued:
                        queued.add(nb)
                        work.append(nb)
        self.converged = True

    def _run_sweeps(self, work_in: List[Fact], work_out: List[Fact]):
        while self.max_sweeps is None or self.sweeps < self.max_sweeps:
            self.sweeps += 1
            changed = False
            for b in self.order:
                new_in, new_out = self._evaluate(b, work_in, work_out)
                if new_in != work_in[b] or new_out != work_out[b]:
                    work_in[b], work_out[b] = new_in, new_out
                    changed = True
            if not changed:
                self.converged = True
                return

    def run(self) -> Tuple[Tuple[Fact, ...], Tuple[Fact, ...]]:
        if not self._solved:
            work_in = list(self.in_lattice)
            work_out = list(self.out_lattice)

            if self.strategy is Strategy.WORKLIST:
                self._run_worklist(work_in, work_out)
            else:
                self._run_sweeps(work_in, work_out)

            self.in_lattice = work_in
            self.out_lattice = work_out
            self._solved = True
        return tuple(self.in_lattice), tuple(self.out_lattice)

    def block_in(self, b: int) -> Optional[Fact]:
        if 0 <= b < len(self.in_lattice):
            return self.in_lattice[b]
        return None

    def block_out(self, b: int) -> Optional[Fact]:
        if 0 <= b < len(self.out_lattice):
            return self.out_lattice[b]
        return None

    def stmt_in(self, sid: int) -> Optional[Fact]:
        return self.inst_in_lattice.get(sid)

    def stmt_out(self, sid: int) -> Optional[Fact]:
        return self.inst_out_lattice.get(sid)
