"""Basic blocks and the block-level control flow graph of one function."""
from __future__ import annotations

import json
import sys
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from blockflow.ir import Statement
from blockflow.parser import StatementParser


class Block:
    """A straight-line run of statements whose ids are start, start+1, ..."""

    def __init__(self, start: int, stmts: Iterable[Statement] = ()):
        if start < 0:
            raise ValueError(f"block start must be non-negative, got {start}")
        self.start = start
        self.statements: Tuple[Statement, ...] = tuple(stmts)

    @classmethod
    def parse(cls, start: int, body: Union[str, Iterable[str]],
              parser: StatementParser) -> "Block":
        return cls(start, parser.parse_lines(body))

    def __len__(self) -> int:
        return len(self.statements)

    def __repr__(self) -> str:
        return f"Block(start={self.start}, stmts={len(self.statements)})"

    @property
    def end(self) -> int:
        """One past the last statement id."""
        return self.start + len(self.statements)

    def is_empty(self) -> bool:
        return not self.statements

    def in_range(self, sid: int) -> bool:
        return self.start <= sid < self.end

    def get(self, sid: int) -> Optional[Statement]:
        if not self.in_range(sid):
            return None
        return self.statements[sid - self.start]

    def stmts(self) -> Iterator[Tuple[int, Statement]]:
        return zip(range(self.start, self.end), self.statements)


class Program:
    """Blocks plus directed edges between block indices. Immutable once built.

    Index 0 is conventionally ENTRY and the last index EXIT, but nothing here
    depends on that.
    """

    def __init__(self, blocks: Sequence[Block], edges: Iterable[Tuple[int, int]] = ()):
        self._blocks: Tuple[Block, ...] = tuple(blocks)
        n = len(self._blocks)

        self._check_ranges()

        succ: List[List[int]] = [[] for _ in range(n)]
        pred: List[List[int]] = [[] for _ in range(n)]
        seen = set()
        for edge in edges:
            s, d = edge
            if not (0 <= s < n and 0 <= d < n):
                raise ValueError(f"edge {s} -> {d} references a block outside 0..{n - 1}")
            if (s, d) in seen:
                continue
            seen.add((s, d))
            succ[s].append(d)
            pred[d].append(s)
        self._edges: Tuple[Tuple[int, int], ...] = tuple(
            (s, d) for s in range(n) for d in succ[s])
        self._succ = tuple(tuple(x) for x in succ)
        self._pred = tuple(tuple(x) for x in pred)

    def _check_ranges(self):
        ranges = sorted((b.start, b.end, i) for i, b in enumerate(self._blocks) if not b.is_empty())
        for (s0, e0, i0), (s1, e1, i1) in zip(ranges, ranges[1:]):
            if s1 < e0:
                raise ValueError(
                    f"statement ids of blocks {i0} [{s0}, {e0}) and {i1} [{s1}, {e1}) overlap")

    def __len__(self) -> int:
        return len(self._blocks)

    def is_empty(self) -> bool:
        return not self._blocks

    def blocks(self) -> Iterator[Block]:
        return iter(self._blocks)

    def stmts(self) -> Iterator[Tuple[int, Statement]]:
        for b in self._blocks:
            yield from b.stmts()

    def edges(self) -> Tuple[Tuple[int, int], ...]:
        return self._edges

    def get_block(self, i: int) -> Optional[Block]:
        if 0 <= i < len(self._blocks):
            return self._blocks[i]
        return None

    def get_stmt(self, sid: int) -> Optional[Statement]:
        for b in self._blocks:
            stmt = b.get(sid)
            if stmt is not None:
                return stmt
        return None

    def pred_ids(self, i: int) -> Tuple[int, ...]:
        if 0 <= i < len(self._pred):
            return self._pred[i]
        return ()

    def succ_ids(self, i: int) -> Tuple[int, ...]:
        if 0 <= i < len(self._succ):
            return self._succ[i]
        return ()

    def predecessors(self, i: int) -> List[Tuple[int, Block]]:
        return [(p, self._blocks[p]) for p in self.pred_ids(i)]

    def successors(self, i: int) -> List[Tuple[int, Block]]:
        return [(s, self._blocks[s]) for s in self.succ_ids(i)]


def build_cfg_for_function(func: dict, parser: StatementParser) -> Program:
    """Build a Program from one function record of the JSON format.

    {"name": ..., "blocks": [{"start": 0, "body": [...] | "..."}], "edges": [[0, 1], ...]}
    A missing "start" continues right after the previous block.
    """
    if not isinstance(func, dict):
        raise ValueError(f"function record must be an object, got {type(func).__name__}")
    raw_blocks = func.get("blocks", [])
    if not isinstance(raw_blocks, list):
        raise ValueError("'blocks' must be a list")

    blocks = []
    next_start = 0
    for bi, raw in enumerate(raw_blocks):
        if isinstance(raw, (str, list)):
            raw = {"body": raw}
        if not isinstance(raw, dict):
            raise ValueError(f"block {bi}: expected an object, string or list of lines")
        start = raw.get("start", next_start)
        if not isinstance(start, int) or isinstance(start, bool):
            raise ValueError(f"block {bi}: 'start' must be an integer")
        body = raw.get("body", "")
        if isinstance(body, list):
            for li, line in enumerate(body):
                if not isinstance(line, str):
                    raise ValueError(f"block {bi}: body line {li} must be a string, got {line!r}")
        elif not isinstance(body, str):
            raise ValueError(f"block {bi}: 'body' must be a string or a list of strings")
        block = Block.parse(start, body, parser)
        blocks.append(block)
        next_start = block.end

    raw_edges = func.get("edges", [])
    if not isinstance(raw_edges, list):
        raise ValueError("'edges' must be a list")
    edges = []
    for ei, e in enumerate(raw_edges):
        if (not isinstance(e, list) or len(e) != 2
                or not all(isinstance(x, int) and not isinstance(x, bool) for x in e)):
            raise ValueError(f"edge {ei}: malformed {e!r}; expected [src, dst]")
        edges.append((e[0], e[1]))

    return Program(blocks, edges)


def load_functions(data: dict, parser: StatementParser) -> List[Tuple[str, Program]]:
    """Return (name, Program) for every function in a parsed JSON document."""
    funcs = data.get("functions", []) if isinstance(data, dict) else None
    if not isinstance(funcs, list):
        raise ValueError("expected a JSON object with a 'functions' list")
    out = []
    for fi, func in enumerate(funcs):
        name = func.get("name", f"f{fi}") if isinstance(func, dict) else f"f{fi}"
        if not isinstance(name, str):
            raise ValueError(f"function {fi}: 'name' must be a string")
        out.append((name, build_cfg_for_function(func, parser)))
    return out


def program_to_dict(name: str, program: Program) -> Dict[str, object]:
    """Inverse of build_cfg_for_function, used to write benchmark files."""
    return {
        "name": name,
        "blocks": [
            {"start": b.start, "body": [str(s) for s in b.statements]}
            for b in program.blocks()
        ],
        "edges": [list(e) for e in program.edges()],
    }


def read_functions(path: Optional[str], parser: StatementParser) -> List[Tuple[str, Program]]:
    """Load the JSON program file at `path`; None or "-" reads stdin."""
    if path in (None, "-"):
        data = json.load(sys.stdin)
    else:
        with open(path, "r") as f:
            data = json.load(f)
    return load_functions(data, parser)
