# Simple helpers for block CFGs

from typing import List, Set

from blockflow.cfg import Program
from blockflow.ir import instr_def, instr_uses


def reachable_blocks(program: Program, entry: int = 0) -> Set[int]:
    """Return set of block indices reachable from the entry."""
    if program.get_block(entry) is None:
        return set()

    seen = set()
    stack = [entry]
    while stack:
        b = stack.pop()
        if b in seen:
            continue
        seen.add(b)
        for s in program.succ_ids(b):
            stack.append(s)
    return seen


def reverse_postorder(program: Program, entry: int = 0) -> List[int]:
    """
    Reverse postorder of a DFS forest rooted first at `entry`, then at any
    block not yet visited (in index order). On an acyclic CFG this is a
    topological order. Blocks unreachable from the entry end up in front of
    the entry's tree; the result is always a permutation of all indices.
    """
    order: List[int] = []
    seen: Set[int] = set()

    roots = [entry] if program.get_block(entry) is not None else []
    roots.extend(i for i in range(len(program)) if i != entry)
    for root in roots:
        if root in seen:
            continue
        seen.add(root)
        stack = [(root, iter(program.succ_ids(root)))]
        while stack:
            node, it = stack[-1]
            nxt = next(it, None)
            if nxt is None:
                stack.pop()
                order.append(node)
            elif nxt not in seen:
                seen.add(nxt)
                stack.append((nxt, iter(program.succ_ids(nxt))))

    order.reverse()
    return order


def has_cycle(program: Program) -> bool:
    """True if the CFG has a cycle, i.e. some edge points backwards in reverse postorder."""
    position = {b: i for i, b in enumerate(reverse_postorder(program))}
    return any(position[d] <= position[s] for s, d in program.edges())


def variables(program: Program) -> Set[str]:
    """Every variable defined or used anywhere in the program."""
    out: Set[str] = set()
    for _, stmt in program.stmts():
        out.add(instr_def(stmt))
        out.update(instr_uses(stmt))
    return out
