"""
Small hand-built programs, and a writer that dumps them as JSON benchmarks.

Usage:
  python -m blockflow.samples <dst_dir> [--force]
"""

import argparse
import json
import os
import shutil
import sys
from typing import Callable, Dict, Optional

from blockflow.cfg import Block, Program, program_to_dict
from blockflow.parser import StatementParser


def _parser(parser: Optional[StatementParser]) -> StatementParser:
    return parser if parser is not None else StatementParser()


def figure_9_13(parser: Optional[StatementParser] = None) -> Program:
    """Dragon Book figure 9.13: ENTRY, B1..B4, EXIT with a loop B2 -> B4 -> B2."""
    p = _parser(parser)
    blocks = [
        Block.parse(0, "", p),  # ENTRY
        Block.parse(1, "i = m-1\nj = n\na = u1", p),
        Block.parse(4, "i = i+1\nj = j-1", p),
        Block.parse(6, "a = u2", p),
        Block.parse(7, "i = u3", p),
        Block.parse(7, "", p),  # EXIT
    ]
    edges = [(0, 1), (1, 2), (2, 3), (2, 4), (3, 4), (4, 2), (4, 5)]
    return Program(blocks, edges)


def straight_line(parser: Optional[StatementParser] = None) -> Program:
    """x = 1; y = 2 then x = x + y."""
    p = _parser(parser)
    return Program([Block.parse(0, "x = 1\ny = 2", p), Block.parse(2, "x = x + y", p)], [(0, 1)])


def sum_xy(parser: Optional[StatementParser] = None) -> Program:
    """x = 1; y = 2 then z = x + y, no successor after the second block."""
    p = _parser(parser)
    return Program([Block.parse(0, "x = 1\ny = 2", p), Block.parse(2, "z = x + y", p)], [(0, 1)])


def two_block_loop(parser: Optional[StatementParser] = None) -> Program:
    """Block 1 defines x, block 2 reads it and branches back to block 1."""
    p = _parser(parser)
    blocks = [
        Block.parse(0, "a = 0", p),
        Block.parse(1, "x = a + 1", p),
        Block.parse(2, "a = x * 2", p),
        Block.parse(3, "r = a", p),
    ]
    return Program(blocks, [(0, 1), (1, 2), (2, 1), (2, 3)])


def diamond(parser: Optional[StatementParser] = None) -> Program:
    """if/else: both arms define c, the join reads it."""
    p = _parser(parser)
    blocks = [
        Block.parse(0, "a = 1\nb = 2", p),
        Block.parse(2, "c = a + b", p),
        Block.parse(3, "c = a - b", p),
        Block.parse(4, "d = c * c\na = d", p),
    ]
    return Program(blocks, [(0, 1), (0, 2), (1, 3), (2, 3)])


SAMPLES: Dict[str, Callable[..., Program]] = {
    "figure_9_13": figure_9_13,
    "straight_line": straight_line,
    "sum_xy": sum_xy,
    "two_block_loop": two_block_loop,
    "diamond": diamond,
}


def main():
    ap = argparse.ArgumentParser(description="Write every sample program as <dst_dir>/<name>.json")
    ap.add_argument("dst_dir", help="Destination directory")
    ap.add_argument("--force", action="store_true", help="Overwrite existing destination dir")
    args = ap.parse_args()

    dst = os.path.abspath(args.dst_dir)
    if os.path.exists(dst):
        if not args.force:
            print(f"error: destination {dst!r} exists (use --force to overwrite)", file=sys.stderr)
            sys.exit(1)
        shutil.rmtree(dst)
    os.makedirs(dst, exist_ok=True)

    parser = StatementParser()
    for name, build in SAMPLES.items():
        doc = {"functions": [program_to_dict(name, build(parser))]}
        path = os.path.join(dst, name + ".json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump(doc, f, indent=2)
        print(f"[WRITE] {os.path.relpath(path, dst)}")

    print(f"\nDone. Programs: {len(SAMPLES)}")
    print(f"Destination: {dst}")


if __name__ == "__main__":
    main()
