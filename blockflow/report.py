"""Run both analyses over JSON program files, cross-check solver strategies and report stats."""
from __future__ import annotations

import json
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pandas as pd
from tqdm import tqdm

from blockflow import live_vars, reaching_defs
from blockflow.DFA import DFA, Strategy
from blockflow.cfg import Program, read_functions
from blockflow.helpers import has_cycle, variables
from blockflow.parser import ParseError, StatementParser


def collect_targets(paths: List[str]) -> List[Path]:
    targets: List[Path] = []
    for p in paths:
        path = Path(p)
        if path.is_file():
            if path.suffix == ".json":
                targets.append(path)
            else:
                print(f"Warning: {path} is not a .json file. Skipping.", file=sys.stderr)
        elif path.is_dir():
            targets.extend(c for c in path.iterdir() if c.is_file() and c.suffix == ".json")
        else:
            print(f"Warning: {path} does not exist. Skipping.", file=sys.stderr)
    return sorted(targets)


def analyze_both(program: Program, strategy: Strategy = Strategy.WORKLIST, jobs: int = 1) -> Tuple[DFA, DFA]:
    """Reaching definitions and live variables on one program, optionally on two threads."""
    if jobs > 1:
        with ThreadPoolExecutor(max_workers=2) as pool:
            rd = pool.submit(reaching_defs.run_analysis, program, strategy)
            lv = pool.submit(live_vars.run_analysis, program, strategy)
            return rd.result(), lv.result()
    return reaching_defs.run_analysis(program, strategy), live_vars.run_analysis(program, strategy)


def block_table(program: Program, rd: DFA, lv: DFA) -> pd.DataFrame:
    """One row per block with both analyses' IN/OUT sets."""
    rows = []
    for bi, block in enumerate(program.blocks()):
        rows.append({
            "block": bi,
            "stmts": len(block),
            "preds": list(program.pred_ids(bi)),
            "succs": list(program.succ_ids(bi)),
            "rd_in": sorted(rd.block_in(bi)),
            "rd_out": sorted(rd.block_out(bi)),
            "live_in": sorted(lv.block_in(bi)),
            "live_out": sorted(lv.block_out(bi)),
        })
    return pd.DataFrame(rows, columns=["block", "stmts", "preds", "succs",
                                       "rd_in", "rd_out", "live_in", "live_out"])


def analyze_program(name: str, program: Program, jobs: int = 1) -> Dict[str, Any]:
    rd_wl, lv_wl = analyze_both(program, Strategy.WORKLIST, jobs)
    rd_sw, lv_sw = analyze_both(program, Strategy.SWEEP, jobs)

    if rd_wl.run() != rd_sw.run():
        verdict = "BAD: reaching defs strategies disagree"
    elif lv_wl.run() != lv_sw.run():
        verdict = "BAD: live vars strategies disagree"
    else:
        verdict = "Good!"

    return {
        "function": name,
        "verdict": verdict,
        "blocks": len(program),
        "statements": sum(len(b) for b in program.blocks()),
        "variables": len(variables(program)),
        "cyclic": has_cycle(program),
        "rd_sweeps": rd_sw.sweeps,
        "lv_sweeps": lv_sw.sweeps,
        "rd_visits": rd_wl.visits,
        "lv_visits": lv_wl.visits,
    }


def analyze_file(path: Path, parser: StatementParser, jobs: int = 1,
                 show_blocks: bool = False) -> List[Dict[str, Any]]:
    try:
        funcs = read_functions(str(path), parser)
    except ParseError as e:
        print(f"Warning: {path}: {e}", file=sys.stderr)
        return [{"file": str(path), "function": None, "verdict": f"BAD: {e.kind.value}"}]
    except (OSError, ValueError) as e:
        print(f"Warning: {path}: {e}", file=sys.stderr)
        return [{"file": str(path), "function": None, "verdict": "BAD: malformed program"}]

    records = []
    for name, program in funcs:
        rec = analyze_program(name, program, jobs)
        rec["file"] = str(path)
        records.append(rec)
        if show_blocks:
            rd, lv = analyze_both(program, Strategy.WORKLIST, jobs)
            tqdm.write(f"--- {path.name}:{name}")
            tqdm.write(block_table(program, rd, lv).to_string(index=False))
    return records


def results_frame(results: List[Dict[str, Any]]) -> pd.DataFrame:
    cols = ["file", "function", "verdict", "blocks", "statements", "variables",
            "cyclic", "rd_sweeps", "lv_sweeps", "rd_visits", "lv_visits"]
    return pd.DataFrame(results, columns=cols)


def eval_results(results: List[Dict[str, Any]]):
    df = results_frame(results)
    total = len(df)
    passes = int((df["verdict"] == "Good!").sum())

    with pd.option_context("display.max_rows", None, "display.width", 160):
        print(df.drop(columns=["file"]).to_string(index=False))

    print(f"\nConsistent functions: {passes}/{total}")
    good = df[df["verdict"] == "Good!"]
    if not good.empty:
        print(f"Mean sweeps (reaching defs): {good['rd_sweeps'].mean():.2f}")
        print(f"Mean sweeps (live vars): {good['lv_sweeps'].mean():.2f}")
        print(f"Max sweeps: {int(max(good['rd_sweeps'].max(), good['lv_sweeps'].max()))}")
        print(f"Cyclic CFGs: {int(good['cyclic'].sum())}")


def plot(results: List[Dict[str, Any]], out_png: str | None = None):
    import matplotlib.pyplot as plt

    df = results_frame(results)
    df = df[df["verdict"] == "Good!"]
    if df.empty:
        print("Nothing to plot.", file=sys.stderr)
        return

    labels = [f"{Path(f).stem}:{fn}" for f, fn in zip(df["file"], df["function"])]
    xs = list(range(len(labels)))
    width = 0.4

    plt.figure(figsize=(max(6, len(labels) * 0.6), 5))
    plt.bar([x - width / 2 for x in xs], df["rd_sweeps"], width, label="reaching defs")
    plt.bar([x + width / 2 for x in xs], df["lv_sweeps"], width, label="live vars")
    plt.ylabel("Sweeps to fixed point")
    plt.title("Round-robin sweeps per function")
    plt.xticks(xs, labels, rotation=90, fontsize=7)
    plt.legend()
    plt.tight_layout()
    if out_png:
        plt.savefig(out_png)
        print(f"Saved plot to {out_png}")
    else:
        plt.show()


def main(argv: List[str] | None = None):
    import argparse
    ap = argparse.ArgumentParser(description="Batch data-flow report over JSON programs.")
    ap.add_argument("paths", nargs="*", default=["benchmarks"], help=".json files or directories")
    ap.add_argument("--blocks", action="store_true", help="Print the per-block IN/OUT table of every function")
    ap.add_argument("--jobs", type=int, default=1, help="Run the two analyses on threads when > 1")
    ap.add_argument("--out", type=str, default="results_dataflow.json", help="Write detailed JSON results here")
    ap.add_argument("--plot", action="store_true", help="Show/save matplotlib plot of sweep counts")
    ap.add_argument("--png", type=str, default=None, help="Save plot to PNG instead of showing")
    ap.add_argument("--vis", type=str, default=None, metavar="PNG", help="Draw every CFG into this PNG")
    args = ap.parse_args(argv)

    targets = collect_targets(args.paths)
    if not targets:
        print("No .json files found.")
        return 0

    print(f"Target programs: {len(targets)}")

    parser = StatementParser()
    results: List[Dict[str, Any]] = []
    for t in tqdm(targets):
        results.extend(analyze_file(t, parser, args.jobs, show_blocks=args.blocks))

    eval_results(results)

    with open(args.out, "w") as f:
        json.dump(results, f, indent=2)
        print(f"Wrote results to {args.out}")

    if args.plot:
        plot(results, out_png=args.png)

    if args.vis:
        from blockflow.visualize import draw_cfgs
        named = []
        for t in targets:
            try:
                named.extend((f"{t.stem}:{name}", prog) for name, prog in read_functions(str(t), parser))
            except (OSError, ValueError):
                continue  # already reported above
        draw_cfgs(named, args.vis)

    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
