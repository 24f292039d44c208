"""Draw block CFGs side by side in one matplotlib figure."""
from typing import Dict, List, Sequence, Tuple

import matplotlib.pyplot as plt
import networkx as nx

from blockflow.cfg import Program
from blockflow.helpers import reverse_postorder


def to_digraph(program: Program) -> nx.DiGraph:
    G = nx.DiGraph()
    for bi, block in enumerate(program.blocks()):
        text = "\n".join(str(s) for s in block.statements)
        G.add_node(bi, label=f"B{bi}\n{text}" if text else f"B{bi}")
    G.add_edges_from(program.edges())
    return G


def layered_positions(program: Program, level_gap: float = 1.5, x_gap: float = 1.5) -> Dict[int, Tuple[float, float]]:
    """Place each block one level below its deepest forward predecessor (back edges ignored)."""
    order = reverse_postorder(program)
    rank = {b: i for i, b in enumerate(order)}
    level: Dict[int, int] = {}
    for b in order:
        forward_preds = [p for p in program.pred_ids(b) if rank[p] < rank[b]]
        level[b] = 1 + max((level[p] for p in forward_preds), default=-1)

    by_level: Dict[int, List[int]] = {}
    for b in order:
        by_level.setdefault(level[b], []).append(b)

    pos = {}
    for lv, members in by_level.items():
        offset = (len(members) - 1) / 2.0
        for k, b in enumerate(members):
            pos[b] = ((k - offset) * x_gap, -lv * level_gap)
    return pos


def draw_cfgs(named: Sequence[Tuple[str, Program]], out_png: str):
    """Draw every (name, program) pair into a single PNG."""
    if not named:
        return

    n = len(named)
    depth = max(max(1, len(p)) for _, p in named)
    fig, axes = plt.subplots(1, n, figsize=(5 * n, max(4, depth * 1.5)))
    if n == 1:
        axes = [axes]

    for ax, (name, program) in zip(axes, named):
        G = to_digraph(program)
        pos = layered_positions(program)
        nx.draw(
            G,
            pos,
            labels=nx.get_node_attributes(G, "label"),
            arrows=True,
            node_size=2500,
            node_color="#9ecae1",
            font_size=7,
            ax=ax,
        )
        ax.set_title(name)

    plt.tight_layout()
    plt.savefig(out_png)
    plt.close(fig)
    print(f"Saved CFG drawing to {out_png}")
