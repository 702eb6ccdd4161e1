"""
File-writing render adapters for EvoDash.

Produces:
  1. CSV log          – one row per Delta with add / update / remove counts
  2. Topology diagram – PNG of a network's current nodes and edges

Node placement is a fixed circle ordered by neuron id; nothing is simulated.
"""

import os
import csv
import numpy as np
import matplotlib
matplotlib.use("Agg")          # non-interactive backend (no display needed)
import matplotlib.pyplot as plt

from config import SAVE_DIR, LOG_CSV, DIAGRAM_INTERVAL
from render_adapter import RenderAdapter, GraphModelAdapter


# ──────────────────────────────────────────────────────────────────────────────
# Directory setup
# ──────────────────────────────────────────────────────────────────────────────

def ensure_dirs(base: str = SAVE_DIR):
    os.makedirs(os.path.join(base, "network"), exist_ok=True)


# ──────────────────────────────────────────────────────────────────────────────
# CSV log
# ──────────────────────────────────────────────────────────────────────────────

def append_csv(row: dict, base: str = SAVE_DIR,
               filename: str = "topology_log.csv"):
    """Append one row to a CSV file, writing the header on first use."""
    path = os.path.join(base, filename)
    file_exists = os.path.isfile(path)
    with open(path, "a", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(row.keys()))
        if not file_exists:
            writer.writeheader()
        writer.writerow(row)
    return path


class CsvRenderAdapter(RenderAdapter):
    """Logs the size of every Delta."""

    def __init__(self, base: str = SAVE_DIR, enabled: bool = LOG_CSV):
        self.base    = base
        self.enabled = enabled

    def apply_delta(self, delta):
        if not self.enabled:
            return
        append_csv({"instance": delta.instance_id, "tick": delta.tick,
                    **delta.counts()}, self.base)


# ──────────────────────────────────────────────────────────────────────────────
# Topology diagram
# ──────────────────────────────────────────────────────────────────────────────

def _node_number(node_id: str) -> int:
    return int(node_id[len("node"):])


def save_topology_diagram(nodes: list, links: list, instance_id: str,
                          tick: int, base: str = SAVE_DIR):
    """
    Draw a network's nodes on a circle and its links as straight lines.
    Green edges = positive weights, red edges = negative.
    """
    if not nodes:
        return None

    ids = sorted((n["id"] for n in nodes), key=_node_number)
    angles = np.linspace(0.0, 2 * np.pi, len(ids), endpoint=False)
    node_pos = {nid: (np.cos(a), np.sin(a)) for nid, a in zip(ids, angles)}

    fig, ax = plt.subplots(figsize=(6, 6), dpi=100)
    fig.patch.set_facecolor("#111111")
    ax.set_facecolor("#111111")
    ax.axis("off")
    ax.set_xlim(-1.3, 1.3)
    ax.set_ylim(-1.3, 1.3)
    ax.set_aspect("equal")

    # Draw edges
    for link in links:
        x1, y1 = node_pos[link["source"]]
        x2, y2 = node_pos[link["target"]]
        w      = link["value"]
        color  = "#44FF44" if w >= 0 else "#FF4444"
        lw     = 0.5 + min(3.0, abs(w) * 2)
        ax.annotate("", xy=(x2, y2), xytext=(x1, y1),
                    arrowprops=dict(arrowstyle="-|>", color=color,
                                    lw=lw, alpha=0.7),
                    zorder=1)

    # Draw nodes
    for nid in ids:
        x, y = node_pos[nid]
        ax.add_patch(plt.Circle((x, y), 0.05, color="#4499FF", zorder=3))
        ax.text(x * 1.15, y * 1.15, nid, color="white", fontsize=7,
                ha="center", va="center", zorder=4)

    ax.set_title(f"{instance_id} — tick {tick}  "
                 f"({len(ids)} nodes, {len(links)} edges)",
                 color="white", fontsize=10)

    path = os.path.join(base, "network", f"{instance_id}_tick_{tick:06d}.png")
    plt.savefig(path, dpi=100, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


class DiagramRenderAdapter(GraphModelAdapter):
    """Mirrors the topology and saves a diagram every `interval` ticks."""

    def __init__(self, base: str = SAVE_DIR, interval: int = DIAGRAM_INTERVAL):
        super().__init__()
        self.base     = base
        self.interval = interval
        self.saved    = []

    def apply_delta(self, delta):
        super().apply_delta(delta)
        if self.interval and delta.tick % self.interval == 0:
            self.save(delta.instance_id, delta.tick)

    def save(self, instance_id: str, tick: int):
        path = save_topology_diagram(self.nodes(instance_id),
                                     self.links(instance_id),
                                     instance_id, tick, self.base)
        if path:
            self.saved.append(path)
        return path
