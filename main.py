"""
EvoDash – Main Entry Point
==========================

Runs the demo driver offline and writes what the dashboard would show.

Usage examples:
  python main.py                          # one network, default settings
  python main.py --instances 3            # three independent topologies
  python main.py --ticks 2000 --seed 7    # longer, reproducible run
  python main.py --diagram_interval 10    # more frequent topology diagrams
  python main.py --no_csv                 # skip the per-tick CSV log
"""

import argparse

from dashboard import default_dashboard
from driver import TopologyDriver
from render_adapter import GraphModelAdapter
from visualizer import (ensure_dirs, CsvRenderAdapter, DiagramRenderAdapter,
                        save_topology_diagram)
from config import (SAVE_DIR, DIAGRAM_INTERVAL, MAX_TICKS, INSTANCES,
                    NUM_INPUTS, NUM_OUTPUTS, ADD_CONN_PR, ADD_NEURON_PR)


# ──────────────────────────────────────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="EvoDash – live topology dashboard (offline run)")
    p.add_argument("--ticks",      type=int,   default=MAX_TICKS,
                   help="Number of ticks to run")
    p.add_argument("--instances",  type=int,   default=INSTANCES,
                   help="Independent topologies evolved side by side")
    p.add_argument("--inputs",     type=int,   default=NUM_INPUTS,
                   help="Input neurons per network")
    p.add_argument("--outputs",    type=int,   default=NUM_OUTPUTS,
                   help="Output neurons per network")
    p.add_argument("--add_conn",   type=float, default=ADD_CONN_PR,
                   help="Per-tick probability of adding a connection")
    p.add_argument("--add_neuron", type=float, default=ADD_NEURON_PR,
                   help="Per-tick probability of adding a neuron")
    p.add_argument("--seed",       type=int,   default=None,
                   help="Random seed for reproducibility")
    p.add_argument("--outdir",     default=SAVE_DIR,
                   help="Output directory")
    p.add_argument("--diagram_interval", type=int, default=DIAGRAM_INTERVAL,
                   help="Save a topology diagram every N ticks")
    p.add_argument("--no_csv",     action="store_true",
                   help="Do not write the per-tick CSV log")
    return p.parse_args(argv)


# ──────────────────────────────────────────────────────────────────────────────
# Main
# ──────────────────────────────────────────────────────────────────────────────

def main(argv=None):
    args = parse_args(argv)
    ensure_dirs(args.outdir)

    print("=" * 60)
    print("  EvoDash – live topology dashboard (offline run)")
    print("=" * 60)
    print(f"  Ticks      : {args.ticks}")
    print(f"  Instances  : {args.instances}")
    print(f"  Network    : {args.inputs} inputs → {args.outputs} outputs")
    print(f"  Seed       : {args.seed}")
    print(f"  Output dir : {args.outdir}")
    print("=" * 60)

    model    = GraphModelAdapter()
    diagrams = DiagramRenderAdapter(args.outdir, args.diagram_interval)
    csv_log  = CsvRenderAdapter(args.outdir, enabled=not args.no_csv)
    dash     = default_dashboard([model, diagrams, csv_log])

    driver = TopologyDriver(
        n_inputs         = args.inputs,
        n_outputs        = args.outputs,
        instances        = args.instances,
        max_ticks        = args.ticks,
        add_conn_pr      = args.add_conn,
        add_neuron_pr    = args.add_neuron,
        seed             = args.seed,
        on_tick_callback = lambda tick, iid, genes: dash.network(iid, genes),
    )
    driver.run()

    # Final diagrams
    print("\nSaving final topology diagrams …")
    for iid in driver.instance_ids:
        snap = dash.registry.snapshot(iid)
        path = save_topology_diagram(model.nodes(iid), model.links(iid),
                                     iid, snap.ticks, args.outdir)
        print(f"  → {iid}: {len(snap.nodes)} nodes, {len(snap.edges)} edges"
              + (f"  ({path})" if path else ""))

    print("\nDone! All outputs saved to:", args.outdir)
    return dash


if __name__ == "__main__":
    main()
