"""
Demo simulation driver for EvoDash.

Stands in for an evolving population so the dashboard has something to draw.
Each instance starts as inputs fully connected to outputs and, every tick,
goes through NEAT-style mutations:

  1. add connection  – link two neurons that are not linked yet
  2. add neuron      – disable a→b, add a→new (weight 1) and new→b
  3. perturb weights – add normal noise to every weight
  4. toggle gene     – flip the enabled flag of one gene

The complete gene list is handed to on_tick_callback after every tick.
"""

import time

import numpy as np

from genes import Gene
from config import (
    NUM_INPUTS, NUM_OUTPUTS, INSTANCES, MAX_TICKS,
    ADD_CONN_PR, ADD_NEURON_PR, WEIGHT_MUTATE_PR, TOGGLE_EXPR_PR,
    WEIGHT_INIT_VAR, WEIGHT_MUTATE_VAR,
)


class TopologyDriver:
    """
    Evolves one gene list per instance and reports it every tick.
    """

    def __init__(
        self,
        n_inputs:          int   = NUM_INPUTS,
        n_outputs:         int   = NUM_OUTPUTS,
        instances:         int   = INSTANCES,
        max_ticks:         int   = MAX_TICKS,
        add_conn_pr:       float = ADD_CONN_PR,
        add_neuron_pr:     float = ADD_NEURON_PR,
        weight_mutate_pr:  float = WEIGHT_MUTATE_PR,
        toggle_expr_pr:    float = TOGGLE_EXPR_PR,
        seed:              int   = None,
        instance_prefix:   str   = "network",
        tick_delay_s:      float = 0.0,
        verbose:           bool  = True,
        on_tick_callback   = None,    # called as (tick, instance_id, genes)
    ):
        self.n_inputs         = n_inputs
        self.n_outputs        = n_outputs
        self.max_ticks        = max_ticks
        self.add_conn_pr      = add_conn_pr
        self.add_neuron_pr    = add_neuron_pr
        self.weight_mutate_pr = weight_mutate_pr
        self.toggle_expr_pr   = toggle_expr_pr
        self.tick_delay_s     = tick_delay_s
        self.verbose          = verbose
        self.on_tick_callback = on_tick_callback
        self.rng              = np.random.default_rng(seed)

        self.tick = 0
        self.instance_ids = [f"{instance_prefix}{i + 1}" for i in range(instances)]
        self.genes = {iid: self._initial_genes() for iid in self.instance_ids}
        # next free neuron id per instance
        self._next_neuron = {iid: n_inputs + n_outputs for iid in self.instance_ids}

    # ──────────────────────────────────────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────────────────────────────────────

    def run(self, stop_evt=None):
        """Run until max_ticks, or until stop_evt (threading.Event) is set."""
        while self.tick < self.max_ticks:
            if stop_evt is not None and stop_evt.is_set():
                break
            self.step()
            if self.tick_delay_s:
                time.sleep(self.tick_delay_s)
        if self.verbose:
            print(f"\n=== Driver stopped after {self.tick} ticks ===")

    def step(self):
        """Advance every instance by one tick."""
        self.tick += 1
        t0 = time.time()
        for iid in self.instance_ids:
            self.genes[iid] = self._mutate(iid, self.genes[iid])
            if self.on_tick_callback:
                self.on_tick_callback(self.tick, iid, list(self.genes[iid]))
        if self.verbose:
            self._print_stats(time.time() - t0)

    def neuron_ids(self, instance_id: str) -> list:
        return list(range(self._next_neuron[instance_id]))

    # ──────────────────────────────────────────────────────────────────────────
    # Mutations
    # ──────────────────────────────────────────────────────────────────────────

    def _initial_genes(self) -> list:
        outputs = range(self.n_inputs, self.n_inputs + self.n_outputs)
        return [Gene(i, o, self._new_weight(), True)
                for i in range(self.n_inputs) for o in outputs]

    def _new_weight(self) -> float:
        return float(self.rng.normal(0.0, np.sqrt(WEIGHT_INIT_VAR)))

    def _mutate(self, instance_id: str, genes: list) -> list:
        genes = list(genes)
        if self.rng.random() < self.add_conn_pr:
            genes = self._add_connection(instance_id, genes)
        if self.rng.random() < self.add_neuron_pr:
            genes = self._add_neuron(instance_id, genes)
        if self.rng.random() < self.weight_mutate_pr:
            genes = self._perturb_weights(genes)
        if self.rng.random() < self.toggle_expr_pr:
            genes = self._toggle_expression(genes)
        return genes

    def _add_connection(self, instance_id: str, genes: list, tries: int = 20) -> list:
        n_total   = self._next_neuron[instance_id]
        first_out = self.n_inputs
        last_out  = self.n_inputs + self.n_outputs
        existing  = {g.edge_id for g in genes}
        # sources: inputs + hidden, targets: outputs + hidden
        sources = [n for n in range(n_total) if not first_out <= n < last_out]
        targets = [n for n in range(n_total) if n >= self.n_inputs]
        if not sources or not targets:
            return genes
        for _ in range(tries):
            src = sources[int(self.rng.integers(0, len(sources)))]
            dst = targets[int(self.rng.integers(0, len(targets)))]
            if src == dst:
                continue
            gene = Gene(src, dst, self._new_weight(), True)
            if gene.edge_id not in existing:
                return genes + [gene]
        return genes

    def _add_neuron(self, instance_id: str, genes: list) -> list:
        enabled = [i for i, g in enumerate(genes) if g.enabled]
        if not enabled:
            return genes
        idx = enabled[int(self.rng.integers(0, len(enabled)))]
        old = genes[idx]
        new_id = self._next_neuron[instance_id]
        self._next_neuron[instance_id] += 1
        genes[idx] = old._replace(enabled=False)
        return genes + [
            Gene(old.in_neuron_id, new_id, 1.0, True),
            Gene(new_id, old.out_neuron_id, old.weight, True),
        ]

    def _perturb_weights(self, genes: list) -> list:
        noise = self.rng.normal(0.0, np.sqrt(WEIGHT_MUTATE_VAR), size=len(genes))
        return [g._replace(weight=round(g.weight + float(n), 4))
                for g, n in zip(genes, noise)]

    def _toggle_expression(self, genes: list) -> list:
        if not genes:
            return genes
        idx = int(self.rng.integers(0, len(genes)))
        genes[idx] = genes[idx]._replace(enabled=not genes[idx].enabled)
        return genes

    # ──────────────────────────────────────────────────────────────────────────

    def _print_stats(self, elapsed: float):
        if self.tick % 10 == 0 or self.tick < 5:
            for iid in self.instance_ids:
                genes   = self.genes[iid]
                enabled = sum(1 for g in genes if g.enabled)
                print(
                    f"Tick {self.tick:>5}  |  {iid:<10}  |  "
                    f"genes {enabled:>4}/{len(genes):<4}  |  "
                    f"neurons {self._next_neuron[iid]:>4}  |  "
                    f"{elapsed:.3f}s"
                )
