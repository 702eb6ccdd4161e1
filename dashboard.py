"""
Dashboard for EvoDash.

Holds the widget layout the browser draws and routes telemetry to render
adapters:

  network  graphs → genes are reconciled into a Delta → apply_delta()
  other    graphs → the raw value is forwarded        → publish()

Fitness and species values are passed through untouched; windowing,
stacking and scaling belong to whatever draws them.
"""

from config import DEFAULT_LAYOUT, GRAPH_KINDS
from topology import TopologyRegistry


class Dashboard:
    """
    Widget layout + per-graph topology state + attached render adapters.
    """

    def __init__(self, adapters: list = None, registry: TopologyRegistry = None):
        self.registry = registry if registry is not None else TopologyRegistry()
        self.adapters = list(adapters or [])
        self._graphs  = {}      # graph_id → widget dict, insertion ordered

    # ──────────────────────────────────────────────────────────────────────────
    # Layout
    # ──────────────────────────────────────────────────────────────────────────

    def add_graph(self, graph_id: str, kind: str,
                  x: int, y: int, w: int, h: int):
        """Register a widget at grid cell (x, y) spanning w × h cells."""
        if kind not in GRAPH_KINDS:
            raise ValueError(f"unknown graph kind {kind!r}; "
                             f"expected one of {', '.join(GRAPH_KINDS)}")
        if graph_id in self._graphs:
            raise ValueError(f"graph {graph_id!r} already on the dashboard")
        if w <= 0 or h <= 0 or x < 0 or y < 0:
            raise ValueError(f"bad geometry for {graph_id!r}: "
                             f"x={x} y={y} w={w} h={h}")
        self._graphs[graph_id] = {
            "id": graph_id, "kind": kind, "x": x, "y": y, "w": w, "h": h,
        }

    def layout(self) -> list:
        return [dict(g) for g in self._graphs.values()]

    def kind_of(self, graph_id: str) -> str:
        return self._graphs[graph_id]["kind"]

    def add_adapter(self, adapter):
        self.adapters.append(adapter)

    # ──────────────────────────────────────────────────────────────────────────
    # Telemetry
    # ──────────────────────────────────────────────────────────────────────────

    def network(self, graph_id: str, genes):
        """Reconcile a network graph's genes and fan the Delta out."""
        widget = self._graphs.get(graph_id)
        if widget is not None and widget["kind"] != "network":
            raise ValueError(f"graph {graph_id!r} is a {widget['kind']} graph, "
                             f"not a network")
        delta = self.registry.reconcile(graph_id, genes)
        for adapter in self.adapters:
            adapter.apply_delta(delta)
        return delta

    def fitness(self, graph_id: str, value: float):
        self._publish(graph_id, "fitness", float(value))

    def species(self, graph_id: str, record: dict):
        self._publish(graph_id, "species", dict(record))

    def telemetry(self, graph_id: str, value):
        """Route a value by the kind the graph was registered with."""
        if graph_id not in self._graphs:
            raise KeyError(graph_id)
        kind = self._graphs[graph_id]["kind"]
        if kind == "network":
            return self.network(graph_id, value)
        if kind == "fitness":
            return self.fitness(graph_id, value)
        if kind == "species":
            return self.species(graph_id, value)
        return self._publish(graph_id, kind, value)

    def release(self, graph_id: str) -> bool:
        """Tear down a network graph's topology state."""
        released = self.registry.release_instance(graph_id)
        for adapter in self.adapters:
            adapter.release(graph_id)
        return released

    def _publish(self, graph_id, kind, value):
        for adapter in self.adapters:
            adapter.publish(graph_id, kind, value)


def default_dashboard(adapters: list = None) -> Dashboard:
    """Dashboard with the standard fitness / network / species layout."""
    dash = Dashboard(adapters)
    for graph_id, kind, x, y, w, h in DEFAULT_LAYOUT:
        dash.add_graph(graph_id, kind, x, y, w, h)
    return dash
