"""
Incremental topology reconciliation for EvoDash.

Every tick delivers the complete gene list of a network. reconcile()
compares it with what was last rendered (the TopologySnapshot) and returns
the minimal Delta that brings the renderer in sync:

  1. Validate all genes (nothing is touched if one is malformed)
  2. Observe the enabled genes → live nodes + live edges (with weights)
  3. Node diff → add_nodes / remove_nodes
  4. Edge diff → add_edges / update_edges / remove_edges
  5. Commit the new node / edge sets into the snapshot

Node and edge ids are stable across ticks so the renderer keeps positions
and drag state of everything that survives.
"""

from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple

from genes import EdgeId, NodeId, parse_genes


# ──────────────────────────────────────────────────────────────────────────────
# Data model
# ──────────────────────────────────────────────────────────────────────────────

class Link(NamedTuple):
    """An edge together with the weight it should be drawn with."""
    edge:  EdgeId
    value: float

    def to_dict(self) -> dict:
        return {**self.edge.endpoints(), "value": self.value}


@dataclass
class TopologySnapshot:
    """
    What is currently materialized for one visualization instance.

    nodes: neuron ids in insertion order (dict used as an ordered set)
    edges: EdgeId → current weight, in insertion order
    """
    instance_id: str = ""
    nodes: Dict[int, None]      = field(default_factory=dict)
    edges: Dict[EdgeId, float]  = field(default_factory=dict)
    ticks: int = 0              # reconciliation passes applied so far

    def node_ids(self) -> List[NodeId]:
        return [NodeId(n) for n in self.nodes]

    def links(self) -> List[Link]:
        return [Link(e, w) for e, w in self.edges.items()]

    def is_empty(self) -> bool:
        return not self.nodes and not self.edges

    def to_dict(self) -> dict:
        """Full state in wire form, for renderers that join mid-run."""
        return {
            "instance": self.instance_id,
            "tick":     self.ticks,
            "nodes":    [str(n) for n in self.node_ids()],
            "edges":    [link.to_dict() for link in self.links()],
        }


@dataclass
class Delta:
    """Output of one reconciliation pass."""
    instance_id:  str = ""
    tick:         int = 0
    add_nodes:    List[NodeId] = field(default_factory=list)
    add_edges:    List[Link]   = field(default_factory=list)
    update_edges: List[Link]   = field(default_factory=list)
    remove_edges: List[EdgeId] = field(default_factory=list)
    remove_nodes: List[NodeId] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.add_nodes or self.add_edges or self.update_edges
                    or self.remove_edges or self.remove_nodes)

    def counts(self) -> dict:
        return {
            "add_nodes":    len(self.add_nodes),
            "add_edges":    len(self.add_edges),
            "update_edges": len(self.update_edges),
            "remove_edges": len(self.remove_edges),
            "remove_nodes": len(self.remove_nodes),
        }

    def to_dict(self) -> dict:
        return {
            "instance":    self.instance_id,
            "tick":        self.tick,
            "addNodes":    [str(n) for n in self.add_nodes],
            "addEdges":    [link.to_dict() for link in self.add_edges],
            "updateEdges": [link.to_dict() for link in self.update_edges],
            "removeEdges": [e.endpoints() for e in self.remove_edges],
            "removeNodes": [str(n) for n in self.remove_nodes],
        }


# ──────────────────────────────────────────────────────────────────────────────
# Reconciler
# ──────────────────────────────────────────────────────────────────────────────

def _observe(genes: list):
    """Live node ids and live edges of the enabled genes, first-seen order."""
    nodes = {}
    edges = {}
    for gene in genes:
        if not gene.enabled:
            continue
        nodes.setdefault(gene.in_neuron_id)
        nodes.setdefault(gene.out_neuron_id)
        # Re-assigning an existing key keeps its position: last weight wins
        edges[gene.edge_id] = gene.weight
    return nodes, edges


def reconcile(snapshot: TopologySnapshot, genes) -> tuple:
    """
    Bring `snapshot` in sync with this tick's complete gene list.

    Mutates the snapshot in place and returns (delta, snapshot). Raises
    InvalidGeneError, leaving the snapshot untouched, if any gene is
    malformed.
    """
    genes = parse_genes(genes)
    seen_nodes, seen_edges = _observe(genes)

    delta = Delta(instance_id=snapshot.instance_id, tick=snapshot.ticks + 1)

    # Node liveness comes from the genes, never from which edges changed
    for n in seen_nodes:
        if n not in snapshot.nodes:
            delta.add_nodes.append(NodeId(n))
    for n in snapshot.nodes:
        if n not in seen_nodes:
            delta.remove_nodes.append(NodeId(n))

    for edge, weight in seen_edges.items():
        if edge in snapshot.edges:
            delta.update_edges.append(Link(edge, weight))
        else:
            delta.add_edges.append(Link(edge, weight))
    for edge in snapshot.edges:
        if edge not in seen_edges:
            delta.remove_edges.append(edge)

    # Commit: survivors keep their position, new ids go to the end
    for n in delta.remove_nodes:
        del snapshot.nodes[n.neuron_id]
    for n in delta.add_nodes:
        snapshot.nodes[n.neuron_id] = None
    for edge in delta.remove_edges:
        del snapshot.edges[edge]
    for link in delta.update_edges + delta.add_edges:
        snapshot.edges[link.edge] = link.value
    snapshot.ticks = delta.tick

    return delta, snapshot


# ──────────────────────────────────────────────────────────────────────────────
# Registry
# ──────────────────────────────────────────────────────────────────────────────

class TopologyRegistry:
    """
    Maps visualization-instance ids to their TopologySnapshot.

    Snapshots are created empty on first reference and live until
    release_instance() is called. Calls for one instance must not overlap.
    """

    def __init__(self):
        self._snapshots: Dict[str, TopologySnapshot] = {}

    def snapshot(self, instance_id: str) -> TopologySnapshot:
        snap = self._snapshots.get(instance_id)
        if snap is None:
            snap = TopologySnapshot(instance_id=instance_id)
            self._snapshots[instance_id] = snap
        return snap

    def reconcile(self, instance_id: str, genes) -> Delta:
        delta, _ = reconcile(self.snapshot(instance_id), genes)
        return delta

    def release_instance(self, instance_id: str) -> bool:
        """Forget an instance. Returns False if it was never seen."""
        return self._snapshots.pop(instance_id, None) is not None

    def instance_ids(self) -> list:
        return list(self._snapshots)

    def __contains__(self, instance_id) -> bool:
        return instance_id in self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)
