"""
Gene records and topology keys for EvoDash.

A gene describes one candidate directed connection of a neural network:

  in_neuron_id   : source neuron
  out_neuron_id  : target neuron
  weight         : connection strength
  enabled        : disabled genes are invisible to the rendered topology

Nodes and edges of the rendered topology are keyed by NodeId / EdgeId.
Both are typed keys; the "node7" / "3_7" strings only exist on the wire.
"""

from numbers import Integral, Real
from typing import Mapping, NamedTuple

import numpy as np


class InvalidGeneError(ValueError):
    """A gene record is missing, or has malformed, endpoint data."""

    def __init__(self, message: str, index: int = None):
        if index is not None:
            message = f"gene #{index}: {message}"
        super().__init__(message)
        self.index = index


# ──────────────────────────────────────────────────────────────────────────────
# Keys
# ──────────────────────────────────────────────────────────────────────────────

class NodeId(NamedTuple):
    neuron_id: int

    def __str__(self) -> str:
        return f"node{self.neuron_id}"


class EdgeId(NamedTuple):
    in_neuron_id:  int
    out_neuron_id: int

    @property
    def source(self) -> NodeId:
        return NodeId(self.in_neuron_id)

    @property
    def target(self) -> NodeId:
        return NodeId(self.out_neuron_id)

    def endpoints(self) -> dict:
        """Wire form of the edge endpoints."""
        return {"source": str(self.source), "target": str(self.target)}

    def __str__(self) -> str:
        return f"{self.in_neuron_id}_{self.out_neuron_id}"


# ──────────────────────────────────────────────────────────────────────────────
# Gene
# ──────────────────────────────────────────────────────────────────────────────

class Gene(NamedTuple):
    in_neuron_id:  int
    out_neuron_id: int
    weight:        float = 0.0
    enabled:       bool  = True

    @property
    def edge_id(self) -> EdgeId:
        return EdgeId(self.in_neuron_id, self.out_neuron_id)

    def to_dict(self) -> dict:
        return {
            "in_neuron_id":  self.in_neuron_id,
            "out_neuron_id": self.out_neuron_id,
            "weight":        self.weight,
            "enabled":       self.enabled,
        }


def _neuron_id(value, field: str, index):
    # bool is an Integral too, but True is not a neuron
    if value is None:
        raise InvalidGeneError(f"missing {field}", index)
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise InvalidGeneError(f"{field} must be an integer, got {value!r}", index)
    return int(value)


def parse_gene(raw, index: int = None) -> Gene:
    """
    Validate one gene record and return it as a Gene.

    Accepts a Gene or any mapping with the Gene field names (decoded JSON).
    Raises InvalidGeneError instead of guessing at missing endpoints.
    """
    if isinstance(raw, Gene):
        fields = raw._asdict()
    elif isinstance(raw, Mapping):
        fields = raw
    else:
        raise InvalidGeneError(f"expected a gene record, got {type(raw).__name__}",
                               index)

    in_id  = _neuron_id(fields.get("in_neuron_id"),  "in_neuron_id",  index)
    out_id = _neuron_id(fields.get("out_neuron_id"), "out_neuron_id", index)

    weight = fields.get("weight", 0.0)
    if isinstance(weight, bool) or not isinstance(weight, Real):
        raise InvalidGeneError(f"weight must be a number, got {weight!r}", index)

    enabled = fields.get("enabled", True)
    if not isinstance(enabled, (bool, np.bool_)):
        raise InvalidGeneError(f"enabled must be a boolean, got {enabled!r}", index)

    return Gene(in_id, out_id, float(weight), bool(enabled))


def parse_genes(raw_genes) -> list:
    """Validate a whole tick's gene list. Fails on the first bad record."""
    if raw_genes is None:
        raise InvalidGeneError("gene list is missing")
    if not isinstance(raw_genes, (list, tuple)):
        raise InvalidGeneError(f"gene list must be a list, got {type(raw_genes).__name__}")
    return [parse_gene(raw, i) for i, raw in enumerate(raw_genes)]
