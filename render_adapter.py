"""
Render adapters for EvoDash.

A render adapter receives every Delta produced by the reconciler and applies
it to whatever draws the topology (a browser force layout, a PNG writer, a
test recorder). The reconciler never calls drawing code itself.

  apply_delta(delta)             required
  publish(graph_id, kind, value) non-network telemetry (fitness, species …)
  release(instance_id)           an instance was torn down
"""


class RenderAdapter:
    """Base class; subclasses must implement apply_delta."""

    def apply_delta(self, delta):
        raise NotImplementedError

    def publish(self, graph_id: str, kind: str, value):
        pass

    def release(self, instance_id: str):
        pass


class NullRenderAdapter(RenderAdapter):
    """Discards everything."""

    def apply_delta(self, delta):
        pass


class RecordingRenderAdapter(RenderAdapter):
    """Keeps every call it receives, in order."""

    def __init__(self):
        self.deltas    = []
        self.published = []    # (graph_id, kind, value)
        self.released  = []

    def apply_delta(self, delta):
        self.deltas.append(delta)

    def publish(self, graph_id, kind, value):
        self.published.append((graph_id, kind, value))

    def release(self, instance_id):
        self.released.append(instance_id)

    def for_instance(self, instance_id: str) -> list:
        return [d for d in self.deltas if d.instance_id == instance_id]


# ──────────────────────────────────────────────────────────────────────────────
# Force-layout graph model
# ──────────────────────────────────────────────────────────────────────────────

class GraphModelAdapter(RenderAdapter):
    """
    Maintains the node / link collections a force-directed layout is fed.

    Per instance:
      nodes: [{"id": "node3", "group": 0}, …]
      links: [{"source": "node3", "target": "node5", "value": 0.4}, …]

    Existing elements are updated in place (never recreated) so any state a
    layout engine attaches to them, such as positions, survives the tick.
    """

    def __init__(self, group: int = 0):
        self.group  = group
        self._nodes = {}     # instance_id → {node_id: node dict}
        self._links = {}     # instance_id → {(source, target): link dict}

    def apply_delta(self, delta):
        nodes = self._nodes.setdefault(delta.instance_id, {})
        links = self._links.setdefault(delta.instance_id, {})

        for edge in delta.remove_edges:
            links.pop((str(edge.source), str(edge.target)), None)
        for node in delta.remove_nodes:
            nodes.pop(str(node), None)

        for node in delta.add_nodes:
            nodes[str(node)] = {"id": str(node), "group": self.group}
        for link in delta.add_edges:
            item = link.to_dict()
            links[(item["source"], item["target"])] = item
        # An adapter attached mid-run first hears of live edges as updates
        for link in delta.update_edges:
            for node in (str(link.edge.source), str(link.edge.target)):
                nodes.setdefault(node, {"id": node, "group": self.group})
            key = (str(link.edge.source), str(link.edge.target))
            links.setdefault(key, link.to_dict())["value"] = link.value

    def release(self, instance_id):
        self._nodes.pop(instance_id, None)
        self._links.pop(instance_id, None)

    def nodes(self, instance_id: str) -> list:
        return list(self._nodes.get(instance_id, {}).values())

    def links(self, instance_id: str) -> list:
        return list(self._links.get(instance_id, {}).values())
