import pytest

from render_adapter import (GraphModelAdapter, NullRenderAdapter,
                            RecordingRenderAdapter, RenderAdapter)
from topology import TopologyRegistry


def g(src, dst, weight=0.5, enabled=True):
    return {"in_neuron_id": src, "out_neuron_id": dst,
            "weight": weight, "enabled": enabled}


def test_base_adapter_requires_apply_delta():
    with pytest.raises(NotImplementedError):
        RenderAdapter().apply_delta(None)


def test_null_adapter_accepts_everything():
    adapter = NullRenderAdapter()
    reg = TopologyRegistry()
    adapter.apply_delta(reg.reconcile("a", [g(1, 2)]))
    adapter.publish("fitness1", "fitness", 1.0)
    adapter.release("a")


def test_recording_adapter_keeps_order():
    adapter = RecordingRenderAdapter()
    reg = TopologyRegistry()
    d1 = reg.reconcile("a", [g(1, 2)])
    d2 = reg.reconcile("b", [g(3, 4)])
    d3 = reg.reconcile("a", [])
    for d in (d1, d2, d3):
        adapter.apply_delta(d)
    adapter.publish("fitness1", "fitness", 2.5)
    adapter.release("a")

    assert adapter.deltas == [d1, d2, d3]
    assert adapter.for_instance("a") == [d1, d3]
    assert adapter.published == [("fitness1", "fitness", 2.5)]
    assert adapter.released == ["a"]


class TestGraphModelAdapter:

    def _run(self, *ticks, instance="net"):
        reg = TopologyRegistry()
        model = GraphModelAdapter()
        for genes in ticks:
            model.apply_delta(reg.reconcile(instance, genes))
        return model, reg

    def test_materializes_nodes_and_links(self):
        model, _ = self._run([g(1, 2, 0.3)])
        assert model.nodes("net") == [{"id": "node1", "group": 0},
                                      {"id": "node2", "group": 0}]
        assert model.links("net") == [{"source": "node1", "target": "node2",
                                       "value": 0.3}]

    def test_updates_link_in_place(self):
        reg = TopologyRegistry()
        model = GraphModelAdapter()
        model.apply_delta(reg.reconcile("net", [g(1, 2, 0.3)]))
        link = model.links("net")[0]
        node = model.nodes("net")[0]
        # a layout engine would hang positions on these objects
        node["x"] = 10.0

        model.apply_delta(reg.reconcile("net", [g(1, 2, 0.9)]))
        assert model.links("net")[0] is link
        assert link["value"] == 0.9
        assert model.nodes("net")[0] is node
        assert node["x"] == 10.0

    def test_mirrors_snapshot_after_churn(self):
        model, reg = self._run(
            [g(1, 2), g(2, 3)],
            [g(1, 2), g(2, 4), g(4, 3)],
            [g(4, 3, 0.1), g(5, 4)],
            [],
            [g(6, 7)],
        )
        snap = reg.snapshot("net")
        assert {n["id"] for n in model.nodes("net")} == {"node6", "node7"}
        assert sorted((l["source"], l["target"]) for l in model.links("net")) == \
            [("node6", "node7")]
        assert snap.to_dict()["nodes"] == ["node6", "node7"]

    def test_instances_are_kept_apart(self):
        reg = TopologyRegistry()
        model = GraphModelAdapter()
        model.apply_delta(reg.reconcile("a", [g(1, 2)]))
        model.apply_delta(reg.reconcile("b", [g(8, 9)]))
        assert [n["id"] for n in model.nodes("a")] == ["node1", "node2"]
        assert [n["id"] for n in model.nodes("b")] == ["node8", "node9"]

    def test_release_forgets_instance(self):
        model, _ = self._run([g(1, 2)])
        model.release("net")
        assert model.nodes("net") == []
        assert model.links("net") == []


def test_adapter_attached_mid_run_catches_up_from_updates():
    reg = TopologyRegistry()
    reg.reconcile("net", [g(1, 2, 0.3)])

    model = GraphModelAdapter()
    model.apply_delta(reg.reconcile("net", [g(1, 2, 0.9), g(2, 3)]))

    assert {n["id"] for n in model.nodes("net")} == {"node1", "node2", "node3"}
    assert sorted((l["source"], l["target"], l["value"])
                  for l in model.links("net")) == [
        ("node1", "node2", 0.9), ("node2", "node3", 0.5)]
